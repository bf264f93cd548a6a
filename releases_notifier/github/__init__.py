"""Releases Notifier — GitHub Package.

REST client that fetches published releases of a repository.
"""

from releases_notifier.github.client import GitHubClient

__all__ = [
    "GitHubClient",
]

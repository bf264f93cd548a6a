"""Releases Notifier — Release Selection.

Decides which releases of a repository are worth announcing.
"""

from __future__ import annotations

from typing import Sequence

from releases_notifier.database.models import Release


def select_releases(releases: Sequence[Release]) -> list[Release]:
    """Pick the releases to announce for one repository.

    The most recent release is always announced. When it is a pre-release,
    the nearest stable release before it is announced first, so a user who
    only follows stable versions still sees the one they may have missed.

    Args:
        releases: Releases ordered oldest → newest.

    Returns:
        Zero, one or two releases, oldest first.
    """
    if not releases:
        return []

    last = releases[-1]
    if not last.is_prerelease:
        return [last]

    for release in reversed(releases[:-1]):
        if not release.is_prerelease:
            return [release, last]
    return [last]

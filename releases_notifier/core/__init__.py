"""Releases Notifier — Core Package.

Conversation and selection logic with no Telegram dependency.
Components:
  - parser: free text → RepoRef
  - selector: which releases of a repository to announce
  - session: per-user pending action and expansion cache
  - subscriptions: add/remove subscription flows
"""

from releases_notifier.core.parser import parse_repo_ref
from releases_notifier.core.selector import select_releases
from releases_notifier.core.session import (
    ExpansionCache,
    ExpansionKey,
    PendingAction,
    Session,
    SessionStore,
)
from releases_notifier.core.subscriptions import AddOutcome, SubscriptionCommandHandler

__all__ = [
    "parse_repo_ref",
    "select_releases",
    "ExpansionCache",
    "ExpansionKey",
    "PendingAction",
    "Session",
    "SessionStore",
    "AddOutcome",
    "SubscriptionCommandHandler",
]

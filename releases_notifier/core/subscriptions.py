"""Releases Notifier — Subscription Flows.

Adding a repository (from the text a user types while the bot awaits it)
and removing one from the user's list.
"""

from __future__ import annotations

import enum

from releases_notifier.core.parser import parse_repo_ref
from releases_notifier.core.session import Session
from releases_notifier.database import queries
from releases_notifier.database.db import Database
from releases_notifier.database.models import RepoRef
from releases_notifier.errors import ReleaseFetchError
from releases_notifier.github.client import GitHubClient
from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)


class AddOutcome(str, enum.Enum):
    """Result of one add-repository attempt."""

    SUBSCRIBED = "subscribed"
    RETRY = "retry"


class SubscriptionCommandHandler:
    """Orchestrates the add and remove subscription flows.

    Attributes:
        db: Persistent store.
        github: Release client used when a repository is seen for the
            first time.
        initial_window: How many recent releases to store on first add.
    """

    def __init__(self, db: Database, github: GitHubClient, initial_window: int = 20) -> None:
        self.db = db
        self.github = github
        self.initial_window = initial_window

    async def add_from_text(self, session: Session, text: str) -> AddOutcome:
        """Subscribe the session's user to the repository named in text.

        On RETRY the session stays armed, so the next message is another
        attempt. On SUBSCRIBED the pending action is cleared.

        Args:
            session: Session of the user who typed the text.
            text: Raw user input.

        Returns:
            SUBSCRIBED, or RETRY when the text cannot be parsed or the
            repository's releases cannot be fetched.
        """
        ref = parse_repo_ref(text)
        if ref is None:
            logger.info("User %d sent unparseable repo %r", session.user_id, text[:100])
            return AddOutcome.RETRY

        if await queries.get_repo(self.db, ref.owner, ref.name) is None:
            try:
                releases = await self.github.get_versions(ref.owner, ref.name, self.initial_window)
            except ReleaseFetchError as e:
                logger.info("User %d cannot subscribe to %s: %s", session.user_id, ref, e.reason)
                return AddOutcome.RETRY

            await queries.add_repo(self.db, ref.owner, ref.name)
            await queries.update_repo(self.db, ref.owner, ref.name, releases)
            logger.info("Now tracking %s (%d releases)", ref, len(releases))

        await queries.bind_user_to_repo(self.db, session.user_id, ref.owner, ref.name)
        session.clear_pending()
        logger.info("User %d subscribed to %s", session.user_id, ref)
        return AddOutcome.SUBSCRIBED

    async def remove(self, user_id: int, ref: RepoRef) -> list[RepoRef]:
        """Unsubscribe a user (no-op if not subscribed).

        Returns:
            The user's remaining subscriptions, for re-rendering the list.
        """
        await queries.unbind_user_from_repo(self.db, user_id, ref.owner, ref.name)
        logger.info("User %d unsubscribed from %s", user_id, ref)
        return await self.list_subscriptions(user_id)

    async def list_subscriptions(self, user_id: int) -> list[RepoRef]:
        user = await queries.get_user(self.db, user_id)
        return list(user.subscriptions) if user else []

"""Releases Notifier — Notification Dispatcher.

Delivers release notices in a strict, reproducible order:

    for repo in repos:                        # given order
        for release in select_releases(repo): # oldest selected first
            for recipient in recipients(repo):
                send, then wait for it to finish

Sends are awaited one by one and never issued concurrently, which also
keeps the outbound burst rate low. The first failed send raises
DeliveryError and the rest of the pass is dropped.

Pull ("get latest releases") and push (newly discovered releases) are the
same pass with different recipients.
"""

from __future__ import annotations

from typing import Callable, Sequence

from telegram.constants import ParseMode

from releases_notifier.core.selector import select_releases
from releases_notifier.core.session import SessionStore
from releases_notifier.database.models import Repo
from releases_notifier.errors import DeliveryError
from releases_notifier.notifier import keyboards
from releases_notifier.notifier.formatters import build_release_messages
from releases_notifier.notifier.telegram_bot import TelegramNotifier
from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)

RecipientsOf = Callable[[Repo], Sequence[int]]


def _watchers(repo: Repo) -> Sequence[int]:
    return repo.watched_users


class NotificationDispatcher:
    """Sequential delivery of short release notices with Expand buttons.

    Attributes:
        telegram: Outbound transport.
        sessions: Per-user sessions; each recipient's expansion cache is
            reset at the start of a pass and filled as notices go out.
    """

    def __init__(self, telegram: TelegramNotifier, sessions: SessionStore) -> None:
        self.telegram = telegram
        self.sessions = sessions

    async def dispatch(
        self,
        repos: Sequence[Repo],
        recipients_of: RecipientsOf,
        participants: Sequence[int] = (),
    ) -> int:
        """Run one notification pass.

        Args:
            repos: Repositories in announcement order.
            recipients_of: Chat ids that receive a repository's notices.
            participants: Chat ids whose expansions are reset even when
                no repository lists them (a pull over zero repos).

        Returns:
            Number of messages sent.

        Raises:
            DeliveryError: When a send fails; nothing after it is sent.
        """
        # Reset every participant before the first send
        participants = list(dict.fromkeys(participants))
        for repo in repos:
            for chat_id in recipients_of(repo):
                if chat_id not in participants:
                    participants.append(chat_id)
        for chat_id in participants:
            self.sessions.get(chat_id).expansions.reset()

        sent = 0
        for repo in repos:
            recipients = recipients_of(repo)
            if not recipients:
                continue

            for release in select_releases(repo.releases):
                messages = build_release_messages(repo.ref, release)

                for chat_id in recipients:
                    key = self.sessions.get(chat_id).expansions.append(messages.full)
                    msg_id = await self.telegram.send_message(
                        chat_id,
                        messages.short,
                        parse_mode=ParseMode.HTML,
                        reply_markup=keyboards.expand_button(key),
                    )
                    if msg_id is None:
                        logger.error(
                            "Delivery of %s %s to %d failed, aborting pass after %d messages",
                            repo.ref, release.name, chat_id, sent,
                        )
                        raise DeliveryError(chat_id, sent + 1)
                    sent += 1
                    logger.debug(
                        "Sent %s %s to %d (expand #%d)",
                        repo.ref, release.name, chat_id, key.index,
                    )

        logger.info(
            "Notification pass: %d messages to %d recipients over %d repos",
            sent, len(participants), len(repos),
        )
        return sent

    async def send_latest(self, user_id: int, repos: Sequence[Repo]) -> int:
        """Pull: announce the latest releases of the user's repositories to them."""
        return await self.dispatch(repos, lambda repo: (user_id,), participants=(user_id,))

    async def notify_watchers(self, repos: Sequence[Repo]) -> int:
        """Push: announce releases to every watcher of each repository."""
        return await self.dispatch(repos, _watchers)

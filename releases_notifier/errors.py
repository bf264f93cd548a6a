"""Releases Notifier — Exceptions.

Failures the bot recovers from locally. Anything else (database or
Telegram API errors) propagates to the Application error handler.
"""

from __future__ import annotations


class NotifierError(Exception):
    """Base class for all releases-notifier errors."""


class ReleaseFetchError(NotifierError):
    """The release provider could not return releases for a repository."""

    def __init__(self, owner: str, name: str, reason: str) -> None:
        self.owner = owner
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot fetch releases of {owner}/{name}: {reason}")


class StaleReferenceError(NotifierError):
    """An expand token does not point into the current expansion list."""


class DeliveryError(NotifierError):
    """A message could not be delivered; the dispatch chain stops here."""

    def __init__(self, chat_id: int, position: int) -> None:
        self.chat_id = chat_id
        self.position = position
        super().__init__(
            f"Delivery to chat {chat_id} failed at message #{position}, "
            f"remaining messages dropped"
        )


class UnknownActionError(NotifierError):
    """A callback payload does not match any registered action."""

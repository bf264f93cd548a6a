"""Releases Notifier — Conversation Sessions.

Process-local, per-user conversation state:
  - the single pending input action (what the next free text means)
  - the expansion cache holding full release texts of the last
    notification pass

Sessions are created lazily by SessionStore and never shared between users.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from releases_notifier.errors import StaleReferenceError
from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)


class PendingAction(str, enum.Enum):
    """Input flows a user's next free-text message can be routed into."""

    AWAITING_REPO_INPUT = "awaiting_repo_input"


@dataclass(frozen=True)
class ExpansionKey:
    """Handle of one stored full text: pass generation + position."""

    generation: int
    index: int


class ExpansionCache:
    """Full release texts generated during the current notification pass.

    Every pass starts with reset(), which drops the previous texts and
    bumps the generation. Keys issued before a reset never resolve
    afterwards, even when their index is still in bounds.
    """

    def __init__(self) -> None:
        self._texts: list[str] = []
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def __len__(self) -> int:
        return len(self._texts)

    def reset(self) -> None:
        self._texts = []
        self._generation += 1

    def append(self, full_text: str) -> ExpansionKey:
        """Store a full text and return the key pointing at it."""
        self._texts.append(full_text)
        return ExpansionKey(generation=self._generation, index=len(self._texts) - 1)

    def resolve(self, index: int, generation: Optional[int] = None) -> str:
        """Look up a stored full text.

        Args:
            index: Position returned by append().
            generation: Pass generation the index was issued in. None
                resolves against the current pass.

        Returns:
            The stored full text.

        Raises:
            StaleReferenceError: If the index is out of bounds or belongs
                to an earlier pass.
        """
        if generation is not None and generation != self._generation:
            raise StaleReferenceError(
                f"Expansion #{index} belongs to pass {generation}, "
                f"current pass is {self._generation}"
            )
        if index < 0 or index >= len(self._texts):
            raise StaleReferenceError(
                f"Expansion #{index} out of range ({len(self._texts)} stored)"
            )
        return self._texts[index]


@dataclass
class Session:
    """Conversation state of one user.

    At most one action is pending at a time; setting a new one replaces
    the previous one.
    """

    user_id: int
    pending_action: Optional[PendingAction] = None
    expansions: ExpansionCache = field(default_factory=ExpansionCache)

    def await_repo_input(self) -> None:
        if self.pending_action is not None:
            logger.debug(
                "User %d: pending %s replaced by %s",
                self.user_id, self.pending_action.value,
                PendingAction.AWAITING_REPO_INPUT.value,
            )
        self.pending_action = PendingAction.AWAITING_REPO_INPUT

    def clear_pending(self) -> None:
        self.pending_action = None

    @property
    def is_awaiting_repo(self) -> bool:
        return self.pending_action is PendingAction.AWAITING_REPO_INPUT


class SessionStore:
    """Sessions keyed by Telegram user id, created on first access."""

    def __init__(self) -> None:
        self._sessions: dict[int, Session] = {}

    def get(self, user_id: int) -> Session:
        session = self._sessions.get(user_id)
        if session is None:
            session = Session(user_id=user_id)
            self._sessions[user_id] = session
            logger.debug("Created session for user %d", user_id)
        return session

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

"""Shared fixtures: a temporary SQLite store and fake collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import pytest

from releases_notifier.core.session import SessionStore
from releases_notifier.core.subscriptions import SubscriptionCommandHandler
from releases_notifier.database.db import Database
from releases_notifier.database.models import Release
from releases_notifier.errors import ReleaseFetchError
from releases_notifier.notifier.commands import BotController, EventKind, InboundEvent
from releases_notifier.notifier.dispatcher import NotificationDispatcher


@dataclass
class Sent:
    chat_id: int
    text: str
    parse_mode: Optional[str]
    reply_markup: Any

    @property
    def buttons(self) -> list:
        if self.reply_markup is None:
            return []
        return [button for row in self.reply_markup.inline_keyboard for button in row]

    @property
    def callback_data(self) -> list[str]:
        return [b.callback_data for b in self.buttons if b.callback_data]


@dataclass
class Edited(Sent):
    message_id: int = 0


class FakeTelegram:
    """Records outbound traffic; send number `fail_on` (1-based) fails."""

    def __init__(self) -> None:
        self.sent: list[Sent] = []
        self.edits: list[Edited] = []
        self.answered: list[str] = []
        self.fail_on: Optional[int] = None

    async def send_message(self, chat_id, text, parse_mode="HTML", reply_markup=None, disable_preview=True):
        self.sent.append(Sent(chat_id, text, parse_mode, reply_markup))
        if self.fail_on == len(self.sent):
            return None
        return str(len(self.sent))

    async def edit_message(self, chat_id, message_id, text, parse_mode="HTML", reply_markup=None):
        self.edits.append(Edited(chat_id, text, parse_mode, reply_markup, message_id))
        return True

    async def answer_callback(self, callback_query_id, text=""):
        self.answered.append(callback_query_id)


class FakeGitHub:
    """Serves releases from a dict keyed by "owner/name"; unknown repos fail."""

    def __init__(self) -> None:
        self.repos: dict[str, list[Release]] = {}
        self.calls: list[tuple[str, str, int]] = []

    async def get_versions(self, owner: str, name: str, limit: int) -> list[Release]:
        self.calls.append((owner, name, limit))
        key = f"{owner}/{name}"
        if key not in self.repos:
            raise ReleaseFetchError(owner, name, "repository not found")
        return list(self.repos[key][-limit:])


def rel(name: str, prerelease: bool = False, description: str = "") -> Release:
    return Release(
        name=name,
        url=f"https://github.com/acme/widget/releases/tag/{name}",
        description=description or f"Notes for {name}",
        is_prerelease=prerelease,
    )


@pytest.fixture
def make_release():
    return rel


@pytest.fixture
async def db(tmp_path):
    database = Database(str(tmp_path / "test.db"))
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def telegram() -> FakeTelegram:
    return FakeTelegram()


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture
def dispatcher(telegram, sessions) -> NotificationDispatcher:
    return NotificationDispatcher(telegram, sessions)


@pytest.fixture
def subscriptions(db, github) -> SubscriptionCommandHandler:
    return SubscriptionCommandHandler(db, github, initial_window=20)


@pytest.fixture
def controller(db, telegram, sessions, subscriptions, dispatcher) -> BotController:
    return BotController(db, telegram, sessions, subscriptions, dispatcher)


@pytest.fixture
def event():
    """Factory for inbound events of user 42 in their private chat."""

    def _event(kind: EventKind, text: str, user_id: int = 42, message_id: Optional[int] = None):
        return InboundEvent(
            kind=kind,
            user_id=user_id,
            chat_id=user_id,
            text=text,
            message_id=message_id if kind is not EventKind.CALLBACK else (message_id or 1000),
            callback_id="cb" if kind is EventKind.CALLBACK else None,
            username=f"user{user_id}",
        )

    return _event

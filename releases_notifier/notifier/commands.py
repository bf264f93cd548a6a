"""Releases Notifier — Telegram Command & Callback Routing.

Commands:
  /start   — register the user and show the action menu
  /actions — show the action menu
  /about   — what this bot does

Inline buttons are routed through an explicit table keyed by Action;
payloads are parsed into typed routes before dispatch and unknown ones are
dropped. Free text goes to whatever input flow the user's session has
pending.

Every python-telegram-bot Update is first converted into an InboundEvent,
so handlers never care whether they were triggered by a message or a
button.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from telegram import InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler as TgCmdHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from releases_notifier.core.session import SessionStore
from releases_notifier.core.subscriptions import AddOutcome, SubscriptionCommandHandler
from releases_notifier.database import queries
from releases_notifier.database.db import Database
from releases_notifier.errors import StaleReferenceError, UnknownActionError
from releases_notifier.notifier import keyboards
from releases_notifier.notifier.actions import Action, CallbackRoute, parse_callback_data
from releases_notifier.notifier.dispatcher import NotificationDispatcher
from releases_notifier.notifier.formatters import (
    ABOUT_TEXT,
    BROKEN_DATA_TEXT,
    ENTER_REPO_TEXT,
    GENERIC_ERROR_TEXT,
    NO_RELEASES_TEXT,
    NO_SUBSCRIPTIONS_TEXT,
    RETRY_REPO_TEXT,
    SELECT_ACTION_TEXT,
    SUBSCRIBED_TEXT,
    YOUR_REPOS_TEXT,
)
from releases_notifier.notifier.telegram_bot import TelegramNotifier
from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)

COMMANDS = ("start", "actions", "about")


class EventKind(str, enum.Enum):
    COMMAND = "command"
    CALLBACK = "callback"
    TEXT = "text"


@dataclass(frozen=True)
class InboundEvent:
    """One inbound interaction, whatever its Telegram shape.

    Attributes:
        kind: Command, button press or free text.
        user_id: Acting Telegram user.
        chat_id: Chat to answer in.
        text: Command name, callback payload or message text.
        message_id: Message whose button was pressed (callbacks only).
        callback_id: Callback query id to answer (callbacks only).
        username: Acting user's @username.
        first_name: Acting user's display name.
    """

    kind: EventKind
    user_id: int
    chat_id: int
    text: str = ""
    message_id: Optional[int] = None
    callback_id: Optional[str] = None
    username: str = ""
    first_name: str = ""

    @classmethod
    def from_update(cls, update: Update, kind: EventKind) -> Optional["InboundEvent"]:
        """Build an event from an Update, or None if it has no acting user."""
        user = update.effective_user
        chat = update.effective_chat
        if user is None or chat is None:
            return None

        text = ""
        message_id = None
        callback_id = None

        if kind is EventKind.CALLBACK and update.callback_query is not None:
            query = update.callback_query
            text = query.data or ""
            callback_id = query.id
            if query.message is not None:
                message_id = query.message.message_id
        elif update.effective_message is not None:
            text = update.effective_message.text or ""
            if kind is EventKind.COMMAND:
                # "/start@my_bot payload" → "start"
                text = text.split(maxsplit=1)[0].lstrip("/").split("@", 1)[0] if text else ""

        return cls(
            kind=kind,
            user_id=user.id,
            chat_id=chat.id,
            text=text,
            message_id=message_id,
            callback_id=callback_id,
            username=user.username or "",
            first_name=user.first_name or "",
        )


CommandFn = Callable[[InboundEvent], Awaitable[None]]
CallbackFn = Callable[[InboundEvent, CallbackRoute], Awaitable[None]]


class BotController:
    """Routes inbound events to the subscription, session and dispatch logic.

    Attributes:
        db: Persistent store.
        telegram: Outbound transport.
        sessions: Per-user conversation state.
        subscriptions: Add/remove subscription flows.
        dispatcher: Release notice delivery.
    """

    def __init__(
        self,
        db: Database,
        telegram: TelegramNotifier,
        sessions: SessionStore,
        subscriptions: SubscriptionCommandHandler,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.db = db
        self.telegram = telegram
        self.sessions = sessions
        self.subscriptions = subscriptions
        self.dispatcher = dispatcher

        self._commands: dict[str, CommandFn] = {
            "start": self.start,
            "actions": self.actions,
            "about": self.about,
        }
        self._callbacks: dict[Action, CallbackFn] = {
            Action.ACTIONS_LIST: self.actions_list,
            Action.ADD_REPO: self.add_repo,
            Action.GET_RELEASES: self.get_releases,
            Action.EXPAND_RELEASE: self.expand_release,
            Action.EDIT_REPOS: self.edit_repos,
            Action.DELETE_REPO: self.delete_repo,
        }

    # ── python-telegram-bot wiring ───────────────────────

    def register(self, tg_app: Application) -> None:
        """Register all handlers with the Telegram Application."""
        tg_app.add_handler(TgCmdHandler(list(COMMANDS), self._on_command))
        tg_app.add_handler(CallbackQueryHandler(self._on_callback))
        tg_app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self._on_text))
        tg_app.add_error_handler(self._on_error)
        logger.info("Registered %d commands and %d callback actions", len(COMMANDS), len(self._callbacks))

    async def _on_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        event = InboundEvent.from_update(update, EventKind.COMMAND)
        if event is not None:
            await self.handle_command(event)

    async def _on_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        event = InboundEvent.from_update(update, EventKind.CALLBACK)
        if event is not None:
            await self.handle_callback(event)

    async def _on_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        event = InboundEvent.from_update(update, EventKind.TEXT)
        if event is not None:
            await self.handle_text(event)

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Log any unhandled error and tell the user something went wrong."""
        logger.error("Unhandled error while processing update", exc_info=context.error)
        if isinstance(update, Update) and update.effective_chat is not None:
            await self.telegram.send_message(
                update.effective_chat.id, GENERIC_ERROR_TEXT, parse_mode=None,
            )

    # ── Routing ──────────────────────────────────────────

    async def handle_command(self, event: InboundEvent) -> None:
        handler = self._commands.get(event.text)
        if handler is None:
            logger.warning("Unknown command %r from user %d", event.text, event.user_id)
            return
        logger.info("User %d: /%s", event.user_id, event.text)
        await handler(event)

    async def handle_callback(self, event: InboundEvent) -> None:
        """Parse a button payload and dispatch it.

        Any action except "add repo" and "expand" supersedes a pending input.
        """
        if event.callback_id:
            await self.telegram.answer_callback(event.callback_id)

        try:
            route = parse_callback_data(event.text)
        except UnknownActionError as e:
            logger.warning("User %d: %s", event.user_id, e)
            return
        except StaleReferenceError as e:
            logger.info("User %d: %s", event.user_id, e)
            await self._show(event, BROKEN_DATA_TEXT, parse_mode=None)
            return

        if route.action not in (Action.ADD_REPO, Action.EXPAND_RELEASE):
            self.sessions.get(event.user_id).clear_pending()

        logger.debug("User %d: callback %s", event.user_id, route.action.value)
        await self._callbacks[route.action](event, route)

    async def handle_text(self, event: InboundEvent) -> bool:
        """Route free text into the user's pending input flow.

        Returns:
            True if the text was consumed, False if it was left for others.
        """
        session = self.sessions.get(event.user_id)

        if session.pending_action is None:
            logger.debug("User %d: free text with nothing pending", event.user_id)
            return False

        if session.is_awaiting_repo:
            outcome = await self.subscriptions.add_from_text(session, event.text)
            if outcome is AddOutcome.SUBSCRIBED:
                await self._reply(event, SUBSCRIBED_TEXT, reply_markup=keyboards.add_one_more_repo())
            else:
                await self._reply(event, RETRY_REPO_TEXT)
            return True

        logger.warning(
            "User %d: no flow for pending action %s, clearing it",
            event.user_id, session.pending_action,
        )
        session.clear_pending()
        return False

    # ── Commands ─────────────────────────────────────────

    async def start(self, event: InboundEvent) -> None:
        await queries.create_user(self.db, event.user_id, event.username, event.first_name)
        await self.actions(event)

    async def actions(self, event: InboundEvent) -> None:
        self.sessions.get(event.user_id).clear_pending()
        await self._reply(event, SELECT_ACTION_TEXT, reply_markup=keyboards.actions_list())

    async def about(self, event: InboundEvent) -> None:
        self.sessions.get(event.user_id).clear_pending()
        await self._reply(event, ABOUT_TEXT, parse_mode=ParseMode.MARKDOWN)

    # ── Callback actions ─────────────────────────────────

    async def actions_list(self, event: InboundEvent, route: CallbackRoute) -> None:
        await self._show(event, SELECT_ACTION_TEXT, reply_markup=keyboards.actions_list())

    async def add_repo(self, event: InboundEvent, route: CallbackRoute) -> None:
        self.sessions.get(event.user_id).await_repo_input()
        await self._show(event, ENTER_REPO_TEXT, reply_markup=keyboards.back_to_actions())

    async def get_releases(self, event: InboundEvent, route: CallbackRoute) -> None:
        repos = await queries.get_user_subscriptions(self.db, event.user_id)
        sent = await self.dispatcher.send_latest(event.user_id, repos)
        if sent == 0:
            text = NO_RELEASES_TEXT if repos else NO_SUBSCRIPTIONS_TEXT
            await self._reply(event, text, reply_markup=keyboards.back_to_actions())

    async def expand_release(self, event: InboundEvent, route: CallbackRoute) -> None:
        session = self.sessions.get(event.user_id)
        try:
            full_text = session.expansions.resolve(route.index, route.generation)
        except StaleReferenceError as e:
            logger.info("User %d: %s", event.user_id, e)
            await self._show(event, BROKEN_DATA_TEXT, parse_mode=None)
            return
        await self._show(event, full_text, parse_mode=ParseMode.MARKDOWN)

    async def edit_repos(self, event: InboundEvent, route: CallbackRoute) -> None:
        refs = await self.subscriptions.list_subscriptions(event.user_id)
        await self._show_subscriptions(event, refs)

    async def delete_repo(self, event: InboundEvent, route: CallbackRoute) -> None:
        refs = await self.subscriptions.remove(event.user_id, route.target)
        await self._show_subscriptions(event, refs)

    # ── Helpers ──────────────────────────────────────────

    async def _show_subscriptions(self, event: InboundEvent, refs: list) -> None:
        if refs:
            await self._show(event, YOUR_REPOS_TEXT, reply_markup=keyboards.subscriptions_list(refs))
        else:
            await self._show(event, NO_SUBSCRIPTIONS_TEXT, reply_markup=keyboards.back_to_actions())

    async def _reply(
        self,
        event: InboundEvent,
        text: str,
        parse_mode: Optional[str] = ParseMode.HTML,
        reply_markup: Optional[InlineKeyboardMarkup] = None,
    ) -> None:
        await self.telegram.send_message(
            event.chat_id, text, parse_mode=parse_mode, reply_markup=reply_markup,
        )

    async def _show(
        self,
        event: InboundEvent,
        text: str,
        parse_mode: Optional[str] = ParseMode.HTML,
        reply_markup: Optional[InlineKeyboardMarkup] = None,
    ) -> None:
        """Replace the pressed button's message, or send a new one."""
        if event.message_id is None:
            await self._reply(event, text, parse_mode=parse_mode, reply_markup=reply_markup)
            return
        await self.telegram.edit_message(
            event.chat_id, event.message_id, text,
            parse_mode=parse_mode, reply_markup=reply_markup,
        )

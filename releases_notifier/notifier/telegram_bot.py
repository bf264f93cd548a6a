"""Releases Notifier — Telegram Transport.

Thin async wrapper around python-telegram-bot's Bot used for every
outbound message. Handles rate limiting (429), timeouts and network
errors with retries, and falls back to plain text when Telegram cannot
parse the markup.

send_message() returns the message id on success and None on failure;
it never raises for Telegram API errors.
"""

from __future__ import annotations

import asyncio
import re
from typing import Optional

from telegram import Bot, InlineKeyboardMarkup, LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.error import BadRequest, NetworkError, RetryAfter, TelegramError, TimedOut

from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)

_MAX_MESSAGE_LEN = 4096
_MAX_ATTEMPTS = 3


def _truncate(text: str, limit: int = _MAX_MESSAGE_LEN) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


class TelegramNotifier:
    """Outbound Telegram messaging.

    Attributes:
        bot: The python-telegram-bot Bot instance (Application.bot).
    """

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def initialize(self) -> bool:
        """Verify the token with getMe.

        Returns:
            True if connected successfully, False otherwise.
        """
        try:
            me = await self.bot.get_me()
            logger.info("Telegram bot connected: @%s", me.username)
            return True
        except TelegramError as e:
            logger.error("Telegram bot connection failed: %s", e)
            return False

    async def send_message(
        self,
        chat_id: int,
        text: str,
        parse_mode: Optional[str] = ParseMode.HTML,
        reply_markup: Optional[InlineKeyboardMarkup] = None,
        disable_preview: bool = True,
    ) -> Optional[str]:
        """Send a message to a chat.

        Args:
            chat_id: Target chat (the user id for private chats).
            text: Message content, truncated to Telegram's limit.
            parse_mode: Telegram parse mode, or None for plain text.
            reply_markup: Inline keyboard to attach.
            disable_preview: Whether to disable link previews.

        Returns:
            Message id string on success, None on failure.
        """
        if not text:
            return None
        text = _truncate(text)

        for attempt in range(_MAX_ATTEMPTS):
            try:
                msg = await self.bot.send_message(
                    chat_id=chat_id,
                    text=text,
                    parse_mode=parse_mode,
                    reply_markup=reply_markup,
                    link_preview_options=LinkPreviewOptions(is_disabled=disable_preview),
                )
                return str(msg.message_id)

            except BadRequest as e:
                error_msg = str(e)
                if parse_mode and "parse" in error_msg.lower():
                    logger.warning(
                        "Parse error, retrying as plain text: %s", error_msg[:200],
                    )
                    parse_mode = None
                    text = self._strip_formatting(text)
                    continue
                logger.error("Telegram BadRequest for chat %s: %s", chat_id, error_msg)
                return None

            except RetryAfter as e:
                wait = e.retry_after
                wait_seconds = wait.total_seconds() if hasattr(wait, "total_seconds") else float(wait)
                logger.warning("Telegram rate limited. Waiting %.0f seconds...", wait_seconds)
                await asyncio.sleep(wait_seconds)

            except TimedOut:
                logger.warning(
                    "Telegram timeout (attempt %d/%d)", attempt + 1, _MAX_ATTEMPTS,
                )
                await asyncio.sleep(2 ** attempt)

            except NetworkError as e:
                logger.warning(
                    "Telegram network error (attempt %d/%d): %s",
                    attempt + 1, _MAX_ATTEMPTS, e,
                )
                await asyncio.sleep(2 ** attempt)

            except TelegramError as e:
                logger.error("Telegram error for chat %s: %s", chat_id, e)
                return None

        logger.error("Failed to send message to %s after %d attempts", chat_id, _MAX_ATTEMPTS)
        return None

    async def edit_message(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        parse_mode: Optional[str] = ParseMode.HTML,
        reply_markup: Optional[InlineKeyboardMarkup] = None,
    ) -> bool:
        """Replace the text of a message the bot sent earlier.

        Returns:
            True if the message now shows the given text.
        """
        text = _truncate(text)
        try:
            await self.bot.edit_message_text(
                chat_id=chat_id,
                message_id=message_id,
                text=text,
                parse_mode=parse_mode,
                reply_markup=reply_markup,
                link_preview_options=LinkPreviewOptions(is_disabled=True),
            )
            return True
        except BadRequest as e:
            error_msg = str(e).lower()
            if "not modified" in error_msg:
                return True
            if parse_mode and "parse" in error_msg:
                logger.warning("Parse error on edit, retrying as plain text: %s", e)
                return await self.edit_message(
                    chat_id, message_id, self._strip_formatting(text),
                    parse_mode=None, reply_markup=reply_markup,
                )
            logger.error("Telegram BadRequest on edit in chat %s: %s", chat_id, e)
            return False

    async def answer_callback(self, callback_query_id: str, text: str = "") -> None:
        """Stop the client-side loading spinner of a pressed button."""
        try:
            await self.bot.answer_callback_query(callback_query_id, text=text or None)
        except TelegramError as e:
            # Queries older than ~15 minutes cannot be answered anymore
            logger.debug("answerCallbackQuery failed: %s", e)

    @staticmethod
    def _strip_formatting(text: str) -> str:
        """Remove HTML/Markdown formatting for the plain text fallback."""
        text = re.sub(r'<a href="([^"]+)">([^<]+)</a>', r"\2 (\1)", text)
        text = re.sub(r"<[^>]+>", "", text)
        text = re.sub(r"\[([^\]]+)\]\(([^)]+)\)", r"\1 (\2)", text)
        text = text.replace("*", "").replace("\\_", "_")
        text = text.replace("&amp;", "&").replace("&lt;", "<").replace("&gt;", ">")
        return text

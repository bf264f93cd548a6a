"""Releases Notifier — Notifier Package.

Telegram side of the bot.
Components:
  - formatters: short (HTML) and full (Markdown) release renderings
  - telegram_bot: outbound transport with retry and plain-text fallback
  - dispatcher: strictly sequential delivery of release notices
  - commands: command/callback/free-text routing
  - watcher: periodic discovery of new releases
"""

from releases_notifier.notifier.formatters import build_release_messages
from releases_notifier.notifier.telegram_bot import TelegramNotifier
from releases_notifier.notifier.dispatcher import NotificationDispatcher

__all__ = [
    "build_release_messages",
    "TelegramNotifier",
    "NotificationDispatcher",
]

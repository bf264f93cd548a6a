"""Releases Notifier — Telegram bot announcing new GitHub releases."""

__version__ = "1.0.0"

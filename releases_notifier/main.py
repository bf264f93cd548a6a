"""Releases Notifier — Main Orchestrator.

Ties all components together: config, database, GitHub client, Telegram
bot, conversation routing and the periodic update check.

Runs:
  - Telegram long polling (commands, buttons, free text)
  - Update check with APScheduler (every N minutes)

Usage:
    python -m releases_notifier.main
    releases-notifier
"""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from telegram import Update
from telegram.ext import Application

from releases_notifier.config import AppConfig, load_config
from releases_notifier.core.session import SessionStore
from releases_notifier.core.subscriptions import SubscriptionCommandHandler
from releases_notifier.database.db import Database
from releases_notifier.github.client import GitHubClient
from releases_notifier.notifier.commands import BotController
from releases_notifier.notifier.dispatcher import NotificationDispatcher
from releases_notifier.notifier.telegram_bot import TelegramNotifier
from releases_notifier.notifier.watcher import ReleaseWatcher
from releases_notifier.utils.logger import get_logger, set_level

logger = get_logger(__name__)


class ReleasesNotifierApp:
    """Main application orchestrator.

    Attributes:
        config: Full application configuration.
        db: Active database instance.
    """

    def __init__(self) -> None:
        self.config: Optional[AppConfig] = None
        self.db: Optional[Database] = None
        self._github: Optional[GitHubClient] = None
        self._tg_app: Optional[Application] = None
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._watcher: Optional[ReleaseWatcher] = None
        self._stop_event = asyncio.Event()

    async def start(self) -> None:
        """Full startup sequence, then wait until stop() is called.

        1. Load config
        2. Initialize database
        3. Build Telegram application and components
        4. Schedule the update check
        5. Start polling
        """
        try:
            logger.info("═══ Loading configuration ═══")
            self.config = load_config()
            set_level(self.config.log_level)

            logger.info("═══ Initializing database ═══")
            self.db = Database(self.config.database_path)
            await self.db.initialize()

            logger.info("═══ Initializing components ═══")
            self._github = GitHubClient(self.config.github)
            self._tg_app = Application.builder().token(self.config.telegram.bot_token).build()

            telegram = TelegramNotifier(self._tg_app.bot)
            sessions = SessionStore()
            dispatcher = NotificationDispatcher(telegram, sessions)
            subscriptions = SubscriptionCommandHandler(
                self.db, self._github,
                initial_window=self.config.github.initial_release_window,
            )
            controller = BotController(self.db, telegram, sessions, subscriptions, dispatcher)
            controller.register(self._tg_app)

            self._watcher = ReleaseWatcher(
                self.db, self._github, dispatcher,
                fetch_window=self.config.github.update_release_window,
                keep=self.config.github.initial_release_window,
            )

            logger.info("═══ Setting up scheduler ═══")
            interval = self.config.watcher.interval_minutes
            self._scheduler = AsyncIOScheduler()
            self._scheduler.add_job(
                self._run_update_check,
                IntervalTrigger(minutes=interval),
                id="update_check",
                max_instances=1,
                misfire_grace_time=60,
                name=f"Update check (every {interval}m)",
            )

            logger.info("═══ Starting Telegram polling ═══")
            await self._tg_app.initialize()
            await telegram.initialize()
            await self._tg_app.start()
            await self._tg_app.updater.start_polling(allowed_updates=Update.ALL_TYPES)

            self._scheduler.start()
            logger.info("Scheduler started, update check every %d minutes", interval)

            await self._stop_event.wait()

        except Exception:
            logger.exception("Fatal error")
            raise
        finally:
            await self.shutdown()

    async def _run_update_check(self) -> None:
        if self._watcher is None:
            return
        try:
            await self._watcher.check_updates()
        except Exception:
            # Keep the scheduler alive; the next interval retries
            logger.exception("Update check error")

    def stop(self) -> None:
        self._stop_event.set()

    async def shutdown(self) -> None:
        """Stop scheduler and polling, close connections."""
        logger.info("═══ Shutting down ═══")

        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

        if self._tg_app is not None:
            if self._tg_app.updater and self._tg_app.updater.running:
                await self._tg_app.updater.stop()
            if self._tg_app.running:
                await self._tg_app.stop()
            await self._tg_app.shutdown()

        if self._github is not None:
            await self._github.close()

        if self.db is not None:
            await self.db.close()

        logger.info("Shutdown complete")


def main() -> None:
    """Application entry point."""
    app = ReleasesNotifierApp()
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, app.stop)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(app.stop))

    try:
        loop.run_until_complete(app.start())
    except KeyboardInterrupt:
        pass
    finally:
        loop.close()


if __name__ == "__main__":
    main()

"""Releases Notifier — New Release Watcher.

Periodically re-fetches every tracked repository, stores the refreshed
release list and pushes the releases that were not known before to the
repository's watchers.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace

from releases_notifier.database import queries
from releases_notifier.database.db import Database
from releases_notifier.database.models import Release, Repo
from releases_notifier.errors import DeliveryError, ReleaseFetchError
from releases_notifier.github.client import GitHubClient
from releases_notifier.notifier.dispatcher import NotificationDispatcher
from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CheckStats:
    """Counters of one update check."""

    checked: int = 0
    updated: int = 0
    failed: int = 0
    sent: int = 0


def new_releases(known: tuple[Release, ...], fetched: list[Release]) -> list[Release]:
    """Releases in fetched whose URL is not among the known ones, in fetched order."""
    known_urls = {release.url for release in known}
    return [release for release in fetched if release.url not in known_urls]


def merge_releases(known: tuple[Release, ...], fetched: list[Release], keep: int) -> list[Release]:
    """Append fetched releases to the known ones, keeping the newest `keep`.

    Known releases whose URL reappears in fetched are replaced by the
    fetched version (edited notes, prerelease flag flipped).
    """
    fetched_urls = {release.url for release in fetched}
    merged = [release for release in known if release.url not in fetched_urls]
    merged.extend(fetched)
    return merged[-keep:]


class ReleaseWatcher:
    """Discovers new releases and hands them to the dispatcher.

    Attributes:
        db: Persistent store.
        github: Release client.
        dispatcher: Push delivery.
        fetch_window: Releases fetched per repository per check.
        keep: Releases stored per repository.
    """

    def __init__(
        self,
        db: Database,
        github: GitHubClient,
        dispatcher: NotificationDispatcher,
        fetch_window: int = 10,
        keep: int = 20,
    ) -> None:
        self.db = db
        self.github = github
        self.dispatcher = dispatcher
        self.fetch_window = fetch_window
        self.keep = keep
        self._lock = asyncio.Lock()

    async def check_updates(self) -> CheckStats:
        """Run one check over all tracked repositories.

        Overlapping calls are skipped while a check is running. A fetch
        failure skips that repository; a delivery failure stops the push
        but the refreshed releases stay stored.
        """
        stats = CheckStats()
        if self._lock.locked():
            logger.warning("Previous update check still running, skipping")
            return stats

        async with self._lock:
            repos = await queries.get_all_repos(self.db)
            logger.info("═══ Checking %d repos for new releases ═══", len(repos))

            updated: list[Repo] = []
            for repo in repos:
                stats.checked += 1
                try:
                    fetched = await self.github.get_versions(repo.owner, repo.name, self.fetch_window)
                except ReleaseFetchError as e:
                    stats.failed += 1
                    logger.warning("Skipping %s: %s", repo.ref, e.reason)
                    continue

                fresh = new_releases(repo.releases, fetched)
                if not fresh:
                    continue

                await queries.update_repo(
                    self.db, repo.owner, repo.name,
                    merge_releases(repo.releases, fetched, self.keep),
                )
                stats.updated += 1
                logger.info("%s: %d new releases", repo.ref, len(fresh))
                if repo.watched_users:
                    updated.append(replace(repo, releases=tuple(fresh)))

            if updated:
                try:
                    stats.sent = await self.dispatcher.notify_watchers(updated)
                except DeliveryError as e:
                    logger.error("Push aborted: %s", e)

            logger.info(
                "Update check: %d checked | %d updated | %d failed | %d sent",
                stats.checked, stats.updated, stats.failed, stats.sent,
            )
            return stats

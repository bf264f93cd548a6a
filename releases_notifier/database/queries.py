"""Releases Notifier — Database Query Operations.

The persistent store used by the bot. Every function:
  - Uses parameterized queries (? placeholders, never f-strings for SQL)
  - Commits after writes
  - Returns model dataclasses, never raw rows
  - Logs operations at DEBUG level

Subscription writes are idempotent: binding twice or adding a repository
twice leaves a single row.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import aiosqlite

from releases_notifier.database.db import Database
from releases_notifier.database.models import Release, Repo, RepoRef, User
from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)


def _row_to_dict(row: Any) -> dict[str, Any]:
    return dict(row)


async def _repo_id(conn: aiosqlite.Connection, owner: str, name: str) -> Optional[int]:
    cursor = await conn.execute(
        "SELECT id FROM repos WHERE owner = ? AND name = ?",
        (owner, name),
    )
    row = await cursor.fetchone()
    return row["id"] if row is not None else None


async def _load_repo(conn: aiosqlite.Connection, row: dict[str, Any]) -> Repo:
    """Build a Repo with its ordered releases and watcher ids."""
    cursor = await conn.execute(
        """
        SELECT name, url, description, is_prerelease
        FROM releases WHERE repo_id = ? ORDER BY position ASC
        """,
        (row["id"],),
    )
    releases = tuple(Release.from_db_row(_row_to_dict(r)) for r in await cursor.fetchall())

    cursor = await conn.execute(
        "SELECT user_id FROM subscriptions WHERE repo_id = ? ORDER BY rowid ASC",
        (row["id"],),
    )
    watchers = tuple(r["user_id"] for r in await cursor.fetchall())

    return Repo(
        ref=RepoRef(owner=row["owner"], name=row["name"]),
        releases=releases,
        watched_users=watchers,
    )


# ═══════════════════════════════════════════════════════════
# User Operations
# ═══════════════════════════════════════════════════════════


async def create_user(
    db: Database,
    user_id: int,
    username: str = "",
    first_name: str = "",
) -> None:
    """Insert a user, or refresh the names of an existing one.

    Args:
        db: Active database instance.
        user_id: Telegram user id.
        username: Telegram @username.
        first_name: Telegram display name.
    """
    conn = await db.get_connection()
    await conn.execute(
        """
        INSERT INTO users (id, username, first_name) VALUES (?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            username = excluded.username,
            first_name = excluded.first_name
        """,
        (user_id, username or "", first_name or ""),
    )
    await conn.commit()
    logger.debug("Upserted user %d (@%s)", user_id, username)


async def get_user(db: Database, user_id: int) -> Optional[User]:
    """Retrieve a user together with their subscriptions.

    Returns:
        The User, or None if the user never started the bot.
    """
    conn = await db.get_connection()
    cursor = await conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
    row = await cursor.fetchone()
    if row is None:
        logger.debug("get_user(%d) → not found", user_id)
        return None

    cursor = await conn.execute(
        """
        SELECT r.owner, r.name FROM subscriptions s
        JOIN repos r ON r.id = s.repo_id
        WHERE s.user_id = ?
        ORDER BY s.rowid ASC
        """,
        (user_id,),
    )
    subscriptions = [RepoRef(owner=r["owner"], name=r["name"]) for r in await cursor.fetchall()]
    logger.debug("get_user(%d) → %d subscriptions", user_id, len(subscriptions))
    return User.from_db_row(_row_to_dict(row), subscriptions)


# ═══════════════════════════════════════════════════════════
# Repo Operations
# ═══════════════════════════════════════════════════════════


async def get_repo(db: Database, owner: str, name: str) -> Optional[Repo]:
    """Retrieve a tracked repository, or None if it is not tracked."""
    conn = await db.get_connection()
    cursor = await conn.execute(
        "SELECT id, owner, name FROM repos WHERE owner = ? AND name = ?",
        (owner, name),
    )
    row = await cursor.fetchone()
    if row is None:
        logger.debug("get_repo(%s/%s) → not found", owner, name)
        return None
    return await _load_repo(conn, _row_to_dict(row))


async def get_all_repos(db: Database) -> list[Repo]:
    """Retrieve every tracked repository in insertion order."""
    conn = await db.get_connection()
    cursor = await conn.execute("SELECT id, owner, name FROM repos ORDER BY id ASC")
    rows = await cursor.fetchall()
    repos = [await _load_repo(conn, _row_to_dict(row)) for row in rows]
    logger.debug("get_all_repos → %d repos", len(repos))
    return repos


async def add_repo(db: Database, owner: str, name: str) -> None:
    """Start tracking a repository. No-op if it is already tracked."""
    conn = await db.get_connection()
    await conn.execute(
        "INSERT OR IGNORE INTO repos (owner, name) VALUES (?, ?)",
        (owner, name),
    )
    await conn.commit()
    logger.debug("Added repo %s/%s", owner, name)


async def update_repo(
    db: Database,
    owner: str,
    name: str,
    releases: Sequence[Release],
) -> None:
    """Replace the stored releases of a repository.

    Args:
        db: Active database instance.
        owner: Repository owner.
        name: Repository name.
        releases: Releases ordered oldest → newest; stored positions follow
            this order.

    Raises:
        LookupError: If the repository is not tracked.
    """
    conn = await db.get_connection()
    repo_id = await _repo_id(conn, owner, name)
    if repo_id is None:
        raise LookupError(f"Repository {owner}/{name} is not tracked")

    await conn.execute("DELETE FROM releases WHERE repo_id = ?", (repo_id,))
    await conn.executemany(
        """
        INSERT INTO releases (repo_id, position, name, url, description, is_prerelease)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        [
            (repo_id, position, r.name, r.url, r.description, int(r.is_prerelease))
            for position, r in enumerate(releases)
        ],
    )
    await conn.execute(
        "UPDATE repos SET checked_at = datetime('now', 'localtime') WHERE id = ?",
        (repo_id,),
    )
    await conn.commit()
    logger.debug("Stored %d releases for %s/%s", len(releases), owner, name)


# ═══════════════════════════════════════════════════════════
# Subscription Operations
# ═══════════════════════════════════════════════════════════


async def bind_user_to_repo(db: Database, user_id: int, owner: str, name: str) -> None:
    """Subscribe a user to a tracked repository (idempotent).

    Raises:
        LookupError: If the repository is not tracked.
    """
    conn = await db.get_connection()
    repo_id = await _repo_id(conn, owner, name)
    if repo_id is None:
        raise LookupError(f"Repository {owner}/{name} is not tracked")

    await conn.execute("INSERT OR IGNORE INTO users (id) VALUES (?)", (user_id,))
    await conn.execute(
        "INSERT OR IGNORE INTO subscriptions (user_id, repo_id) VALUES (?, ?)",
        (user_id, repo_id),
    )
    await conn.commit()
    logger.debug("Bound user %d → %s/%s", user_id, owner, name)


async def unbind_user_from_repo(db: Database, user_id: int, owner: str, name: str) -> None:
    """Unsubscribe a user. No-op if the user was not subscribed."""
    conn = await db.get_connection()
    await conn.execute(
        """
        DELETE FROM subscriptions
        WHERE user_id = ?
          AND repo_id = (SELECT id FROM repos WHERE owner = ? AND name = ?)
        """,
        (user_id, owner, name),
    )
    await conn.commit()
    logger.debug("Unbound user %d from %s/%s", user_id, owner, name)


async def get_user_subscriptions(db: Database, user_id: int) -> list[Repo]:
    """Retrieve the repositories a user watches, in subscription order."""
    conn = await db.get_connection()
    cursor = await conn.execute(
        """
        SELECT r.id, r.owner, r.name FROM subscriptions s
        JOIN repos r ON r.id = s.repo_id
        WHERE s.user_id = ?
        ORDER BY s.rowid ASC
        """,
        (user_id,),
    )
    rows = await cursor.fetchall()
    repos = [await _load_repo(conn, _row_to_dict(row)) for row in rows]
    logger.debug("get_user_subscriptions(%d) → %d repos", user_id, len(repos))
    return repos

"""Releases Notifier — SQLite Connection Manager.

Async SQLite connection management using aiosqlite: initialization,
schema creation and connection lifecycle.
"""

from __future__ import annotations

from pathlib import Path

import aiosqlite

from releases_notifier.utils.logger import get_logger

logger = get_logger(__name__)

# ── Schema Definitions ────────────────────────────────────
SCHEMA_SQL = """
-- ═══ Users Table ═══
CREATE TABLE IF NOT EXISTS users (
    id          INTEGER PRIMARY KEY,
    username    TEXT    DEFAULT '',
    first_name  TEXT    DEFAULT '',
    created_at  DATETIME DEFAULT (datetime('now', 'localtime'))
);

-- ═══ Repos Table ═══
-- Owner/name are stored as typed; lookups are case-sensitive.
CREATE TABLE IF NOT EXISTS repos (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    owner       TEXT    NOT NULL,
    name        TEXT    NOT NULL,
    added_at    DATETIME DEFAULT (datetime('now', 'localtime')),
    checked_at  DATETIME,
    UNIQUE (owner, name)
);

-- ═══ Releases Table ═══
-- position keeps the provider order: 0 is the oldest stored release.
CREATE TABLE IF NOT EXISTS releases (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    repo_id       INTEGER NOT NULL,
    position      INTEGER NOT NULL,
    name          TEXT    NOT NULL,
    url           TEXT    NOT NULL,
    description   TEXT    DEFAULT '',
    is_prerelease INTEGER DEFAULT 0,
    FOREIGN KEY (repo_id) REFERENCES repos(id) ON DELETE CASCADE
);

-- ═══ Subscriptions Table ═══
CREATE TABLE IF NOT EXISTS subscriptions (
    user_id     INTEGER NOT NULL,
    repo_id     INTEGER NOT NULL,
    created_at  DATETIME DEFAULT (datetime('now', 'localtime')),
    PRIMARY KEY (user_id, repo_id),
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
    FOREIGN KEY (repo_id) REFERENCES repos(id) ON DELETE CASCADE
);

-- ═══ Performance Indexes ═══
CREATE INDEX IF NOT EXISTS idx_releases_repo_position ON releases(repo_id, position);
CREATE INDEX IF NOT EXISTS idx_subscriptions_repo     ON subscriptions(repo_id);
"""


class Database:
    """Async SQLite database connection manager.

    Holds one persistent connection with WAL mode and foreign keys
    enabled and dict-like rows.

    Attributes:
        db_path: Resolved path to the SQLite file, or ":memory:".
    """

    def __init__(self, db_path: str) -> None:
        """Initialize the database manager.

        Args:
            db_path: Path to the SQLite file (parent directories are
                created on initialize) or ":memory:".
        """
        self.db_path = db_path if db_path == ":memory:" else str(Path(db_path).resolve())
        self._connection: aiosqlite.Connection | None = None
        logger.debug("Database manager initialized with path: %s", self.db_path)

    async def initialize(self) -> None:
        """Open the connection, set pragmas and create the schema."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        logger.info("Connecting to database: %s", self.db_path)
        self._connection = await aiosqlite.connect(self.db_path)

        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA foreign_keys=ON")
        self._connection.row_factory = aiosqlite.Row

        await self._connection.executescript(SCHEMA_SQL)
        await self._connection.commit()

        logger.info("Database initialized — all tables ready")

    async def get_connection(self) -> aiosqlite.Connection:
        """Get the active connection, initializing it on first use."""
        if self._connection is None:
            await self.initialize()
        return self._connection

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("Database connection closed")

    async def __aenter__(self) -> "Database":
        await self.initialize()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

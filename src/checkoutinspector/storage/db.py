"""SQLite database connection management and schema migrations."""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS scan_results (
    key TEXT PRIMARY KEY,
    tab_id INTEGER NOT NULL,
    page_url TEXT NOT NULL DEFAULT '',
    scanned_at TEXT NOT NULL,
    health_score INTEGER NOT NULL DEFAULT 0,
    body TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS version_cache (
    key TEXT PRIMARY KEY,
    version TEXT NOT NULL,
    fetched_at REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_results_tab
    ON scan_results(tab_id);
"""


async def get_db(db_path: str | Path) -> aiosqlite.Connection:
    """Open (or create) the database and run migrations."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    db = await aiosqlite.connect(str(db_path))
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA journal_mode=WAL")
    await db.execute("PRAGMA foreign_keys=ON")

    await _migrate(db)
    return db


async def _migrate(db: aiosqlite.Connection) -> None:
    """Run schema migrations if needed."""
    cursor = await db.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    row = await cursor.fetchone()

    if row is None:
        await db.executescript(SCHEMA_SQL)
        await db.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        await db.commit()
        logger.info("Database initialized at schema version %d", SCHEMA_VERSION)
        return

    cursor = await db.execute("SELECT version FROM schema_version")
    row = await cursor.fetchone()
    current = row[0] if row else 0

    if current < SCHEMA_VERSION:
        logger.info(
            "Migrating database from version %d to %d",
            current,
            SCHEMA_VERSION,
        )
        await db.executescript(SCHEMA_SQL)
        await db.execute(
            "UPDATE schema_version SET version = ?",
            (SCHEMA_VERSION,),
        )
        await db.commit()

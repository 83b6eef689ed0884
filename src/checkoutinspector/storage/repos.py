"""Result stores: SQLite-backed and in-memory."""

from __future__ import annotations

import json
import logging

import aiosqlite

from checkoutinspector.constants import scan_result_key
from checkoutinspector.scan.models import ScanResult

logger = logging.getLogger(__name__)


class SqliteResultStore:
    """Scan results keyed by ``scan-result:<tab id>``. Saving replaces."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def save(self, result: ScanResult) -> None:
        await self._db.execute(
            "INSERT OR REPLACE INTO scan_results "
            "(key, tab_id, page_url, scanned_at, health_score, body) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                scan_result_key(result.tab_id),
                result.tab_id,
                result.page_url,
                result.scanned_at,
                result.health.score,
                json.dumps(result.to_dict()),
            ),
        )
        await self._db.commit()

    async def get(self, tab_id: int) -> ScanResult | None:
        cursor = await self._db.execute(
            "SELECT body FROM scan_results WHERE key = ?",
            (scan_result_key(tab_id),),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return ScanResult.from_dict(json.loads(row["body"]))

    async def delete(self, tab_id: int) -> None:
        await self._db.execute(
            "DELETE FROM scan_results WHERE key = ?", (scan_result_key(tab_id),)
        )
        await self._db.commit()

    async def list_all(self, limit: int = 50, offset: int = 0) -> list[dict]:
        """Summaries of stored results, most recent first."""
        cursor = await self._db.execute(
            "SELECT tab_id, page_url, scanned_at, health_score FROM scan_results "
            "ORDER BY scanned_at DESC LIMIT ? OFFSET ?",
            (limit, offset),
        )
        rows = await cursor.fetchall()
        return [
            {
                "tabId": row["tab_id"],
                "pageUrl": row["page_url"],
                "scannedAt": row["scanned_at"],
                "healthScore": row["health_score"],
            }
            for row in rows
        ]


class MemoryResultStore:
    """Dict-backed store for tests and one-shot runs."""

    def __init__(self) -> None:
        self._results: dict[str, ScanResult] = {}

    async def save(self, result: ScanResult) -> None:
        self._results[scan_result_key(result.tab_id)] = result

    async def get(self, tab_id: int) -> ScanResult | None:
        return self._results.get(scan_result_key(tab_id))

    async def delete(self, tab_id: int) -> None:
        self._results.pop(scan_result_key(tab_id), None)

    def __len__(self) -> int:
        return len(self._results)

"""Package registry client — latest published SDK version, cached for a day."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import aiosqlite
import httpx

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org/@adyen/adyen-web/latest"
CACHE_KEY = "adyen-web-latest"


class RegistryClient:
    """Fetches the latest SDK version from the package registry.

    The answer is cached in memory and, when a database is supplied, in the
    ``version_cache`` table so it survives restarts. Every failure path
    returns None; callers treat that as "latest unknown".
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = DEFAULT_REGISTRY_URL,
        ttl: float = 24 * 60 * 60,
        db: aiosqlite.Connection | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._url = url
        self._ttl = ttl
        self._db = db
        self._clock = clock
        self._cached: tuple[str, float] | None = None

    async def fetch_latest_version(self) -> str | None:
        cached = await self._read_cache()
        if cached is not None:
            return cached

        try:
            response = await self._client.get(self._url)
        except httpx.HTTPError as exc:
            logger.debug("Registry lookup failed: %s", exc)
            return None
        if not response.is_success:
            logger.debug("Registry lookup returned %d", response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            logger.debug("Registry returned a non-JSON body")
            return None
        version = data.get("version") if isinstance(data, dict) else None
        if not isinstance(version, str) or not version:
            return None

        await self._write_cache(version)
        return version

    async def _read_cache(self) -> str | None:
        now = self._clock()
        if self._cached is not None:
            version, fetched_at = self._cached
            if now - fetched_at <= self._ttl:
                return version
            self._cached = None

        if self._db is None:
            return None
        try:
            cursor = await self._db.execute(
                "SELECT version, fetched_at FROM version_cache WHERE key = ?",
                (CACHE_KEY,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            if now - row["fetched_at"] > self._ttl:
                await self._db.execute(
                    "DELETE FROM version_cache WHERE key = ?", (CACHE_KEY,)
                )
                await self._db.commit()
                return None
        except aiosqlite.Error as exc:
            logger.debug("Version cache read failed: %s", exc)
            return None

        self._cached = (row["version"], row["fetched_at"])
        return row["version"]

    async def _write_cache(self, version: str) -> None:
        fetched_at = self._clock()
        self._cached = (version, fetched_at)
        if self._db is None:
            return
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO version_cache (key, version, fetched_at) "
                "VALUES (?, ?, ?)",
                (CACHE_KEY, version, fetched_at),
            )
            await self._db.commit()
        except aiosqlite.Error as exc:
            # Caching is best-effort
            logger.debug("Version cache write failed: %s", exc)


class StaticVersionSource:
    """A fixed answer, for offline replays and tests."""

    def __init__(self, version: str | None) -> None:
        self._version = version

    async def fetch_latest_version(self) -> str | None:
        return self._version

"""Page snapshot extraction with bounded retry."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from checkoutinspector.constants import SDK_SCRIPT_HINT
from checkoutinspector.host.base import BrowserHost
from checkoutinspector.scan.models import PageSnapshot

logger = logging.getLogger(__name__)


def shows_sdk_presence(snapshot: PageSnapshot) -> bool:
    """Whether the page carries evidence of the SDK without a captured config."""
    if snapshot.sdk_metadata is not None:
        return True
    return any(SDK_SCRIPT_HINT.search(s.src) for s in snapshot.scripts)


class SnapshotExtractor:
    """Runs the host's extraction script until a configuration shows up.

    A snapshot without checkout or component configuration is retried at a
    fixed interval only while the page shows evidence of the SDK; the most
    recent snapshot is returned once the deadline passes. Injection and
    no-result errors from the host propagate unchanged.
    """

    def __init__(
        self,
        host: BrowserHost,
        retry_interval: float = 0.5,
        retry_timeout: float = 4.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.host = host
        self.retry_interval = retry_interval
        self.retry_timeout = retry_timeout
        self._sleep = sleep
        self._clock = clock

    async def extract(self, tab_id: int) -> PageSnapshot:
        first = await self.host.extract(tab_id)
        if first.has_config or not shows_sdk_presence(first):
            return first

        deadline = self._clock() + self.retry_timeout
        latest = first
        attempts = 1
        while self._clock() < deadline:
            await self._sleep(self.retry_interval)
            latest = await self.host.extract(tab_id)
            attempts += 1
            if latest.has_config:
                logger.debug("Config captured on attempt %d for tab %d", attempts, tab_id)
                return latest

        logger.debug(
            "No config captured for tab %d after %d attempts", tab_id, attempts
        )
        return latest

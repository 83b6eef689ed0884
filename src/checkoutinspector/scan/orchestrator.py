"""Scan orchestrator — drives one scan of one tab end to end.

    start collector → wait for tab ready → settle → extract (with retry)
    → latest version → stop collector → merge signals → payload
    → run checks → health score → persist

Only a tab that never finishes loading and a failed extraction abort the
scan. Every other signal degrades to "unknown" and surfaces later as a
skip or notice from the check that needed it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import replace
from datetime import datetime, timezone
from typing import TypeVar

import httpx

from checkoutinspector.capture.collector import HeaderCollector
from checkoutinspector.capture.probe import probe_main_document_headers
from checkoutinspector.checks.engine import CheckEngine
from checkoutinspector.checks.health import calculate_health_score
from checkoutinspector.config import InspectorConfig
from checkoutinspector.host.base import (
    TAB_STATUS_COMPLETE,
    BrowserHost,
    ResultStore,
    VersionSource,
)
from checkoutinspector.scan.errors import ScanError, TabTimeoutError
from checkoutinspector.scan.extractor import SnapshotExtractor
from checkoutinspector.scan.models import (
    CapturedHeader,
    CapturedRequest,
    CheckoutConfig,
    PageSnapshot,
    RequestType,
    ScanPayload,
    ScanResult,
    VersionInfo,
)
from checkoutinspector.urls import extract_locale_from_url
from checkoutinspector.version.detect import resolve_detected_version, version_from_bundles

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures a degraded signal may raise; anything else is a bug and propagates
DEGRADED_ERRORS = (httpx.HTTPError, ValueError, OSError)


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def best_effort(what: str, call: Callable[[], Awaitable[T]], default: T) -> T:
    """Await call, returning default if it fails with a degraded-signal error."""
    try:
        return await call()
    except DEGRADED_ERRORS as exc:
        logger.debug("%s unavailable: %s", what, exc)
        return default


# ---------------------------------------------------------------------------
# Signal merging
# ---------------------------------------------------------------------------


def fallback_requests(page: PageSnapshot) -> list[CapturedRequest]:
    """Requests implied by the snapshot, for resources fetched before capture began."""
    requests = [CapturedRequest(url=page.page_url, type=RequestType.MAIN_FRAME)]
    requests.extend(CapturedRequest(url=s.src, type=RequestType.SCRIPT) for s in page.scripts)
    for link in page.links:
        link_type = (
            RequestType.STYLESHEET if "stylesheet" in link.rel.lower() else RequestType.OTHER
        )
        requests.append(CapturedRequest(url=link.href, type=link_type))
    for observed in page.observed_requests:
        observed_type = (
            RequestType.SCRIPT if observed.initiator_type == "script" else RequestType.OTHER
        )
        requests.append(CapturedRequest(url=observed.url, type=observed_type))
    return requests


def merge_requests(*sources: Iterable[CapturedRequest]) -> tuple[CapturedRequest, ...]:
    """Union in order, de-duplicated on (type, url). The first occurrence wins."""
    seen: set[tuple[RequestType, str]] = set()
    merged: list[CapturedRequest] = []
    for source in sources:
        for request in source:
            if not request.url or request.key in seen:
                continue
            seen.add(request.key)
            merged.append(request)
    return tuple(merged)


def backfill_locale(
    page: PageSnapshot, requests: Iterable[CapturedRequest]
) -> PageSnapshot:
    """Infer a locale from translation file URLs when none is configured.

    The inferred value goes into ``inferred_config`` so checks can tell it
    apart from an explicit setting. An existing locale is never replaced.
    """
    explicit = page.checkout_config.locale if page.checkout_config else None
    inferred = page.inferred_config.locale if page.inferred_config else None
    if explicit or inferred:
        return page

    for request in requests:
        locale = extract_locale_from_url(request.url)
        if locale is not None:
            base = page.inferred_config or CheckoutConfig()
            return replace(page, inferred_config=replace(base, locale=locale))
    return page


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class ScanOrchestrator:
    """Runs scans against a browser host and persists their results.

    Scans of the same tab are serialized: a second ``run_scan`` waits for
    the first to finish, then runs its own scan. Scans of different tabs
    run independently. A tab's lock lives as long as some scan holds or
    waits on it.
    """

    def __init__(
        self,
        host: BrowserHost,
        versions: VersionSource,
        store: ResultStore,
        http: httpx.AsyncClient | None = None,
        config: InspectorConfig | None = None,
        engine: CheckEngine | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.host = host
        self.versions = versions
        self.store = store
        self.http = http
        self.config = config or InspectorConfig()
        self.engine = engine if engine is not None else CheckEngine()
        self._sleep = sleep
        self._extractor = SnapshotExtractor(
            host,
            retry_interval=self.config.extract_retry_interval,
            retry_timeout=self.config.extract_retry_timeout,
            sleep=sleep,
        )
        # tab id -> (lock, number of scans holding or waiting on it)
        self._locks: dict[int, tuple[asyncio.Lock, int]] = {}

    def _acquire_ref(self, tab_id: int) -> asyncio.Lock:
        entry = self._locks.get(tab_id)
        lock, refs = entry if entry is not None else (asyncio.Lock(), 0)
        self._locks[tab_id] = (lock, refs + 1)
        return lock

    def _release_ref(self, tab_id: int) -> None:
        lock, refs = self._locks[tab_id]
        if refs <= 1:
            del self._locks[tab_id]
        else:
            self._locks[tab_id] = (lock, refs - 1)

    async def run_scan(self, tab_id: int) -> ScanResult:
        """Scan a tab, persist the result, and return it.

        Raises TabTimeoutError or an ExtractionError; nothing is persisted
        in that case.
        """
        lock = self._acquire_ref(tab_id)
        try:
            async with lock:
                result = await self._scan(tab_id)
        except ScanError as exc:
            logger.warning("Scan of tab %d failed: %s", tab_id, exc)
            raise
        finally:
            self._release_ref(tab_id)
        logger.info(
            "Scan of tab %d complete: %d checks, score %d (%s)",
            tab_id,
            len(result.checks),
            result.health.score,
            result.health.tier.value,
        )
        return result

    async def get_stored_result(self, tab_id: int) -> ScanResult | None:
        return await self.store.get(tab_id)

    async def forget(self, tab_id: int) -> None:
        """Drop the stored result for a tab that reloaded or closed."""
        await self.store.delete(tab_id)

    async def _scan(self, tab_id: int) -> ScanResult:
        collector = HeaderCollector(
            tab_id, self.host.on_headers_received, self.host.on_before_request
        )
        collector.start()
        try:
            await self._wait_for_tab_ready(tab_id)
            await self._sleep(self.config.settle_delay)

            page = await self._extractor.extract(tab_id)
            latest = await best_effort(
                "Latest version", self.versions.fetch_latest_version, None
            )

            collector.stop()
            collected = collector.get_result()

            requests = merge_requests(collected.captured_requests, fallback_requests(page))
            headers = collected.main_document_headers or await self._probe_headers(
                page.page_url
            )

            script_urls = page.script_urls
            detected = await resolve_detected_version(
                page.sdk_metadata,
                collected.analytics_data,
                script_urls,
                requests,
                lambda: self._bundle_version(page.page_url, script_urls),
            )

            payload = ScanPayload(
                tab_id=tab_id,
                page_url=page.page_url,
                page=backfill_locale(page, requests),
                main_document_headers=headers,
                captured_requests=requests,
                version_info=VersionInfo(detected=detected, latest=latest),
                analytics_data=collected.analytics_data,
                scanned_at=_utc_timestamp(),
            )

            checks = self.engine.run(payload)
            result = ScanResult(
                tab_id=tab_id,
                page_url=payload.page_url,
                scanned_at=payload.scanned_at,
                checks=checks,
                health=calculate_health_score(checks),
                payload=payload,
            )
            await self.store.save(result)
            return result
        finally:
            collector.stop()

    async def _wait_for_tab_ready(self, tab_id: int) -> None:
        loop = asyncio.get_running_loop()
        ready: asyncio.Future[None] = loop.create_future()

        def on_complete() -> None:
            if not ready.done():
                ready.set_result(None)

        # Subscribe before reading the status so a completion in between is not lost
        unsubscribe = self.host.subscribe_tab_complete(tab_id, on_complete)
        try:
            if await self.host.get_tab_status(tab_id) == TAB_STATUS_COMPLETE:
                return
            timeout = self.config.tab_ready_timeout
            try:
                await asyncio.wait_for(ready, timeout)
            except asyncio.TimeoutError:
                raise TabTimeoutError(tab_id, timeout) from None
        finally:
            unsubscribe()

    async def _probe_headers(self, page_url: str) -> tuple[CapturedHeader, ...]:
        if self.http is None:
            return ()
        http = self.http
        return await best_effort(
            "Header probe",
            lambda: probe_main_document_headers(
                http, page_url, self.config.header_probe_timeout
            ),
            (),
        )

    async def _bundle_version(self, page_url: str, script_urls: list[str]) -> str | None:
        if self.http is None:
            return None
        http = self.http
        return await best_effort(
            "Bundle version",
            lambda: version_from_bundles(
                http,
                page_url,
                script_urls,
                timeout=self.config.bundle_fetch_timeout,
                fetch_limit=self.config.bundle_fetch_limit,
                scan_limit=self.config.bundle_scan_limit,
            ),
            None,
        )

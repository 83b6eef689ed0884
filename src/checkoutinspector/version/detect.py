"""SDK version detection from URLs and bundle contents.

The orchestrator resolves the detected version by trying, in order: the
metadata the SDK exposes on the page, the analytics payload, script URLs,
captured request URLs and finally the contents of same-host bundles. The
bundle scan costs network round trips, so it only runs when everything
before it came up empty.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Iterable

import httpx

from checkoutinspector.scan.models import AnalyticsData, CapturedRequest, SdkMetadata
from checkoutinspector.urls import extract_hostname
from checkoutinspector.version.semver import parse_version

logger = logging.getLogger(__name__)

CDN_VERSION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"checkoutshopper-sdk[./](\d+\.\d+\.\d+)"),
    re.compile(r"/sdk/(\d+\.\d+\.\d+)/"),
)

BUNDLE_VERSION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"@adyen/adyen-web\D{0,80}[\"'`]?(\d+\.\d+\.\d+)[\"'`]?", re.IGNORECASE),
    re.compile(r"adyen-web\D{0,80}[\"'`]?(\d+\.\d+\.\d+)[\"'`]?", re.IGNORECASE),
    re.compile(r"checkoutshopper\D{0,80}[\"'`]?(\d+\.\d+\.\d+)[\"'`]?", re.IGNORECASE),
)

# Substring → fetch priority; the first matching substring wins
_SCRIPT_PRIORITIES: tuple[tuple[str, int], ...] = (
    ("main", 5),
    ("vendor", 4),
    ("bundle", 3),
    ("chunk", 2),
)


# ---------------------------------------------------------------------------
# URL signals
# ---------------------------------------------------------------------------


def match_cdn_version(url: str) -> str | None:
    for pattern in CDN_VERSION_PATTERNS:
        match = pattern.search(url)
        if match and match.group(1):
            return match.group(1)
    return None


def find_version_in_urls(urls: Iterable[str]) -> str | None:
    for url in urls:
        version = match_cdn_version(url)
        if version is not None:
            return version
    return None


def version_from_scripts(script_urls: Iterable[str]) -> str | None:
    """First SDK version found in script URLs."""
    return find_version_in_urls(script_urls)


def version_from_requests(requests: Iterable[CapturedRequest]) -> str | None:
    """First SDK version found in captured request URLs."""
    return find_version_in_urls(r.url for r in requests)


# ---------------------------------------------------------------------------
# Bundle signal
# ---------------------------------------------------------------------------


def script_priority(url: str) -> int:
    lower = url.lower()
    for needle, priority in _SCRIPT_PRIORITIES:
        if needle in lower:
            return priority
    return 1


def version_from_script_text(text: str) -> str | None:
    """Heuristically pull an SDK version out of bundled JavaScript."""
    for pattern in BUNDLE_VERSION_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        candidate = match.group(1)
        if candidate and parse_version(candidate) is not None:
            return candidate
    return None


def rank_bundle_candidates(page_url: str, script_urls: Iterable[str], limit: int) -> list[str]:
    """Same-host scripts, most promising first, de-duplicated and capped."""
    page_host = extract_hostname(page_url)
    if not page_host:
        return []

    same_host = [u for u in script_urls if extract_hostname(u) == page_host]
    # sorted() is stable, so equal priorities keep document order
    ranked = sorted(same_host, key=script_priority, reverse=True)
    return list(dict.fromkeys(ranked))[:limit]


async def fetch_script_text(
    client: httpx.AsyncClient,
    url: str,
    timeout: float = 2.5,
    scan_limit: int = 1_500_000,
) -> str | None:
    try:
        response = await client.get(url, timeout=timeout)
    except (httpx.HTTPError, ValueError) as exc:
        logger.debug("Bundle fetch failed for %s: %s", url, exc)
        return None
    if not response.is_success:
        logger.debug("Bundle fetch for %s returned %d", url, response.status_code)
        return None
    return response.text[:scan_limit]


async def version_from_bundles(
    client: httpx.AsyncClient,
    page_url: str,
    script_urls: Iterable[str],
    *,
    timeout: float = 2.5,
    fetch_limit: int = 4,
    scan_limit: int = 1_500_000,
) -> str | None:
    """Download likely same-origin bundles and scan them for a version."""
    for url in rank_bundle_candidates(page_url, script_urls, fetch_limit):
        text = await fetch_script_text(client, url, timeout, scan_limit)
        if not text:
            continue
        version = version_from_script_text(text)
        if version is not None:
            logger.debug("Detected SDK version %s in bundle %s", version, url)
            return version
    return None


# ---------------------------------------------------------------------------
# Precedence chain
# ---------------------------------------------------------------------------


async def resolve_detected_version(
    metadata: SdkMetadata | None,
    analytics: AnalyticsData | None,
    script_urls: list[str],
    requests: Iterable[CapturedRequest],
    fetch_bundle_version: Callable[[], Awaitable[str | None]],
) -> str | None:
    """Return the first non-empty version signal, most trusted first."""
    candidates: list[Callable[[], str | None]] = [
        lambda: metadata.version if metadata else None,
        lambda: analytics.version if analytics else None,
        lambda: version_from_scripts(script_urls),
        lambda: version_from_requests(requests),
    ]
    for candidate in candidates:
        version = candidate()
        if version:
            return version
    return await fetch_bundle_version() or None

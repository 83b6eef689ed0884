"""Header probe — fetch the checkout document's headers directly.

Used when the collector attached too late to see the main document response.
"""

from __future__ import annotations

import logging

import httpx

from checkoutinspector.scan.models import CapturedHeader

logger = logging.getLogger(__name__)


async def probe_main_document_headers(
    client: httpx.AsyncClient,
    page_url: str,
    timeout: float = 5.0,
) -> tuple[CapturedHeader, ...]:
    """Try ``HEAD`` first and fall back to ``GET`` when it yields no headers."""
    headers = await _fetch_headers(client, page_url, "HEAD", timeout)
    if headers:
        return headers
    return await _fetch_headers(client, page_url, "GET", timeout)


async def _fetch_headers(
    client: httpx.AsyncClient,
    url: str,
    method: str,
    timeout: float,
) -> tuple[CapturedHeader, ...]:
    try:
        response = await client.request(
            method,
            url,
            timeout=timeout,
            follow_redirects=True,
            headers={"Cache-Control": "no-store"},
        )
    except (httpx.HTTPError, ValueError) as exc:
        logger.debug("Header probe %s %s failed: %s", method, url, exc)
        return ()
    return tuple(CapturedHeader(name, value) for name, value in response.headers.multi_items())

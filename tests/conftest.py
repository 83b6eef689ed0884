"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from checkoutinspector.scan.models import (
    AnalyticsData,
    CapturedHeader,
    CapturedRequest,
    CheckoutConfig,
    PageSnapshot,
    ScanPayload,
    ScriptTag,
    VersionInfo,
)

PAGE_URL = "https://shop.example.com/checkout"


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def dropin_recording_path(fixtures_dir: Path) -> Path:
    return fixtures_dir / "dropin_checkout.yaml"


@pytest.fixture
def make_payload():
    """Build a ScanPayload with sensible defaults; keyword overrides win.

    ``config`` is a dict of CheckoutConfig fields (or None for no config),
    ``headers`` a dict of main-document response headers.
    """

    def _make(
        config: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        detected: str | None = None,
        latest: str | None = None,
        scripts: tuple[ScriptTag, ...] = (),
        requests: tuple[CapturedRequest, ...] = (),
        analytics: AnalyticsData | None = None,
        **page_fields: Any,
    ) -> ScanPayload:
        page = PageSnapshot(
            page_url=PAGE_URL,
            checkout_config=CheckoutConfig(**config) if config is not None else None,
            scripts=scripts,
            **page_fields,
        )
        return ScanPayload(
            tab_id=1,
            page_url=PAGE_URL,
            page=page,
            main_document_headers=tuple(
                CapturedHeader(k, v) for k, v in (headers or {}).items()
            ),
            captured_requests=requests,
            version_info=VersionInfo(detected=detected, latest=latest),
            analytics_data=analytics,
            scanned_at="2026-01-01T00:00:00.000Z",
        )

    return _make

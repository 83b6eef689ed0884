"""Header and analytics collector — tab-scoped network capture for one scan.

The collector attaches two listeners while a scan runs: one records response
headers for the main document and for requests to the SDK's own domains, the
other decodes JSON POST bodies sent to the checkout analytics endpoints and
merges their fields. Use it as a context manager, or call ``start``/``stop``
explicitly; both are idempotent.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from checkoutinspector.constants import ANALYTICS_URL_PATTERNS
from checkoutinspector.host.base import EventSource, RequestDetails, ResponseDetails
from checkoutinspector.scan.models import (
    ANALYTICS_KEYS,
    AnalyticsData,
    CapturedHeader,
    CapturedRequest,
    RequestType,
)
from checkoutinspector.urls import extract_hostname, is_known_sdk_domain

logger = logging.getLogger(__name__)

ALL_URLS: tuple[str, ...] = ("*",)


@dataclass(frozen=True)
class CollectorResult:
    """Snapshot of everything collected so far."""

    main_document_headers: tuple[CapturedHeader, ...]
    captured_requests: tuple[CapturedRequest, ...]
    analytics_data: AnalyticsData | None


class HeaderCollector:
    """Captures headers and analytics bodies for a single tab."""

    def __init__(
        self,
        tab_id: int,
        on_headers_received: EventSource,
        on_before_request: EventSource,
    ) -> None:
        self.tab_id = tab_id
        self._headers_source = on_headers_received
        self._body_source = on_before_request
        self._main_document_headers: tuple[CapturedHeader, ...] = ()
        self._captured_requests: list[CapturedRequest] = []
        self._analytics: dict[str, str] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._headers_source.add_listener(self._on_headers_received, self.tab_id, ALL_URLS)
        self._body_source.add_listener(
            self._on_before_request, self.tab_id, ANALYTICS_URL_PATTERNS
        )
        self._running = True
        logger.debug("Collector started for tab %d", self.tab_id)

    def stop(self) -> None:
        # Removal is unconditional so a second stop() still guarantees cleanup
        self._headers_source.remove_listener(self._on_headers_received)
        self._body_source.remove_listener(self._on_before_request)
        if self._running:
            logger.debug(
                "Collector stopped for tab %d (%d requests captured)",
                self.tab_id,
                len(self._captured_requests),
            )
        self._running = False

    def __enter__(self) -> HeaderCollector:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def get_result(self) -> CollectorResult:
        """Return the accumulated state. Collection continues if running."""
        return CollectorResult(
            main_document_headers=self._main_document_headers,
            captured_requests=tuple(self._captured_requests),
            analytics_data=self._build_analytics_data(),
        )

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def _on_headers_received(self, details: ResponseDetails) -> None:
        headers = tuple(CapturedHeader(name, value or "") for name, value in details.headers)
        request_type = RequestType.from_resource_type(details.resource_type)

        if request_type is RequestType.MAIN_FRAME:
            self._main_document_headers = headers

        host = extract_hostname(details.url)
        if request_type is RequestType.MAIN_FRAME or is_known_sdk_domain(host):
            self._captured_requests.append(
                CapturedRequest(
                    url=details.url,
                    type=request_type,
                    response_headers=headers,
                    status_code=details.status_code,
                )
            )

    def _on_before_request(self, details: RequestDetails) -> None:
        if details.method.upper() != "POST" or not details.body:
            return

        try:
            data = json.loads(details.body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            logger.debug("Ignoring undecodable analytics body from %s", details.url)
            return
        if not isinstance(data, dict):
            return

        for key in ANALYTICS_KEYS:
            value = data.get(key)
            if isinstance(value, str) and value:
                self._analytics[key] = value

    def _build_analytics_data(self) -> AnalyticsData | None:
        if not self._analytics:
            return None
        return AnalyticsData.from_dict(self._analytics)

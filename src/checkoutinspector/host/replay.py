"""Replay host — drives a scan offline from a YAML recording.

A recording looks like::

    tabId: 7
    tabStatus: complete          # or loading
    loadCompletes: true          # fire the completion event when loading
    latestVersion: 5.68.0        # optional
    snapshots:                   # successive extraction results
      - pageUrl: https://shop.example/checkout
        pageProtocol: "https:"
        scripts: [...]
    events:                      # delivered on the first extraction
      - kind: headers
        url: https://shop.example/checkout
        type: main_frame
        headers: {Content-Security-Policy: "default-src 'self'"}
      - kind: body
        url: https://checkoutanalytics-test.adyen.com/v3/analytics
        body: {flavor: dropin}

A ``null`` snapshot makes that extraction return nothing; ``injectionError``
makes every extraction fail to inject.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from checkoutinspector.host.base import (
    TAB_STATUS_COMPLETE,
    RequestDetails,
    ResponseDetails,
)
from checkoutinspector.host.events import ListenerRegistry
from checkoutinspector.scan.errors import InjectionError, NoResultError
from checkoutinspector.scan.models import PageSnapshot

logger = logging.getLogger(__name__)

_MISSING = object()


def load_recording(path: str | Path) -> dict[str, Any]:
    """Read a recording file."""
    return load_recording_from_string(Path(path).read_text(encoding="utf-8"))


def load_recording_from_string(text: str) -> dict[str, Any]:
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("Recording YAML must be a mapping")
    return data


def _parse_headers(raw: Any) -> tuple[tuple[str, str], ...]:
    if isinstance(raw, dict):
        return tuple((str(k), str(v)) for k, v in raw.items())
    if isinstance(raw, list):
        return tuple((str(h["name"]), str(h.get("value", ""))) for h in raw)
    return ()


def _parse_body(raw: Any) -> bytes | None:
    if raw is None:
        return None
    if isinstance(raw, (dict, list)):
        return json.dumps(raw).encode("utf-8")
    return str(raw).encode("utf-8")


def _opt_text(value: Any) -> str | None:
    return None if value is None else str(value)


def _parse_event(event: dict[str, Any]) -> ResponseDetails | RequestDetails:
    kind = event.get("kind", "headers")
    url = str(event["url"])
    if kind == "headers":
        return ResponseDetails(
            url=url,
            resource_type=str(event.get("type", "other")),
            status_code=int(event.get("statusCode", 200)),
            headers=_parse_headers(event.get("headers")),
        )
    if kind == "body":
        return RequestDetails(
            url=url,
            method=str(event.get("method", "POST")),
            body=_parse_body(event.get("body")),
        )
    raise ValueError(f"Unknown recording event kind: {kind!r}")


class ReplayHost:
    """A BrowserHost whose tab, page and network traffic come from a recording."""

    def __init__(
        self,
        tab_id: int,
        snapshots: list[dict[str, Any] | None],
        events: list[ResponseDetails | RequestDetails] | None = None,
        tab_status: str = TAB_STATUS_COMPLETE,
        load_completes: bool = True,
        latest_version: str | None = None,
        injection_error: str | None = None,
    ) -> None:
        self.tab_id = tab_id
        self.latest_version = latest_version
        self._snapshots = snapshots or [None]
        self._events = events or []
        self._tab_status = tab_status
        self._load_completes = load_completes
        self._injection_error = injection_error
        self._headers = ListenerRegistry("onHeadersReceived")
        self._requests = ListenerRegistry("onBeforeRequest")
        self.extract_calls = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReplayHost:
        snapshots = data.get("snapshots")
        if snapshots is None:
            single = data.get("snapshot", _MISSING)
            snapshots = [] if single is _MISSING else [single]
        return cls(
            tab_id=int(data.get("tabId", 1)),
            snapshots=list(snapshots),
            events=[_parse_event(e) for e in data.get("events") or []],
            tab_status=str(data.get("tabStatus", TAB_STATUS_COMPLETE)),
            load_completes=bool(data.get("loadCompletes", True)),
            latest_version=_opt_text(data.get("latestVersion")),
            injection_error=data.get("injectionError"),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> ReplayHost:
        return cls.from_dict(load_recording(path))

    # ------------------------------------------------------------------
    # BrowserHost
    # ------------------------------------------------------------------

    @property
    def on_headers_received(self) -> ListenerRegistry:
        return self._headers

    @property
    def on_before_request(self) -> ListenerRegistry:
        return self._requests

    async def get_tab_status(self, tab_id: int) -> str:
        return self._tab_status

    def subscribe_tab_complete(
        self, tab_id: int, callback: Callable[[], None]
    ) -> Callable[[], None]:
        handle: asyncio.Handle | None = None
        if (
            tab_id == self.tab_id
            and self._tab_status != TAB_STATUS_COMPLETE
            and self._load_completes
        ):
            handle = asyncio.get_running_loop().call_soon(self._complete, callback)

        def unsubscribe() -> None:
            if handle is not None:
                handle.cancel()

        return unsubscribe

    def _complete(self, callback: Callable[[], None]) -> None:
        self._tab_status = TAB_STATUS_COMPLETE
        callback()

    async def extract(self, tab_id: int) -> PageSnapshot:
        if self._injection_error is not None:
            raise InjectionError(tab_id, self._injection_error)

        index = min(self.extract_calls, len(self._snapshots) - 1)
        self.extract_calls += 1
        if self.extract_calls == 1:
            self._replay_events(tab_id)

        raw = self._snapshots[index]
        if not raw:
            raise NoResultError(tab_id)
        return PageSnapshot.from_dict(raw)

    def _replay_events(self, tab_id: int) -> None:
        for event in self._events:
            source = self._headers if isinstance(event, ResponseDetails) else self._requests
            source.emit(tab_id, event)
        logger.debug("Replayed %d network events for tab %d", len(self._events), tab_id)

"""Host protocols — the browser, registry, and storage seams of a scan."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from checkoutinspector.scan.models import PageSnapshot, ScanResult

TAB_STATUS_COMPLETE = "complete"
TAB_STATUS_LOADING = "loading"


@dataclass(frozen=True)
class ResponseDetails:
    """A response whose headers were received in a tab."""

    url: str
    resource_type: str
    status_code: int = 200
    headers: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class RequestDetails:
    """An outbound request, with its raw body when one was sent."""

    url: str
    method: str = "GET"
    body: bytes | None = None


Listener = Callable[[object], None]


@runtime_checkable
class EventSource(Protocol):
    """A tab-scoped event stream listeners can attach to and detach from."""

    def add_listener(
        self,
        callback: Listener,
        tab_id: int,
        url_patterns: tuple[str, ...] = ("*",),
    ) -> None:
        """Deliver events for tab_id whose URL matches one of url_patterns."""
        ...

    def remove_listener(self, callback: Listener) -> None:
        """Detach callback. A no-op when it is not attached."""
        ...

    def has_listener(self, callback: Listener) -> bool:
        ...


@runtime_checkable
class BrowserHost(Protocol):
    """The browser surface a scan drives."""

    @property
    def on_headers_received(self) -> EventSource:
        """Delivers ResponseDetails."""
        ...

    @property
    def on_before_request(self) -> EventSource:
        """Delivers RequestDetails."""
        ...

    async def get_tab_status(self, tab_id: int) -> str:
        """Return the tab's load status (``loading`` or ``complete``)."""
        ...

    def subscribe_tab_complete(
        self, tab_id: int, callback: Callable[[], None]
    ) -> Callable[[], None]:
        """Call callback once tab_id completes loading. Returns an unsubscribe."""
        ...

    async def extract(self, tab_id: int) -> PageSnapshot:
        """Run the extraction script in the page.

        Raises InjectionError if the script cannot run and NoResultError if
        it produced nothing.
        """
        ...


@runtime_checkable
class VersionSource(Protocol):
    """Lookup of the latest published SDK version."""

    async def fetch_latest_version(self) -> str | None:
        """Return the latest version, or None on any failure. Never raises."""
        ...


@runtime_checkable
class ResultStore(Protocol):
    """Persisted scan results keyed by tab. Last write wins."""

    async def save(self, result: ScanResult) -> None:
        ...

    async def get(self, tab_id: int) -> ScanResult | None:
        ...

    async def delete(self, tab_id: int) -> None:
        ...

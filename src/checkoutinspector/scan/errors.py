"""Fatal scan errors. Anything not listed here degrades instead of raising."""

from __future__ import annotations


class ScanError(Exception):
    """Base class for errors that abort a scan."""


class TabTimeoutError(ScanError):
    """The tab never reached the ``complete`` state within the timeout."""

    def __init__(self, tab_id: int, timeout: float) -> None:
        self.tab_id = tab_id
        self.timeout = timeout
        super().__init__(
            f"Tab {tab_id} did not finish loading within {timeout:g}s"
        )


class ExtractionError(ScanError):
    """The page snapshot could not be obtained."""


class InjectionError(ExtractionError):
    """The host could not run the extraction script in the page."""

    def __init__(self, tab_id: int, reason: str) -> None:
        self.tab_id = tab_id
        super().__init__(
            f"Page extraction script injection failed for tab {tab_id}: {reason}"
        )


class NoResultError(ExtractionError):
    """The extraction script ran but produced nothing."""

    def __init__(self, tab_id: int) -> None:
        self.tab_id = tab_id
        super().__init__(f"Page extraction returned no results for tab {tab_id}")

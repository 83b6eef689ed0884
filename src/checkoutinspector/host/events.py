"""In-process event source used by the replay host and tests."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass

from checkoutinspector.host.base import Listener

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Registration:
    callback: Listener
    tab_id: int
    url_patterns: tuple[str, ...]

    def matches(self, tab_id: int, url: str) -> bool:
        if tab_id != self.tab_id:
            return False
        return any(fnmatch.fnmatchcase(url, p) for p in self.url_patterns)


class ListenerRegistry:
    """Tab- and URL-filtered fan-out of events to registered callbacks.

    Adding a callback that is already registered replaces its filter, so a
    callback is delivered each event at most once.
    """

    def __init__(self, name: str = "events") -> None:
        self.name = name
        self._registrations: list[_Registration] = []

    def add_listener(
        self,
        callback: Listener,
        tab_id: int,
        url_patterns: tuple[str, ...] = ("*",),
    ) -> None:
        self.remove_listener(callback)
        self._registrations.append(
            _Registration(callback, tab_id, tuple(url_patterns))
        )

    def remove_listener(self, callback: Listener) -> None:
        self._registrations = [
            r for r in self._registrations if r.callback != callback
        ]

    def has_listener(self, callback: Listener) -> bool:
        return any(r.callback == callback for r in self._registrations)

    @property
    def listener_count(self) -> int:
        return len(self._registrations)

    def emit(self, tab_id: int, details: object) -> int:
        """Deliver details to every matching listener. Returns the delivery count."""
        url = getattr(details, "url", "")
        delivered = 0
        for registration in list(self._registrations):
            if registration.matches(tab_id, url):
                registration.callback(details)
                delivered += 1
        logger.debug("%s: %s delivered to %d listener(s)", self.name, url, delivered)
        return delivered

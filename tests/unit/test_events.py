"""Tests for the in-process listener registry."""

from __future__ import annotations

from checkoutinspector.host.base import EventSource, ResponseDetails
from checkoutinspector.host.events import ListenerRegistry


def _details(url: str) -> ResponseDetails:
    return ResponseDetails(url=url, resource_type="script")


def test_is_an_event_source():
    assert isinstance(ListenerRegistry(), EventSource)


def test_filters_by_tab_and_pattern():
    registry = ListenerRegistry()
    seen = []
    registry.add_listener(seen.append, 1, ("*://*.adyen.com/*",))

    assert registry.emit(1, _details("https://checkoutshopper-test.adyen.com/x.js")) == 1
    assert registry.emit(2, _details("https://checkoutshopper-test.adyen.com/x.js")) == 0
    assert registry.emit(1, _details("https://example.com/x.js")) == 0
    assert len(seen) == 1


def test_re_adding_replaces_registration():
    registry = ListenerRegistry()
    seen = []
    registry.add_listener(seen.append, 1)
    registry.add_listener(seen.append, 1)

    registry.emit(1, _details("https://example.com/"))
    assert registry.listener_count == 1
    assert len(seen) == 1


def test_bound_methods_can_be_removed():
    class Sink:
        def __init__(self):
            self.items = []

        def on_event(self, details):
            self.items.append(details)

    sink = Sink()
    registry = ListenerRegistry()
    registry.add_listener(sink.on_event, 1)
    assert registry.has_listener(sink.on_event)

    registry.remove_listener(sink.on_event)
    assert not registry.has_listener(sink.on_event)
    assert registry.emit(1, _details("https://example.com/")) == 0


def test_remove_unknown_is_noop():
    registry = ListenerRegistry()
    registry.remove_listener(print)
    assert registry.listener_count == 0

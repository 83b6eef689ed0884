"""Tests for the package registry client."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest

from checkoutinspector.version.registry import RegistryClient, StaticVersionSource


def run_async(coro):
    """Helper to run async functions in sync tests."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def db(tmp_path: Path):
    from checkoutinspector.storage.db import get_db

    conn = run_async(get_db(tmp_path / "test.db"))
    yield conn
    run_async(conn.close())


class TestRegistryClient:
    def test_returns_version(self):
        client = _client(lambda request: httpx.Response(200, json={"version": "5.68.0"}))
        assert run_async(RegistryClient(client).fetch_latest_version()) == "5.68.0"

    def test_network_error_returns_none(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        assert run_async(RegistryClient(_client(handler)).fetch_latest_version()) is None

    def test_http_error_status_returns_none(self):
        client = _client(lambda request: httpx.Response(503))
        assert run_async(RegistryClient(client).fetch_latest_version()) is None

    def test_non_json_returns_none(self):
        client = _client(lambda request: httpx.Response(200, text="<html>"))
        assert run_async(RegistryClient(client).fetch_latest_version()) is None

    def test_missing_version_returns_none(self):
        client = _client(lambda request: httpx.Response(200, json={"name": "x"}))
        assert run_async(RegistryClient(client).fetch_latest_version()) is None

    def test_caches_in_memory_until_ttl(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"version": f"5.6{len(calls)}.0"})

        clock = FakeClock()
        registry = RegistryClient(_client(handler), ttl=60, clock=clock)
        assert run_async(registry.fetch_latest_version()) == "5.61.0"
        clock.now += 30
        assert run_async(registry.fetch_latest_version()) == "5.61.0"
        clock.now += 60
        assert run_async(registry.fetch_latest_version()) == "5.62.0"
        assert len(calls) == 2

    def test_cache_survives_restart_via_db(self, db):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"version": "5.68.0"})

        clock = FakeClock()
        first = RegistryClient(_client(handler), db=db, clock=clock)
        assert run_async(first.fetch_latest_version()) == "5.68.0"

        second = RegistryClient(_client(handler), db=db, clock=clock)
        assert run_async(second.fetch_latest_version()) == "5.68.0"
        assert len(calls) == 1


def test_static_version_source():
    assert run_async(StaticVersionSource("5.0.0").fetch_latest_version()) == "5.0.0"
    assert run_async(StaticVersionSource(None).fetch_latest_version()) is None

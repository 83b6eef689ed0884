"""Tests for version parsing, comparison and detection."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from checkoutinspector.scan.models import AnalyticsData, CapturedRequest, RequestType, SdkMetadata
from checkoutinspector.version.detect import (
    find_version_in_urls,
    rank_bundle_candidates,
    resolve_detected_version,
    script_priority,
    version_from_bundles,
    version_from_script_text,
)
from checkoutinspector.version.semver import (
    ParsedVersion,
    VersionLag,
    classify_lag,
    compare_versions,
    parse_version,
)


def run_async(coro):
    """Helper to run async functions in sync tests."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


CDN_SCRIPT = "https://checkoutshopper-live.cdn.adyen.com/checkoutshopper/sdk/5.66.1/adyen.js"


class TestParseVersion:
    def test_plain(self):
        assert parse_version("5.67.5") == ParsedVersion(5, 67, 5)

    def test_prerelease_suffix_ignored(self):
        assert parse_version("6.0.0-beta.2") == ParsedVersion(6, 0, 0)

    @pytest.mark.parametrize("value", [None, "", "latest", "v5.1.0", "5.1"])
    def test_unparseable(self, value):
        assert parse_version(value) is None

    def test_compare_is_lexicographic(self):
        assert compare_versions(ParsedVersion(5, 10, 0), ParsedVersion(5, 9, 99)) > 0
        assert compare_versions(ParsedVersion(4, 99, 99), ParsedVersion(5, 0, 0)) < 0
        assert compare_versions(ParsedVersion(5, 1, 2), ParsedVersion(5, 1, 2)) == 0


class TestClassifyLag:
    @pytest.mark.parametrize(
        "detected, latest, expected",
        [
            ("5.68.0", "5.68.0", VersionLag.CURRENT),
            ("5.69.0", "5.68.0", VersionLag.CURRENT),
            ("5.68.0", "5.68.3", VersionLag.PATCH),
            ("5.67.5", "5.68.0", VersionLag.MINOR),
            ("4.9.0", "5.68.0", VersionLag.MAJOR),
        ],
    )
    def test_tiers(self, detected, latest, expected):
        assert classify_lag(detected, latest) is expected

    def test_unparseable_side_is_none(self):
        assert classify_lag("5.68.0", None) is None
        assert classify_lag("next", "5.68.0") is None


class TestUrlSignals:
    def test_cdn_dot_form(self):
        url = "https://checkoutshopper-live.adyen.com/checkoutshopper-sdk.5.60.0.min.js"
        assert find_version_in_urls([url]) == "5.60.0"

    def test_sdk_path_form(self):
        assert find_version_in_urls(["https://example.com/app.js", CDN_SCRIPT]) == "5.66.1"

    def test_no_match(self):
        assert find_version_in_urls(["https://example.com/app.js"]) is None


class TestBundleSignal:
    def test_script_priority_order(self):
        assert script_priority("/js/main.abc.js") > script_priority("/js/vendors.js")
        assert script_priority("/js/vendors.js") > script_priority("/bundle.js")
        assert script_priority("/bundle.js") > script_priority("/chunk-12.js")
        assert script_priority("/chunk-12.js") > script_priority("/app.js")

    def test_rank_keeps_same_host_only(self):
        ranked = rank_bundle_candidates(
            "https://shop.example.com/checkout",
            [
                "https://shop.example.com/app.js",
                "https://cdn.other.com/main.js",
                "https://shop.example.com/main.js",
                "https://shop.example.com/main.js",
            ],
            limit=4,
        )
        assert ranked == ["https://shop.example.com/main.js", "https://shop.example.com/app.js"]

    def test_rank_respects_limit(self):
        urls = [f"https://shop.example.com/chunk-{i}.js" for i in range(10)]
        assert len(rank_bundle_candidates("https://shop.example.com/", urls, limit=4)) == 4

    def test_version_from_script_text(self):
        text = 'var x=1;e.exports={name:"@adyen/adyen-web",version:"5.65.0"}'
        assert version_from_script_text(text) == "5.65.0"

    def test_version_from_bundles(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/main.js":
                return httpx.Response(200, text='/* adyen-web */ const v = "5.64.2";')
            return httpx.Response(404)

        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await version_from_bundles(
                    client,
                    "https://shop.example.com/checkout",
                    ["https://shop.example.com/app.js", "https://shop.example.com/main.js"],
                )

        assert run_async(go()) == "5.64.2"

    def test_version_from_bundles_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await version_from_bundles(
                    client, "https://shop.example.com/", ["https://shop.example.com/main.js"]
                )

        assert run_async(go()) is None


class TestResolveDetectedVersion:
    @staticmethod
    def _resolve(metadata=None, analytics=None, scripts=(), requests=(), bundle=None):
        calls = []

        async def fetch_bundle():
            calls.append(True)
            return bundle

        version = run_async(
            resolve_detected_version(metadata, analytics, list(scripts), requests, fetch_bundle)
        )
        return version, len(calls)

    def test_metadata_wins(self):
        version, fetched = self._resolve(
            metadata=SdkMetadata(version="5.68.0"),
            analytics=AnalyticsData(version="5.60.0"),
            scripts=[CDN_SCRIPT],
        )
        assert version == "5.68.0"
        assert fetched == 0

    def test_analytics_before_scripts(self):
        version, _ = self._resolve(analytics=AnalyticsData(version="5.60.0"), scripts=[CDN_SCRIPT])
        assert version == "5.60.0"

    def test_empty_metadata_version_falls_through(self):
        version, _ = self._resolve(metadata=SdkMetadata(version=""), scripts=[CDN_SCRIPT])
        assert version == "5.66.1"

    def test_requests_before_bundles(self):
        request = CapturedRequest(url=CDN_SCRIPT, type=RequestType.SCRIPT)
        version, fetched = self._resolve(requests=[request], bundle="5.1.0")
        assert version == "5.66.1"
        assert fetched == 0

    def test_bundle_is_last_resort(self):
        version, fetched = self._resolve(bundle="5.1.0")
        assert version == "5.1.0"
        assert fetched == 1

    def test_nothing_found(self):
        assert self._resolve() == (None, 1)

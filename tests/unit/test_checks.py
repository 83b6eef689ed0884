"""Tests for individual checks evaluated against hand-built payloads."""

from __future__ import annotations

import pytest

from checkoutinspector.checks.engine import CheckEngine
from checkoutinspector.checks.models import CheckCategory, Severity
from checkoutinspector.checks.sdk_version import RELEASE_NOTES_URL, UPGRADE_URL
from checkoutinspector.scan.models import (
    AnalyticsData,
    CapturedRequest,
    IframeInfo,
    LinkTag,
    RequestType,
    ScriptTag,
    SdkMetadata,
)

CDN_JS = "https://checkoutshopper-live.cdn.adyen.com/checkoutshopper/sdk/5.67.5/adyen.js"


def run_check(payload, check_id):
    """Run the whole catalog and pick out one result."""
    results = CheckEngine().run(payload)
    return next(r for r in results if r.id == check_id)


class TestAuth:
    def test_origin_key_warns(self, make_payload):
        result = run_check(make_payload(config={"client_key": "pub.v2.XYZ"}), "auth-client-key")
        assert result.severity is Severity.WARN
        assert result.category is CheckCategory.AUTH
        assert result.remediation

    def test_client_key_passes(self, make_payload):
        result = run_check(make_payload(config={"client_key": "test_ABC"}), "auth-client-key")
        assert result.severity is Severity.PASS

    def test_no_key_skips(self, make_payload):
        assert run_check(make_payload(config={}), "auth-client-key").severity is Severity.SKIP

    def test_missing_country_code_fails(self, make_payload):
        result = run_check(make_payload(config={"client_key": "test_ABC"}), "auth-country-code")
        assert result.severity is Severity.FAIL

    def test_country_code_passes(self, make_payload):
        result = run_check(make_payload(config={"country_code": "NL"}), "auth-country-code")
        assert result.severity is Severity.PASS

    def test_country_code_without_config_skips(self, make_payload):
        assert run_check(make_payload(), "auth-country-code").severity is Severity.SKIP

    @pytest.mark.parametrize(
        "locale, expected",
        [(None, Severity.WARN), ("xx-YY", Severity.WARN), ("nl-NL", Severity.PASS)],
    )
    def test_locale(self, make_payload, locale, expected):
        result = run_check(make_payload(config={"locale": locale}), "auth-locale")
        assert result.severity is expected


class TestVersionLatest:
    @pytest.mark.parametrize(
        "detected, latest",
        [("5.68.0", "5.68.0"), ("5.68.1", "5.68.0"), ("6.0.0", "5.68.0"), ("5.68.0-beta", "5.68.0")],
    )
    def test_current_or_ahead_passes(self, make_payload, detected, latest):
        result = run_check(make_payload(detected=detected, latest=latest), "version-latest")
        assert result.severity is Severity.PASS

    def test_patch_behind_is_notice(self, make_payload):
        result = run_check(make_payload(detected="5.68.0", latest="5.68.2"), "version-latest")
        assert result.severity is Severity.NOTICE

    def test_minor_behind_warns_with_upgrade_link(self, make_payload):
        result = run_check(make_payload(detected="5.67.5", latest="5.68.0"), "version-latest")
        assert result.severity is Severity.WARN
        assert result.docs_url == UPGRADE_URL

    def test_major_behind_warns(self, make_payload):
        result = run_check(make_payload(detected="4.9.9", latest="5.68.0"), "version-latest")
        assert result.severity is Severity.WARN
        assert result.docs_url == RELEASE_NOTES_URL

    @pytest.mark.parametrize(
        "detected, latest",
        [(None, "5.68.0"), ("5.68.0", None), ("", "5.68.0"), ("unknown", "5.68.0"), ("5.68.0", "x")],
    )
    def test_missing_or_unparseable_skips(self, make_payload, detected, latest):
        result = run_check(make_payload(detected=detected, latest=latest), "version-latest")
        assert result.severity is Severity.SKIP

    def test_version_detected(self, make_payload):
        assert run_check(make_payload(detected="5.1.0"), "version-detected").severity is Severity.INFO
        assert run_check(make_payload(), "version-detected").severity is Severity.WARN


class TestSecurityHeaders:
    LIVE = {"client_key": "live_ABC", "environment": "live"}

    def test_https_skipped_in_test(self, make_payload):
        payload = make_payload(config={"environment": "test"}, page_protocol="http:")
        assert run_check(payload, "security-https").severity is Severity.SKIP

    def test_http_live_fails(self, make_payload):
        payload = make_payload(config=self.LIVE, page_protocol="http:")
        assert run_check(payload, "security-https").severity is Severity.FAIL

    def test_live_in_counts_as_live(self, make_payload):
        payload = make_payload(config={"environment": "live-in"}, page_protocol="http:")
        assert run_check(payload, "security-https").severity is Severity.FAIL

    def test_hsts(self, make_payload):
        present = make_payload(config=self.LIVE, headers={"Strict-Transport-Security": "max-age=1"})
        missing = make_payload(config=self.LIVE)
        assert run_check(present, "security-hsts").severity is Severity.PASS
        assert run_check(missing, "security-hsts").severity is Severity.NOTICE

    def test_header_lookup_is_case_insensitive(self, make_payload):
        payload = make_payload(headers={"x-content-type-options": "nosniff"})
        assert run_check(payload, "security-x-content-type").severity is Severity.PASS

    def test_sri_script(self, make_payload):
        bare = make_payload(scripts=(ScriptTag(src=CDN_JS),))
        pinned = make_payload(
            scripts=(ScriptTag(src=CDN_JS, integrity="sha384-x", crossorigin="anonymous"),)
        )
        assert run_check(bare, "security-sri-script").severity is Severity.FAIL
        assert run_check(pinned, "security-sri-script").severity is Severity.PASS
        assert run_check(make_payload(), "security-sri-script").severity is Severity.SKIP


class TestCsp:
    def test_missing_csp(self, make_payload):
        payload = make_payload()
        assert run_check(payload, "security-csp-present").severity is Severity.WARN
        assert run_check(payload, "security-csp-script-src").severity is Severity.SKIP
        assert run_check(payload, "security-csp-reporting").severity is Severity.INFO

    def test_script_src_allows_adyen(self, make_payload):
        payload = make_payload(
            headers={"Content-Security-Policy": "script-src 'self' https://*.adyen.com"}
        )
        assert run_check(payload, "security-csp-present").severity is Severity.PASS
        assert run_check(payload, "security-csp-script-src").severity is Severity.PASS

    def test_script_src_without_adyen_warns(self, make_payload):
        payload = make_payload(headers={"Content-Security-Policy": "script-src 'self'"})
        assert run_check(payload, "security-csp-script-src").severity is Severity.WARN

    def test_frame_ancestors_or_x_frame_options(self, make_payload):
        with_directive = make_payload(
            headers={"Content-Security-Policy": "frame-ancestors 'none'"}
        )
        with_xfo = make_payload(headers={"X-Frame-Options": "DENY"})
        neither = make_payload()
        assert run_check(with_directive, "security-csp-frame-ancestors").severity is Severity.PASS
        assert run_check(with_xfo, "security-csp-frame-ancestors").severity is Severity.PASS
        assert run_check(neither, "security-csp-frame-ancestors").severity is Severity.WARN


class TestEnvironmentAndIdentity:
    def test_cdn_mismatch_fails(self, make_payload):
        payload = make_payload(
            config={"environment": "test"},
            requests=(CapturedRequest(url=CDN_JS, type=RequestType.SCRIPT),),
        )
        assert run_check(payload, "env-cdn-mismatch").severity is Severity.FAIL

    def test_iframe_embedding_warns(self, make_payload):
        payload = make_payload(is_inside_iframe=True)
        assert run_check(payload, "env-not-iframe").severity is Severity.WARN

    def test_sdk_not_detected_fails(self, make_payload):
        assert run_check(make_payload(), "sdk-detected").severity is Severity.FAIL

    def test_sdk_detected_from_script(self, make_payload):
        payload = make_payload(scripts=(ScriptTag(src=CDN_JS),))
        assert run_check(payload, "sdk-detected").severity is Severity.INFO

    def test_flavor_from_analytics(self, make_payload):
        payload = make_payload(analytics=AnalyticsData(flavor="dropin"))
        result = run_check(payload, "sdk-flavor")
        assert result.severity is Severity.INFO
        assert "Drop-in" in result.title


def test_every_check_returns_a_result_for_an_empty_page(make_payload):
    results = CheckEngine().run(make_payload())
    assert len(results) == len(CheckEngine())
    assert all(isinstance(r.severity, Severity) for r in results)


CDN_CSS = "https://checkoutshopper-live.cdn.adyen.com/checkoutshopper/sdk/5.67.5/adyen.css"
GTM_JS = "https://www.googletagmanager.com/gtm.js?id=GTM-XXXX"
META_JS = "https://connect.facebook.net/en_US/fbevents.js"


class TestSecurityExtras:
    def test_sri_css(self, make_payload):
        bare = make_payload(links=(LinkTag(href=CDN_CSS, rel="stylesheet"),))
        pinned = make_payload(
            links=(
                LinkTag(href=CDN_CSS, rel="stylesheet", integrity="sha384-x", crossorigin="anonymous"),
            )
        )
        other = make_payload(links=(LinkTag(href="https://shop.example.com/a.css", rel="stylesheet"),))
        assert run_check(bare, "security-sri-css").severity is Severity.WARN
        assert run_check(pinned, "security-sri-css").severity is Severity.PASS
        assert run_check(other, "security-sri-css").severity is Severity.SKIP

    @pytest.mark.parametrize(
        "value", ["strict-origin-when-cross-origin", "no-referrer", "same-origin"]
    )
    def test_referrer_policy_accepted(self, make_payload, value):
        payload = make_payload(headers={"Referrer-Policy": value})
        assert run_check(payload, "security-referrer-policy").severity is Severity.PASS

    def test_referrer_policy_permissive_or_missing(self, make_payload):
        permissive = run_check(
            make_payload(headers={"Referrer-Policy": "unsafe-url"}), "security-referrer-policy"
        )
        missing = run_check(make_payload(), "security-referrer-policy")
        assert permissive.severity is Severity.NOTICE
        assert "unsafe-url" in permissive.title
        assert missing.severity is Severity.NOTICE
        assert missing.title == "Referrer-Policy header is not set."

    @pytest.mark.parametrize(
        "headers, expected",
        [
            ({}, Severity.PASS),
            ({"X-XSS-Protection": "0"}, Severity.PASS),
            ({"X-XSS-Protection": "1; mode=block"}, Severity.NOTICE),
        ],
    )
    def test_xss_protection(self, make_payload, headers, expected):
        payload = make_payload(headers=headers)
        assert run_check(payload, "security-xss-protection").severity is expected

    def test_iframe_referrerpolicy(self, make_payload):
        src = "https://checkoutshopper-live.adyen.com/checkoutshopper/securedfields/5.67.5/card.html"
        with_policy = make_payload(iframes=(IframeInfo(src=src, referrerpolicy="origin"),))
        without = make_payload(iframes=(IframeInfo(src=src), IframeInfo(src=src, referrerpolicy="origin")))
        unrelated = make_payload(iframes=(IframeInfo(src="https://video.example.com/embed"),))

        assert run_check(with_policy, "security-iframe-referrerpolicy").severity is Severity.PASS
        missing = run_check(without, "security-iframe-referrerpolicy")
        assert missing.severity is Severity.INFO
        assert missing.title.startswith("Some Adyen iframes")
        assert run_check(unrelated, "security-iframe-referrerpolicy").title == (
            "No Adyen iframes detected."
        )

    @pytest.mark.parametrize(
        "csp, expected",
        [
            ("frame-src https:", Severity.PASS),
            ("child-src *", Severity.PASS),
            ("default-src 'self'", Severity.WARN),
            ("frame-src 'self' https://*.adyen.com", Severity.WARN),
        ],
    )
    def test_csp_frame_src(self, make_payload, csp, expected):
        payload = make_payload(headers={"Content-Security-Policy": csp})
        assert run_check(payload, "security-csp-frame-src").severity is expected

    def test_csp_frame_src_without_csp_skips(self, make_payload):
        assert run_check(make_payload(), "security-csp-frame-src").severity is Severity.SKIP


class TestRisk:
    def test_df_iframe_by_name(self, make_payload):
        payload = make_payload(
            iframes=(IframeInfo(name="dfIframe", src="https://live.adyen.com/dfIframe"),)
        )
        result = run_check(payload, "risk-df-iframe")
        assert result.severity is Severity.PASS
        assert result.category is CheckCategory.RISK

    def test_df_iframe_by_url(self, make_payload):
        request = CapturedRequest(
            url="https://checkoutshopper-live.adyen.com/checkoutshopper/assets/html/KEY/dfp.1.0.0.html",
            type=RequestType.OTHER,
        )
        assert run_check(make_payload(requests=(request,)), "risk-df-iframe").severity is Severity.PASS

    def test_df_iframe_missing_warns(self, make_payload):
        result = run_check(make_payload(), "risk-df-iframe")
        assert result.severity is Severity.WARN
        assert result.remediation

    def test_risk_disabled_warns(self, make_payload):
        payload = make_payload(config={"client_key": "test_X", "risk_enabled": False})
        result = run_check(payload, "risk-module-not-disabled")
        assert result.severity is Severity.WARN
        assert "riskEnabled: false" in result.title

    def test_risk_disabled_on_component_warns(self, make_payload):
        from checkoutinspector.scan.models import CheckoutConfig

        payload = make_payload(component_config=CheckoutConfig(risk_enabled=False))
        assert run_check(payload, "risk-module-not-disabled").severity is Severity.WARN

    def test_risk_not_disabled_passes(self, make_payload):
        payload = make_payload(config={"client_key": "test_X", "environment": "test"})
        assert run_check(payload, "risk-module-not-disabled").severity is Severity.PASS

    def test_inferred_config_alone_skips(self, make_payload):
        from checkoutinspector.scan.models import CheckoutConfig

        payload = make_payload(inferred_config=CheckoutConfig(client_key="test_X"))
        assert run_check(payload, "risk-module-not-disabled").severity is Severity.SKIP


def _scripts(*srcs, **attrs):
    return tuple(ScriptTag(src=src, **attrs) for src in srcs)


class TestThirdParty:
    @pytest.mark.parametrize(
        "check_id", ["3p-tag-manager", "3p-session-replay", "3p-ad-pixels", "3p-no-sri"]
    )
    def test_clean_page_passes(self, make_payload, check_id):
        assert run_check(make_payload(), check_id).severity is Severity.PASS

    def test_tag_manager_notice(self, make_payload):
        result = run_check(make_payload(scripts=_scripts(GTM_JS)), "3p-tag-manager")
        assert result.severity is Severity.NOTICE
        assert "Google Tag Manager" in result.title
        assert result.category is CheckCategory.THIRD_PARTY

    def test_tealium_notice(self, make_payload):
        payload = make_payload(scripts=_scripts("https://tags.tealiumiq.com/utag.js"))
        assert run_check(payload, "3p-tag-manager").severity is Severity.NOTICE

    @pytest.mark.parametrize(
        "src, vendor",
        [
            ("https://edge.fullstory.com/s/fs.js", "FullStory"),
            ("https://static.hotjar.com/c/hotjar.js", "Hotjar"),
        ],
    )
    def test_session_replay_fails(self, make_payload, src, vendor):
        result = run_check(make_payload(scripts=_scripts(src)), "3p-session-replay")
        assert result.severity is Severity.FAIL
        assert vendor in result.title

    @pytest.mark.parametrize(
        "src, vendor",
        [
            (META_JS, "Meta Pixel"),
            ("https://analytics.tiktok.com/i18n/pixel/events.js", "TikTok Pixel"),
        ],
    )
    def test_ad_pixels_warn(self, make_payload, src, vendor):
        result = run_check(make_payload(scripts=_scripts(src)), "3p-ad-pixels")
        assert result.severity is Severity.WARN
        assert vendor in result.title

    def test_no_sri_notice_counts_scripts(self, make_payload):
        result = run_check(make_payload(scripts=_scripts(GTM_JS, META_JS)), "3p-no-sri")
        assert result.severity is Severity.NOTICE
        assert result.title.startswith("2 ")

    def test_no_sri_passes_with_integrity(self, make_payload):
        payload = make_payload(
            scripts=_scripts(GTM_JS, integrity="sha384-abc", crossorigin="anonymous")
        )
        assert run_check(payload, "3p-no-sri").severity is Severity.PASS

    @pytest.mark.parametrize("src", ["https://cdn.example.com/lib.js", "/local/gtm.js"])
    def test_no_sri_ignores_unknown_and_relative(self, make_payload, src):
        assert run_check(make_payload(scripts=_scripts(src)), "3p-no-sri").severity is Severity.PASS


LIVE_AU_API = "https://checkout-live-au.adyenpayments.com/checkout/v71/payments/details"
TEST_API = "https://checkout-test.adyen.com/v71/paymentMethods"


def _api(url):
    return (CapturedRequest(url=url, type=RequestType.OTHER),)


class TestEnvironmentExtras:
    def test_region_skipped_in_test(self, make_payload):
        payload = make_payload(config={"environment": "test"})
        assert run_check(payload, "env-region").severity is Severity.SKIP

    def test_region_from_config(self, make_payload):
        result = run_check(make_payload(config={"environment": "live-us"}), "env-region")
        assert result.severity is Severity.INFO
        assert result.title == "Region: US."
        assert result.detail == "Determined from checkoutConfig.environment."

    def test_region_from_network(self, make_payload):
        payload = make_payload(config={"environment": "live"}, requests=_api(LIVE_AU_API))
        result = run_check(payload, "env-region")
        assert result.title == "Region: AU."
        assert "hostnames" in result.detail

    def test_region_unknown(self, make_payload):
        assert run_check(make_payload(), "env-region").title == "Region: unknown."

    def test_key_mismatch_fails(self, make_payload):
        payload = make_payload(config={"client_key": "live_ABC"}, requests=_api(TEST_API))
        result = run_check(payload, "env-key-mismatch")
        assert result.severity is Severity.FAIL
        assert "(live)" in result.title
        assert "(test)" in result.title

    def test_key_matches(self, make_payload):
        payload = make_payload(config={"client_key": "test_ABC"}, requests=_api(TEST_API))
        assert run_check(payload, "env-key-mismatch").severity is Severity.PASS

    def test_key_mismatch_skips_without_api_traffic(self, make_payload):
        payload = make_payload(config={"client_key": "test_ABC"})
        assert run_check(payload, "env-key-mismatch").severity is Severity.SKIP

    def test_key_mismatch_skips_without_key(self, make_payload):
        assert run_check(make_payload(config={}), "env-key-mismatch").severity is Severity.SKIP


class TestSdkIdentityExtras:
    @pytest.mark.parametrize(
        "scripts, method",
        [
            (_scripts(CDN_JS), "CDN"),
            (
                _scripts(
                    "https://checkoutshopper-live.adyen.com/checkoutshopper/sdk/5.67.5/adyen.js"
                ),
                "Adyen",
            ),
            ((), "npm"),
        ],
    )
    def test_import_method(self, make_payload, scripts, method):
        result = run_check(make_payload(scripts=scripts), "sdk-import-method")
        assert result.severity is Severity.INFO
        assert result.title == f"Import method: {method}."

    def test_bundle_type_skipped_for_cdn(self, make_payload):
        payload = make_payload(scripts=_scripts(CDN_JS), sdk_metadata=SdkMetadata(bundle_type="auto"))
        assert run_check(payload, "sdk-bundle-type").severity is Severity.SKIP

    def test_bundle_type_unknown_skips(self, make_payload):
        assert run_check(make_payload(), "sdk-bundle-type").severity is Severity.SKIP

    def test_auto_bundle_warns(self, make_payload):
        payload = make_payload(sdk_metadata=SdkMetadata(version="6.0.0", bundle_type="auto"))
        assert run_check(payload, "sdk-bundle-type").severity is Severity.WARN

    def test_tree_shakable_bundle_passes(self, make_payload):
        payload = make_payload(sdk_metadata=SdkMetadata(version="6.0.0", bundle_type="esm"))
        assert run_check(payload, "sdk-bundle-type").severity is Severity.PASS

    def test_bundle_type_from_analytics(self, make_payload):
        payload = make_payload(analytics=AnalyticsData(build_type="eslegacy"))
        result = run_check(payload, "sdk-bundle-type")
        assert result.severity is Severity.PASS
        assert "eslegacy" in result.title

    def test_analytics_disabled_warns(self, make_payload):
        payload = make_payload(config={"analytics_enabled": False}, scripts=_scripts(CDN_JS))
        assert run_check(payload, "sdk-analytics").severity is Severity.WARN

    def test_analytics_enabled_passes(self, make_payload):
        payload = make_payload(config={}, scripts=_scripts(CDN_JS))
        assert run_check(payload, "sdk-analytics").severity is Severity.PASS

    def test_analytics_skipped_without_checkout_activity(self, make_payload):
        payload = make_payload(scripts=_scripts(CDN_JS))
        assert run_check(payload, "sdk-analytics").severity is Severity.SKIP
        assert run_check(make_payload(), "sdk-analytics").severity is Severity.SKIP

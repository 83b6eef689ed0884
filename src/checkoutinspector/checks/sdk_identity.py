"""SDK identity checks — presence, flavor, import method, bundle, analytics."""

from __future__ import annotations

from checkoutinspector.checks import attributes
from checkoutinspector.checks.attributes import ImportMethod, Source
from checkoutinspector.checks.models import (
    CheckCategory,
    CheckOutcome,
    fail,
    info,
    passed,
    skip,
    warn,
)
from checkoutinspector.checks.registry import CheckRegistry
from checkoutinspector.scan.models import ScanPayload
from checkoutinspector.urls import is_checkout_resource

registry = CheckRegistry(CheckCategory.SDK_IDENTITY)

_FLAVOR_DETAIL = {
    Source.ANALYTICS: "Detected from Adyen checkout analytics data.",
    Source.DROPIN_PATTERN: "Detected based on CDN resource URL patterns.",
    Source.DROPIN_DOM: "Detected from the Drop-in container in the page DOM.",
    Source.CHECKOUT_CONFIG: (
        "Detected based on checkout config presence (analytics disabled or unavailable)."
    ),
}

_IMPORT_DETAIL = {
    ImportMethod.CDN: "SDK loaded via <script src> from *.cdn.adyen.com.",
    ImportMethod.ADYEN: "SDK loaded via <script src> from *.adyen.com (non-CDN host).",
    ImportMethod.NPM: "SDK bundled via npm import (no Adyen-hosted script tag detected).",
}


@registry.check("sdk-detected")
def sdk_detected(payload: ScanPayload) -> CheckOutcome:
    if attributes.sdk_loaded(payload):
        return info("Adyen Web SDK detected on this page.")
    return fail(
        "Adyen Web SDK was not detected on this page.",
        "No window.AdyenWebMetadata or CDN script tag was found.",
        "Check that the SDK loads on this page. With an npm import, enable "
        "exposeLibraryMetadata in your AdyenCheckout configuration so the SDK can be "
        "detected; with a CDN script tag, confirm the URL is on an Adyen-hosted domain.",
        "https://docs.adyen.com/online-payments/build-your-integration/",
    )


@registry.check("sdk-flavor")
def sdk_flavor(payload: ScanPayload) -> CheckOutcome:
    resolution = attributes.resolve_integration_flavor(payload)

    if resolution.source is Source.SDK_LOADED_NO_CHECKOUT:
        return info(
            "No Adyen Web checkout was mounted on this page.",
            "The SDK is loaded, but no Drop-in or Component appears to have been "
            "initialised. Navigate to the page where checkout renders and scan again.",
        )

    detail = _FLAVOR_DETAIL.get(
        resolution.source,
        "Could not determine the integration flavor from analytics, URL patterns, "
        "or page config.",
    )
    return info(f"Integration flavor: {resolution.flavor.value}.", detail)


@registry.check("sdk-import-method")
def sdk_import_method(payload: ScanPayload) -> CheckOutcome:
    method = attributes.detect_import_method(payload.page.scripts)
    return info(f"Import method: {method.value}.", _IMPORT_DETAIL[method])


@registry.check("sdk-bundle-type")
def sdk_bundle_type(payload: ScanPayload) -> CheckOutcome:
    page = payload.page
    if any(is_checkout_resource(s.src) for s in page.scripts):
        return skip("Bundle type check not applicable for CDN imports.")

    analytics_build = payload.analytics_data.build_type if payload.analytics_data else None
    if page.sdk_metadata is None and analytics_build is None:
        return skip("Could not determine bundle type (AdyenWebMetadata not available).")

    bundle_type = (
        (page.sdk_metadata.bundle_type if page.sdk_metadata else None)
        or analytics_build
        or "unknown"
    )

    if bundle_type == "auto":
        return warn(
            "Using the auto bundle; consider switching to tree-shakable imports.",
            f'Bundle type is "{bundle_type}". The auto bundle includes every payment '
            "method, which inflates the bundle size.",
            "Import only the payment method components your integration uses instead of "
            "the whole package. This shrinks the JavaScript bundle and speeds up the "
            "checkout page.",
            "https://docs.adyen.com/online-payments/upgrade-your-integration/",
        )

    return passed(f'Bundle type "{bundle_type}" is optimised.')


@registry.check("sdk-analytics")
def sdk_analytics(payload: ScanPayload) -> CheckOutcome:
    if not attributes.sdk_loaded(payload) or not attributes.has_checkout_activity(payload):
        return skip("Analytics check skipped: SDK not active on this page.")

    config = payload.page.checkout_config
    if config is not None and config.analytics_enabled is False:
        return warn(
            "Checkout analytics appear to be disabled.",
            "Checkout config sets analytics.enabled to false. Adyen cannot optimise "
            "payment performance, and flavor, version and build type must come from "
            "fallback detection.",
            "Remove analytics.enabled: false from your AdyenCheckout configuration. "
            "Checkout analytics are on by default.",
            "https://docs.adyen.com/online-payments/analytics-and-data-tracking/",
        )

    return passed(
        "Checkout analytics are not explicitly disabled.",
        "analytics.enabled is not set to false in checkout config.",
    )


CHECKS = registry.checks

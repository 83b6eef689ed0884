"""Environment and region consistency checks."""

from __future__ import annotations

from checkoutinspector.checks import attributes
from checkoutinspector.checks.attributes import ENV_TEST, Source
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

registry = CheckRegistry(CheckCategory.ENVIRONMENT)

_REGION_SOURCE_DETAIL = {
    Source.CONFIG: "Determined from checkoutConfig.environment.",
    Source.UNKNOWN: "No Adyen CDN or API requests captured to determine region.",
}


@registry.check("env-cdn-mismatch")
def cdn_mismatch(payload: ScanPayload) -> CheckOutcome:
    cdn_env = attributes.env_from_cdn_requests(payload)
    if cdn_env is None:
        return skip("CDN environment check skipped: no Adyen CDN requests observed.")

    configured = attributes.resolve_environment(payload).env
    if configured is None:
        return skip("CDN environment check skipped: configured environment unknown.")

    if cdn_env != configured:
        return fail(
            f"CDN environment ({cdn_env}) does not match configured environment ({configured}).",
            f"Assets load from the Adyen {cdn_env} CDN while checkout is configured for "
            f"{configured}. The mismatch causes subtle failures in locale files, component "
            "versions and payment method availability.",
            "Make checkoutConfig.environment match the CDN your assets come from. To use "
            f"the {configured} environment, point script and stylesheet URLs at the "
            f"{configured} CDN origin.",
            "https://docs.adyen.com/online-payments/web-best-practices/"
            "#embed-script-and-stylesheet",
        )

    return passed(f"CDN environment matches configured environment ({configured}).")


@registry.check("env-region")
def region(payload: ScanPayload) -> CheckOutcome:
    if attributes.resolve_environment(payload).env == ENV_TEST:
        return skip("Region check skipped: test environment.")

    resolution = attributes.resolve_region(payload)
    detail = _REGION_SOURCE_DETAIL.get(
        resolution.source,
        "Determined from captured Adyen CDN / API request hostnames.",
    )
    return info(f"Region: {resolution.region}.", detail)


@registry.check("env-key-mismatch")
def key_mismatch(payload: ScanPayload) -> CheckOutcome:
    config = payload.page.checkout_config
    key = config.client_key if config else None
    if not key:
        return skip("Key-environment mismatch check skipped: client key not detected.")

    key_env = attributes.env_from_client_key(key)
    request_env = attributes.env_from_requests(payload)
    if key_env is None or request_env is None:
        return skip("Key-environment mismatch check skipped: insufficient data.")

    if key_env != request_env:
        return fail(
            f"Client key prefix ({key_env}) does not match API endpoint environment "
            f"({request_env}).",
            f"Using a {key_env} client key against a {request_env} endpoint causes "
            "authentication errors.",
            "Use test_ client keys only against test endpoints and live_ client keys only "
            "against live endpoints. Mixing them fails authentication at payment time.",
            "https://docs.adyen.com/development-resources/client-side-authentication/",
        )

    return passed("Client key prefix matches the API environment.")


@registry.check("env-not-iframe")
def not_iframe(payload: ScanPayload) -> CheckOutcome:
    if payload.page.is_inside_iframe:
        return warn(
            "Checkout appears to be rendered inside an <iframe>.",
            "Embedding checkout in an iframe may break 3DS redirects, cookies and CSP.",
            "Render Drop-in or Components in the top-level document rather than inside "
            "a parent iframe.",
            "https://docs.adyen.com/online-payments/web-best-practices/#iframe",
        )

    return passed("Checkout is not embedded inside an iframe.")


CHECKS = registry.checks

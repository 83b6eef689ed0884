"""Risk module checks."""

from __future__ import annotations

from checkoutinspector.checks.models import CheckCategory, CheckOutcome, passed, skip, warn
from checkoutinspector.checks.registry import CheckRegistry
from checkoutinspector.constants import DF_IFRAME_NAME, DF_IFRAME_URL_PATTERN
from checkoutinspector.scan.models import ScanPayload

registry = CheckRegistry(CheckCategory.RISK)

RISK_MANAGEMENT_URL = "https://docs.adyen.com/risk-management/"


@registry.check("risk-df-iframe")
def df_iframe(payload: ScanPayload) -> CheckOutcome:
    has_df_iframe = any(f.name == DF_IFRAME_NAME for f in payload.page.iframes) or any(
        DF_IFRAME_URL_PATTERN.search(r.url) for r in payload.captured_requests
    )
    if has_df_iframe:
        return passed(
            "Device fingerprint iframe loaded.",
            "Adyen risk module device fingerprinting is active.",
        )
    return warn(
        "Device fingerprint iframe was not detected.",
        "The device fingerprint iframe feeds Adyen's risk engine. Without it fraud scoring "
        "is degraded and chargeback risk goes up.",
        "Check that the risk module is enabled and that your Content-Security-Policy lets "
        "the device fingerprinting iframe load. Content blockers on the test device can "
        "also prevent it.",
        RISK_MANAGEMENT_URL,
    )


@registry.check("risk-module-not-disabled")
def module_not_disabled(payload: ScanPayload) -> CheckOutcome:
    config = payload.page.checkout_config or payload.page.component_config
    if config is None:
        return skip("Risk module setting check skipped.", "Checkout config not detected.")

    if config.risk_enabled is False:
        return warn(
            "Risk module is explicitly disabled (riskEnabled: false).",
            "Disabling the risk module removes fraud detection entirely, increasing "
            "chargeback exposure.",
            "Remove riskEnabled: false from your AdyenCheckout configuration, or replace "
            "it with a fully tested alternative fraud solution.",
            RISK_MANAGEMENT_URL,
        )
    return passed("Risk module is enabled.")


CHECKS = registry.checks

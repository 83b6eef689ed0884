"""Authentication and required-field checks."""

from __future__ import annotations

from checkoutinspector.checks.models import (
    CheckCategory,
    CheckOutcome,
    fail,
    passed,
    skip,
    warn,
)
from checkoutinspector.checks.registry import CheckRegistry
from checkoutinspector.constants import LOCALES_SOURCE_URL, ORIGIN_KEY_PREFIX, SUPPORTED_LOCALES
from checkoutinspector.scan.models import ScanPayload

registry = CheckRegistry(CheckCategory.AUTH)


@registry.check("auth-client-key")
def client_key(payload: ScanPayload) -> CheckOutcome:
    config = payload.page.checkout_config
    key = config.client_key if config else None
    if not key:
        return skip("Client key check skipped: key not detected in page config.")

    if key.startswith(ORIGIN_KEY_PREFIX):
        return warn(
            "Origin key detected. Migrate to a client key.",
            f'The value "{key[:12]}…" starts with "{ORIGIN_KEY_PREFIX}", which marks an '
            "origin key. Origin keys are deprecated and will be deactivated; checkout "
            "stops working unless the integration migrates to client keys.",
            "Generate a client key in the Customer Area (Developers > API credentials > "
            "Client-side integration) and replace the origin key in your checkout "
            "configuration.",
            "https://docs.adyen.com/development-resources/client-side-authentication/"
            "migrate-from-origin-key-to-client-key/",
        )

    return passed("Client key (not an origin key) is in use.")


@registry.check("auth-country-code")
def country_code(payload: ScanPayload) -> CheckOutcome:
    config = payload.page.checkout_config
    if config is None:
        return skip("Country code check skipped: checkout config not detected.")

    if not config.country_code:
        return fail(
            "countryCode is not set in the checkout configuration.",
            "countryCode is required so the payment methods shown match the shopper's "
            "country.",
            "Set countryCode in your AdyenCheckout configuration to the ISO 3166-1 "
            "alpha-2 code of the shopper's country. It selects the payment methods for "
            "that market and routes the payment correctly.",
            "https://docs.adyen.com/development-resources/testing/",
        )

    return passed("countryCode is set correctly.")


@registry.check("auth-locale")
def locale(payload: ScanPayload) -> CheckOutcome:
    config = payload.page.checkout_config
    if config is None:
        return skip("Locale check skipped: checkout config not detected.")

    if not config.locale:
        return warn(
            "locale is not explicitly set; language will be determined automatically.",
            "Without a locale, checkout UI language and number formatting may not match "
            "the shopper, which hurts conversion.",
            "Set locale in your AdyenCheckout configuration to an IETF language tag "
            "supported by Adyen Web, such as en-US or nl-NL.",
            "https://docs.adyen.com/online-payments/build-your-integration/",
        )

    if config.locale not in SUPPORTED_LOCALES:
        return warn(
            f'locale "{config.locale}" is not in the supported Adyen Web translations list.',
            "Use a locale that exists in the Adyen Web server translations to avoid an "
            "unexpected language fallback.",
            "Change locale in your AdyenCheckout configuration to one of the locales "
            "shipped with the Adyen Web server translations.",
            LOCALES_SOURCE_URL,
        )

    return passed("locale is set correctly.")


CHECKS = registry.checks

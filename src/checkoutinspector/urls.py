"""URL and hostname helpers shared by the collector, resolver, and checks."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from checkoutinspector.constants import (
    ADYEN_HOST_SUFFIX,
    ADYEN_PAYMENTS_HOST_SUFFIX,
    ALL_ADYEN_DOMAINS,
)

_CHECKOUTSHOPPER_RESOURCE = re.compile(r"checkoutshopper-sdk|/checkoutshopper/", re.IGNORECASE)
_TRANSLATION_LOCALE = re.compile(r"/translations/([^/]+)\.json$")


def extract_hostname(url: str) -> str | None:
    """Return the hostname of an absolute URL, or None if it has none."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return parts.hostname or None


def is_adyen_host(host: str) -> bool:
    normalized = host.lower()
    return (
        normalized == "adyen.com"
        or normalized.endswith(ADYEN_HOST_SUFFIX)
        or normalized == "adyenpayments.com"
        or normalized.endswith(ADYEN_PAYMENTS_HOST_SUFFIX)
    )


def is_known_sdk_domain(host: str | None) -> bool:
    """Whether host is one of the SDK's checkout, API, or analytics domains."""
    if not host:
        return False
    return any(host == d or host.endswith(f".{d}") for d in ALL_ADYEN_DOMAINS)


def is_checkout_resource(url: str) -> bool:
    """Whether url refers to an SDK-hosted checkout script or stylesheet."""
    host = extract_hostname(url)
    if host is None:
        return False
    return bool(_CHECKOUTSHOPPER_RESOURCE.search(url)) and is_adyen_host(host)


def extract_locale_from_url(url: str) -> str | None:
    """Extract the locale from a translation file URL (…/translations/nl-NL.json)."""
    match = _TRANSLATION_LOCALE.search(url)
    if match and match.group(1):
        return match.group(1)
    return None

"""Implementation attributes derived from a scan payload.

Environment, region, integration flow, flavor and import method are shared
by several checks and by the CLI summary, so they are resolved here once,
each with the signal that produced them.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable
from dataclasses import dataclass

from checkoutinspector.constants import (
    ADYEN_API_DOMAINS,
    ADYEN_CDN_DOMAINS,
    ADYEN_CDN_HOST_SUFFIX,
    ADYEN_CHECKOUTSHOPPER_DOMAINS,
    API_FALLBACK_PATTERN,
    CLIENT_KEY_LIVE_PREFIX,
    CLIENT_KEY_TEST_PREFIX,
    ENVIRONMENT_REGION_MAP,
    SESSIONS_API_PATTERN,
)
from checkoutinspector.scan.models import CheckoutConfig, ScanPayload, ScriptTag
from checkoutinspector.urls import extract_hostname, is_adyen_host, is_checkout_resource

ENV_TEST = "test"
ENV_LIVE = "live"
ENV_LIVE_IN = "live-in"

REGION_UNKNOWN = "unknown"

_KNOWN_ENV_HOSTS = frozenset(ADYEN_CDN_DOMAINS + ADYEN_CHECKOUTSHOPPER_DOMAINS + ADYEN_API_DOMAINS)
_CONFIG_ENV_RE = re.compile(r"^(test|live)(?:[-_]([a-z]+))?$")
_CDN_REGION_RE = re.compile(r"checkoutshopper-live-([a-z0-9]+)\.")
_DROPIN_RE = re.compile(r"dropin")

_REGION_TOKENS = {"eu": "EU", "us": "US", "au": "AU", "apse": "APSE", "in": "IN"}


class Source(enum.Enum):
    """Which signal an attribute was resolved from."""

    CONFIG = "config"
    CLIENT_KEY = "client-key"
    NETWORK = "network"
    ANALYTICS = "analytics"
    DROPIN_PATTERN = "dropin-pattern"
    DROPIN_DOM = "dropin-dom"
    CHECKOUT_CONFIG = "checkout-config"
    SDK_LOADED_NO_CHECKOUT = "sdk-loaded-no-checkout"
    UNKNOWN = "unknown"


class IntegrationFlow(enum.Enum):
    SESSIONS = "sessions"
    ADVANCED = "advanced"
    UNKNOWN = "unknown"


class ImportMethod(enum.Enum):
    CDN = "CDN"
    ADYEN = "Adyen"
    NPM = "npm"


class Flavor(enum.Enum):
    DROPIN = "Drop-in"
    COMPONENTS = "Components"
    CUSTOM = "Custom"
    UNKNOWN = "Unknown"


_ANALYTICS_FLAVORS = {
    "dropin": Flavor.DROPIN,
    "components": Flavor.COMPONENTS,
    "custom": Flavor.CUSTOM,
}


@dataclass(frozen=True)
class EnvironmentResolution:
    env: str | None
    source: Source


@dataclass(frozen=True)
class RegionResolution:
    region: str
    source: Source


@dataclass(frozen=True)
class FlavorResolution:
    flavor: Flavor
    source: Source


@dataclass(frozen=True)
class ImplementationAttributes:
    sdk_version: str
    environment: str
    region: str | None
    flow: IntegrationFlow
    flavor: Flavor
    import_method: ImportMethod


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _configs(payload: ScanPayload) -> tuple[CheckoutConfig | None, ...]:
    """Checkout, inferred, and component config, in resolution order."""
    page = payload.page
    return (page.checkout_config, page.inferred_config, page.component_config)


def _request_hosts(payload: ScanPayload) -> Iterable[tuple[str, str]]:
    for request in payload.captured_requests:
        host = (extract_hostname(request.url) or "").lower()
        yield request.url, host


def _map_region_token(token: str | None) -> str:
    if not token:
        return REGION_UNKNOWN
    return _REGION_TOKENS.get(token, REGION_UNKNOWN)


def _parse_config_environment(environment: str | None) -> tuple[str | None, str]:
    """Split a configured environment such as ``live-us`` into (env, region)."""
    if environment is None or not environment.strip():
        return None, REGION_UNKNOWN

    value = environment.strip().lower()
    if value in (ENV_TEST, ENV_LIVE):
        return value, REGION_UNKNOWN

    match = _CONFIG_ENV_RE.match(value)
    if match is None:
        return None, REGION_UNKNOWN

    env, token = match.group(1), match.group(2)
    if env == ENV_LIVE and token == "in":
        return ENV_LIVE_IN, "IN"
    return env, _map_region_token(token)


def is_api_request(url: str) -> bool:
    return bool(SESSIONS_API_PATTERN.search(url) or API_FALLBACK_PATTERN.search(url))


def _is_checkoutshopper_host(host: str) -> bool:
    return host.startswith("checkoutshopper-")


def _is_config_related(url: str, host: str) -> bool:
    return is_api_request(url) or host.startswith("checkoutanalytics")


def _starts_with_live_prefix(host: str, prefix: str) -> bool:
    return host.startswith(f"{prefix}.") or host.startswith(f"{prefix}-")


def _env_from_host(host: str) -> str | None:
    if host in _KNOWN_ENV_HOSTS:
        if "-test." in host:
            return ENV_TEST
        if "-live-in." in host:
            return ENV_LIVE_IN
        return ENV_LIVE
    if host.startswith("checkoutshopper-test.") or host.startswith("checkout-test."):
        return ENV_TEST
    if _starts_with_live_prefix(host, "checkoutshopper-live") or _starts_with_live_prefix(
        host, "checkout-live"
    ):
        if "-in." in host or "-in-" in host:
            return ENV_LIVE_IN
        return ENV_LIVE
    if is_adyen_host(host):
        return ENV_TEST if "test" in host else ENV_LIVE
    return None


# ---------------------------------------------------------------------------
# Environment and region
# ---------------------------------------------------------------------------


def env_from_client_key(client_key: str | None) -> str | None:
    if not client_key:
        return None
    if client_key.startswith(CLIENT_KEY_TEST_PREFIX):
        return ENV_TEST
    if client_key.startswith(CLIENT_KEY_LIVE_PREFIX):
        return ENV_LIVE
    return None


def env_from_requests(payload: ScanPayload) -> str | None:
    """Environment from API and analytics hosts; asset hosts are ignored."""
    for url, host in _request_hosts(payload):
        if _is_config_related(url, host):
            env = _env_from_host(host)
            if env is not None:
                return env
    return None


def env_from_cdn_requests(payload: ScanPayload) -> str | None:
    """Environment from checkoutshopper asset hosts only."""
    for _url, host in _request_hosts(payload):
        if _is_checkoutshopper_host(host):
            env = _env_from_host(host)
            if env is not None:
                return env
    return None


def resolve_environment(payload: ScanPayload) -> EnvironmentResolution:
    """Config first, then the client key prefix, then network traffic."""
    for config in _configs(payload):
        env, _region = _parse_config_environment(config.environment if config else None)
        if env is not None:
            return EnvironmentResolution(env, Source.CONFIG)

    page = payload.page
    for config in (page.checkout_config, page.component_config, page.inferred_config):
        env = env_from_client_key(config.client_key if config else None)
        if env is not None:
            return EnvironmentResolution(env, Source.CLIENT_KEY)

    env = env_from_requests(payload)
    if env is not None:
        return EnvironmentResolution(env, Source.NETWORK)

    return EnvironmentResolution(None, Source.UNKNOWN)


def region_from_requests(payload: ScanPayload) -> str:
    for url, host in _request_hosts(payload):
        if _is_config_related(url, host):
            region = ENVIRONMENT_REGION_MAP.get(host)
            if region is not None:
                return region
    return REGION_UNKNOWN


def region_from_cdn_requests(payload: ScanPayload) -> str:
    for _url, host in _request_hosts(payload):
        if _is_checkoutshopper_host(host):
            match = _CDN_REGION_RE.search(host)
            if match:
                return _map_region_token(match.group(1))
    return REGION_UNKNOWN


def resolve_region(payload: ScanPayload) -> RegionResolution:
    for config in _configs(payload):
        _env, region = _parse_config_environment(config.environment if config else None)
        if region != REGION_UNKNOWN:
            return RegionResolution(region, Source.CONFIG)

    region = region_from_requests(payload)
    if region != REGION_UNKNOWN:
        return RegionResolution(region, Source.NETWORK)

    return RegionResolution(REGION_UNKNOWN, Source.UNKNOWN)


# ---------------------------------------------------------------------------
# Integration shape
# ---------------------------------------------------------------------------


def sdk_loaded(payload: ScanPayload) -> bool:
    return payload.page.sdk_metadata is not None or any(
        is_checkout_resource(s.src) for s in payload.page.scripts
    )


def has_checkout_activity(payload: ScanPayload) -> bool:
    """Config, analytics, SDK iframes, or checkout API traffic on the page."""
    page = payload.page
    if page.checkout_config or page.component_config or page.inferred_config:
        return True
    if payload.analytics_data is not None:
        return True
    for frame in page.iframes:
        if (frame.src and "adyen" in frame.src) or (
            frame.name and frame.name.startswith("adyen-")
        ):
            return True
    return any(is_api_request(r.url) for r in payload.captured_requests)


def detect_integration_flow(payload: ScanPayload) -> IntegrationFlow:
    configs = [c for c in _configs(payload) if c is not None]
    has_sessions_request = any(SESSIONS_API_PATTERN.search(r.url) for r in payload.captured_requests)
    has_session_config = any(c.has_session for c in configs)
    has_session_id = bool(payload.analytics_data and payload.analytics_data.session_id)

    if has_sessions_request or has_session_config or has_session_id:
        return IntegrationFlow.SESSIONS
    if configs:
        return IntegrationFlow.ADVANCED
    return IntegrationFlow.UNKNOWN


def detect_import_method(scripts: Iterable[ScriptTag]) -> ImportMethod:
    """CDN script, another SDK-owned host, or bundled through npm."""
    found_adyen_host = False
    for script in scripts:
        host = extract_hostname(script.src)
        if host is None:
            continue
        host = host.lower()
        if host.endswith(ADYEN_CDN_HOST_SUFFIX):
            return ImportMethod.CDN
        if is_adyen_host(host):
            found_adyen_host = True
    return ImportMethod.ADYEN if found_adyen_host else ImportMethod.NPM


def resolve_integration_flavor(payload: ScanPayload) -> FlavorResolution:
    analytics_flavor = (payload.analytics_data.flavor or "") if payload.analytics_data else ""
    mapped = _ANALYTICS_FLAVORS.get(analytics_flavor.lower())
    if mapped is not None:
        return FlavorResolution(mapped, Source.ANALYTICS)

    page = payload.page
    if any(_DROPIN_RE.search(s.src) for s in page.scripts) or any(
        _DROPIN_RE.search(r.url) for r in payload.captured_requests
    ):
        return FlavorResolution(Flavor.DROPIN, Source.DROPIN_PATTERN)

    if page.has_dropin_dom:
        return FlavorResolution(Flavor.DROPIN, Source.DROPIN_DOM)

    if page.checkout_config or page.inferred_config:
        return FlavorResolution(Flavor.COMPONENTS, Source.CHECKOUT_CONFIG)

    if sdk_loaded(payload) and not has_checkout_activity(payload):
        return FlavorResolution(Flavor.UNKNOWN, Source.SDK_LOADED_NO_CHECKOUT)

    return FlavorResolution(Flavor.UNKNOWN, Source.UNKNOWN)


def build_implementation_attributes(payload: ScanPayload) -> ImplementationAttributes:
    environment = resolve_environment(payload).env or "unknown"
    region = None if environment == ENV_TEST else resolve_region(payload).region
    return ImplementationAttributes(
        sdk_version=payload.version_info.detected or "Unknown",
        environment=environment,
        region=region,
        flow=detect_integration_flow(payload),
        flavor=resolve_integration_flavor(payload).flavor,
        import_method=detect_import_method(payload.page.scripts),
    )

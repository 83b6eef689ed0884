"""Scan data models: page snapshots, network captures, payloads and results.

All models are frozen dataclasses. ``from_dict``/``to_dict`` translate to and
from the camelCase shape produced by the page extraction script and stored by
the result store.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from checkoutinspector.checks.models import CheckResult, HealthScore


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _opt_bool(data: dict[str, Any], key: str) -> bool | None:
    value = data.get(key)
    return value if isinstance(value, bool) else None


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


class RequestType(enum.Enum):
    """Coarse resource type of a captured request."""

    MAIN_FRAME = "main_frame"
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    OTHER = "other"

    @classmethod
    def from_resource_type(cls, resource_type: str) -> RequestType:
        """Map a browser-level resource type onto the four coarse categories."""
        try:
            return cls(resource_type)
        except ValueError:
            return cls.OTHER


# ---------------------------------------------------------------------------
# Page snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SdkMetadata:
    """Metadata the SDK exposes on the page (window.AdyenWebMetadata)."""

    version: str | None = None
    bundle_type: str | None = None
    variants: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SdkMetadata:
        variants = data.get("variants") or ()
        return cls(
            version=_opt_str(data, "version"),
            bundle_type=_opt_str(data, "bundleType"),
            variants=tuple(str(v) for v in variants),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "version": self.version,
                "bundleType": self.bundle_type,
                "variants": list(self.variants),
            }
        )


# Python attribute → camelCase wire key
_CONFIG_KEYS: dict[str, str] = {
    "client_key": "clientKey",
    "environment": "environment",
    "locale": "locale",
    "country_code": "countryCode",
    "risk_enabled": "riskEnabled",
    "analytics_enabled": "analyticsEnabled",
    "on_submit": "onSubmit",
    "on_additional_details": "onAdditionalDetails",
    "on_payment_completed": "onPaymentCompleted",
    "on_payment_failed": "onPaymentFailed",
    "on_error": "onError",
    "before_submit": "beforeSubmit",
    "on_submit_source": "onSubmitSource",
    "before_submit_source": "beforeSubmitSource",
    "has_session": "hasSession",
}

_CONFIG_BOOL_FIELDS = {"risk_enabled", "analytics_enabled", "has_session"}


@dataclass(frozen=True)
class CheckoutConfig:
    """Checkout or component configuration captured from the page.

    Callback fields hold where the callback was registered (``"checkout"`` or
    ``"component"``); ``None`` means it was not seen.
    """

    client_key: str | None = None
    environment: str | None = None
    locale: str | None = None
    country_code: str | None = None
    risk_enabled: bool | None = None
    analytics_enabled: bool | None = None
    on_submit: str | None = None
    on_additional_details: str | None = None
    on_payment_completed: str | None = None
    on_payment_failed: str | None = None
    on_error: str | None = None
    before_submit: str | None = None
    on_submit_source: str | None = None
    before_submit_source: str | None = None
    has_session: bool | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckoutConfig:
        kwargs: dict[str, Any] = {}
        for attr, key in _CONFIG_KEYS.items():
            if attr in _CONFIG_BOOL_FIELDS:
                kwargs[attr] = _opt_bool(data, key)
            else:
                kwargs[attr] = _opt_str(data, key)
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {key: getattr(self, attr) for attr, key in _CONFIG_KEYS.items()}
        )


@dataclass(frozen=True)
class ScriptTag:
    src: str
    integrity: str | None = None
    crossorigin: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScriptTag:
        return cls(
            src=str(data.get("src", "")),
            integrity=_opt_str(data, "integrity"),
            crossorigin=_opt_str(data, "crossorigin"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {"src": self.src, "integrity": self.integrity, "crossorigin": self.crossorigin}
        )


@dataclass(frozen=True)
class LinkTag:
    href: str
    rel: str
    integrity: str | None = None
    crossorigin: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LinkTag:
        return cls(
            href=str(data.get("href", "")),
            rel=str(data.get("rel", "")),
            integrity=_opt_str(data, "integrity"),
            crossorigin=_opt_str(data, "crossorigin"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "href": self.href,
                "rel": self.rel,
                "integrity": self.integrity,
                "crossorigin": self.crossorigin,
            }
        )


@dataclass(frozen=True)
class IframeInfo:
    name: str | None = None
    src: str | None = None
    referrerpolicy: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IframeInfo:
        return cls(
            name=_opt_str(data, "name"),
            src=_opt_str(data, "src"),
            referrerpolicy=_opt_str(data, "referrerpolicy"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {"name": self.name, "src": self.src, "referrerpolicy": self.referrerpolicy}
        )


@dataclass(frozen=True)
class ObservedRequest:
    """A resource-timing entry the page itself recorded."""

    url: str
    initiator_type: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ObservedRequest:
        return cls(url=str(data.get("url", "")), initiator_type=_opt_str(data, "initiatorType"))

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({"url": self.url, "initiatorType": self.initiator_type})


def _opt_config(data: dict[str, Any], key: str) -> CheckoutConfig | None:
    value = data.get(key)
    if isinstance(value, dict) and value:
        return CheckoutConfig.from_dict(value)
    return None


@dataclass(frozen=True)
class PageSnapshot:
    """One point-in-time extraction of page state. Superseded, never mutated."""

    page_url: str
    page_protocol: str = "https:"
    sdk_metadata: SdkMetadata | None = None
    checkout_config: CheckoutConfig | None = None
    component_config: CheckoutConfig | None = None
    inferred_config: CheckoutConfig | None = None
    scripts: tuple[ScriptTag, ...] = ()
    links: tuple[LinkTag, ...] = ()
    iframes: tuple[IframeInfo, ...] = ()
    observed_requests: tuple[ObservedRequest, ...] = ()
    checkout_init_count: int | None = None
    is_inside_iframe: bool = False
    has_dropin_dom: bool = False

    @property
    def has_config(self) -> bool:
        """Whether a checkout or component configuration was captured."""
        return self.checkout_config is not None or self.component_config is not None

    @property
    def script_urls(self) -> list[str]:
        return [s.src for s in self.scripts]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PageSnapshot:
        metadata = data.get("adyenMetadata")
        init_count = data.get("checkoutInitCount")
        return cls(
            page_url=str(data.get("pageUrl", "")),
            page_protocol=str(data.get("pageProtocol", "")),
            sdk_metadata=SdkMetadata.from_dict(metadata) if isinstance(metadata, dict) else None,
            checkout_config=_opt_config(data, "checkoutConfig"),
            component_config=_opt_config(data, "componentConfig"),
            inferred_config=_opt_config(data, "inferredConfig"),
            scripts=tuple(ScriptTag.from_dict(s) for s in data.get("scripts") or ()),
            links=tuple(LinkTag.from_dict(link) for link in data.get("links") or ()),
            iframes=tuple(IframeInfo.from_dict(f) for f in data.get("iframes") or ()),
            observed_requests=tuple(
                ObservedRequest.from_dict(o) for o in data.get("observedRequests") or ()
            ),
            checkout_init_count=init_count if isinstance(init_count, int) else None,
            is_inside_iframe=bool(data.get("isInsideIframe", False)),
            has_dropin_dom=bool(data.get("hasDropinDOM", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        def cfg(c: CheckoutConfig | None) -> dict[str, Any] | None:
            return c.to_dict() if c is not None else None

        result: dict[str, Any] = {
            "adyenMetadata": self.sdk_metadata.to_dict() if self.sdk_metadata else None,
            "checkoutConfig": cfg(self.checkout_config),
            "componentConfig": cfg(self.component_config),
            "inferredConfig": cfg(self.inferred_config),
            "scripts": [s.to_dict() for s in self.scripts],
            "links": [link.to_dict() for link in self.links],
            "iframes": [f.to_dict() for f in self.iframes],
            "observedRequests": [o.to_dict() for o in self.observed_requests],
            "isInsideIframe": self.is_inside_iframe,
            "hasDropinDOM": self.has_dropin_dom,
            "pageUrl": self.page_url,
            "pageProtocol": self.page_protocol,
        }
        if self.checkout_init_count is not None:
            result["checkoutInitCount"] = self.checkout_init_count
        return result


# ---------------------------------------------------------------------------
# Network captures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CapturedHeader:
    name: str
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CapturedHeader:
        return cls(name=str(data.get("name", "")), value=str(data.get("value", "")))


@dataclass(frozen=True)
class CapturedRequest:
    """A request observed during the scan. Identity is ``(type, url)``."""

    url: str
    type: RequestType
    response_headers: tuple[CapturedHeader, ...] = ()
    status_code: int = 0

    @property
    def key(self) -> tuple[RequestType, str]:
        return (self.type, self.url)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "type": self.type.value,
            "responseHeaders": [h.to_dict() for h in self.response_headers],
            "statusCode": self.status_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CapturedRequest:
        return cls(
            url=str(data.get("url", "")),
            type=RequestType.from_resource_type(str(data.get("type", "other"))),
            response_headers=tuple(
                CapturedHeader.from_dict(h) for h in data.get("responseHeaders") or ()
            ),
            status_code=int(data.get("statusCode", 0)),
        )


ANALYTICS_KEYS: tuple[str, ...] = (
    "flavor",
    "version",
    "buildType",
    "channel",
    "platform",
    "locale",
    "sessionId",
)


@dataclass(frozen=True)
class AnalyticsData:
    """Fields merged from the SDK's checkout analytics POST bodies.

    Sparse: a field is ``None`` when no analytics call carried it, and absent
    fields are omitted from ``to_dict``.
    """

    flavor: str | None = None
    version: str | None = None
    build_type: str | None = None
    channel: str | None = None
    platform: str | None = None
    locale: str | None = None
    session_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalyticsData:
        return cls(
            flavor=_opt_str(data, "flavor"),
            version=_opt_str(data, "version"),
            build_type=_opt_str(data, "buildType"),
            channel=_opt_str(data, "channel"),
            platform=_opt_str(data, "platform"),
            locale=_opt_str(data, "locale"),
            session_id=_opt_str(data, "sessionId"),
        )

    def to_dict(self) -> dict[str, str]:
        return _drop_none(
            {
                "flavor": self.flavor,
                "version": self.version,
                "buildType": self.build_type,
                "channel": self.channel,
                "platform": self.platform,
                "locale": self.locale,
                "sessionId": self.session_id,
            }
        )


@dataclass(frozen=True)
class VersionInfo:
    detected: str | None = None
    latest: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"detected": self.detected, "latest": self.latest}


# ---------------------------------------------------------------------------
# Payload and result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScanPayload:
    """The immutable fact base every check evaluates."""

    tab_id: int
    page_url: str
    page: PageSnapshot
    main_document_headers: tuple[CapturedHeader, ...] = ()
    captured_requests: tuple[CapturedRequest, ...] = ()
    version_info: VersionInfo = field(default_factory=VersionInfo)
    analytics_data: AnalyticsData | None = None
    scanned_at: str = ""

    def get_header(self, name: str) -> str | None:
        """Case-insensitive lookup of a main-document response header."""
        lower = name.lower()
        for header in self.main_document_headers:
            if header.name.lower() == lower:
                return header.value
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tabId": self.tab_id,
            "pageUrl": self.page_url,
            "page": self.page.to_dict(),
            "mainDocumentHeaders": [h.to_dict() for h in self.main_document_headers],
            "capturedRequests": [r.to_dict() for r in self.captured_requests],
            "versionInfo": self.version_info.to_dict(),
            "analyticsData": self.analytics_data.to_dict() if self.analytics_data else None,
            "scannedAt": self.scanned_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScanPayload:
        version = data.get("versionInfo") or {}
        analytics = data.get("analyticsData")
        return cls(
            tab_id=int(data["tabId"]),
            page_url=str(data.get("pageUrl", "")),
            page=PageSnapshot.from_dict(data.get("page") or {}),
            main_document_headers=tuple(
                CapturedHeader.from_dict(h) for h in data.get("mainDocumentHeaders") or ()
            ),
            captured_requests=tuple(
                CapturedRequest.from_dict(r) for r in data.get("capturedRequests") or ()
            ),
            version_info=VersionInfo(
                detected=_opt_str(version, "detected"),
                latest=_opt_str(version, "latest"),
            ),
            analytics_data=AnalyticsData.from_dict(analytics)
            if isinstance(analytics, dict)
            else None,
            scanned_at=str(data.get("scannedAt", "")),
        )


@dataclass(frozen=True)
class ScanResult:
    """The persisted, externally retrievable artifact of one scan."""

    tab_id: int
    page_url: str
    scanned_at: str
    checks: tuple[CheckResult, ...]
    health: HealthScore
    payload: ScanPayload

    def to_dict(self) -> dict[str, Any]:
        return {
            "tabId": self.tab_id,
            "pageUrl": self.page_url,
            "scannedAt": self.scanned_at,
            "checks": [c.to_dict() for c in self.checks],
            "health": self.health.to_dict(),
            "payload": self.payload.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScanResult:
        from checkoutinspector.checks.models import CheckResult, HealthScore

        return cls(
            tab_id=int(data["tabId"]),
            page_url=str(data.get("pageUrl", "")),
            scanned_at=str(data.get("scannedAt", "")),
            checks=tuple(CheckResult.from_dict(c) for c in data.get("checks") or ()),
            health=HealthScore.from_dict(data["health"]),
            payload=ScanPayload.from_dict(data["payload"]),
        )


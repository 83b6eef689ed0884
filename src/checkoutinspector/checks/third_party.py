"""Third-party script checks on the payment page."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from checkoutinspector.checks.models import (
    CheckCategory,
    CheckOutcome,
    fail,
    notice,
    passed,
    warn,
)
from checkoutinspector.checks.registry import CheckRegistry
from checkoutinspector.constants import (
    AD_PIXEL_PATTERNS,
    ANALYTICS_PATTERNS,
    SESSION_REPLAY_PATTERNS,
    TAG_MANAGER_PATTERNS,
)
from checkoutinspector.scan.models import ScanPayload

registry = CheckRegistry(CheckCategory.THIRD_PARTY)

PCI_SCRIPT_SECURITY_DOC = (
    "https://docs.adyen.com/development-resources/pci-dss-compliance-guide/script-security"
)
PCI_NOTE = "This is required to maintain PCI compliance."

ThirdPartyPatterns = Sequence[tuple[str, re.Pattern[str]]]

ALL_THIRD_PARTY_PATTERNS: ThirdPartyPatterns = (
    TAG_MANAGER_PATTERNS + ANALYTICS_PATTERNS + SESSION_REPLAY_PATTERNS + AD_PIXEL_PATTERNS
)


def find_vendors(sources: Sequence[str], patterns: ThirdPartyPatterns) -> list[str]:
    """Names of the vendors whose pattern matches at least one script source."""
    return [name for name, pattern in patterns if any(pattern.search(s) for s in sources)]


def _pattern_check(
    payload: ScanPayload,
    patterns: ThirdPartyPatterns,
    title_prefix: str,
    builder: Callable[..., CheckOutcome],
    detail: str,
    remediation: str,
    pass_title: str,
) -> CheckOutcome:
    found = find_vendors(payload.page.script_urls, patterns)
    if not found:
        return passed(pass_title)
    return builder(
        f"{title_prefix}: {', '.join(found)}.",
        f"{detail} {PCI_NOTE}",
        remediation,
        PCI_SCRIPT_SECURITY_DOC,
    )


@registry.check("3p-tag-manager")
def tag_manager(payload: ScanPayload) -> CheckOutcome:
    return _pattern_check(
        payload,
        TAG_MANAGER_PATTERNS,
        "Tag manager(s) detected",
        notice,
        "Tag managers can load unreviewed scripts on the payment page, bypassing the "
        "script inventory and authorization PCI DSS requirement 6.4.3 asks for.",
        "Audit every tag loaded through tag managers on payment pages and add each to "
        "your PCI DSS 6.4.3 script inventory with a written justification.",
        "No known tag managers detected.",
    )


@registry.check("3p-session-replay")
def session_replay(payload: ScanPayload) -> CheckOutcome:
    return _pattern_check(
        payload,
        SESSION_REPLAY_PATTERNS,
        "Session replay tool detected",
        fail,
        "Session replay tools record DOM state including payment form fields, risking "
        "exposure of sensitive payment data. Every script on the payment page must be "
        "inventoried and authorized per PCI DSS requirement 6.4.3.",
        "Remove session replay and screen recording tools from payment pages. If one "
        "must stay, inventory it, pin it with SRI and exclude payment form fields.",
        "No known session replay tools detected.",
    )


@registry.check("3p-ad-pixels")
def ad_pixels(payload: ScanPayload) -> CheckOutcome:
    return _pattern_check(
        payload,
        AD_PIXEL_PATTERNS,
        "Ad pixel(s) detected",
        warn,
        "Ad pixels on payment pages add scripts that must be inventoried and authorized "
        "per PCI DSS requirement 6.4.3, and can expose payment journey metadata to "
        "advertising networks.",
        "Move advertising and conversion pixels to the order confirmation page, or "
        "inventory each one with a written justification.",
        "No known ad pixels detected.",
    )


@registry.check("3p-no-sri")
def no_sri(payload: ScanPayload) -> CheckOutcome:
    known = [
        s
        for s in payload.page.scripts
        if s.src.startswith("http") and find_vendors([s.src], ALL_THIRD_PARTY_PATTERNS)
    ]
    if not known:
        return passed("No known third-party scripts detected requiring SRI.")

    without_sri = [s for s in known if not s.integrity]
    if not without_sri:
        return passed("Detected third-party scripts have SRI.")
    return notice(
        f"{len(without_sri)} third-party script(s) loaded without SRI.",
        "Without Subresource Integrity, third-party scripts can be altered upstream "
        "without the browser noticing. PCI DSS requirement 6.4.3 requires assuring the "
        f"integrity of each script on the payment page. {PCI_NOTE}",
        "Add integrity and crossorigin attributes to each third-party script tag on the "
        "payment page.",
        PCI_SCRIPT_SECURITY_DOC,
    )


CHECKS = registry.checks

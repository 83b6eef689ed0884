"""Transport, subresource integrity, and response header checks."""

from __future__ import annotations

import re

from checkoutinspector.checks import attributes
from checkoutinspector.checks.attributes import ENV_LIVE, ENV_LIVE_IN
from checkoutinspector.checks.models import (
    CheckCategory,
    CheckOutcome,
    fail,
    info,
    notice,
    passed,
    skip,
    warn,
)
from checkoutinspector.checks.registry import CheckRegistry
from checkoutinspector.scan.models import ScanPayload
from checkoutinspector.urls import is_checkout_resource

registry = CheckRegistry(CheckCategory.SECURITY)

PCI_GUIDE_URL = "https://docs.adyen.com/development-resources/pci-dss-compliance-guide/"
SRI_URL = (
    "https://docs.adyen.com/online-payments/web-best-practices/"
    "#implement-subresource-integrity-hashes"
)
OWASP_HEADERS_URL = "https://owasp.org/www-project-secure-headers/"

ACCEPTED_REFERRER_POLICIES = frozenset(
    {"strict-origin-when-cross-origin", "no-referrer", "same-origin"}
)

_ADYEN_IFRAME_SRC = re.compile(r"\.(adyen\.com|adyenpayments\.com)")


def _is_live(payload: ScanPayload) -> bool:
    return attributes.resolve_environment(payload).env in (ENV_LIVE, ENV_LIVE_IN)


def _missing_sri(integrity: str | None, crossorigin: str | None) -> bool:
    return not integrity or not crossorigin


@registry.check("security-https")
def https(payload: ScanPayload) -> CheckOutcome:
    if not _is_live(payload):
        return skip("HTTPS check skipped: test environment.")

    protocol = payload.page.page_protocol
    if protocol == "https:":
        return passed("Live environment served over HTTPS.")
    return fail(
        "Live environment must be served over HTTPS.",
        f'Page protocol is "{protocol}". Payment pages on live environments must use HTTPS.',
        "Configure TLS on your server and redirect all HTTP requests to HTTPS before the "
        "checkout page loads.",
        PCI_GUIDE_URL,
    )


@registry.check("security-sri-script")
def sri_script(payload: ScanPayload) -> CheckOutcome:
    scripts = [s for s in payload.page.scripts if is_checkout_resource(s.src)]
    if not scripts:
        return skip("SRI script check skipped: no Adyen CDN script tags found.")

    missing = [s for s in scripts if _missing_sri(s.integrity, s.crossorigin)]
    if missing:
        return fail(
            f"{len(missing)} Adyen script tag(s) missing SRI attributes.",
            "Without SRI, a compromised CDN response could inject malicious JavaScript "
            "into checkout.",
            'Add integrity and crossorigin="anonymous" attributes to Adyen CDN script tags.',
            SRI_URL,
        )
    return passed("Adyen script tags have SRI attributes.")


@registry.check("security-sri-css")
def sri_css(payload: ScanPayload) -> CheckOutcome:
    links = [link for link in payload.page.links if is_checkout_resource(link.href)]
    if not links:
        return skip("SRI CSS check skipped: no Adyen CDN stylesheets found.")

    missing = [link for link in links if _missing_sri(link.integrity, link.crossorigin)]
    if missing:
        return warn(
            f"{len(missing)} Adyen stylesheet link(s) missing SRI attributes.",
            "Without SRI, checkout stylesheets can be tampered with and alter payment "
            "form behavior.",
            'Add integrity and crossorigin="anonymous" attributes to Adyen CDN stylesheet '
            "links.",
            SRI_URL,
        )
    return passed("Adyen stylesheet links have SRI attributes.")


@registry.check("security-referrer-policy")
def referrer_policy(payload: ScanPayload) -> CheckOutcome:
    value = payload.get_header("Referrer-Policy")
    if value and value in ACCEPTED_REFERRER_POLICIES:
        return passed(f'Referrer-Policy is set to "{value}".')
    title = (
        f'Referrer-Policy is "{value}"; consider the recommended value.'
        if value
        else "Referrer-Policy header is not set."
    )
    return notice(
        title,
        "A missing or permissive referrer policy can leak checkout URL data to "
        "third-party origins.",
        "Add a Referrer-Policy header set to strict-origin-when-cross-origin.",
        f"{OWASP_HEADERS_URL}#referrer-policy",
    )


@registry.check("security-x-content-type")
def x_content_type(payload: ScanPayload) -> CheckOutcome:
    value = payload.get_header("X-Content-Type-Options")
    if value is not None and value.lower() == "nosniff":
        return passed("X-Content-Type-Options: nosniff is set.")
    return notice(
        "X-Content-Type-Options: nosniff is not set.",
        "Without nosniff, browsers may MIME-sniff responses and execute files as "
        "unexpected content types.",
        "Add an X-Content-Type-Options: nosniff header.",
        f"{OWASP_HEADERS_URL}#x-content-type-options",
    )


@registry.check("security-xss-protection")
def xss_protection(payload: ScanPayload) -> CheckOutcome:
    value = payload.get_header("X-XSS-Protection")
    if not value or value == "0":
        return passed("X-XSS-Protection is absent or disabled (correct).")
    return notice(
        "X-XSS-Protection is set; it is not recommended for modern browsers.",
        "Legacy X-XSS-Protection behavior is inconsistent and should not be relied on "
        "for XSS defense.",
        "Remove the X-XSS-Protection header entirely, or set it to 0.",
        f"{OWASP_HEADERS_URL}#x-xss-protection",
    )


@registry.check("security-hsts")
def hsts(payload: ScanPayload) -> CheckOutcome:
    if not _is_live(payload):
        return skip("HSTS check skipped: not a live environment.")
    if payload.get_header("Strict-Transport-Security"):
        return passed("HSTS header is present.")
    return notice(
        "HSTS header is missing on a live environment.",
        "Without HSTS, browsers can be downgraded to HTTP on later visits, exposing "
        "checkout traffic.",
        "Add a Strict-Transport-Security header to your live checkout page.",
        f"{OWASP_HEADERS_URL}#strict-transport-security",
    )


@registry.check("security-iframe-referrerpolicy")
def iframe_referrerpolicy(payload: ScanPayload) -> CheckOutcome:
    frames = [
        f for f in payload.page.iframes if f.src and _ADYEN_IFRAME_SRC.search(f.src)
    ]
    if not frames:
        return info("No Adyen iframes detected.")
    if all(f.referrerpolicy for f in frames):
        return passed("All Adyen iframes have referrerpolicy.")
    return info(
        "Some Adyen iframes are missing referrerpolicy.",
        "Add a referrerpolicy attribute to each Adyen iframe element. See: "
        "https://developer.mozilla.org/en-US/docs/Web/HTML/Element/iframe#referrerpolicy",
    )


CHECKS = registry.checks

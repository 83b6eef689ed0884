"""Content-Security-Policy checks."""

from __future__ import annotations

from checkoutinspector.checks.csp import ParsedCsp, csp_includes_domain, parse_csp
from checkoutinspector.checks.models import (
    CheckCategory,
    CheckOutcome,
    info,
    passed,
    skip,
    warn,
)
from checkoutinspector.checks.registry import CheckRegistry
from checkoutinspector.scan.models import ScanPayload

registry = CheckRegistry(CheckCategory.SECURITY)

ADYEN_DOMAIN = "adyen.com"
_PCI_SCRIPT_SECURITY = (
    "https://docs.adyen.com/development-resources/pci-dss-compliance-guide/script-security"
)
SCRIPT_SECURITY_DOC = (
    f"{_PCI_SCRIPT_SECURITY}#implement-a-content-security-policy-for-requirement-6-4-3"
)
REPORTING_DOC = f"{_PCI_SCRIPT_SECURITY}#report"
PCI_NOTE = "This is required to maintain PCI compliance."


def _pci(detail: str) -> str:
    return f"{detail} {PCI_NOTE}"


def _csp(payload: ScanPayload) -> ParsedCsp | None:
    value = payload.get_header("content-security-policy")
    return parse_csp(value) if value else None


@registry.check("security-csp-present")
def csp_present(payload: ScanPayload) -> CheckOutcome:
    if _csp(payload) is not None:
        return passed("Content-Security-Policy header is present.")
    return warn(
        "Content-Security-Policy header is missing.",
        _pci("A CSP helps prevent XSS and data injection attacks on checkout pages."),
        "Add a Content-Security-Policy header to your checkout page HTTP response.",
        SCRIPT_SECURITY_DOC,
    )


@registry.check("security-csp-script-src")
def csp_script_src(payload: ScanPayload) -> CheckOutcome:
    csp = _csp(payload)
    if csp is None:
        return skip("CSP script-src check skipped: no Content-Security-Policy header present.")

    if csp_includes_domain(csp, "script-src", ADYEN_DOMAIN) or csp_includes_domain(
        csp, "default-src", ADYEN_DOMAIN
    ):
        return passed("CSP script-src includes Adyen CDN domain.")
    return warn(
        "CSP script-src may not include the Adyen CDN domain.",
        _pci(
            "If script-src omits Adyen domains, checkout assets can be blocked or require "
            "unsafe CSP relaxations."
        ),
        "Update your Content-Security-Policy to include the Adyen CDN script domains.",
        SCRIPT_SECURITY_DOC,
    )


@registry.check("security-csp-frame-src")
def csp_frame_src(payload: ScanPayload) -> CheckOutcome:
    csp = _csp(payload)
    if csp is None:
        return skip("CSP frame-src check skipped: no Content-Security-Policy header present.")

    values = csp.get("frame-src")
    if values is None:
        values = csp.get("child-src")
    if values is None:
        return warn(
            "CSP frame-src/child-src is not explicitly set.",
            _pci(
                "Without an explicit frame-src policy, iframe restrictions may be "
                "inconsistent across browsers."
            ),
            "Add an explicit frame-src directive to your Content-Security-Policy.",
            SCRIPT_SECURITY_DOC,
        )

    if "*" in values or "https:" in values:
        return passed("CSP frame-src is compatible with Adyen 3DS iframe guidance.")
    return warn(
        "CSP frame-src may be too restrictive for 3DS issuer iframes.",
        _pci(
            "Overly restrictive frame-src rules can block issuer challenge frames and break "
            "3DS authentication."
        ),
        "Relax your frame-src directive to allow HTTPS iframe sources.",
        SCRIPT_SECURITY_DOC,
    )


@registry.check("security-csp-frame-ancestors")
def csp_frame_ancestors(payload: ScanPayload) -> CheckOutcome:
    csp = _csp(payload)
    has_frame_ancestors = csp is not None and "frame-ancestors" in csp
    has_xfo = any(h.name.lower() == "x-frame-options" for h in payload.main_document_headers)

    if has_frame_ancestors:
        return passed("CSP frame-ancestors directive is set.")
    if has_xfo:
        return passed("X-Frame-Options header is present.")
    return warn(
        "No frame-ancestors CSP directive or X-Frame-Options header found.",
        _pci(
            "Without anti-framing protection, checkout can be embedded and abused in "
            "clickjacking attacks."
        ),
        "Add a frame-ancestors directive to your Content-Security-Policy or set an "
        "X-Frame-Options: SAMEORIGIN header.",
        SCRIPT_SECURITY_DOC,
    )


@registry.check("security-csp-reporting")
def csp_reporting(payload: ScanPayload) -> CheckOutcome:
    csp = _csp(payload)
    if csp is None:
        return info("CSP reporting check skipped: no CSP header present.")

    has_report_to = "report-to" in csp
    if has_report_to and payload.get_header("reporting-endpoints"):
        return passed("CSP reporting is configured with report-to and Reporting-Endpoints.")
    if has_report_to:
        return warn(
            "CSP has report-to, but Reporting-Endpoints header is missing.",
            "Without a reporting endpoint, CSP violations are not captured for investigation.",
            "Add a Reporting-Endpoints response header that maps your report-to endpoint name.",
            REPORTING_DOC,
        )
    if "report-uri" in csp:
        return info(
            "CSP report-uri is configured, but report-to is recommended.",
            f"Migrate from the older report-uri directive to report-to. See: {REPORTING_DOC}",
        )
    return info(
        "CSP reporting is not configured.",
        f"Configure CSP violation reporting with the report-to directive. See: {REPORTING_DOC}",
    )


CHECKS = registry.checks

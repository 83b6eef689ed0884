"""Integration flow and callback checks.

``callback-on-submit-filtering`` statically inspects the captured onSubmit
source: an ``if`` on the payment method type (or on the result/action code)
compared against a string literal with no ``else``, or a ``switch`` with
string cases and no ``default``, leaves the other cases unhandled.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from checkoutinspector.checks import attributes
from checkoutinspector.checks.attributes import Flavor, IntegrationFlow
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
from checkoutinspector.constants import SESSIONS_API_PATTERN
from checkoutinspector.scan.models import CheckoutConfig, ScanPayload

registry = CheckRegistry(CheckCategory.CALLBACKS)

_DOCS_BASE = "https://docs.adyen.com/online-payments/build-your-integration"
ADVANCED_OVERVIEW_URL = f"{_DOCS_BASE}/advanced-flow/"
_CALLBACK_DOCS = {
    (IntegrationFlow.ADVANCED, Flavor.DROPIN): (
        f"{_DOCS_BASE}/advanced-flow/?platform=Web&integration=Drop-in#add"
    ),
    (IntegrationFlow.ADVANCED, Flavor.COMPONENTS): (
        f"{_DOCS_BASE}/advanced-flow/?platform=Web&integration=Components#add"
    ),
    (IntegrationFlow.SESSIONS, Flavor.DROPIN): (
        f"{_DOCS_BASE}/sessions-flow?platform=Web&integration=Drop-in#configure"
    ),
    (IntegrationFlow.SESSIONS, Flavor.COMPONENTS): (
        f"{_DOCS_BASE}/sessions-flow?platform=Web&integration=Components#configure"
    ),
}

CONFIG_NOT_DETECTED = "Checkout config not detected."
SESSIONS_FLOW_DETECTED = "Sessions flow detected."
NO_SOURCE = "onSubmit source not available."

_STRING_LITERAL = re.compile(r"['\"`][^'\"`\n]+['\"`]")
_PAYMENT_METHOD_SELECTOR = re.compile(
    r"\bpaymentMethod\??\.type\b|\bpaymentMethod\s*\[\s*['\"]type['\"]\s*\]"
)
_ACTION_CODE_SELECTOR = re.compile(
    r"\bresultCode\b|\baction\??\.type\b|\baction\s*\[\s*['\"]type['\"]\s*\]"
)
_IF_RE = re.compile(r"\bif\s*\(")
_SWITCH_RE = re.compile(r"\bswitch\s*\(")
_STRING_CASE_RE = re.compile(r"\bcase\s*['\"`][^'\"`\n]+['\"`]\s*:")
_DEFAULT_CASE_RE = re.compile(r"\bdefault\s*:")
_ACTIONS_PATTERN_RE = re.compile(r"actions\.(resolve|reject)\(")
_V5_PATTERN_RE = re.compile(r"component\.(setStatus|handleAction)\(")
_WHITESPACE = " \n\r\t\f"


# ---------------------------------------------------------------------------
# Flow description
# ---------------------------------------------------------------------------


def join_signals(signals: list[str]) -> str:
    if not signals:
        return "no strong flow signals"
    if len(signals) == 1:
        return signals[0]
    return f"{', '.join(signals[:-1])} and {signals[-1]}"


def _flow_label(flow: IntegrationFlow) -> str:
    if flow is IntegrationFlow.SESSIONS:
        return "Sessions flow"
    if flow is IntegrationFlow.ADVANCED:
        return "Advanced flow"
    return "Unknown"


def _describe_flow(payload: ScanPayload, flow: IntegrationFlow) -> str:
    page = payload.page
    configs = [c for c in (page.checkout_config, page.component_config, page.inferred_config) if c]
    analytics = payload.analytics_data

    if flow is IntegrationFlow.SESSIONS:
        sources = []
        if any(SESSIONS_API_PATTERN.search(r.url) for r in payload.captured_requests):
            sources.append("a Sessions API request")
        if any(c.has_session for c in configs):
            sources.append("a session object in checkout configuration")
        if analytics is not None and analytics.session_id:
            sources.append("an analytics sessionId")
        return f"Sessions flow inferred from {join_signals(sources)}."

    if flow is IntegrationFlow.ADVANCED:
        sources = []
        if configs:
            sources.append("checkout config")
        if analytics is not None:
            sources.append("checkout analytics data")
        return f"Advanced flow inferred from {join_signals(sources)}."

    return "No Sessions or Advanced flow signals were captured."


def _callback_docs_url(payload: ScanPayload, flow: IntegrationFlow) -> str:
    flavor = attributes.resolve_integration_flavor(payload).flavor
    doc_flavor = Flavor.DROPIN if flavor is Flavor.DROPIN else Flavor.COMPONENTS
    doc_flow = IntegrationFlow.SESSIONS if flow is IntegrationFlow.SESSIONS else IntegrationFlow.ADVANCED
    return _CALLBACK_DOCS[(doc_flow, doc_flavor)]


# ---------------------------------------------------------------------------
# onSubmit static analysis
# ---------------------------------------------------------------------------


def _skip_whitespace(source: str, start: int) -> int:
    index = start
    while index < len(source) and source[index] in _WHITESPACE:
        index += 1
    return index


def _find_matching(source: str, start: int, open_char: str, close_char: str) -> int:
    depth = 0
    for index in range(start, len(source)):
        char = source[index]
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return index
    return -1


def _find_statement_end(source: str, start: int) -> int:
    if start < len(source) and source[start] == "{":
        return _find_matching(source, start, "{", "}")
    for terminator in (";", "\n"):
        index = source.find(terminator, start)
        if index != -1:
            return index
    return len(source) - 1


def _has_unhandled_if(source: str, selector: re.Pattern[str]) -> bool:
    position = 0
    while True:
        match = _IF_RE.search(source, position)
        if match is None:
            return False
        cond_start = match.end() - 1
        cond_end = _find_matching(source, cond_start, "(", ")")
        if cond_end == -1:
            return False

        condition = source[cond_start + 1 : cond_end]
        if selector.search(condition) and _STRING_LITERAL.search(condition):
            stmt_start = _skip_whitespace(source, cond_end + 1)
            stmt_end = _find_statement_end(source, stmt_start)
            if stmt_end == -1:
                return False
            trailing = _skip_whitespace(source, stmt_end + 1)
            if not source.startswith("else", trailing):
                return True

        position = cond_end + 1


def _has_unhandled_switch(source: str, selector: re.Pattern[str]) -> bool:
    position = 0
    while True:
        match = _SWITCH_RE.search(source, position)
        if match is None:
            return False
        cond_start = match.end() - 1
        cond_end = _find_matching(source, cond_start, "(", ")")
        if cond_end == -1:
            return False
        position = cond_end + 1

        if not selector.search(source[cond_start + 1 : cond_end]):
            continue
        block_start = _skip_whitespace(source, cond_end + 1)
        if block_start >= len(source) or source[block_start] != "{":
            continue
        block_end = _find_matching(source, block_start, "{", "}")
        if block_end == -1:
            return False

        block = source[block_start + 1 : block_end]
        if _STRING_CASE_RE.search(block) and not _DEFAULT_CASE_RE.search(block):
            return True


def find_unhandled_filters(source: str) -> list[str]:
    """Targets onSubmit filters on without a catch-all branch."""
    targets = []
    for label, selector in (
        ("payment methods", _PAYMENT_METHOD_SELECTOR),
        ("action codes", _ACTION_CODE_SELECTOR),
    ):
        if _has_unhandled_if(source, selector) or _has_unhandled_switch(source, selector):
            targets.append(label)
    return targets


# ---------------------------------------------------------------------------
# Shared callback rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _CallbackSpec:
    label: str
    read: Callable[[CheckoutConfig], str | None]
    present_title: str
    missing_title: str
    missing_detail: str
    remediation: str


@dataclass(frozen=True)
class _OutcomeCallbackSpec:
    label: str
    read: Callable[[CheckoutConfig], str | None]
    present_title: str
    missing_title: str
    sessions_detail: str
    advanced_detail: str
    sessions_remediation: str
    advanced_remediation: str


def _advanced_required(payload: ScanPayload, spec: _CallbackSpec) -> CheckOutcome:
    """Required in the advanced flow; not applicable to sessions."""
    config = payload.page.checkout_config
    if config is None:
        return skip(f"{spec.label} check skipped.", CONFIG_NOT_DETECTED)
    if attributes.detect_integration_flow(payload) is IntegrationFlow.SESSIONS:
        return skip(f"{spec.label} check skipped.", SESSIONS_FLOW_DETECTED)
    if spec.read(config):
        return passed(spec.present_title)
    return fail(spec.missing_title, spec.missing_detail, spec.remediation, ADVANCED_OVERVIEW_URL)


def _outcome_callback(payload: ScanPayload, spec: _OutcomeCallbackSpec) -> CheckOutcome:
    """A failure in the sessions flow, a warning otherwise."""
    config = payload.page.checkout_config
    if config is None:
        return skip(f"{spec.label} check skipped.", CONFIG_NOT_DETECTED)
    if spec.read(config):
        return passed(spec.present_title)

    flow = attributes.detect_integration_flow(payload)
    docs_url = _callback_docs_url(payload, flow)
    if flow is IntegrationFlow.SESSIONS:
        return fail(spec.missing_title, spec.sessions_detail, spec.sessions_remediation, docs_url)
    return warn(spec.missing_title, spec.advanced_detail, spec.advanced_remediation, docs_url)


_ON_SUBMIT = _CallbackSpec(
    label="onSubmit",
    read=lambda c: c.on_submit,
    present_title="onSubmit callback is present.",
    missing_title="onSubmit callback is missing.",
    missing_detail="Advanced flow requires handling onSubmit to call your /payments endpoint.",
    remediation=(
        "Add an onSubmit handler to your AdyenCheckout configuration. Forward the payment "
        "state to your server's /payments endpoint, then call actions.resolve() with the "
        "result or actions.reject() if the request fails."
    ),
)

_ON_ADDITIONAL_DETAILS = _CallbackSpec(
    label="onAdditionalDetails",
    read=lambda c: c.on_additional_details,
    present_title="onAdditionalDetails callback is present.",
    missing_title="onAdditionalDetails callback is missing.",
    missing_detail=(
        "Without onAdditionalDetails, 3DS and other follow-up actions cannot complete correctly."
    ),
    remediation=(
        "Add an onAdditionalDetails handler to your AdyenCheckout configuration. It fires "
        "when follow-up data is needed, such as after 3DS authentication."
    ),
)

_ON_PAYMENT_COMPLETED = _OutcomeCallbackSpec(
    label="onPaymentCompleted",
    read=lambda c: c.on_payment_completed,
    present_title="onPaymentCompleted callback is present.",
    missing_title="onPaymentCompleted callback is not set.",
    sessions_detail=(
        "For Sessions flow, onPaymentCompleted is the primary handler for authorised and "
        "refused outcomes."
    ),
    advanced_detail=(
        "Without onPaymentCompleted, successful outcomes may not trigger your confirmation "
        "and fulfillment logic."
    ),
    sessions_remediation=(
        "Add an onPaymentCompleted handler to your AdyenCheckout configuration. For "
        "Sessions flow it is the primary callback for payment outcomes."
    ),
    advanced_remediation=(
        "Add an onPaymentCompleted handler to be notified when a payment is authorised."
    ),
)

_ON_PAYMENT_FAILED = _OutcomeCallbackSpec(
    label="onPaymentFailed",
    read=lambda c: c.on_payment_failed,
    present_title="onPaymentFailed callback is present.",
    missing_title="onPaymentFailed callback is not set.",
    sessions_detail=(
        "For Sessions flow, onPaymentFailed handles refused and error payment outcomes."
    ),
    advanced_detail=(
        "Without onPaymentFailed, refused or errored payments can end without clear shopper "
        "recovery handling."
    ),
    sessions_remediation=(
        "Add an onPaymentFailed handler to your AdyenCheckout configuration. For Sessions "
        "flow it fires when a payment is refused or errors."
    ),
    advanced_remediation=(
        "Add an onPaymentFailed handler to be notified when a payment is refused."
    ),
)


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


@registry.check("flow-type")
def flow_type(payload: ScanPayload) -> CheckOutcome:
    flow = attributes.detect_integration_flow(payload)
    return info(f"Integration flow type: {_flow_label(flow)}.", _describe_flow(payload, flow))


@registry.check("callback-on-submit")
def on_submit(payload: ScanPayload) -> CheckOutcome:
    return _advanced_required(payload, _ON_SUBMIT)


@registry.check("callback-on-submit-filtering")
def on_submit_filtering(payload: ScanPayload) -> CheckOutcome:
    title = "onSubmit filtering check skipped."
    config = payload.page.checkout_config
    if config is None:
        return skip(title, CONFIG_NOT_DETECTED)
    if attributes.detect_integration_flow(payload) is IntegrationFlow.SESSIONS:
        return skip(title, SESSIONS_FLOW_DETECTED)
    if not config.on_submit_source:
        return skip(title, NO_SOURCE)

    targets = find_unhandled_filters(config.on_submit_source)
    if targets:
        return warn(
            "onSubmit appears to leave some payment methods or action codes unhandled.",
            f"Static analysis detected selective filtering on {join_signals(targets)} "
            "without a clear catch-all branch (else/default).",
            "Route every submission through a generic fallback path. Method- or "
            "action-specific logic can be an exception, but all other cases must still "
            "call actions.resolve(...) or actions.reject(...).",
            ADVANCED_OVERVIEW_URL,
        )

    return passed(
        "onSubmit appears to handle payment methods and action codes through a generic "
        "fallback path."
    )


@registry.check("callback-on-additional-details")
def on_additional_details(payload: ScanPayload) -> CheckOutcome:
    return _advanced_required(payload, _ON_ADDITIONAL_DETAILS)


@registry.check("callback-on-payment-completed")
def on_payment_completed(payload: ScanPayload) -> CheckOutcome:
    return _outcome_callback(payload, _ON_PAYMENT_COMPLETED)


@registry.check("callback-on-payment-failed")
def on_payment_failed(payload: ScanPayload) -> CheckOutcome:
    return _outcome_callback(payload, _ON_PAYMENT_FAILED)


@registry.check("callback-on-error")
def on_error(payload: ScanPayload) -> CheckOutcome:
    config = payload.page.checkout_config
    if config is None:
        return skip("onError check skipped.", CONFIG_NOT_DETECTED)
    if config.on_error:
        return passed("onError callback is present.")
    return fail(
        "onError callback is missing.",
        "Without onError, technical checkout failures can fail silently and block shopper "
        "recovery.",
        "Add an onError handler to your AdyenCheckout configuration to catch and respond "
        "to technical errors during checkout.",
        ADVANCED_OVERVIEW_URL,
    )


@registry.check("callback-before-submit")
def before_submit(payload: ScanPayload) -> CheckOutcome:
    config = payload.page.checkout_config
    if config is None:
        return skip("beforeSubmit check skipped.", CONFIG_NOT_DETECTED)
    if config.before_submit:
        return passed("beforeSubmit callback is present (custom pay button flow).")
    return info("beforeSubmit is not configured.")


@registry.check("callback-actions-pattern")
def actions_pattern(payload: ScanPayload) -> CheckOutcome:
    title = "Actions pattern check skipped."
    config = payload.page.checkout_config
    if config is None:
        return skip(title, CONFIG_NOT_DETECTED)
    if attributes.detect_integration_flow(payload) is IntegrationFlow.SESSIONS:
        return skip(title, SESSIONS_FLOW_DETECTED)
    source = config.on_submit_source
    if not source:
        return skip(title, NO_SOURCE)

    if _ACTIONS_PATTERN_RE.search(source):
        return passed("onSubmit uses the v6 actions.resolve() / actions.reject() pattern.")
    if _V5_PATTERN_RE.search(source):
        return warn(
            "onSubmit appears to use v5-style component callbacks; update to the v6 "
            "actions pattern.",
            "v6 adopts actions.resolve() / actions.reject() inside onSubmit.",
            "Migrate your onSubmit handler from v5-style component callbacks to the v6 "
            "actions pattern.",
            ADVANCED_OVERVIEW_URL,
        )
    return info("Could not determine onSubmit callback pattern from static analysis.")


CHECKS = registry.checks

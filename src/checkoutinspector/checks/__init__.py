"""Check catalog. ``ALL_CHECKS`` is the evaluation order."""

from __future__ import annotations

from checkoutinspector.checks import (
    auth,
    callbacks,
    environment,
    risk,
    sdk_identity,
    sdk_version,
    security,
    security_csp,
    third_party,
)
from checkoutinspector.checks.models import Check
from checkoutinspector.checks.registry import ensure_unique

ALL_CHECKS: tuple[Check, ...] = ensure_unique(
    sdk_identity.CHECKS
    + sdk_version.CHECKS
    + environment.CHECKS
    + auth.CHECKS
    + callbacks.CHECKS
    + risk.CHECKS
    + security.CHECKS
    + security_csp.CHECKS
    + third_party.CHECKS
)

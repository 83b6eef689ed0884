"""Check engine — runs every registered check against one payload."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from checkoutinspector.checks.models import Check, CheckResult
from checkoutinspector.checks.registry import ensure_unique
from checkoutinspector.scan.models import ScanPayload

logger = logging.getLogger(__name__)


class CheckEngine:
    """Evaluates an ordered, duplicate-free set of checks.

    Every check runs for every payload, in order, with no short-circuiting.
    Checks are pure; an exception from one is a bug and propagates.
    """

    def __init__(self, checks: Iterable[Check] | None = None) -> None:
        if checks is None:
            from checkoutinspector.checks import ALL_CHECKS

            checks = ALL_CHECKS
        self.checks = ensure_unique(checks)

    def run(self, payload: ScanPayload) -> tuple[CheckResult, ...]:
        results = tuple(check.run(payload) for check in self.checks)
        logger.debug("Evaluated %d checks for tab %d", len(results), payload.tab_id)
        return results

    def __len__(self) -> int:
        return len(self.checks)

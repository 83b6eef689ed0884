"""Health score — traffic-light tiering over check outcomes.

Only pass/fail/warn results are scoreable. The tier comes from raw counts:
any failure is critical, otherwise any warning means issues, otherwise the
page is excellent.
"""

from __future__ import annotations

from collections.abc import Iterable

from checkoutinspector.checks.models import CheckResult, HealthScore, HealthTier, Severity


def calculate_health_score(results: Iterable[CheckResult]) -> HealthScore:
    scoreable = [r for r in results if r.severity.is_scoreable]
    passing = sum(1 for r in scoreable if r.severity is Severity.PASS)
    failing = sum(1 for r in scoreable if r.severity is Severity.FAIL)
    warnings = sum(1 for r in scoreable if r.severity is Severity.WARN)
    total = len(scoreable)

    # Half-up rounding; round() would round 0.5 to even
    score = 100 if total == 0 else int(passing * 100 / total + 0.5)

    if failing > 0:
        tier = HealthTier.CRITICAL
    elif warnings > 0:
        tier = HealthTier.ISSUES
    else:
        tier = HealthTier.EXCELLENT

    return HealthScore(
        score=score,
        passing=passing,
        failing=failing,
        warnings=warnings,
        total=total,
        tier=tier,
    )

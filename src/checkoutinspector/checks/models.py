"""Check data models — severities, outcomes, results, and health scores."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from checkoutinspector.scan.models import ScanPayload


class Severity(enum.Enum):
    """Closed set of outcomes a check can produce."""

    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"
    NOTICE = "notice"
    INFO = "info"
    SKIP = "skip"

    @property
    def is_scoreable(self) -> bool:
        return self in (Severity.PASS, Severity.FAIL, Severity.WARN)


class CheckCategory(enum.Enum):
    SDK_IDENTITY = "sdk-identity"
    VERSION_LIFECYCLE = "version-lifecycle"
    ENVIRONMENT = "environment"
    AUTH = "auth"
    CALLBACKS = "callbacks"
    RISK = "risk"
    SECURITY = "security"
    THIRD_PARTY = "third-party"


class HealthTier(enum.Enum):
    EXCELLENT = "excellent"
    ISSUES = "issues"
    CRITICAL = "critical"


@dataclass(frozen=True)
class CheckOutcome:
    """What a rule returns, before identifier and category are attached."""

    severity: Severity
    title: str
    detail: str | None = None
    remediation: str | None = None
    docs_url: str | None = None


@dataclass(frozen=True)
class CheckResult:
    """An outcome stamped with the identity of the check that produced it."""

    id: str
    category: CheckCategory
    severity: Severity
    title: str
    detail: str | None = None
    remediation: str | None = None
    docs_url: str | None = None

    @classmethod
    def from_outcome(
        cls, check_id: str, category: CheckCategory, outcome: CheckOutcome
    ) -> CheckResult:
        return cls(
            id=check_id,
            category=category,
            severity=outcome.severity,
            title=outcome.title,
            detail=outcome.detail,
            remediation=outcome.remediation,
            docs_url=outcome.docs_url,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "category": self.category.value,
            "severity": self.severity.value,
            "title": self.title,
        }
        if self.detail is not None:
            data["detail"] = self.detail
        if self.remediation is not None:
            data["remediation"] = self.remediation
        if self.docs_url is not None:
            data["docsUrl"] = self.docs_url
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckResult:
        return cls(
            id=data["id"],
            category=CheckCategory(data["category"]),
            severity=Severity(data["severity"]),
            title=data["title"],
            detail=data.get("detail"),
            remediation=data.get("remediation"),
            docs_url=data.get("docsUrl"),
        )


@dataclass(frozen=True)
class HealthScore:
    score: int
    passing: int
    failing: int
    warnings: int
    total: int
    tier: HealthTier

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "passing": self.passing,
            "failing": self.failing,
            "warnings": self.warnings,
            "total": self.total,
            "tier": self.tier.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HealthScore:
        return cls(
            score=int(data["score"]),
            passing=int(data["passing"]),
            failing=int(data["failing"]),
            warnings=int(data["warnings"]),
            total=int(data["total"]),
            tier=HealthTier(data["tier"]),
        )


Rule = Callable[["ScanPayload"], CheckOutcome]


@dataclass(frozen=True)
class Check:
    """A registered rule with its stable identifier and category."""

    id: str
    category: CheckCategory
    rule: Rule

    def run(self, payload: ScanPayload) -> CheckResult:
        return CheckResult.from_outcome(self.id, self.category, self.rule(payload))


# ---------------------------------------------------------------------------
# Outcome builders
# ---------------------------------------------------------------------------


def passed(title: str, detail: str | None = None) -> CheckOutcome:
    return CheckOutcome(Severity.PASS, title, detail)


def fail(
    title: str,
    detail: str | None = None,
    remediation: str | None = None,
    docs_url: str | None = None,
) -> CheckOutcome:
    return CheckOutcome(Severity.FAIL, title, detail, remediation, docs_url)


def warn(
    title: str,
    detail: str | None = None,
    remediation: str | None = None,
    docs_url: str | None = None,
) -> CheckOutcome:
    return CheckOutcome(Severity.WARN, title, detail, remediation, docs_url)


def notice(
    title: str,
    detail: str | None = None,
    remediation: str | None = None,
    docs_url: str | None = None,
) -> CheckOutcome:
    return CheckOutcome(Severity.NOTICE, title, detail, remediation, docs_url)


def info(title: str, detail: str | None = None) -> CheckOutcome:
    return CheckOutcome(Severity.INFO, title, detail)


def skip(title: str, detail: str | None = None) -> CheckOutcome:
    return CheckOutcome(Severity.SKIP, title, detail)

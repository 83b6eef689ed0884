"""Category-scoped check registration."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from checkoutinspector.checks.models import Check, CheckCategory, Rule


class DuplicateCheckError(ValueError):
    """Two checks share an identifier."""

    def __init__(self, check_id: str, categories: tuple[CheckCategory, ...]) -> None:
        self.check_id = check_id
        self.categories = categories
        names = ", ".join(c.value for c in categories)
        super().__init__(f"Duplicate check id {check_id!r} (categories: {names})")


class CheckRegistry:
    """Collects the checks of one category, in registration order.

    Usage::

        registry = CheckRegistry(CheckCategory.AUTH)

        @registry.check("auth-country-code")
        def country_code(payload):
            ...
    """

    def __init__(self, category: CheckCategory) -> None:
        self.category = category
        self._checks: dict[str, Check] = {}

    def add(self, check_id: str, rule: Rule) -> CheckRegistry:
        existing = self._checks.get(check_id)
        if existing is not None:
            raise DuplicateCheckError(check_id, (existing.category, self.category))
        self._checks[check_id] = Check(id=check_id, category=self.category, rule=rule)
        return self

    def check(self, check_id: str) -> Callable[[Rule], Rule]:
        """Decorator form of ``add``. Returns the rule unchanged."""

        def decorator(rule: Rule) -> Rule:
            self.add(check_id, rule)
            return rule

        return decorator

    @property
    def checks(self) -> tuple[Check, ...]:
        return tuple(self._checks.values())

    def __len__(self) -> int:
        return len(self._checks)


def ensure_unique(checks: Iterable[Check]) -> tuple[Check, ...]:
    """Return checks as a tuple, raising DuplicateCheckError on a repeated id."""
    seen: dict[str, Check] = {}
    for check in checks:
        if check.id in seen:
            raise DuplicateCheckError(check.id, (seen[check.id].category, check.category))
        seen[check.id] = check
    return tuple(seen.values())

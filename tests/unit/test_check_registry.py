"""Tests for check registration, uniqueness and the engine."""

from __future__ import annotations

import pytest

from checkoutinspector.checks import ALL_CHECKS
from checkoutinspector.checks.engine import CheckEngine
from checkoutinspector.checks.models import (
    Check,
    CheckCategory,
    Severity,
    fail,
    passed,
    skip,
)
from checkoutinspector.checks.registry import CheckRegistry, DuplicateCheckError, ensure_unique

EXPECTED_COUNTS = {
    CheckCategory.SDK_IDENTITY: 5,
    CheckCategory.VERSION_LIFECYCLE: 2,
    CheckCategory.ENVIRONMENT: 4,
    CheckCategory.AUTH: 3,
    CheckCategory.CALLBACKS: 9,
    CheckCategory.RISK: 2,
    CheckCategory.SECURITY: 13,
    CheckCategory.THIRD_PARTY: 4,
}


class TestCatalog:
    def test_ids_unique(self):
        ids = [c.id for c in ALL_CHECKS]
        assert len(ids) == len(set(ids))

    def test_category_counts(self):
        for category, expected in EXPECTED_COUNTS.items():
            actual = sum(1 for c in ALL_CHECKS if c.category is category)
            assert actual == expected, category

    def test_known_ids_present(self):
        ids = {c.id for c in ALL_CHECKS}
        for check_id in (
            "auth-client-key",
            "auth-country-code",
            "version-latest",
            "callback-actions-pattern",
            "security-csp-reporting",
            "3p-no-sri",
        ):
            assert check_id in ids


class TestCheckRegistry:
    def test_decorator_registers_in_order(self):
        registry = CheckRegistry(CheckCategory.RISK)

        @registry.check("b")
        def rule_b(payload):
            return passed("b")

        @registry.check("a")
        def rule_a(payload):
            return passed("a")

        assert [c.id for c in registry.checks] == ["b", "a"]
        assert all(c.category is CheckCategory.RISK for c in registry.checks)
        assert len(registry) == 2

    def test_duplicate_in_category_rejected(self):
        registry = CheckRegistry(CheckCategory.AUTH)
        registry.add("x", lambda p: passed("x"))
        with pytest.raises(DuplicateCheckError):
            registry.add("x", lambda p: passed("x"))

    def test_duplicate_across_categories_rejected(self):
        first = CheckRegistry(CheckCategory.AUTH).add("x", lambda p: passed("x"))
        second = CheckRegistry(CheckCategory.RISK).add("x", lambda p: passed("x"))
        with pytest.raises(DuplicateCheckError) as excinfo:
            ensure_unique(first.checks + second.checks)
        assert excinfo.value.check_id == "x"
        assert excinfo.value.categories == (CheckCategory.AUTH, CheckCategory.RISK)

    def test_duplicate_error_is_value_error(self):
        assert issubclass(DuplicateCheckError, ValueError)


class TestCheckEngine:
    def test_engine_rejects_duplicates(self):
        check = Check("dup", CheckCategory.AUTH, lambda p: passed("ok"))
        with pytest.raises(DuplicateCheckError):
            CheckEngine([check, Check("dup", CheckCategory.RISK, lambda p: passed("ok"))])

    def test_runs_every_check_without_short_circuit(self, make_payload):
        calls = []

        def recorder(name, outcome):
            def rule(payload):
                calls.append(name)
                return outcome

            return rule

        engine = CheckEngine(
            [
                Check("one", CheckCategory.AUTH, recorder("one", fail("bad"))),
                Check("two", CheckCategory.AUTH, recorder("two", skip("n/a"))),
                Check("three", CheckCategory.RISK, recorder("three", passed("ok"))),
            ]
        )
        results = engine.run(make_payload())

        assert calls == ["one", "two", "three"]
        assert [(r.id, r.category, r.severity) for r in results] == [
            ("one", CheckCategory.AUTH, Severity.FAIL),
            ("two", CheckCategory.AUTH, Severity.SKIP),
            ("three", CheckCategory.RISK, Severity.PASS),
        ]

    def test_deterministic(self, make_payload):
        payload = make_payload(config={"client_key": "test_A"}, detected="5.0.0", latest="5.1.0")
        engine = CheckEngine()
        assert engine.run(payload) == engine.run(payload)

    def test_rule_exceptions_propagate(self, make_payload):
        def broken(payload):
            raise KeyError("oops")

        with pytest.raises(KeyError):
            CheckEngine([Check("broken", CheckCategory.AUTH, broken)]).run(make_payload())

"""Unit tests for null-safe predicates."""

from __future__ import annotations

from transforms.predicates import all_of, any_of, eq, gte, is_null, isin, negate


def test_comparison_against_absent_value_is_unknown() -> None:
    """Numeric comparison on a missing field should evaluate to unknown."""
    assert gte("amount", 10).evaluate({"amount": None}) is None


def test_unknown_comparison_does_not_match() -> None:
    """Rules should only fire on a definite true."""
    assert gte("amount", 10).matches({}) is False


def test_negation_keeps_unknown() -> None:
    """Negating an unknown comparison should stay unknown."""
    assert negate(eq("status", "PAID")).evaluate({}) is None


def test_conjunction_false_beats_unknown() -> None:
    """A false member should make the conjunction false despite unknowns."""
    predicate = all_of(gte("amount", 10), eq("status", "PAID"))

    assert predicate.evaluate({"status": "PENDING"}) is False


def test_disjunction_true_beats_unknown() -> None:
    """A true member should make the disjunction true despite unknowns."""
    predicate = any_of(gte("amount", 10), eq("status", "PAID"))

    assert predicate.evaluate({"status": "PAID"}) is True


def test_is_null_is_never_unknown() -> None:
    """Null checks should be definite for absent fields."""
    assert is_null("amount").evaluate({}) is True


def test_numeric_predicate_coerces_numeric_strings() -> None:
    """Numeric predicates should read numeric strings as numbers."""
    assert gte("amount", 1000).matches({"amount": "1,500"}) is True


def test_isin_records_its_field() -> None:
    """Predicates should expose the fields they read."""
    assert isin("status", "A", "B").fields == frozenset({"status"})

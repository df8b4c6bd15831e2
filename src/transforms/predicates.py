"""Null-safe predicates for classification rule tables.

Predicates evaluate with three-valued logic: ``True``, ``False``, or
``None`` for unknown. Any comparison against an absent value is unknown,
unknown propagates through ``not``, and a rule only fires on ``True``.
"""

from __future__ import annotations

from typing import Callable, Mapping, Sequence

from core.values import to_float

Row = Mapping[str, object]


class Predicate:
    """Named boolean test over a row with the fields it reads."""

    def __init__(
        self,
        test: Callable[[Row], "bool | None"],
        fields: frozenset[str],
        label: str,
        catch_all: bool = False,
    ) -> None:
        self._test = test
        self.fields = fields
        self.label = label
        self.catch_all = catch_all

    def evaluate(self, row: Row) -> bool | None:
        """Return the three-valued truth of the predicate for ``row``."""
        return self._test(row)

    def matches(self, row: Row) -> bool:
        """Return whether the predicate is definitely true for ``row``."""
        return self._test(row) is True

    def __repr__(self) -> str:
        return f"Predicate({self.label})"


def always() -> Predicate:
    """Catch-all predicate that is true for every row."""
    return Predicate(lambda row: True, frozenset(), "always", catch_all=True)


def eq(field: str, value: object) -> Predicate:
    """Field equals ``value``."""
    return Predicate(
        _compare(field, lambda actual: actual == value),
        frozenset({field}),
        f"{field} == {value!r}",
    )


def ne(field: str, value: object) -> Predicate:
    """Field is present and differs from ``value``."""
    return Predicate(
        _compare(field, lambda actual: actual != value),
        frozenset({field}),
        f"{field} != {value!r}",
    )


def isin(field: str, *values: object) -> Predicate:
    """Field equals one of ``values``."""
    allowed = frozenset(values)
    return Predicate(
        _compare(field, lambda actual: actual in allowed),
        frozenset({field}),
        f"{field} in {sorted(map(str, allowed))}",
    )


def startswith(field: str, prefix: str) -> Predicate:
    """Field is a string starting with ``prefix``."""
    return Predicate(
        _compare(field, lambda actual: str(actual).startswith(prefix)),
        frozenset({field}),
        f"{field} startswith {prefix!r}",
    )


def gte(field: str, bound: float) -> Predicate:
    """Numeric field is at least ``bound``."""
    return Predicate(
        _numeric(field, lambda actual: actual >= bound),
        frozenset({field}),
        f"{field} >= {bound}",
    )


def gt(field: str, bound: float) -> Predicate:
    """Numeric field exceeds ``bound``."""
    return Predicate(
        _numeric(field, lambda actual: actual > bound),
        frozenset({field}),
        f"{field} > {bound}",
    )


def lte(field: str, bound: float) -> Predicate:
    """Numeric field is at most ``bound``."""
    return Predicate(
        _numeric(field, lambda actual: actual <= bound),
        frozenset({field}),
        f"{field} <= {bound}",
    )


def lt(field: str, bound: float) -> Predicate:
    """Numeric field is below ``bound``."""
    return Predicate(
        _numeric(field, lambda actual: actual < bound),
        frozenset({field}),
        f"{field} < {bound}",
    )


def gt_scaled(field: str, other: str, factor: float) -> Predicate:
    """Numeric field exceeds ``other * factor``."""
    return Predicate(
        _numeric_pair(field, other, lambda left, right: left > right * factor),
        frozenset({field, other}),
        f"{field} > {other} * {factor}",
    )


def gte_scaled(field: str, other: str, factor: float) -> Predicate:
    """Numeric field is at least ``other * factor``."""
    return Predicate(
        _numeric_pair(field, other, lambda left, right: left >= right * factor),
        frozenset({field, other}),
        f"{field} >= {other} * {factor}",
    )


def lt_scaled(field: str, other: str, factor: float) -> Predicate:
    """Numeric field is below ``other * factor``."""
    return Predicate(
        _numeric_pair(field, other, lambda left, right: left < right * factor),
        frozenset({field, other}),
        f"{field} < {other} * {factor}",
    )


def is_null(field: str) -> Predicate:
    """Field is absent. Never unknown."""
    return Predicate(
        lambda row: row.get(field) is None,
        frozenset({field}),
        f"{field} is null",
    )


def not_null(field: str) -> Predicate:
    """Field is present. Never unknown."""
    return Predicate(
        lambda row: row.get(field) is not None,
        frozenset({field}),
        f"{field} is not null",
    )


def is_true(field: str) -> Predicate:
    """Boolean field is true."""
    return eq(field, True)


def is_false(field: str) -> Predicate:
    """Boolean field is false."""
    return eq(field, False)


def all_of(*predicates: Predicate) -> Predicate:
    """Conjunction: false beats unknown, unknown beats true."""
    members = tuple(predicates)

    def _test(row: Row) -> bool | None:
        unknown = False
        for predicate in members:
            outcome = predicate.evaluate(row)
            if outcome is False:
                return False
            if outcome is None:
                unknown = True
        return None if unknown else True

    return Predicate(_test, _union(members), " and ".join(p.label for p in members))


def any_of(*predicates: Predicate) -> Predicate:
    """Disjunction: true beats unknown, unknown beats false."""
    members = tuple(predicates)

    def _test(row: Row) -> bool | None:
        unknown = False
        for predicate in members:
            outcome = predicate.evaluate(row)
            if outcome is True:
                return True
            if outcome is None:
                unknown = True
        return None if unknown else False

    return Predicate(_test, _union(members), "(" + " or ".join(p.label for p in members) + ")")


def negate(predicate: Predicate) -> Predicate:
    """Negation that keeps unknown as unknown."""

    def _test(row: Row) -> bool | None:
        outcome = predicate.evaluate(row)
        return None if outcome is None else not outcome

    return Predicate(_test, predicate.fields, f"not ({predicate.label})")


def _compare(field: str, check: Callable[[object], bool]) -> Callable[[Row], "bool | None"]:
    def _test(row: Row) -> bool | None:
        actual = row.get(field)
        if actual is None:
            return None
        return check(actual)

    return _test


def _numeric(field: str, check: Callable[[float], bool]) -> Callable[[Row], "bool | None"]:
    def _test(row: Row) -> bool | None:
        actual = to_float(row.get(field))
        if actual is None:
            return None
        return check(actual)

    return _test


def _numeric_pair(
    field: str,
    other: str,
    check: Callable[[float, float], bool],
) -> Callable[[Row], "bool | None"]:
    def _test(row: Row) -> bool | None:
        left = to_float(row.get(field))
        right = to_float(row.get(other))
        if left is None or right is None:
            return None
        return check(left, right)

    return _test


def _union(predicates: Sequence[Predicate]) -> frozenset[str]:
    fields: set[str] = set()
    for predicate in predicates:
        fields.update(predicate.fields)
    return frozenset(fields)

"""Null-safe value helpers shared by rules and normalizers.

Absent values follow three-valued comparison semantics: any comparison
involving ``None`` is false, so cascades fall through to later rules.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable


def to_float(value: object) -> float | None:
    """Coerce a numeric-like value into float, ``None`` when absent or invalid."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip().replace(",", "")
        if not stripped:
            return None
        try:
            return float(stripped)
        except ValueError:
            return None
    return None


def to_date(value: object) -> date | None:
    """Coerce ISO strings and datetimes into dates."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            return date.fromisoformat(stripped[:10])
        except ValueError:
            return None
    return None


def to_bool(value: object) -> bool | None:
    """Coerce yes/no style flags into booleans."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().upper()
    if normalized in ("YES", "TRUE", "1", "Y"):
        return True
    if normalized in ("NO", "FALSE", "0", "N"):
        return False
    return None


def to_label(value: object) -> str | None:
    """Normalize a categorical value into an upper-case trimmed label."""
    if value is None:
        return None
    label = str(value).strip().upper()
    return label or None


def days_between(start: date | None, end: date | None) -> int | None:
    """Return whole days from ``start`` to ``end``."""
    if start is None or end is None:
        return None
    return (end - start).days


def months_between(start: date | None, end: date | None) -> int | None:
    """Return calendar month boundaries crossed from ``start`` to ``end``."""
    if start is None or end is None:
        return None
    return (end.year - start.year) * 12 + (end.month - start.month)


def years_between(start: date | None, end: date | None) -> int | None:
    """Return calendar year boundaries crossed from ``start`` to ``end``."""
    if start is None or end is None:
        return None
    return end.year - start.year


def safe_ratio(numerator: object, denominator: object, scale: float = 1.0) -> float | None:
    """Divide when both sides are present and the denominator is positive."""
    top = to_float(numerator)
    bottom = to_float(denominator)
    if top is None or bottom is None or bottom <= 0:
        return None
    return top / bottom * scale


def count_present(values: Iterable[object]) -> int:
    """Count values that are not ``None``."""
    return sum(1 for value in values if value is not None)

"""Unit tests for null-safe value helpers."""

from __future__ import annotations

from datetime import date, datetime

from core.values import (
    count_present,
    days_between,
    months_between,
    safe_ratio,
    to_bool,
    to_date,
    to_float,
    to_label,
)


def test_to_float_parses_grouped_numbers() -> None:
    """Thousands separators should be stripped before parsing."""
    assert to_float(" 1,250.5 ") == 1250.5


def test_to_float_rejects_booleans_and_garbage() -> None:
    """Booleans and non-numeric strings should become absent."""
    assert (to_float(True), to_float("n/a"), to_float("")) == (None, None, None)


def test_to_date_accepts_timestamps() -> None:
    """Datetimes and timestamp strings should be truncated to dates."""
    assert (to_date(datetime(2024, 9, 30, 8)), to_date("2024-09-30T08:00:00")) == (
        date(2024, 9, 30),
        date(2024, 9, 30),
    )


def test_to_bool_maps_yes_no_flags() -> None:
    """Yes/no style flags should map to booleans, anything else to absent."""
    assert (to_bool("yes"), to_bool("N"), to_bool("maybe")) == (True, False, None)


def test_to_label_trims_and_upper_cases() -> None:
    """Labels should be trimmed and upper-cased, blanks absent."""
    assert (to_label("  eur "), to_label("   ")) == ("EUR", None)


def test_month_and_day_spans() -> None:
    """Spans should count calendar months and whole days."""
    start = date(2023, 11, 30)
    end = date(2024, 2, 1)

    assert (months_between(start, end), days_between(start, end)) == (3, 63)


def test_safe_ratio_requires_positive_denominator() -> None:
    """Ratios over zero or absent denominators should be absent."""
    assert (safe_ratio(5, 0), safe_ratio(5, None), safe_ratio("5", 2, 100)) == (
        None,
        None,
        250.0,
    )


def test_count_present_ignores_none_only() -> None:
    """Falsy values other than None should still count as present."""
    assert count_present([0, "", None, False]) == 3

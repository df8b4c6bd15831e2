"""Unit tests for currency normalization."""

from __future__ import annotations

from datetime import date

from core.types import ExchangeRate, ProcessingContext
from transforms.currency_normalization import CurrencyGroup, normalize, normalize_group
from transforms.rate_selection import RateTable, select_rate


def _no_rate(currency: str) -> float | None:
    return None


def test_base_currency_amount_is_unchanged_and_not_converted() -> None:
    """USD amounts should pass through whatever the rate table holds."""
    result = normalize(
        {"currency": "USD", "amount": 1250.0}, "currency", ("amount",), "USD", lambda _: 2.0
    )

    assert (result.amounts["amount_usd"], result.converted) == (1250.0, False)


def test_amounts_convert_with_selected_rate() -> None:
    """Foreign amounts should be multiplied by the group rate."""
    result = normalize(
        {"currency": "EUR", "amount": 100.0, "fee": 10.0},
        "currency",
        ("amount", "fee"),
        "USD",
        lambda _: 1.5,
    )

    assert result.amounts == {"amount_usd": 150.0, "fee_usd": 15.0}


def test_missing_rate_carries_amount_and_flags_it() -> None:
    """Without a rate the original amount should be kept and flagged."""
    result = normalize(
        {"currency": "JPY", "amount": 500.0}, "currency", ("amount",), "USD", _no_rate
    )

    assert (result.amounts["amount_usd"], result.rate_missing, result.converted) == (
        500.0,
        True,
        False,
    )


def test_absent_currency_is_not_flagged_as_missing_rate() -> None:
    """Rows without a currency tag should not raise the missing-rate flag."""
    result = normalize({"amount": 500.0}, "currency", ("amount",), "USD", _no_rate)

    assert result.rate_missing is False


def test_rate_without_amounts_is_not_converted() -> None:
    """A rate with no present amount should not mark the row converted."""
    result = normalize({"currency": "EUR"}, "currency", ("amount",), "USD", lambda _: 1.1)

    assert result.converted is False


def test_group_rate_date_is_capped_at_run_as_of_date() -> None:
    """A record date after the run as-of date should use the as-of rate."""
    table = RateTable(
        [
            ExchangeRate("EUR", "USD", 0.90, date(2024, 1, 1)),
            ExchangeRate("EUR", "USD", 0.95, date(2024, 6, 1)),
        ]
    )
    group = CurrencyGroup("currency", ("amount",), date_field="booked_on")
    context = ProcessingContext(as_of_date=date(2024, 3, 1))

    result = normalize_group(
        {"currency": "EUR", "amount": 100.0, "booked_on": date(2024, 9, 1)},
        group,
        context,
        lambda source, target, as_of: select_rate(source, target, as_of, table),
    )

    assert result.rate == 0.90

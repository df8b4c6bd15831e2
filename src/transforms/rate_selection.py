"""Point-in-time exchange-rate selection.

This module indexes dated currency-pair rates once per run and answers
"which rate applies on this date" lookups without scanning the table.
"""

from __future__ import annotations

from bisect import bisect_right
from datetime import date
from typing import Iterable

from core.types import ExchangeRate


class RateTable:
    """Read-only index of exchange rates grouped by currency pair.

    Rates for one pair are kept sorted by date; for equal dates the row
    loaded first wins.
    """

    def __init__(self, rates: Iterable[ExchangeRate]) -> None:
        grouped: dict[tuple[str, str], list[ExchangeRate]] = {}
        for rate in rates:
            pair = (rate.from_currency.upper(), rate.to_currency.upper())
            grouped.setdefault(pair, []).append(rate)
        self._dates: dict[tuple[str, str], list[date]] = {}
        self._values: dict[tuple[str, str], list[float]] = {}
        self._size = 0
        for pair, pair_rates in grouped.items():
            ordered = _first_per_date(sorted(pair_rates, key=lambda item: item.rate_date))
            self._dates[pair] = [item.rate_date for item in ordered]
            self._values[pair] = [item.rate for item in ordered]
            self._size += len(pair_rates)

    def __len__(self) -> int:
        return self._size

    def pairs(self) -> tuple[tuple[str, str], ...]:
        """Return indexed currency pairs in sorted order."""
        return tuple(sorted(self._dates))

    def lookup(self, from_currency: str, to_currency: str, as_of: date) -> float | None:
        """Return the latest rate dated on or before ``as_of`` for one pair."""
        pair = (from_currency.upper(), to_currency.upper())
        pair_dates = self._dates.get(pair)
        if not pair_dates:
            return None
        position = bisect_right(pair_dates, as_of)
        if position == 0:
            return None
        return self._values[pair][position - 1]


def select_rate(
    from_currency: str,
    to_currency: str,
    as_of: date,
    rate_table: RateTable,
) -> float | None:
    """Select the applicable rate for a pair as of a date.

    Args:
        from_currency: Source currency code.
        to_currency: Target currency code.
        as_of: Processing date; future-dated rates are ignored.
        rate_table: Indexed rates.

    Returns:
        ``1.0`` for identical currencies, the selected rate, or ``None``.
    """
    if from_currency.upper() == to_currency.upper():
        return 1.0
    return rate_table.lookup(from_currency, to_currency, as_of)


def _first_per_date(ordered_rates: list[ExchangeRate]) -> list[ExchangeRate]:
    """Keep the first-loaded rate for each date of a date-sorted list."""
    kept: list[ExchangeRate] = []
    for rate in ordered_rates:
        if kept and kept[-1].rate_date == rate.rate_date:
            continue
        kept.append(rate)
    return kept

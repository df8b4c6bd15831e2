"""Currency normalization of monetary fields.

This module converts groups of amounts that share one currency tag into
the base currency. One rate is selected per group and applied to every
amount in it. Amounts without a usable rate are carried unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Mapping, Sequence

from core.types import ProcessingContext
from core.values import to_date, to_float, to_label

RateSelector = Callable[[str, str, date], "float | None"]


@dataclass(frozen=True)
class CurrencyGroup:
    """Monetary fields sharing one currency tag.

    Attributes:
        currency_field: Attribute holding the currency code.
        amount_fields: Attributes holding amounts in that currency.
        rate_field: Output field receiving the selected rate.
        date_field: Optional record date the rate must be valid on.
    """

    currency_field: str
    amount_fields: tuple[str, ...]
    rate_field: str = "fx_rate"
    date_field: str | None = None


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of normalizing one currency group.

    Attributes:
        amounts: Output amounts keyed ``<field>_usd`` style.
        currency: Normalized currency tag, ``None`` when absent.
        rate: Selected rate, ``None`` when no rate applies.
        converted: At least one present amount was multiplied by a table rate.
        rate_missing: Currency differs from base and no rate was found.
    """

    amounts: Mapping[str, float | None]
    currency: str | None
    rate: float | None
    converted: bool
    rate_missing: bool


def output_field_name(amount_field: str, base_currency: str) -> str:
    """Return the output field name for a normalized amount."""
    return f"{amount_field}_{base_currency.lower()}"


def normalize(
    values: Mapping[str, object],
    currency_field: str,
    amount_fields: Sequence[str],
    base_currency: str,
    rate_for: Callable[[str], "float | None"],
) -> ConversionResult:
    """Normalize amounts of one currency tag into the base currency.

    Args:
        values: Record attribute values.
        currency_field: Attribute holding the currency code.
        amount_fields: Amount attributes sharing that currency.
        base_currency: Target currency code.
        rate_for: Returns the rate from a currency into the base currency.

    Returns:
        Converted amounts with rate and flag metadata.
    """
    currency = to_label(values.get(currency_field))
    raw_amounts = {name: to_float(values.get(name)) for name in amount_fields}
    if currency is None or currency == base_currency:
        return ConversionResult(
            amounts=_renamed(raw_amounts, base_currency),
            currency=currency,
            rate=1.0 if currency else None,
            converted=False,
            rate_missing=False,
        )
    rate = rate_for(currency)
    if rate is None:
        return ConversionResult(
            amounts=_renamed(raw_amounts, base_currency),
            currency=currency,
            rate=None,
            converted=False,
            rate_missing=True,
        )
    converted_amounts = {
        name: None if amount is None else amount * rate for name, amount in raw_amounts.items()
    }
    return ConversionResult(
        amounts=_renamed(converted_amounts, base_currency),
        currency=currency,
        rate=rate,
        converted=any(amount is not None for amount in raw_amounts.values()),
        rate_missing=False,
    )


def normalize_group(
    values: Mapping[str, object],
    group: CurrencyGroup,
    context: ProcessingContext,
    select: RateSelector,
) -> ConversionResult:
    """Normalize one declared currency group as of the record date.

    The rate date is the group's record date capped at the run as-of date,
    or the run as-of date when the record carries no date.
    """
    as_of = _rate_as_of(values, group.date_field, context.as_of_date)
    return normalize(
        values,
        group.currency_field,
        group.amount_fields,
        context.base_currency,
        lambda currency: select(currency, context.base_currency, as_of),
    )


def _rate_as_of(values: Mapping[str, object], date_field: str | None, run_as_of: date) -> date:
    if date_field is None:
        return run_as_of
    record_date = to_date(values.get(date_field))
    if record_date is None or record_date > run_as_of:
        return run_as_of
    return record_date


def _renamed(amounts: Mapping[str, float | None], base_currency: str) -> dict[str, float | None]:
    return {output_field_name(name, base_currency): amount for name, amount in amounts.items()}

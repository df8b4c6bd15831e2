"""Unit tests for the distributions entity model."""

from __future__ import annotations

from datetime import date

import pytest

from core.constants import VENDOR_FUND_ADMIN
from core.types import ExchangeRate, ProcessingContext, SourceRecord
from entity_models.registry import get_model
from transforms.identity_resolution import CrossReferenceTable
from transforms.rate_selection import RateTable
from transforms.record_normalizer import ReferenceData, normalize_record, prepare_record

_MODEL = get_model("distributions")
_CONTEXT = ProcessingContext(as_of_date=date(2024, 10, 15))
_REFERENCE = ReferenceData(
    cross_reference=CrossReferenceTable(()),
    rates=RateTable(
        [
            ExchangeRate("EUR", "USD", 0.90, date(2024, 1, 1)),
            ExchangeRate("EUR", "USD", 0.95, date(2024, 6, 1)),
            ExchangeRate("EUR", "USD", 1.08, date(2024, 9, 30)),
        ]
    ),
)


def _normalize(**overrides: object) -> dict[str, object]:
    attributes: dict[str, object] = {
        "transaction_id": "TX-1",
        "fund_code": "FND-1",
        "investor_code": "INV-1",
        "transaction_date": "2024-07-15",
        "gross_amount": "100000",
        "net_amount": "90000",
        "withholding_tax_amount": "10000",
        "original_currency": "eur",
    }
    attributes.update(overrides)
    record = prepare_record(SourceRecord("TX-1", VENDOR_FUND_ADMIN, attributes), _MODEL)
    return normalize_record(record, _MODEL, _REFERENCE, _CONTEXT).fields


def test_gross_amount_uses_rate_on_transaction_date() -> None:
    """The latest rate on or before the transaction date should apply."""
    assert _normalize()["gross_amount_usd"] == pytest.approx(95_000)


def test_size_category_reads_converted_amount() -> None:
    """The size tier should classify the USD amount."""
    assert _normalize()["transaction_size_category"] == "SMALL"


def test_currency_label_is_canonicalized() -> None:
    """Currency tags should be written back upper-cased."""
    assert _normalize()["original_currency"] == "EUR"


def test_usd_amounts_are_not_converted() -> None:
    """Base-currency rows should keep their amounts at rate one."""
    fields = _normalize(original_currency="USD", gross_amount="60000000")

    assert (fields["gross_amount_usd"], fields["transaction_size_category"]) == (
        60_000_000,
        "VERY_LARGE",
    )


def test_unknown_currency_keeps_original_amount() -> None:
    """A currency without any rate should keep the original amount, flagged."""
    fields = _normalize(original_currency="CHF")

    assert (fields["gross_amount_usd"], fields["fx_rate_missing"]) == (100_000, True)

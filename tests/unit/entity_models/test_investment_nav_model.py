"""Unit tests for the investment NAV entity model."""

from __future__ import annotations

from datetime import date

import pytest

from core.constants import QUALITY_HIGH, VENDOR_FUND_ADMIN, VENDOR_PORTFOLIO_MGMT
from core.types import CrossReferenceEntry, ExchangeRate, ProcessingContext, SourceRecord
from entity_models.registry import get_model
from transforms.identity_resolution import CrossReferenceTable
from transforms.rate_selection import RateTable
from transforms.record_normalizer import ReferenceData, normalize_record, prepare_record

_MODEL = get_model("investment_nav")
_CONTEXT = ProcessingContext(as_of_date=date(2024, 10, 15))
_REFERENCE = ReferenceData(
    cross_reference=CrossReferenceTable(
        [
            CrossReferenceEntry(
                "COMP", VENDOR_PORTFOLIO_MGMT, "PM-CO-1", "COMP-CANON-0001", QUALITY_HIGH
            )
        ]
    ),
    rates=RateTable([ExchangeRate("EUR", "USD", 1.08, date(2024, 9, 30))]),
)


def _normalize(**overrides: object) -> dict[str, object]:
    attributes: dict[str, object] = {
        "nav_investment_id": "NAV-1",
        "investment_id": "PM-CO-1",
        "fund_code": "FND-1",
        "cost_basis": 1_000_000,
        "fair_value": 2_500_000,
        "cost_basis_currency": "EUR",
        "valuation_date": "2024-09-30",
        "valuation_method": "Market Multiple",
    }
    attributes.update(overrides)
    record = prepare_record(SourceRecord("NAV-1", VENDOR_FUND_ADMIN, attributes), _MODEL)
    return normalize_record(record, _MODEL, _REFERENCE, _CONTEXT).fields


def test_cost_basis_is_converted_to_usd() -> None:
    """Cost basis should use the EUR rate valid on the valuation date."""
    assert _normalize()["cost_basis_usd"] == pytest.approx(1_080_000)


def test_fair_value_inherits_cost_basis_currency() -> None:
    """A missing fair-value currency should fall back to the cost-basis currency."""
    assert _normalize()["fair_value_usd"] == pytest.approx(2_700_000)


def test_return_multiple_uses_converted_amounts() -> None:
    """The USD return multiple should be fair over cost minus one."""
    assert _normalize()["unrealized_return_multiple_usd"] == pytest.approx(1.5)


def test_size_category_uses_literal_cut_points() -> None:
    """A converted cost just above one million should be a small investment."""
    assert _normalize()["investment_size_category"] == "SMALL_INVESTMENT"


def test_valuation_method_is_standardized() -> None:
    """Free-text valuation methods should map onto standard labels."""
    assert _normalize()["valuation_reliability"] == "HIGH_RELIABILITY"


def test_missing_cost_basis_is_unknown_size() -> None:
    """Without a cost basis the size tier should fall to its default."""
    assert _normalize(cost_basis=None)["investment_size_category"] == "UNKNOWN"

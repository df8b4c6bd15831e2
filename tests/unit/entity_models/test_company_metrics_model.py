"""Unit tests for the company metrics entity model."""

from __future__ import annotations

from datetime import date

from core.constants import VENDOR_PORTFOLIO_MGMT
from core.types import ProcessingContext, SourceRecord
from entity_models.registry import get_model
from transforms.record_normalizer import empty_reference_data, normalize_record, prepare_record

_MODEL = get_model("company_metrics")


def _normalize(**overrides: object) -> dict[str, object]:
    attributes: dict[str, object] = {
        "financial_id": "FIN-1",
        "company_id": "PM-CO-1",
        "reporting_year": 2024,
        "reporting_quarter": 3,
        "revenue_currency": "USD",
        "revenue": 10_000_000,
        "gross_profit": 6_000_000,
        "ebitda": 2_000_000,
        "net_income": 1_000_000,
        "total_assets": 8_000_000,
        "cash_and_equivalents": 3_000_000,
        "debt_current": 1_000_000,
        "debt_total": 1_000_000,
        "shareholders_equity": 4_000_000,
        "free_cash_flow": 2_000_000,
        "employees_count": 20,
        "gross_margin_percent": 60,
        "ebitda_margin_percent": 20,
        "revenue_growth_yoy_percent": 30.0,
    }
    attributes.update(overrides)
    record = prepare_record(SourceRecord("FIN-1", VENDOR_PORTFOLIO_MGMT, attributes), _MODEL)
    normalized = normalize_record(
        record, _MODEL, empty_reference_data(), ProcessingContext(as_of_date=date(2024, 10, 15))
    )
    return normalized.fields


def test_healthy_snapshot_earns_full_financial_health() -> None:
    """Profitable, liquid, low-leverage, good-margin snapshots should score 100."""
    assert _normalize()["financial_health_score"] == 100.0


def test_performance_score_sums_points() -> None:
    """Profitability, growth, cash, efficiency, health, and freshness points add up."""
    assert _normalize()["company_performance_score"] == 90.0


def test_exceptional_business_model_is_highly_attractive() -> None:
    """A score of at least 85 with an exceptional model should be highly attractive."""
    fields = _normalize()

    assert (fields["business_model_assessment"], fields["investment_attractiveness"]) == (
        "EXCEPTIONAL_BUSINESS_MODEL",
        "HIGHLY_ATTRACTIVE",
    )


def test_low_leverage_with_strong_cash_is_leverage_opportunity() -> None:
    """Low leverage and strong cash generation should suggest more leverage."""
    assert _normalize()["value_creation_opportunity"] == "LEVERAGE_OPPORTUNITY"


def test_high_working_capital_takes_precedence_over_leverage() -> None:
    """Working capital above fifteen percent of revenue should be optimized first."""
    fields = _normalize(working_capital=2_000_000)

    assert fields["value_creation_opportunity"] == "WORKING_CAPITAL_OPTIMIZATION"


def test_revenue_scale_lower_bound_is_inclusive() -> None:
    """Exactly twenty-five million revenue should be medium revenue."""
    assert _normalize(revenue=25_000_000)["revenue_scale_category"] == "MEDIUM_REVENUE"


def test_growth_lower_bound_is_inclusive() -> None:
    """Exactly twenty-five percent growth should be strong growth."""
    fields = _normalize(revenue_growth_yoy_percent=25.0)

    assert fields["growth_trajectory"] == "STRONG_GROWTH"


def test_missing_growth_is_unknown() -> None:
    """Without a prior period the growth tier should fall to its default."""
    fields = _normalize(revenue_growth_yoy_percent=None)

    assert fields["growth_trajectory"] == "UNKNOWN_GROWTH"

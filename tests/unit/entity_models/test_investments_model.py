"""Unit tests for the investments entity model."""

from __future__ import annotations

from datetime import date

import pytest

from core.constants import VENDOR_PORTFOLIO_MGMT
from core.types import ProcessingContext, SourceRecord
from entity_models.registry import get_model
from transforms.record_normalizer import empty_reference_data, normalize_record, prepare_record

_MODEL = get_model("investments")


def _normalize(**overrides: object) -> dict[str, object]:
    attributes: dict[str, object] = {
        "investment_id": "INVST-1",
        "company_id": "PM-CO-1",
        "fund_id": "PM-FND-1",
        "company_name": "Northwind Analytics",
        "investment_date": "2020-03-01",
        "investment_stage": "Buyout",
        "sector": "Enterprise Software",
        "geography": "North America",
        "exit_strategy": "IPO",
        "investment_thesis": "Consolidate regional analytics vendors",
        "initial_investment_amount": 40_000_000,
        "total_invested_amount": 60_000_000,
        "initial_investment_currency": "USD",
        "ownership_percentage": 60,
        "board_seats": 2,
        "liquidation_preference": "Participating",
        "anti_dilution_protection": "Weighted Average Broad",
        "has_drag_along_rights": True,
        "has_tag_along_rights": True,
    }
    attributes.update(overrides)
    record = prepare_record(SourceRecord("INVST-1", VENDOR_PORTFOLIO_MGMT, attributes), _MODEL)
    normalized = normalize_record(
        record, _MODEL, empty_reference_data(), ProcessingContext(as_of_date=date(2024, 10, 15))
    )
    return normalized.fields


def test_total_currency_falls_back_to_initial_currency() -> None:
    """Totals without their own currency should reuse the initial currency."""
    assert _normalize()["total_invested_amount_usd"] == pytest.approx(60_000_000)


def test_majority_stake_with_board_seats_is_full_control() -> None:
    """A majority stake with two board seats should be full control."""
    assert _normalize()["control_classification"] == "FULL_CONTROL"


def test_preferred_terms_with_rights_are_highly_protected() -> None:
    """Preferred liquidation, broad anti-dilution, and both rights should protect fully."""
    assert _normalize()["protection_level"] == "HIGHLY_PROTECTED"


def test_attractiveness_score_uses_weighted_points() -> None:
    """Deal, control, protection, sector, geography, and completeness points are weighted."""
    assert _normalize()["investment_attractiveness_score"] == pytest.approx(2.65)


def test_attractiveness_score_drops_for_non_priority_sector() -> None:
    """A sector outside the priority list should earn one sector point."""
    fields = _normalize(sector="Retail")

    assert fields["investment_attractiveness_score"] == pytest.approx(2.5)


def test_deal_size_lower_bound_is_inclusive() -> None:
    """Exactly fifty million invested should be a large deal."""
    assert _normalize(total_invested_amount=50_000_000)["deal_size_category"] == "LARGE_DEAL"


def test_deal_size_just_below_bound_is_medium() -> None:
    """Just under fifty million invested should be a medium deal."""
    fields = _normalize(total_invested_amount=49_999_999)

    assert fields["deal_size_category"] == "MEDIUM_DEAL"

"""Unit tests for the counterparties entity model."""

from __future__ import annotations

from datetime import date

import pytest

from core.constants import VENDOR_CRM
from core.types import ProcessingContext, SourceRecord
from entity_models.registry import get_model
from transforms.record_normalizer import empty_reference_data, normalize_record, prepare_record

_MODEL = get_model("counterparties")


def _normalize(**overrides: object) -> dict[str, object]:
    attributes: dict[str, object] = {
        "canonical_counterparty_id": "CPTY-BAKERLEELLP",
        "counterparty_name": "Baker Lee LLP",
        "counterparty_type": "LEGAL_COUNSEL",
        "primary_contact_name": "Dana Baker",
        "primary_contact_email": "dana@bakerlee.example",
        "country_code": "US",
        "relationship_status": "active",
        "relationship_strength": "strong",
        "interaction_frequency": "weekly",
        "last_interaction_date": "2024-09-01",
        "source_system_count": 2,
    }
    attributes.update(overrides)
    record = prepare_record(SourceRecord("BAKERLEELLP", VENDOR_CRM, attributes), _MODEL)
    normalized = normalize_record(
        record, _MODEL, empty_reference_data(), ProcessingContext(as_of_date=date(2024, 10, 15))
    )
    return normalized.fields


def test_strong_legal_counsel_has_top_importance() -> None:
    """Strong legal counsel relationships should earn five importance points."""
    assert _normalize()["relationship_importance_score"] == 5.0


def test_relationship_value_uses_weighted_points() -> None:
    """Importance, recency, frequency, and completeness are weighted 0.4/0.3/0.2/0.1."""
    assert _normalize()["overall_relationship_value"] == pytest.approx(3.5)


def test_professional_services_above_three_is_medium_priority() -> None:
    """A value of 3.5 for professional services should be medium priority."""
    fields = _normalize()

    assert (fields["relationship_priority"], fields["engagement_strategy"]) == (
        "MEDIUM_PRIORITY",
        "MAINTAIN_CONTACT",
    )


def test_completeness_counts_seven_fields() -> None:
    """One of seven fields missing should lower completeness proportionally."""
    fields = _normalize(primary_contact_email=None)

    assert fields["completeness_score"] == pytest.approx(600 / 7)


def test_three_months_since_interaction_is_recent() -> None:
    """The recent band includes exactly three months."""
    assert _normalize(last_interaction_date="2024-07-15")["relationship_recency"] == "RECENT"


def test_four_months_since_interaction_is_moderate() -> None:
    """Interactions four months back should be moderate recency."""
    fields = _normalize(last_interaction_date="2024-06-30")

    assert fields["relationship_recency"] == "MODERATE"


def test_unknown_type_scores_no_importance() -> None:
    """Types outside the importance table should earn zero points."""
    fields = _normalize(counterparty_type="OTHER")

    assert (fields["counterparty_category"], fields["relationship_importance_score"]) == (
        "OTHER",
        0.0,
    )

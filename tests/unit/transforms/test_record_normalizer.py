"""Unit tests for per-record normalization."""

from __future__ import annotations

from datetime import date

import pytest

from core.constants import QUALITY_HIGH
from core.types import CrossReferenceEntry, ExchangeRate, ProcessingContext, SourceRecord
from entity_models.base import SnapshotWindow
from entity_models.company_metrics import GROWTH_FIELDS
from entity_models.registry import get_model
from transforms.identity_resolution import CrossReferenceTable
from transforms.rate_selection import RateTable
from transforms.record_normalizer import (
    CONVERTED_FIELD,
    RATE_MISSING_FIELD,
    RECORD_HASH_FIELD,
    ReferenceData,
    apply_snapshot_window,
    empty_reference_data,
    is_placeholder_record,
    normalize_record,
    prepare_record,
    records_by_partition,
)

_WINDOW = SnapshotWindow("company_id", "reporting_year", "reporting_quarter", GROWTH_FIELDS)
_CONTEXT = ProcessingContext(as_of_date=date(2024, 10, 15))
_NAV = get_model("investment_nav")
_REFERENCE = ReferenceData(
    cross_reference=CrossReferenceTable(
        [
            CrossReferenceEntry(
                "COMP", "PORTFOLIO_MGMT_VENDOR", "PM-CO-1", "COMP-CANON-0001", QUALITY_HIGH
            )
        ]
    ),
    rates=RateTable([ExchangeRate("EUR", "USD", 1.08, date(2024, 9, 30))]),
)


def _nav_record(**overrides: object) -> SourceRecord:
    attributes: dict[str, object] = {
        "nav_investment_id": "NAV-1",
        "investment_id": "PM-CO-1",
        "fund_code": "FND-1",
        "valuation_date": "2024-09-30",
        "cost_basis": "1000000",
        "fair_value": 2500000,
        "cost_basis_currency": "eur",
    }
    attributes.update(overrides)
    record = SourceRecord("NAV-1", "FUND_ADMIN_VENDOR", attributes)
    return prepare_record(record, _NAV)


def test_prepare_record_coerces_declared_types() -> None:
    """Declared numeric, date, and label fields should be typed."""
    record = _nav_record()

    assert (
        record.get("cost_basis"),
        record.get("valuation_date"),
        record.get("cost_basis_currency"),
    ) == (1000000.0, date(2024, 9, 30), "EUR")


def test_prepare_record_fills_declared_defaults() -> None:
    """Absent attributes with declared defaults should be filled."""
    model = get_model("distributions")
    record = prepare_record(SourceRecord("TX-1", "FUND_ADMIN_VENDOR", {}), model)

    assert record.get("withholding_tax_amount") == 0.0


def test_normalize_record_resolves_canonical_id() -> None:
    """The primary identity should resolve through the cross-reference."""
    normalized = normalize_record(_nav_record(), _NAV, _REFERENCE, _CONTEXT)

    assert normalized.canonical_id == "COMP-CANON-0001"


def test_normalize_record_converts_amounts() -> None:
    """Amounts should be converted with the rate valid on the record date."""
    normalized = normalize_record(_nav_record(), _NAV, _REFERENCE, _CONTEXT)

    assert normalized.fields["cost_basis_usd"] == pytest.approx(1_080_000)


def test_normalize_record_marks_conversion() -> None:
    """Converted records should carry the conversion flag and rate."""
    normalized = normalize_record(_nav_record(), _NAV, _REFERENCE, _CONTEXT)

    assert (normalized.converted, normalized.fields[CONVERTED_FIELD], normalized.fx_rate) == (
        True,
        True,
        1.08,
    )


def test_missing_rate_is_flagged_on_record() -> None:
    """A currency without a rate should raise the missing-rate flag."""
    normalized = normalize_record(
        _nav_record(cost_basis_currency="JPY"), _NAV, _REFERENCE, _CONTEXT
    )

    assert normalized.fields[RATE_MISSING_FIELD] is True


def test_unmatched_identity_is_placeholder() -> None:
    """Unmatched identifiers should resolve to placeholders."""
    normalized = normalize_record(
        _nav_record(investment_id="PM-CO-2"), _NAV, _REFERENCE, _CONTEXT
    )

    assert is_placeholder_record(normalized, _NAV) is True


def test_null_binding_source_leaves_identity_absent() -> None:
    """A null secondary identifier should leave its canonical id absent."""
    normalized = normalize_record(_nav_record(fund_code=None), _NAV, _REFERENCE, _CONTEXT)

    assert normalized.fields["canonical_fund_id"] is None


def test_record_hash_matches_fingerprint() -> None:
    """The fingerprint should be written into the output fields."""
    normalized = normalize_record(_nav_record(), _NAV, _REFERENCE, _CONTEXT)

    assert normalized.fields[RECORD_HASH_FIELD] == normalized.fingerprint


def test_normalization_is_deterministic() -> None:
    """Normalizing the same record twice should produce equal fingerprints."""
    first = normalize_record(_nav_record(), _NAV, _REFERENCE, _CONTEXT)
    second = normalize_record(_nav_record(), _NAV, _REFERENCE, _CONTEXT)

    assert first.fingerprint == second.fingerprint


def test_as_of_date_is_injected_into_fields() -> None:
    """The run as-of date should be part of every output row."""
    normalized = normalize_record(_nav_record(), _NAV, empty_reference_data(), _CONTEXT)

    assert normalized.fields["as_of_date"] == date(2024, 10, 15)


def test_snapshot_window_keeps_latest_period_with_growth() -> None:
    """The window should keep the latest period and attach growth."""
    model = get_model("company_metrics")
    rows = [
        {"company_id": "C1", "reporting_year": 2023, "reporting_quarter": 2, "revenue": 1000},
        {"company_id": "C1", "reporting_year": 2024, "reporting_quarter": 2, "revenue": 1500},
        {"company_id": "C1", "reporting_year": 2024, "reporting_quarter": 1, "revenue": 1400},
    ]
    records = [
        prepare_record(SourceRecord(f"F{index}", "PORTFOLIO_MGMT_VENDOR", row), model)
        for index, row in enumerate(rows)
    ]
    selected = apply_snapshot_window(records, _WINDOW)

    assert [(item.vendor_id, item.get("revenue_growth_yoy_percent")) for item in selected] == [
        ("F1", 50.0)
    ]


def test_snapshot_window_missing_quarter_has_no_prior_period() -> None:
    """Rows without a quarter should never pair up as year-over-year periods."""
    model = get_model("company_metrics")
    rows = [
        {"company_id": "C1", "reporting_year": 2023, "revenue": 1000},
        {"company_id": "C1", "reporting_year": 2024, "revenue": 1500},
    ]
    records = [
        prepare_record(SourceRecord(f"F{index}", "PORTFOLIO_MGMT_VENDOR", row), model)
        for index, row in enumerate(rows)
    ]
    selected = apply_snapshot_window(records, _WINDOW)

    assert [(item.vendor_id, item.get("revenue_growth_yoy_percent")) for item in selected] == [
        ("F1", None)
    ]


def test_snapshot_window_ignores_rows_without_year() -> None:
    """Rows without a reporting year should not be selected."""
    model = get_model("company_metrics")
    record = prepare_record(
        SourceRecord("F1", "PORTFOLIO_MGMT_VENDOR", {"company_id": "C1", "revenue": 10}), model
    )
    assert apply_snapshot_window([record], _WINDOW) == []


def test_records_by_partition_keeps_positions() -> None:
    """Partitions should remember each record's input position."""
    records = [
        SourceRecord("1", "V", {"fund": "A"}),
        SourceRecord("2", "V", {"fund": "B"}),
        SourceRecord("3", "V", {"fund": "A"}),
    ]

    partitions = records_by_partition(records, "fund")

    assert [position for position, _ in partitions["A"]] == [0, 2]

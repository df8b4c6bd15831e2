"""Unit tests for counterparty consolidation."""

from __future__ import annotations

from datetime import date

from core.types import SourceRecord
from transforms.counterparty_consolidation import (
    consolidate_counterparties,
    infer_counterparty_type,
    name_key,
)


def _row(vendor: str, vendor_id: str, **attributes: object) -> SourceRecord:
    return SourceRecord(vendor_id=vendor_id, vendor=vendor, attributes=attributes)


_ROWS = [
    _row(
        "ACCOUNTING_VENDOR",
        "AC-7",
        counterparty_name="Baker Lee, LLP",
        account_name="LEGAL FEES",
        primary_contact_name="Accounts Desk",
        last_interaction_date=date(2024, 9, 15),
    ),
    _row(
        "CRM_VENDOR",
        "C-1",
        counterparty_name="Baker & Lee LLP",
        contact_type="Legal",
        primary_contact_name="Ann Baker",
        last_interaction_date=date(2024, 8, 1),
    ),
    _row("PORTFOLIO_MGMT_VENDOR", "PM-3", counterparty_name="North Bank"),
]


def test_name_key_drops_punctuation_and_case() -> None:
    """Name variants should share one grouping key."""
    assert name_key("Baker & Lee LLP") == name_key("baker lee, llp")


def test_rows_fold_into_one_record_per_name() -> None:
    """Rows naming the same counterparty should fold together."""
    assert len(consolidate_counterparties(_ROWS)) == 2


def test_consolidated_id_uses_name_key() -> None:
    """Consolidated rows should carry the CPTY canonical id."""
    first = consolidate_counterparties(_ROWS)[0]

    assert first.get("canonical_counterparty_id") == "CPTY-BAKERLEELLP"


def test_crm_contact_takes_precedence() -> None:
    """CRM contact fields should win over other vendors."""
    first = consolidate_counterparties(_ROWS)[0]

    assert first.get("primary_contact_name") == "Ann Baker"


def test_last_interaction_is_latest_across_sources() -> None:
    """The most recent interaction across vendors should be kept."""
    first = consolidate_counterparties(_ROWS)[0]

    assert first.get("last_interaction_date") == date(2024, 9, 15)


def test_source_coverage_counts_vendors() -> None:
    """The consolidated row should count distinct source systems."""
    first = consolidate_counterparties(_ROWS)[0]

    assert (first.get("source_system_count"), first.get("source_record_count")) == (2, 2)


def test_any_number_of_rows_per_vendor_is_accepted() -> None:
    """Several rows from one vendor should fold without loss."""
    rows = [_row("CRM_VENDOR", f"C-{index}", counterparty_name="Acme") for index in range(5)]

    assert consolidate_counterparties(rows)[0].get("source_record_count") == 5


def test_rows_without_name_are_skipped() -> None:
    """Rows without a usable name cannot be grouped."""
    rows = [_row("CRM_VENDOR", "C-1", counterparty_name=None), _row("CRM_VENDOR", "C-2")]

    assert consolidate_counterparties(rows) == []


def test_portfolio_rows_default_to_lender() -> None:
    """Portfolio-management rows without a type should be lenders."""
    assert infer_counterparty_type(_ROWS[2]) == "LENDER"


def test_accounting_rows_infer_type_from_account_name() -> None:
    """Accounting rows should infer their type from the account name."""
    assert infer_counterparty_type(_ROWS[0]) == "LEGAL_COUNSEL"

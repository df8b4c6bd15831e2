"""Counterparty consolidation across vendor systems.

This module groups counterparty rows from CRM, portfolio management, and
accounting systems by a normalized name key and folds each group into
one consolidated row. Any number of rows per vendor is accepted.
"""

from __future__ import annotations

from datetime import date
import re
from typing import Callable, Iterable, Sequence

from core.constants import ENTITY_KIND_COUNTERPARTY, VENDOR_CRM
from core.types import SourceRecord
from core.values import to_date, to_label

_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")
_PREFERRED_FIELDS = (
    "primary_contact_name",
    "primary_contact_title",
    "primary_contact_email",
    "primary_contact_phone",
    "counterparty_industry",
    "country_code",
    "relationship_strength",
    "interaction_frequency",
)
_TYPE_RANKS = {
    "LEGAL_COUNSEL": 1,
    "AUDITOR": 1,
    "SERVICE_PROVIDER": 1,
    "LENDER": 2,
    "CO_INVESTOR": 2,
    "VENDOR": 3,
}
_CRM_TYPE_KEYWORDS: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
    ("SERVICE_PROVIDER", ("SERVICE",), ("CONSULTING", "ADVISORY")),
    ("CO_INVESTOR", ("INVESTOR", "LP", "LIMITED PARTNER"), ()),
    ("LENDER", ("LENDER",), ("BANK", "CREDIT")),
    ("VENDOR", ("VENDOR", "SUPPLIER"), ()),
    ("LEGAL_COUNSEL", ("LEGAL",), ("LAW", "LEGAL")),
    ("AUDITOR", ("AUDIT",), ("AUDIT", "ACCOUNTING")),
)
_ACCOUNTING_TYPE_KEYWORDS: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
    ("LEGAL_COUNSEL", ("LEGAL",), ("LAW",)),
    ("AUDITOR", ("AUDIT",), ("AUDIT",)),
    ("SERVICE_PROVIDER", ("CONSULTING",), ("ADVISORY",)),
    ("LENDER", ("BANK", "INTEREST"), ()),
)


def name_key(name: str) -> str:
    """Normalize a counterparty name into its grouping key."""
    return _NON_ALPHANUMERIC.sub("", name).upper()


def counterparty_id(key: str) -> str:
    """Build the canonical counterparty id for a name key."""
    return f"{ENTITY_KIND_COUNTERPARTY}-{key}"


def infer_counterparty_type(record: SourceRecord) -> str:
    """Return the row's counterparty type, inferring it from keywords when absent.

    CRM rows match ``contact_type`` and company name keywords. Accounting
    rows match ``account_name`` and payee name keywords and default to
    ``VENDOR``. Portfolio-management rows default to ``LENDER``.
    """
    explicit = to_label(record.get("counterparty_type"))
    if explicit:
        return explicit
    name = to_label(record.get("counterparty_name")) or ""
    if record.vendor == VENDOR_CRM:
        category = to_label(record.get("contact_type")) or ""
        return _match_keywords(_CRM_TYPE_KEYWORDS, category, name) or "OTHER"
    if "ACCOUNTING" in record.vendor:
        account = to_label(record.get("account_name")) or ""
        return _match_keywords(_ACCOUNTING_TYPE_KEYWORDS, account, name) or "VENDOR"
    return "LENDER"


def consolidate_counterparties(records: Iterable[SourceRecord]) -> list[SourceRecord]:
    """Fold counterparty rows into one row per normalized name.

    Args:
        records: Counterparty rows from any vendor, any cardinality.

    Returns:
        Consolidated rows in order of each key's first appearance. The
        ``vendor_id`` of each row is its name key.
    """
    groups: dict[str, list[SourceRecord]] = {}
    for record in records:
        raw_name = record.get("counterparty_name")
        if raw_name is None or not name_key(str(raw_name)):
            continue
        groups.setdefault(name_key(str(raw_name)), []).append(record)
    return [_consolidate_group(key, rows) for key, rows in groups.items()]


def _consolidate_group(key: str, rows: Sequence[SourceRecord]) -> SourceRecord:
    crm_first = sorted(rows, key=_vendor_rank)
    anchor = min(rows, key=lambda row: (_vendor_rank(row), _date_or_max(row, "created_date")))
    attributes: dict[str, object] = {
        "canonical_counterparty_id": counterparty_id(key),
        "counterparty_name": anchor.get("counterparty_name"),
        "counterparty_type": _ranked_type(rows),
        "relationship_status": _latest_status(rows),
        "last_interaction_date": _max_date(rows, "last_interaction_date"),
        "source_systems": ", ".join(sorted({row.vendor for row in rows})),
        "source_system_count": len({row.vendor for row in rows}),
        "source_record_count": len(rows),
        "created_date": _min_date(rows, "created_date"),
        "last_modified_date": _max_date(rows, "last_modified_date"),
    }
    for field_name in _PREFERRED_FIELDS:
        attributes[field_name] = _first_present(crm_first, field_name)
    return SourceRecord(
        vendor_id=key,
        vendor=anchor.vendor,
        attributes=attributes,
        source_uri=anchor.source_uri,
    )


def _vendor_rank(record: SourceRecord) -> int:
    return 1 if record.vendor == VENDOR_CRM else 2


def _ranked_type(rows: Sequence[SourceRecord]) -> str:
    types = [infer_counterparty_type(row) for row in rows]
    return sorted(types, key=lambda value: _TYPE_RANKS.get(value, 4))[0]


def _latest_status(rows: Sequence[SourceRecord]) -> object:
    candidates = [row for row in rows if row.get("relationship_status") is not None]
    if not candidates:
        return None
    dated = [row for row in candidates if to_date(row.get("last_modified_date")) is not None]
    if not dated:
        return candidates[0].get("relationship_status")
    latest = max(dated, key=lambda row: _date_or_max(row, "last_modified_date"))
    return latest.get("relationship_status")


def _first_present(rows: Sequence[SourceRecord], field_name: str) -> object:
    for row in rows:
        value = row.get(field_name)
        if value is not None:
            return value
    return None


def _max_date(rows: Sequence[SourceRecord], field_name: str) -> date | None:
    return _fold_dates(rows, field_name, max)


def _min_date(rows: Sequence[SourceRecord], field_name: str) -> date | None:
    return _fold_dates(rows, field_name, min)


def _fold_dates(
    rows: Sequence[SourceRecord],
    field_name: str,
    reducer: Callable[[list[date]], date],
) -> date | None:
    values = [to_date(row.get(field_name)) for row in rows]
    present = [value for value in values if value is not None]
    return reducer(present) if present else None


def _date_or_max(row: SourceRecord, field_name: str) -> date:
    return to_date(row.get(field_name)) or date.max


def _match_keywords(
    table: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...],
    category: str,
    name: str,
) -> str | None:
    for counterparty_type, category_words, name_words in table:
        if any(word in category for word in category_words):
            return counterparty_type
        if any(word in name for word in name_words):
            return counterparty_type
    return None

"""Reference table loading.

This module reads cross-reference and exchange-rate tables and builds the
read-only indexes shared by every record of a run. Malformed rows are
rejected with a warning, or raise when loading strictly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, TypeVar

from core.constants import (
    CANONICAL_MARKER,
    QUALITY_HIGH,
    QUALITY_LOW,
    QUALITY_MEDIUM,
    SUPPORTED_ENTITY_KINDS,
    SUPPORTED_QUALITIES,
)
from core.errors import KeystoneReferenceDataError
from core.logging_config import get_logger
from core.types import CrossReferenceEntry, ExchangeRate
from core.values import to_date, to_float, to_label
from ingest.input_reader import read_table_rows
from transforms.identity_resolution import CrossReferenceTable
from transforms.rate_selection import RateTable

_LOGGER = get_logger(__name__)

EntryT = TypeVar("EntryT")

_CONFIDENCE_SYNONYMS = {
    "HIGH": "HIGH",
    "STRONG": "HIGH",
    "MEDIUM": "MEDIUM",
    "MODERATE": "MEDIUM",
    "LOW": "LOW",
    "WEAK": "LOW",
}
_QUALITY_SYNONYMS = {
    "HIGH": QUALITY_HIGH,
    "MEDIUM": QUALITY_MEDIUM,
    "LOW": QUALITY_LOW,
    **{quality: quality for quality in SUPPORTED_QUALITIES},
}


def load_cross_reference_table(path: str | Path, strict: bool = False) -> CrossReferenceTable:
    """Load cross-reference entries into an immutable index.

    Args:
        path: JSONL, CSV, or Parquet file (or directory of them).
        strict: Raise on the first malformed row instead of skipping it.

    Returns:
        Indexed cross-reference entries in load order.

    Raises:
        KeystoneReferenceDataError: If ``strict`` and a row is malformed.
        KeystoneIngestError: If the file cannot be read.
    """
    entries = _load_rows(Path(path), cross_reference_entry, strict, "cross_reference")
    return CrossReferenceTable(entries)


def load_rate_table(path: str | Path, strict: bool = False) -> RateTable:
    """Load dated exchange rates into an immutable index.

    Rows with a non-positive rate, or without a currency or date, are
    rejected.

    Raises:
        KeystoneReferenceDataError: If ``strict`` and a row is malformed.
        KeystoneIngestError: If the file cannot be read.
    """
    rates = _load_rows(Path(path), exchange_rate, strict, "exchange_rates")
    return RateTable(rates)


def cross_reference_entry(row: dict[str, object]) -> CrossReferenceEntry:
    """Build one cross-reference entry from a table row.

    The quality comes from an explicit ``quality`` column when present,
    otherwise it is derived from ``confidence`` and ``source_systems_count``.

    Raises:
        KeystoneReferenceDataError: If required columns are missing or the
            quality label is unknown.
    """
    entity_kind = to_label(row.get("entity_kind"))
    vendor = to_label(row.get("vendor"))
    vendor_id = _text(row.get("vendor_id"))
    canonical_id = _text(row.get("canonical_id"))
    if entity_kind is None or vendor is None or vendor_id is None or canonical_id is None:
        raise KeystoneReferenceDataError(
            "Cross-reference row needs entity_kind, vendor, vendor_id and canonical_id; "
            f"got {row}."
        )
    if entity_kind not in SUPPORTED_ENTITY_KINDS:
        raise KeystoneReferenceDataError(
            f"Unknown entity kind '{entity_kind}'. Supported kinds: {SUPPORTED_ENTITY_KINDS}."
        )
    return CrossReferenceEntry(
        entity_kind=entity_kind,
        vendor=vendor,
        vendor_id=vendor_id,
        canonical_id=canonical_id,
        quality=_entry_quality(row, entity_kind, canonical_id),
        canonical_name=_text(row.get("canonical_name")),
    )


def derive_quality(
    entity_kind: str,
    canonical_id: str,
    confidence: object,
    source_systems_count: object,
) -> str:
    """Rate a cross-reference entry from its match confidence and coverage."""
    has_prefix = canonical_id.startswith(f"{entity_kind}-{CANONICAL_MARKER}-")
    level = _CONFIDENCE_SYNONYMS.get(to_label(confidence) or "")
    systems = to_float(source_systems_count) or 0.0
    if has_prefix and level == "HIGH" and systems >= 2:
        return QUALITY_HIGH
    if has_prefix and systems >= 1:
        return QUALITY_MEDIUM
    return QUALITY_LOW


def exchange_rate(row: dict[str, object]) -> ExchangeRate:
    """Build one exchange rate from a table row.

    Raises:
        KeystoneReferenceDataError: If a column is missing or the rate is
            not positive.
    """
    from_currency = to_label(row.get("from_currency"))
    to_currency = to_label(row.get("to_currency"))
    rate = to_float(row.get("rate"))
    rate_date = to_date(row.get("rate_date"))
    if from_currency is None or to_currency is None or rate is None or rate_date is None:
        raise KeystoneReferenceDataError(
            f"Exchange-rate row needs from_currency, to_currency, rate and rate_date; got {row}."
        )
    return ExchangeRate(
        from_currency=from_currency,
        to_currency=to_currency,
        rate=rate,
        rate_date=rate_date,
    )


def _entry_quality(row: dict[str, object], entity_kind: str, canonical_id: str) -> str | None:
    if "quality" in row:
        label = to_label(row.get("quality"))
        if label is None:
            return None
        quality = _QUALITY_SYNONYMS.get(label)
        if quality is None:
            raise KeystoneReferenceDataError(
                f"Unknown cross-reference quality '{label}'. "
                f"Use one of {SUPPORTED_QUALITIES} or leave it empty."
            )
        return quality
    if row.get("confidence") is None and row.get("source_systems_count") is None:
        return None
    return derive_quality(
        entity_kind, canonical_id, row.get("confidence"), row.get("source_systems_count")
    )


def _load_rows(
    path: Path,
    build: Callable[[dict[str, object]], EntryT],
    strict: bool,
    table_name: str,
) -> list[EntryT]:
    entries: list[EntryT] = []
    rejected = 0
    for row_uri, row in read_table_rows(path):
        try:
            entries.append(build(row))
        except KeystoneReferenceDataError as error:
            if strict:
                raise KeystoneReferenceDataError(f"{row_uri}: {error}") from error
            rejected += 1
            _LOGGER.debug("reference_row_rejected", row_uri=row_uri, reason=str(error))
    if rejected:
        _LOGGER.warning(
            "reference_rows_rejected",
            table_name=table_name,
            path=str(path),
            rejected_count=rejected,
        )
    _LOGGER.info(
        "reference_table_loaded", table_name=table_name, path=str(path), row_count=len(entries)
    )
    return entries


def _text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None

"""Per-record normalization through an entity model.

This module maps one sanitized source record to one normalized record:
typed attributes, resolved identities, staging derivations, currency
conversion, classification, and a content fingerprint, in that order.
Snapshot windows run over the whole record set before per-record work.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Hashable, Iterable, Sequence

from core.types import NormalizedRecord, ProcessingContext, SourceRecord
from core.values import to_bool, to_date, to_float, to_label
from entity_models.base import AS_OF_FIELD, EntityModel, SnapshotWindow
from transforms.currency_normalization import normalize_group
from transforms.fingerprint import fingerprint
from transforms.identity_resolution import CrossReferenceTable, is_placeholder
from transforms.rate_selection import RateTable, select_rate
from transforms.temporal_window import (
    growth_metrics,
    latest_per_entity,
    previous_year_same_quarter,
    prior_period,
)

RECORD_HASH_FIELD = "record_hash"
CONVERTED_FIELD = "currency_converted"
RATE_MISSING_FIELD = "fx_rate_missing"


@dataclass(frozen=True)
class ReferenceData:
    """Reference tables shared read-only by every record of a run.

    Attributes:
        cross_reference: Indexed cross-reference entries.
        rates: Indexed exchange rates.
    """

    cross_reference: CrossReferenceTable
    rates: RateTable


def empty_reference_data() -> ReferenceData:
    """Reference data with no entries; every identity becomes a placeholder."""
    return ReferenceData(cross_reference=CrossReferenceTable(()), rates=RateTable(()))


def prepare_record(record: SourceRecord, model: EntityModel) -> SourceRecord:
    """Coerce declared attribute types and substitute declared defaults."""
    values = dict(record.attributes)
    for name in model.date_fields:
        values[name] = to_date(values.get(name))
    for name in model.numeric_fields:
        values[name] = to_float(values.get(name))
    for name in model.label_fields:
        values[name] = to_label(values.get(name))
    for name in model.flag_fields:
        values[name] = to_bool(values.get(name))
    for name, default in model.defaults.items():
        if values.get(name) is None:
            values[name] = default
    return replace(record, attributes=values)


def apply_snapshot_window(
    records: Sequence[SourceRecord],
    window: SnapshotWindow,
) -> list[SourceRecord]:
    """Keep the latest period per entity and attach year-over-year growth.

    Rows without an entity or a reporting year are ignored. A missing
    quarter ranks as 0 for recency but never matches a prior period.
    Output keeps the input order of the selected rows.
    """
    eligible = [
        record
        for record in records
        if record.get(window.entity_field) is not None
        and to_float(record.get(window.year_field)) is not None
    ]
    entity_key = _entity_key(window)
    period_key = _period_key(window)
    by_entity: dict[Hashable, list[SourceRecord]] = {}
    for record in eligible:
        by_entity.setdefault(entity_key(record), []).append(record)
    latest = latest_per_entity(eligible, entity_key, period_key)
    selected: list[SourceRecord] = []
    for record in eligible:
        entity = entity_key(record)
        if latest[entity] is not record:
            continue
        prior = None
        if to_float(record.get(window.quarter_field)) is not None:
            prior = prior_period(
                by_entity[entity],
                entity,
                period_key(record),
                entity_key,
                period_key,
                previous_year_same_quarter,
            )
        growth = growth_metrics(
            record.attributes,
            prior.attributes if prior is not None else None,
            window.growth_fields,
        )
        selected.append(replace(record, attributes={**record.attributes, **growth}))
    return selected


def normalize_record(
    record: SourceRecord,
    model: EntityModel,
    reference: ReferenceData,
    context: ProcessingContext,
) -> NormalizedRecord:
    """Normalize one prepared source record.

    Args:
        record: Record already passed through :func:`prepare_record`.
        model: Entity model to apply.
        reference: Cross-reference and rate tables.
        context: Run as-of date and base currency.

    Returns:
        Normalized record with flat output fields and fingerprint.
    """
    values: dict[str, object] = dict(record.attributes)
    values[AS_OF_FIELD] = context.as_of_date
    values["vendor_id"] = record.vendor_id
    values["source_system"] = record.vendor
    _resolve_identities(values, record, model, reference)
    if model.staging is not None:
        values.update(model.staging.apply(values))
    converted, fx_rate = _convert_currencies(values, model, reference, context)
    values.update(model.plan.apply(values))
    record_hash = fingerprint(values, model.fingerprint_fields)
    values[RECORD_HASH_FIELD] = record_hash
    canonical_id = values.get(model.primary_field)
    return NormalizedRecord(
        model_name=model.name,
        record_id=record.vendor_id,
        vendor=record.vendor,
        canonical_id=None if canonical_id is None else str(canonical_id),
        fields=values,
        converted=converted,
        fx_rate=fx_rate,
        fingerprint=record_hash,
    )


def is_placeholder_record(record: NormalizedRecord, model: EntityModel) -> bool:
    """Return whether the record's primary identity was synthesized."""
    if record.canonical_id is None or not model.identities:
        return False
    return is_placeholder(record.canonical_id, model.identities[0].entity_kind)


def _resolve_identities(
    values: dict[str, object],
    record: SourceRecord,
    model: EntityModel,
    reference: ReferenceData,
) -> None:
    for binding in model.identities:
        raw_id = values.get(binding.source_field)
        vendor_id = "" if raw_id is None else str(raw_id).strip()
        if not vendor_id:
            values[binding.output_field] = None
            continue
        entity = reference.cross_reference.resolve(
            binding.entity_kind, binding.vendor or record.vendor, vendor_id
        )
        values[binding.output_field] = entity.canonical_id


def _convert_currencies(
    values: dict[str, object],
    model: EntityModel,
    reference: ReferenceData,
    context: ProcessingContext,
) -> tuple[bool, float | None]:
    def select(from_currency: str, to_currency: str, as_of: date) -> float | None:
        return select_rate(from_currency, to_currency, as_of, reference.rates)

    converted = False
    rate_missing = False
    primary_rate: float | None = None
    for position, group in enumerate(model.currency_groups):
        result = normalize_group(values, group, context, select)
        values.update(result.amounts)
        values[group.currency_field] = result.currency
        values[group.rate_field] = result.rate
        converted = converted or result.converted
        rate_missing = rate_missing or result.rate_missing
        if position == 0:
            primary_rate = result.rate
    values[CONVERTED_FIELD] = converted
    values[RATE_MISSING_FIELD] = rate_missing
    return converted, primary_rate


def _entity_key(window: SnapshotWindow):
    def _key(record: SourceRecord) -> Hashable:
        return str(record.get(window.entity_field))

    return _key


def _period_key(window: SnapshotWindow):
    def _key(record: SourceRecord) -> tuple[int, int]:
        year = to_float(record.get(window.year_field))
        quarter = to_float(record.get(window.quarter_field))
        return (int(year or 0), int(quarter or 0))

    return _key


def records_by_partition(
    records: Iterable[SourceRecord],
    partition_field: str | None,
) -> dict[str, list[tuple[int, SourceRecord]]]:
    """Group records by partition value, keeping each record's input position."""
    partitions: dict[str, list[tuple[int, SourceRecord]]] = {}
    for position, record in enumerate(records):
        key = "" if partition_field is None else str(record.get(partition_field))
        partitions.setdefault(key, []).append((position, record))
    return partitions

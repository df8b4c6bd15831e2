"""Shared typed models.

This module defines immutable data models used by ingest, transforms,
store, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping

from core.errors import KeystoneReferenceDataError


@dataclass(frozen=True)
class SourceRecord:
    """Sanitized row from one vendor system.

    Attributes:
        vendor_id: Vendor-scoped identifier of the row.
        vendor: Vendor system tag, e.g. ``CRM_VENDOR``.
        attributes: Typed attribute values; ``None`` means absent.
        source_uri: Origin file and line for traceability.
    """

    vendor_id: str
    vendor: str
    attributes: Mapping[str, object]
    source_uri: str = ""

    def get(self, field_name: str) -> object:
        """Return one attribute value, ``None`` when absent."""
        return self.attributes.get(field_name)


@dataclass(frozen=True)
class CrossReferenceEntry:
    """Association of one vendor identifier with a canonical identifier.

    Attributes:
        entity_kind: Entity kind prefix, e.g. ``COMP`` or ``FUND``.
        vendor: Vendor system the identifier belongs to.
        vendor_id: Vendor-scoped identifier.
        canonical_id: Canonical entity identifier.
        quality: Quality rating, ``None`` when unresolved.
        canonical_name: Optional display name of the canonical entity.
    """

    entity_kind: str
    vendor: str
    vendor_id: str
    canonical_id: str
    quality: str | None
    canonical_name: str | None = None


@dataclass(frozen=True)
class ExchangeRate:
    """One dated currency-pair rate.

    Attributes:
        from_currency: Source currency code.
        to_currency: Target currency code.
        rate: Multiplier converting one source unit into target units.
        rate_date: Date the rate became valid.
    """

    from_currency: str
    to_currency: str
    rate: float
    rate_date: date

    def __post_init__(self) -> None:
        if not self.rate > 0:
            raise KeystoneReferenceDataError(
                f"Exchange rate {self.from_currency}->{self.to_currency} on "
                f"{self.rate_date.isoformat()} must be positive, got {self.rate}."
            )


@dataclass(frozen=True)
class CanonicalEntity:
    """Resolved identity of a vendor identifier.

    Attributes:
        entity_kind: Entity kind prefix.
        vendor_id: Vendor identifier that was resolved.
        canonical_id: Matched canonical id or synthesized placeholder.
        matched: ``True`` when a cross-reference entry was used.
    """

    entity_kind: str
    vendor_id: str
    canonical_id: str
    matched: bool


@dataclass(frozen=True)
class ProcessingContext:
    """Explicit clock and currency for one run.

    Attributes:
        as_of_date: Date recency and rate selection are measured against.
        base_currency: Currency all amounts normalize into.
    """

    as_of_date: date
    base_currency: str = "USD"


@dataclass(frozen=True)
class NormalizedRecord:
    """Source record enriched with identity, currency, trend, and tiers.

    Attributes:
        model_name: Entity model that produced the record.
        record_id: Vendor-scoped identifier carried from the source row.
        vendor: Vendor tag carried from the source row.
        canonical_id: Canonical id of the primary entity, ``None`` when unidentified.
        fields: Flat output fields including tiers, scores, and USD amounts.
        converted: Whether any amount was converted with a table rate.
        fx_rate: Rate of the primary currency group, ``None`` when absent.
        fingerprint: Content hash over the model's declared fields.
    """

    model_name: str
    record_id: str
    vendor: str
    canonical_id: str | None
    fields: Mapping[str, object]
    converted: bool
    fx_rate: float | None
    fingerprint: str


@dataclass(frozen=True)
class NormalizeOptions:
    """Options for one normalization run.

    Attributes:
        model_name: Registered entity model name.
        source_uri: Source file or directory of sanitized rows.
        xref_uri: Optional cross-reference table file.
        rates_uri: Optional exchange-rate table file.
        vendor: Vendor tag used when rows carry no ``source_system``.
        as_of_date: Processing date override.
        incremental: Compare fingerprints against the latest run.
        skip_invalid: Drop rows without identifiers instead of failing.
        max_workers: Worker override; config value when ``None``.
    """

    model_name: str
    source_uri: str
    xref_uri: str | None = None
    rates_uri: str | None = None
    vendor: str | None = None
    as_of_date: date | None = None
    incremental: bool = False
    skip_invalid: bool = False
    max_workers: int | None = None


@dataclass(frozen=True)
class RunManifest:
    """Immutable metadata for one persisted normalization run.

    Attributes:
        model_name: Entity model name.
        run_id: Immutable run id.
        created_at: UTC creation timestamp.
        as_of_date: Processing date used by the run.
        parent_run: Run compared against for incremental detection.
        record_count: Number of normalized records.
        converted_count: Records with at least one converted amount.
        placeholder_count: Records whose primary identity was synthesized.
        change_counts: Counts keyed by ``new``, ``changed``, ``unchanged``, ``removed``.
    """

    model_name: str
    run_id: str
    created_at: datetime
    as_of_date: date
    parent_run: str | None
    record_count: int
    converted_count: int
    placeholder_count: int
    change_counts: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RunWriteRequest:
    """Payload required to persist one normalization run.

    Attributes:
        model_name: Entity model name.
        records: Normalized records in output order.
        as_of_date: Processing date used by the run.
        parent_run: Run compared against for incremental detection.
        placeholder_count: Records whose primary identity was synthesized.
        changes: Record ids keyed by ``new``, ``changed``, ``unchanged``, ``removed``.
    """

    model_name: str
    records: tuple[NormalizedRecord, ...]
    as_of_date: date
    parent_run: str | None = None
    placeholder_count: int = 0
    changes: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

"""Entity model declarations and shared plan-step builders.

An entity model is a declarative description: which identifiers resolve
to which canonical entities, which amounts share a currency tag, how
snapshot rows are windowed, and which classification plan runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping, Sequence

from core.types import SourceRecord
from core.values import count_present, days_between, safe_ratio, to_date
from transforms.currency_normalization import CurrencyGroup
from transforms.predicates import Row
from transforms.rule_cascade import ClassificationPlan, DerivedStep, derived

AS_OF_FIELD = "as_of_date"


@dataclass(frozen=True)
class IdentityBinding:
    """Resolution of one vendor identifier attribute.

    Attributes:
        entity_kind: Entity kind prefix, e.g. ``FUND``.
        source_field: Attribute holding the vendor identifier.
        output_field: Output field receiving the canonical id.
        vendor: Cross-reference vendor; the record's vendor when ``None``.
    """

    entity_kind: str
    source_field: str
    output_field: str
    vendor: str | None = None


@dataclass(frozen=True)
class SnapshotWindow:
    """Latest-period selection with year-over-year growth.

    Attributes:
        entity_field: Attribute identifying the entity being snapshotted.
        year_field: Reporting year attribute; rows without it are ignored.
        quarter_field: Reporting quarter attribute.
        growth_fields: ``source field -> growth output field`` pairs.
    """

    entity_field: str
    year_field: str
    quarter_field: str
    growth_fields: Mapping[str, str]


@dataclass(frozen=True)
class EntityModel:
    """Declarative normalization model for one entity or event kind.

    Attributes:
        name: Registry name.
        description: One-line summary shown by the CLI.
        id_field: Attribute holding the vendor-scoped record identifier.
        default_vendor: Vendor tag used when rows carry none.
        primary_field: Output field holding the record's canonical id.
        plan: Ordered classification plan.
        fingerprint_fields: Ordered fields hashed into ``record_hash``.
        identities: Identifier bindings resolved before conversion.
        currency_groups: Amount groups sharing one currency tag.
        date_fields: Attributes coerced into dates when read.
        numeric_fields: Attributes coerced into numbers when read.
        label_fields: Attributes coerced into trimmed upper-case labels when read.
        flag_fields: Attributes coerced into booleans when read.
        defaults: Values substituted for absent attributes before processing.
        staging: Plan evaluated before currency conversion; its outputs feed
            the currency groups and the classification plan.
        partition_field: Attribute used to partition work across workers.
        window: Optional snapshot window applied before classification.
        consolidator: Optional row consolidation applied before everything else.
    """

    name: str
    description: str
    id_field: str
    default_vendor: str
    primary_field: str
    plan: ClassificationPlan
    fingerprint_fields: tuple[str, ...]
    identities: tuple[IdentityBinding, ...] = ()
    currency_groups: tuple[CurrencyGroup, ...] = ()
    date_fields: tuple[str, ...] = ()
    numeric_fields: tuple[str, ...] = ()
    label_fields: tuple[str, ...] = ()
    flag_fields: tuple[str, ...] = ()
    defaults: Mapping[str, object] = field(default_factory=dict)
    staging: ClassificationPlan | None = None
    partition_field: str | None = None
    window: SnapshotWindow | None = None
    consolidator: Callable[[Sequence[SourceRecord]], list[SourceRecord]] | None = None


def completeness(output: str, fields: Sequence[str]) -> DerivedStep:
    """Percentage of ``fields`` that are present."""
    names = tuple(fields)

    def _compute(row: Row) -> float:
        return count_present(row.get(name) for name in names) / len(names) * 100

    return derived(output, names, _compute)


def days_since(output: str, date_field: str) -> DerivedStep:
    """Whole days from ``date_field`` to the run as-of date."""

    def _compute(row: Row) -> int | None:
        return days_between(to_date(row.get(date_field)), to_date(row.get(AS_OF_FIELD)))

    return derived(output, (date_field, AS_OF_FIELD), _compute)


def ratio(output: str, numerator: str, denominator: str, scale: float = 1.0) -> DerivedStep:
    """``numerator / denominator * scale`` when the denominator is positive."""

    def _compute(row: Row) -> float | None:
        return safe_ratio(row.get(numerator), row.get(denominator), scale)

    return derived(output, (numerator, denominator), _compute)


def fill_missing(
    output: str,
    fields: Sequence[str],
    compute: Callable[[Row], object],
) -> DerivedStep:
    """Keep a provided ``output`` value, computing it only when absent."""

    def _compute(row: Row) -> object:
        provided = row.get(output)
        return provided if provided is not None else compute(row)

    return derived(output, tuple(fields), _compute)

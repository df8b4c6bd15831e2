"""Ranked temporal windows over per-entity record sets.

This module selects the latest row per entity and the exact prior
period of a row, and computes period-over-period growth metrics.
"""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, Mapping, TypeVar

from core.values import to_float

RecordT = TypeVar("RecordT")
OrderKey = tuple[object, ...]


def latest_per_entity(
    records: Iterable[RecordT],
    entity_key: Callable[[RecordT], Hashable],
    order_key: Callable[[RecordT], OrderKey],
) -> dict[Hashable, RecordT]:
    """Select the record with the maximum order key per entity.

    Ties on the order key resolve to the last record in input order.
    Entity insertion order follows first appearance in ``records``.
    """
    latest: dict[Hashable, RecordT] = {}
    latest_keys: dict[Hashable, OrderKey] = {}
    for record in records:
        entity = entity_key(record)
        key = order_key(record)
        current_key = latest_keys.get(entity)
        if current_key is None or key >= current_key:
            latest[entity] = record
            latest_keys[entity] = key
    return latest


def prior_period(
    records: Iterable[RecordT],
    entity_id: Hashable,
    current_period: OrderKey,
    entity_key: Callable[[RecordT], Hashable],
    period_key: Callable[[RecordT], OrderKey],
    period_offset: Callable[[OrderKey], OrderKey],
) -> RecordT | None:
    """Return the entity's record whose period equals the offset period.

    Only an exact match on ``period_offset(current_period)`` is returned;
    the last matching record in input order wins.
    """
    target = period_offset(current_period)
    match: RecordT | None = None
    for record in records:
        if entity_key(record) == entity_id and period_key(record) == target:
            match = record
    return match


def previous_year_same_quarter(period: OrderKey) -> OrderKey:
    """Offset a ``(year, quarter)`` period by one year."""
    year, quarter = period
    return (int(year) - 1, quarter)  # type: ignore[call-overload]


def growth_rate(current: object, prior: object) -> float | None:
    """Return ``(current - prior) / prior * 100`` when prior is positive."""
    current_value = to_float(current)
    prior_value = to_float(prior)
    if current_value is None or prior_value is None or prior_value <= 0:
        return None
    return (current_value - prior_value) / prior_value * 100


def growth_metrics(
    current: Mapping[str, object],
    prior: Mapping[str, object] | None,
    metric_fields: Mapping[str, str],
) -> dict[str, float | None]:
    """Compute growth for each ``source field -> output field`` pair."""
    metrics: dict[str, float | None] = {}
    for source_field, output_field in metric_fields.items():
        prior_value = prior.get(source_field) if prior is not None else None
        metrics[output_field] = growth_rate(current.get(source_field), prior_value)
    return metrics

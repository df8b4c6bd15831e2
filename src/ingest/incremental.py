"""Incremental change detection against a prior run.

This module compares record fingerprints of the current run with the
latest persisted run of the same model and classifies every record id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from core.types import NormalizedRecord

CHANGE_KINDS = ("new", "changed", "unchanged", "removed")


@dataclass(frozen=True)
class ChangeSet:
    """Record ids classified against a prior run.

    Attributes:
        new: Ids absent from the prior run.
        changed: Ids present in both runs with different fingerprints.
        unchanged: Ids present in both runs with identical fingerprints.
        removed: Ids present only in the prior run.
    """

    new: tuple[str, ...]
    changed: tuple[str, ...]
    unchanged: tuple[str, ...]
    removed: tuple[str, ...]

    def as_mapping(self) -> dict[str, tuple[str, ...]]:
        """Return ids keyed by change kind."""
        return {kind: getattr(self, kind) for kind in CHANGE_KINDS}

    def counts(self) -> dict[str, int]:
        """Return the number of ids per change kind."""
        return {kind: len(ids) for kind, ids in self.as_mapping().items()}


def detect_changes(
    records: Sequence[NormalizedRecord],
    previous_records: Sequence[NormalizedRecord] | None,
) -> ChangeSet:
    """Classify current records against the prior run's records.

    Args:
        records: Records produced by the current run.
        previous_records: Records of the latest prior run, ``None`` when none.

    Returns:
        Change classification; every id is ``new`` without a prior run.
    """
    previous = {record.record_id: record.fingerprint for record in previous_records or ()}
    new: list[str] = []
    changed: list[str] = []
    unchanged: list[str] = []
    seen: set[str] = set()
    for record in records:
        if record.record_id in seen:
            continue
        seen.add(record.record_id)
        prior_fingerprint = previous.get(record.record_id)
        if prior_fingerprint is None:
            new.append(record.record_id)
        elif prior_fingerprint == record.fingerprint:
            unchanged.append(record.record_id)
        else:
            changed.append(record.record_id)
    removed = [record_id for record_id in previous if record_id not in seen]
    return ChangeSet(
        new=tuple(new),
        changed=tuple(changed),
        unchanged=tuple(unchanged),
        removed=tuple(removed),
    )

"""Vendor identifier to canonical entity resolution.

This module maps vendor-scoped identifiers onto canonical entity ids
through cross-reference entries. Unmatched identifiers resolve to a
deterministic placeholder so every record keeps a canonical id.
"""

from __future__ import annotations

from typing import Iterable

from core.constants import PLACEHOLDER_MARKER, RESOLVABLE_QUALITIES
from core.errors import KeystoneTransformError
from core.types import CanonicalEntity, CrossReferenceEntry


def placeholder_id(entity_kind: str, vendor_id: str) -> str:
    """Build the stable placeholder id for an unmatched vendor identifier."""
    return f"{entity_kind}-{PLACEHOLDER_MARKER}-{vendor_id}"


def is_placeholder(canonical_id: str, entity_kind: str) -> bool:
    """Return whether a canonical id was synthesized for ``entity_kind``."""
    return canonical_id.startswith(f"{entity_kind}-{PLACEHOLDER_MARKER}-")


def resolve(
    entity_kind: str,
    vendor_id: str,
    entries: Iterable[CrossReferenceEntry],
) -> CanonicalEntity:
    """Resolve one vendor identifier against candidate entries.

    Only entries rated HIGH or MEDIUM quality participate. When several
    qualify, the first encountered wins.

    Args:
        entity_kind: Entity kind prefix, e.g. ``FUND``.
        vendor_id: Vendor-scoped identifier; must be non-empty.
        entries: Candidate cross-reference entries for the identifier.

    Returns:
        Matched canonical entity or deterministic placeholder.

    Raises:
        KeystoneTransformError: If ``vendor_id`` is empty.
    """
    if not vendor_id:
        raise KeystoneTransformError(
            f"Cannot resolve {entity_kind} identity without a vendor id. "
            "Reject rows with null identifiers before normalization."
        )
    for entry in entries:
        if entry.vendor_id != vendor_id or entry.entity_kind != entity_kind:
            continue
        if entry.quality in RESOLVABLE_QUALITIES:
            return CanonicalEntity(
                entity_kind=entity_kind,
                vendor_id=vendor_id,
                canonical_id=entry.canonical_id,
                matched=True,
            )
    return CanonicalEntity(
        entity_kind=entity_kind,
        vendor_id=vendor_id,
        canonical_id=placeholder_id(entity_kind, vendor_id),
        matched=False,
    )


class CrossReferenceTable:
    """Read-only index of cross-reference entries.

    Entries are keyed by ``(entity_kind, vendor, vendor_id)`` and keep
    their load order, so the first qualifying entry of a key wins.
    """

    def __init__(self, entries: Iterable[CrossReferenceEntry]) -> None:
        self._entries: dict[tuple[str, str, str], list[CrossReferenceEntry]] = {}
        self._size = 0
        for entry in entries:
            key = (entry.entity_kind, entry.vendor, entry.vendor_id)
            self._entries.setdefault(key, []).append(entry)
            self._size += 1

    def __len__(self) -> int:
        return self._size

    def candidates(
        self, entity_kind: str, vendor: str, vendor_id: str
    ) -> tuple[CrossReferenceEntry, ...]:
        """Return entries recorded for one vendor identifier in load order."""
        return tuple(self._entries.get((entity_kind, vendor, vendor_id), ()))

    def resolve(self, entity_kind: str, vendor: str, vendor_id: str) -> CanonicalEntity:
        """Resolve one vendor identifier against the indexed entries."""
        return resolve(entity_kind, vendor_id, self.candidates(entity_kind, vendor, vendor_id))

"""Deterministic content fingerprints for change detection.

This module hashes the canonical, type-tagged string form of selected
fields in declared order. It detects content changes between runs and
is not a security primitive.
"""

from __future__ import annotations

from datetime import date, datetime
import hashlib
import math
from typing import Mapping, Sequence

from core.constants import FINGERPRINT_NULL_TOKEN, FINGERPRINT_SEPARATOR, HASH_ALGORITHM


def fingerprint(values: Mapping[str, object], field_list: Sequence[str]) -> str:
    """Hash the canonical form of ``field_list`` values.

    Args:
        values: Record values; missing keys hash like nulls.
        field_list: Ordered field names to include.

    Returns:
        Hex digest that is stable across runs and processes.
    """
    tokens = [_length_prefixed(canonical_token(values.get(name))) for name in field_list]
    digest = hashlib.new(HASH_ALGORITHM)
    digest.update(FINGERPRINT_SEPARATOR.join(tokens).encode("utf-8"))
    return digest.hexdigest()


def canonical_token(value: object) -> str:
    """Return a type-stable string form of one value.

    Integers and integral floats with equal value share a token so a
    re-read ``1.0`` does not look like a change from ``1``. Integers keep
    full precision.
    """
    if value is None:
        return FINGERPRINT_NULL_TOKEN
    if isinstance(value, bool):
        return f"b:{'true' if value else 'false'}"
    if isinstance(value, int):
        return f"n:{value}"
    if isinstance(value, float):
        if math.isnan(value):
            return FINGERPRINT_NULL_TOKEN
        if value.is_integer():
            return f"n:{int(value)}"
        return f"n:{value!r}"
    if isinstance(value, datetime):
        return f"t:{value.isoformat()}"
    if isinstance(value, date):
        return f"d:{value.isoformat()}"
    return f"s:{value}"


def _length_prefixed(token: str) -> str:
    return f"{len(token)}:{token}"

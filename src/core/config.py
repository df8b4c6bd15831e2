"""Runtime configuration model for Keystone.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import os
from pathlib import Path

from core.constants import DEFAULT_DATA_ROOT, DEFAULT_MAX_WORKERS
from core.errors import KeystoneConfigError


@dataclass(frozen=True)
class KeystoneConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for run outputs and catalogs.
        as_of_date: Processing date; ``None`` means the run start date.
        max_workers: Partition worker count for record processing.
    """

    data_root: Path
    as_of_date: date | None
    max_workers: int

    @classmethod
    def from_env(cls) -> "KeystoneConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            KeystoneConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("KEYSTONE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        as_of_value = os.getenv("KEYSTONE_AS_OF_DATE")
        as_of_date = parse_as_of_date(as_of_value) if as_of_value else None
        max_workers = _parse_max_workers(
            os.getenv("KEYSTONE_MAX_WORKERS", str(DEFAULT_MAX_WORKERS))
        )
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            as_of_date=as_of_date,
            max_workers=max_workers,
        )


def parse_as_of_date(raw_value: str) -> date:
    """Parse the processing as-of date.

    Args:
        raw_value: ISO formatted date string.

    Returns:
        Parsed date.

    Raises:
        KeystoneConfigError: If value is not an ISO date.
    """
    try:
        return date.fromisoformat(raw_value.strip())
    except ValueError as error:
        raise KeystoneConfigError(
            "Invalid KEYSTONE_AS_OF_DATE value: "
            f"expected YYYY-MM-DD, got '{raw_value}'. "
            "Set KEYSTONE_AS_OF_DATE to an ISO date or unset it."
        ) from error


def _parse_max_workers(raw_value: str) -> int:
    try:
        max_workers = int(raw_value)
    except ValueError as error:
        raise KeystoneConfigError(
            "Invalid KEYSTONE_MAX_WORKERS value: "
            f"expected integer, got '{raw_value}'. "
            "Set KEYSTONE_MAX_WORKERS to a positive number."
        ) from error
    if max_workers < 1:
        raise KeystoneConfigError(
            f"Invalid KEYSTONE_MAX_WORKERS value {max_workers}: must be at least 1."
        )
    return max_workers

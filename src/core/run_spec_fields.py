"""Type-safe field parsing helpers for run-spec execution.

This module centralizes primitive parsing so run-spec executors can stay
concise and produce consistent validation errors across CLI and SDK flows.
"""

from __future__ import annotations

from datetime import date
from typing import Mapping

from core.errors import KeystoneRunSpecError


def required_string(args: Mapping[str, object], field_name: str) -> str:
    """Read a required string field from a run-spec step."""
    value = optional_string(args, field_name)
    if value is None:
        raise KeystoneRunSpecError(f"Run-spec step is missing required field '{field_name}'.")
    return value


def optional_string(args: Mapping[str, object], field_name: str) -> str | None:
    """Read an optional string field from a run-spec step."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    raise KeystoneRunSpecError(f"Run-spec field '{field_name}' must be a string when provided.")


def optional_int(args: Mapping[str, object], field_name: str) -> int | None:
    """Read an optional positive integer field from a run-spec step."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise KeystoneRunSpecError(f"Run-spec field '{field_name}' must be an integer.")
    if value < 1:
        raise KeystoneRunSpecError(f"Run-spec field '{field_name}' must be at least 1.")
    return value


def optional_bool(
    args: Mapping[str, object],
    field_name: str,
    default_value: bool,
) -> bool:
    """Read an optional boolean field from a run-spec step."""
    value = args.get(field_name)
    if value is None:
        return default_value
    if isinstance(value, bool):
        return value
    raise KeystoneRunSpecError(f"Run-spec field '{field_name}' must be true/false.")


def optional_date(args: Mapping[str, object], field_name: str) -> date | None:
    """Read an optional ISO date field; YAML may already have parsed it."""
    value = args.get(field_name)
    if isinstance(value, date):
        return value
    text = optional_string(args, field_name)
    if text is None:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError as error:
        raise KeystoneRunSpecError(
            f"Run-spec field '{field_name}' must be an ISO date (YYYY-MM-DD), got '{text}'."
        ) from error

"""Shared JSONL serialization for NormalizedRecord payloads.

This module centralizes NormalizedRecord JSON serialization logic.
Dates serialize as ISO strings and come back as strings on load.
"""

from __future__ import annotations

from datetime import date, datetime
import json
import math
from pathlib import Path
from typing import Any

from core.types import NormalizedRecord


def normalized_record_to_payload(record: NormalizedRecord) -> dict[str, object]:
    """Serialize NormalizedRecord into JSON-safe payload.

    Args:
        record: Normalized record instance.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "model_name": record.model_name,
        "record_id": record.record_id,
        "vendor": record.vendor,
        "canonical_id": record.canonical_id,
        "converted": record.converted,
        "fx_rate": record.fx_rate,
        "fingerprint": record.fingerprint,
        "fields": {name: json_value(value) for name, value in record.fields.items()},
    }


def normalized_record_from_payload(payload: dict[str, Any]) -> NormalizedRecord:
    """Deserialize JSON payload into NormalizedRecord.

    Args:
        payload: Serialized record payload.

    Returns:
        Parsed NormalizedRecord.
    """
    fields_payload = payload.get("fields")
    fx_rate = payload.get("fx_rate")
    canonical_id = payload.get("canonical_id")
    return NormalizedRecord(
        model_name=str(payload.get("model_name", "")),
        record_id=str(payload.get("record_id", "")),
        vendor=str(payload.get("vendor", "")),
        canonical_id=None if canonical_id is None else str(canonical_id),
        fields=dict(fields_payload) if isinstance(fields_payload, dict) else {},
        converted=bool(payload.get("converted", False)),
        fx_rate=None if fx_rate is None else float(fx_rate),
        fingerprint=str(payload.get("fingerprint", "")),
    )


def json_value(value: object) -> object:
    """Convert one field value into a JSON-compatible value."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def write_normalized_records_jsonl(records_path: Path, records: list[NormalizedRecord]) -> None:
    """Write NormalizedRecord list to JSONL file.

    Args:
        records_path: Output JSONL file path.
        records: Records to serialize.
    """
    lines = [
        json.dumps(normalized_record_to_payload(record), sort_keys=True) for record in records
    ]
    records_path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")


def read_normalized_records_jsonl(records_path: Path) -> list[NormalizedRecord]:
    """Read NormalizedRecord list from JSONL file.

    Args:
        records_path: Input JSONL file path.

    Returns:
        Parsed records.

    Raises:
        ValueError: If JSONL rows are invalid.
    """
    parsed_records: list[NormalizedRecord] = []
    for line_number, line in enumerate(records_path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        payload = _parse_payload_line(line, line_number)
        parsed_records.append(normalized_record_from_payload(payload))
    return parsed_records


def _parse_payload_line(line: str, line_number: int) -> dict[str, Any]:
    """Parse and validate one JSONL payload row.

    Args:
        line: Raw JSONL line.
        line_number: One-based line number.

    Returns:
        Parsed payload dictionary.

    Raises:
        ValueError: If JSON row is invalid.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid JSON at line {line_number}: {error.msg}") from error
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid payload at line {line_number}: expected JSON object")
    return payload

"""Source row readers for normalization.

This module loads sanitized vendor rows from local JSONL, CSV, or Parquet
files and normalizes them into typed source records for transforms.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from core.constants import SUPPORTED_SOURCE_EXTENSIONS
from core.errors import KeystoneIngestError
from core.logging_config import get_logger
from core.types import SourceRecord
from entity_models.base import EntityModel
from transforms.record_normalizer import prepare_record

_LOGGER = get_logger(__name__)

TableRow = tuple[str, dict[str, object]]


@dataclass(frozen=True)
class SourceReadResult:
    """Rows accepted and rejected by one source read.

    Attributes:
        records: Typed source records in file and line order.
        rejected_count: Rows dropped for lacking an identifier.
    """

    records: list[SourceRecord]
    rejected_count: int


def read_source_records(
    source_uri: str,
    model: EntityModel,
    vendor: str | None = None,
    skip_invalid: bool = False,
) -> SourceReadResult:
    """Load source records for one entity model.

    Args:
        source_uri: Local file or directory.
        model: Entity model declaring identifier and typed fields.
        vendor: Vendor tag for rows without a ``source_system`` column.
        skip_invalid: Drop rows without an identifier instead of failing.

    Returns:
        Accepted records and the number of rejected rows.

    Raises:
        KeystoneIngestError: If the source cannot be read, or a row lacks an
            identifier and ``skip_invalid`` is false.
    """
    records: list[SourceRecord] = []
    rejected = 0
    for row_uri, row in read_table_rows(Path(source_uri).expanduser()):
        record_id = _identifier(row.get(model.id_field))
        if record_id is None:
            if not skip_invalid:
                raise KeystoneIngestError(
                    f"Row at {row_uri} has no '{model.id_field}' value. "
                    "Fix the source row or rerun with skip_invalid enabled."
                )
            rejected += 1
            continue
        row_vendor = _identifier(row.get("source_system")) or vendor or model.default_vendor
        source_record = SourceRecord(
            vendor_id=record_id,
            vendor=row_vendor,
            attributes=row,
            source_uri=row_uri,
        )
        records.append(prepare_record(source_record, model))
    if rejected:
        _LOGGER.warning(
            "source_rows_rejected",
            source_uri=source_uri,
            model_name=model.name,
            id_field=model.id_field,
            rejected_count=rejected,
        )
    return SourceReadResult(records=records, rejected_count=rejected)


def read_table_rows(source_path: Path) -> list[TableRow]:
    """Read rows from a local file or every supported file under a directory.

    Args:
        source_path: Input file or directory.

    Returns:
        ``(row uri, row)`` pairs with strings trimmed and blanks as ``None``.

    Raises:
        KeystoneIngestError: If path is missing, unsupported, or unreadable.
    """
    if not source_path.exists():
        raise KeystoneIngestError(
            f"Failed to read source at {source_path}: path does not exist. "
            "Provide an existing file or directory."
        )
    if source_path.is_file():
        return _read_file_rows(source_path)
    rows: list[TableRow] = []
    files = [path for path in sorted(source_path.rglob("*")) if _is_supported_file(path)]
    if not files:
        raise KeystoneIngestError(
            f"No readable table files found under {source_path}. "
            f"Supported extensions: {SUPPORTED_SOURCE_EXTENSIONS}."
        )
    for file_path in files:
        rows.extend(_read_file_rows(file_path))
    return rows


def _read_file_rows(file_path: Path) -> list[TableRow]:
    suffix = file_path.suffix.lower()
    if suffix == ".jsonl":
        return _read_jsonl_rows(file_path)
    if suffix == ".csv":
        return _read_csv_rows(file_path)
    if suffix == ".parquet":
        return _read_parquet_rows(file_path)
    raise KeystoneIngestError(
        f"Unsupported source file {file_path}. "
        f"Supported extensions: {SUPPORTED_SOURCE_EXTENSIONS}."
    )


def _read_jsonl_rows(file_path: Path) -> list[TableRow]:
    """Read JSON object rows from JSONL input.

    Raises:
        KeystoneIngestError: If a line is not a JSON object.
    """
    rows: list[TableRow] = []
    for line_number, line in enumerate(_read_text(file_path).splitlines(), 1):
        if not line.strip():
            continue
        payload = _parse_jsonl_line(file_path, line, line_number)
        rows.append((f"{file_path}:{line_number}", _sanitize(payload)))
    return rows


def _read_csv_rows(file_path: Path) -> list[TableRow]:
    reader = csv.DictReader(_read_text(file_path).splitlines())
    return [
        (f"{file_path}:{line_number}", _sanitize(dict(row)))
        for line_number, row in enumerate(reader, 2)
    ]


def _read_parquet_rows(file_path: Path) -> list[TableRow]:
    try:
        table = pq.read_table(file_path)
    except (pa.ArrowException, OSError) as error:
        raise KeystoneIngestError(
            f"Failed to read Parquet source at {file_path}: {error}. "
            "Check that the file is a valid Parquet table."
        ) from error
    return [
        (f"{file_path}:{row_number}", _sanitize(row))
        for row_number, row in enumerate(table.to_pylist(), 1)
    ]


def _read_text(file_path: Path) -> str:
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise KeystoneIngestError(
            f"Failed to read source file {file_path}: {error}. "
            "Check the file exists and is UTF-8 encoded."
        ) from error


def _parse_jsonl_line(file_path: Path, line: str, line_number: int) -> dict[str, Any]:
    """Parse and validate a JSONL row.

    Raises:
        KeystoneIngestError: If line is invalid.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise KeystoneIngestError(
            f"Failed to parse JSONL record at {file_path}:{line_number}: "
            f"{error.msg}. Fix the JSON syntax and retry."
        ) from error
    if not isinstance(payload, dict):
        raise KeystoneIngestError(
            f"Invalid JSONL record at {file_path}:{line_number}: "
            "expected a JSON object per line."
        )
    return payload


def _sanitize(row: dict[str, Any]) -> dict[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in row.items():
        if isinstance(value, str):
            value = value.strip() or None
        sanitized[str(key).strip()] = value
    return sanitized


def _identifier(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_supported_file(file_path: Path) -> bool:
    """Return whether a local file extension is supported."""
    return file_path.is_file() and file_path.suffix.lower() in SUPPORTED_SOURCE_EXTENSIONS

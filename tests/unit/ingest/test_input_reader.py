"""Unit tests for input reader module."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from core.constants import VENDOR_CRM, VENDOR_FUND_ADMIN
from core.errors import KeystoneIngestError
from entity_models.registry import get_model
from ingest.input_reader import read_source_records, read_table_rows
from tests.fixture_paths import fixture_path


def test_read_source_records_trims_csv_values() -> None:
    """CSV values should be trimmed before typing."""
    result = read_source_records(str(fixture_path("sources/investors.csv")), get_model("investors"))

    assert result.records[0].get("investor_name") == "Northern Pension Plan"


def test_read_source_records_turns_blank_csv_cells_into_none() -> None:
    """Blank CSV cells should be read as absent values."""
    result = read_source_records(str(fixture_path("sources/investors.csv")), get_model("investors"))

    assert result.records[1].get("country_code") is None


def test_read_source_records_types_declared_fields() -> None:
    """Declared numeric and date attributes should be typed on read."""
    result = read_source_records(
        str(fixture_path("sources/investment_nav.jsonl")), get_model("investment_nav")
    )
    first = result.records[0]

    assert (first.get("cost_basis"), first.get("valuation_date")) == (
        1000000.0,
        date(2024, 9, 30),
    )


def test_read_source_records_uses_source_system_as_vendor() -> None:
    """Rows with a source_system column should keep that vendor."""
    result = read_source_records(
        str(fixture_path("sources/counterparties.jsonl")), get_model("counterparties")
    )

    assert [record.vendor for record in result.records][:2] == [
        "CRM_VENDOR",
        "ACCOUNTING_VENDOR",
    ]


def test_read_source_records_defaults_vendor_to_model_vendor() -> None:
    """Rows without a source_system should use the model's vendor."""
    result = read_source_records(str(fixture_path("sources/investors.csv")), get_model("investors"))

    assert {record.vendor for record in result.records} == {VENDOR_FUND_ADMIN}


def test_read_source_records_prefers_explicit_vendor_over_model_default() -> None:
    """An explicit vendor should tag rows without a source_system."""
    result = read_source_records(
        str(fixture_path("sources/investors.csv")), get_model("investors"), vendor=VENDOR_CRM
    )

    assert {record.vendor for record in result.records} == {VENDOR_CRM}


def test_read_source_records_skips_rows_without_id() -> None:
    """Rows without an identifier should be counted and dropped on request."""
    result = read_source_records(
        str(fixture_path("sources/investment_nav_missing_ids.jsonl")),
        get_model("investment_nav"),
        skip_invalid=True,
    )

    assert ([record.vendor_id for record in result.records], result.rejected_count) == (
        ["NAV-1"],
        2,
    )


def test_read_source_records_raises_for_rows_without_id() -> None:
    """Rows without an identifier should fail the read by default."""
    with pytest.raises(KeystoneIngestError, match="nav_investment_id"):
        read_source_records(
            str(fixture_path("sources/investment_nav_missing_ids.jsonl")),
            get_model("investment_nav"),
        )
    assert True


def test_read_source_records_raises_for_missing_path(tmp_path: Path) -> None:
    """Reader should fail when source path is missing."""
    missing_path = tmp_path / "does-not-exist"

    with pytest.raises(KeystoneIngestError):
        read_source_records(str(missing_path), get_model("investors"))

    assert missing_path.exists() is False


def test_read_table_rows_raises_for_invalid_jsonl(tmp_path: Path) -> None:
    """Reader should fail for malformed JSONL lines."""
    source = tmp_path / "bad.jsonl"
    source.write_text('{"investor_code": "INV-1"}\n[1, 2]\n', encoding="utf-8")

    with pytest.raises(KeystoneIngestError, match="bad.jsonl:2"):
        read_table_rows(source)
    assert True


def test_read_table_rows_raises_for_unsupported_file(tmp_path: Path) -> None:
    """Unsupported file extensions should be rejected."""
    source = tmp_path / "rows.xlsx"
    source.write_text("not a table", encoding="utf-8")

    with pytest.raises(KeystoneIngestError):
        read_table_rows(source)
    assert True


def test_read_table_rows_reads_parquet_and_directories(tmp_path: Path) -> None:
    """Directories should be read file by file, Parquet included."""
    pq.write_table(pa.Table.from_pylist([{"investor_code": " INV-9 "}]), tmp_path / "a.parquet")
    (tmp_path / "b.jsonl").write_text('{"investor_code": "INV-10"}\n', encoding="utf-8")

    rows = read_table_rows(tmp_path)

    assert [row["investor_code"] for _, row in rows] == ["INV-9", "INV-10"]


def test_read_table_rows_raises_for_empty_directory(tmp_path: Path) -> None:
    """Directories without supported files should be rejected."""
    with pytest.raises(KeystoneIngestError):
        read_table_rows(tmp_path)
    assert True

"""Integration tests for end-to-end normalization runs."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from pathlib import Path

import pytest

from core.config import KeystoneConfig
from core.types import NormalizeOptions
from store.sdk import KeystoneClient

_XREF = "tests/fixtures/reference/xref.jsonl"
_RATES = "tests/fixtures/reference/rates.csv"


def _client(tmp_path) -> KeystoneClient:
    return KeystoneClient(replace(KeystoneConfig.from_env(), data_root=tmp_path))


def _options(model_name: str, source: str, **overrides: object) -> NormalizeOptions:
    options = NormalizeOptions(
        model_name=model_name,
        source_uri=source,
        xref_uri=_XREF,
        rates_uri=_RATES,
        as_of_date=date(2024, 10, 15),
    )
    return replace(options, **overrides)


def test_nav_flow_resolves_converts_and_classifies(tmp_path) -> None:
    """A NAV run should resolve identities, convert amounts, and classify."""
    client = _client(tmp_path)
    client.normalize(_options("investment_nav", "tests/fixtures/sources/investment_nav.jsonl"))

    _, records = client.load_run("investment_nav")
    nav = {record.record_id: record for record in records}

    assert (
        nav["NAV-1"].canonical_id,
        nav["NAV-1"].fields["canonical_fund_id"],
        nav["NAV-1"].fields["cost_basis_usd"],
        nav["NAV-1"].fields["investment_size_category"],
        nav["NAV-2"].canonical_id,
        nav["NAV-3"].fields["fx_rate_missing"],
    ) == (
        "COMP-CANON-0001",
        "FUND-CANON-0001",
        pytest.approx(1_080_000),
        "SMALL_INVESTMENT",
        "COMP-UNKNOWN-PM-CO-2",
        True,
    )


def test_incremental_flow_detects_changed_source(tmp_path) -> None:
    """Editing one source row should mark only that record as changed."""
    client = _client(tmp_path)
    source = tmp_path / "distributions.jsonl"
    original = Path("tests/fixtures/sources/distributions.jsonl").read_text(encoding="utf-8")
    source.write_text(original, encoding="utf-8")
    client.normalize(_options("distributions", str(source), incremental=True))
    edited = original.replace('"gross_amount": 50000', '"gross_amount": 65000')
    source.write_text(edited, encoding="utf-8")

    manifest = client.normalize(_options("distributions", str(source), incremental=True))

    assert client.load_changes("distributions", manifest.run_id) == {
        "new": [],
        "changed": ["TX-2"],
        "unchanged": ["TX-1"],
        "removed": [],
    }


def test_counterparty_flow_consolidates_vendors(tmp_path) -> None:
    """Counterparty rows from several vendors should fold into one record."""
    client = _client(tmp_path)
    client.normalize(_options("counterparties", "tests/fixtures/sources/counterparties.jsonl"))

    _, records = client.load_run("counterparties")
    baker = records[0].fields

    assert (len(records), baker["source_system_count"], baker["counterparty_type"]) == (
        2,
        2,
        "LEGAL_COUNSEL",
    )


def test_investor_flow_standardizes_profiles(tmp_path) -> None:
    """Investor rows should resolve and standardize from CSV input."""
    client = _client(tmp_path)
    client.normalize(_options("investors", "tests/fixtures/sources/investors.csv"))

    _, records = client.load_run("investors")

    assert [
        (record.canonical_id, record.fields["standardized_investor_type"]) for record in records
    ] == [
        ("INVESTOR-CANON-0001", "PENSION_FUND"),
        ("INVESTOR-UNKNOWN-INV-2", "FAMILY_OFFICE"),
    ]


def test_company_metrics_flow_attaches_growth(tmp_path) -> None:
    """The latest period should carry year-over-year growth."""
    client = _client(tmp_path)
    client.normalize(_options("company_metrics", "tests/fixtures/sources/company_metrics.jsonl"))

    _, records = client.load_run("company_metrics")

    assert records[0].fields["revenue_growth_yoy_percent"] == pytest.approx(20.0)

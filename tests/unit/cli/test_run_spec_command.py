"""Unit tests for run-spec CLI execution."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from cli.main import main
from core.types import NormalizeOptions, RunManifest
from store.sdk import KeystoneClient
from tests.fixture_paths import fixture_path

_MANIFEST = RunManifest(
    model_name="investment_nav",
    run_id="run-1",
    created_at=datetime(2024, 10, 15, tzinfo=timezone.utc),
    as_of_date=date(2024, 10, 15),
    parent_run=None,
    record_count=0,
    converted_count=0,
    placeholder_count=0,
)


def test_cli_run_spec_executes_normalize_and_runs_steps(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path,
) -> None:
    """Run-spec command should route each step to SDK operations."""
    captured: dict[str, object] = {}

    def _fake_normalize(self: KeystoneClient, options: NormalizeOptions) -> RunManifest:
        captured["model"] = options.model_name
        captured["as_of_date"] = options.as_of_date.isoformat() if options.as_of_date else None
        captured["rates"] = options.rates_uri
        captured["source"] = options.source_uri
        return _MANIFEST

    def _fake_list_runs(self: KeystoneClient, model_name: str) -> list[RunManifest]:
        captured["listed"] = model_name
        return []

    monkeypatch.setattr(KeystoneClient, "normalize", _fake_normalize)
    monkeypatch.setattr(KeystoneClient, "list_runs", _fake_list_runs)
    exit_code = main(
        [
            "--data-root",
            str(tmp_path),
            "run-spec",
            str(fixture_path("run_spec/valid_pipeline.yaml")),
        ]
    )
    output = capsys.readouterr().out.strip().splitlines()

    assert (
        exit_code == 0
        and output == ["run-1\trecords=0\tconverted=0\tplaceholders=0\tchanges=-"]
        and captured
        == {
            "model": "investment_nav",
            "as_of_date": "2024-10-15",
            "rates": "tests/fixtures/reference/rates.csv",
            "source": "tests/fixtures/sources/investment_nav.jsonl",
            "listed": "investment_nav",
        }
    )


def test_cli_run_spec_lists_models(tmp_path, capsys) -> None:
    """A models-only run-spec should print every registered model."""
    exit_code = main(
        ["--data-root", str(tmp_path), "run-spec", str(fixture_path("run_spec/models_only.yaml"))]
    )

    assert exit_code == 0 and len(capsys.readouterr().out.strip().splitlines()) == 7


def test_cli_run_spec_reports_invalid_spec(tmp_path, capsys) -> None:
    """Invalid run-specs should exit with an error line."""
    exit_code = main(
        [
            "--data-root",
            str(tmp_path),
            "run-spec",
            str(fixture_path("run_spec/invalid_command.yaml")),
        ]
    )

    assert exit_code == 1 and capsys.readouterr().out.startswith("error=")

"""Unit tests for run-spec execution against a client."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from core.errors import KeystoneRunSpecError
from core.run_spec import RunSpec, RunSpecDefaults, RunSpecStep
from core.run_spec_execution import (
    execute_run_spec,
    execute_run_spec_file,
    format_manifest_row,
    format_normalize_result,
)
from core.types import NormalizeOptions, RunManifest
from tests.fixture_paths import fixture_path

_MANIFEST = RunManifest(
    model_name="investment_nav",
    run_id="run-1",
    created_at=datetime(2024, 10, 15, 12, 0, tzinfo=timezone.utc),
    as_of_date=date(2024, 10, 15),
    parent_run=None,
    record_count=3,
    converted_count=1,
    placeholder_count=2,
)


class _RecordingClient:
    def __init__(self) -> None:
        self.normalized: list[NormalizeOptions] = []
        self.data_roots: list[str] = []

    def with_data_root(self, data_root: str) -> "_RecordingClient":
        self.data_roots.append(data_root)
        return self

    def normalize(self, options: NormalizeOptions) -> RunManifest:
        self.normalized.append(options)
        return _MANIFEST

    def list_runs(self, model_name: str) -> list[RunManifest]:
        return [_MANIFEST]

    def models(self) -> dict[str, str]:
        return {"investment_nav": "NAV snapshots"}


def _spec(*steps: RunSpecStep, defaults: RunSpecDefaults | None = None) -> RunSpec:
    return RunSpec(version=1, defaults=defaults or RunSpecDefaults(), steps=steps)


def test_normalize_step_falls_back_to_defaults() -> None:
    """Normalize steps without tables or dates should use run-spec defaults."""
    client = _RecordingClient()
    spec = _spec(
        RunSpecStep("normalize", {"model": "investment_nav", "source": "nav.jsonl"}),
        defaults=RunSpecDefaults(as_of_date="2024-10-15", xref="xref.jsonl", rates="rates.csv"),
    )

    execute_run_spec(client, spec)

    options = client.normalized[0]
    assert (options.xref_uri, options.rates_uri, options.as_of_date) == (
        "xref.jsonl",
        "rates.csv",
        date(2024, 10, 15),
    )


def test_step_values_override_defaults() -> None:
    """Explicit step values should win over run-spec defaults."""
    client = _RecordingClient()
    spec = _spec(
        RunSpecStep(
            "normalize",
            {"model": "investment_nav", "source": "nav.jsonl", "rates": "other.csv"},
        ),
        defaults=RunSpecDefaults(rates="rates.csv"),
    )

    execute_run_spec(client, spec)

    assert client.normalized[0].rates_uri == "other.csv"


def test_normalize_step_requires_source() -> None:
    """Normalize steps without a source should raise run-spec error."""
    spec = _spec(RunSpecStep("normalize", {"model": "investment_nav"}))

    with pytest.raises(KeystoneRunSpecError, match="source"):
        execute_run_spec(_RecordingClient(), spec)
    assert True


def test_normalize_step_rejects_non_boolean_flags() -> None:
    """Boolean step fields should reject other value types."""
    spec = _spec(
        RunSpecStep(
            "normalize",
            {"model": "investment_nav", "source": "nav.jsonl", "incremental": "yes"},
        )
    )

    with pytest.raises(KeystoneRunSpecError):
        execute_run_spec(_RecordingClient(), spec)
    assert True


def test_defaults_data_root_rebinds_client() -> None:
    """A defaults data root should clone the client before running steps."""
    client = _RecordingClient()

    execute_run_spec(client, _spec(RunSpecStep("models", {}), defaults=RunSpecDefaults("out")))

    assert client.data_roots == ["out"]


def test_steps_output_lines_in_order() -> None:
    """Each step should contribute its output lines in step order."""
    lines = execute_run_spec(
        _RecordingClient(),
        _spec(RunSpecStep("models", {}), RunSpecStep("runs", {"model": "investment_nav"})),
    )

    assert lines == ("investment_nav\tNAV snapshots", format_manifest_row(_MANIFEST))


def test_execute_run_spec_file_runs_fixture() -> None:
    """A fixture run-spec should execute its normalize and runs steps."""
    lines = execute_run_spec_file(
        _RecordingClient(), str(fixture_path("run_spec/valid_pipeline.yaml"))
    )

    assert len(lines) == 2


def test_format_manifest_row_marks_missing_parent() -> None:
    """Runs without a parent should render a dash."""
    assert format_manifest_row(_MANIFEST) == "run-1\t3\t2024-10-15T12:00:00+00:00\t-"


def test_format_normalize_result_without_changes() -> None:
    """Non-incremental runs should render a dash for change counts."""
    assert format_normalize_result(_MANIFEST) == (
        "run-1\trecords=3\tconverted=1\tplaceholders=2\tchanges=-"
    )

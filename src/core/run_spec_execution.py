"""Shared run-spec execution engine for CLI and SDK workflows.

This module maps validated run-spec steps to client operations so different
entry points can execute one declarative pipeline path without drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Protocol

from core.errors import KeystoneRunSpecError
from core.run_spec import RunSpec, RunSpecDefaults, RunSpecStep, load_run_spec
from core.run_spec_fields import (
    optional_bool,
    optional_date,
    optional_int,
    optional_string,
    required_string,
)
from core.types import NormalizeOptions, RunManifest


class RunSpecClient(Protocol):
    """Client API contract required by run-spec execution."""

    def with_data_root(self, data_root: str) -> Any: ...

    def normalize(self, options: NormalizeOptions) -> RunManifest: ...

    def list_runs(self, model_name: str) -> list[RunManifest]: ...

    def models(self) -> Mapping[str, str]: ...


@dataclass(frozen=True)
class RunSpecExecutionContext:
    """In-memory context used to execute run-spec steps."""

    client: RunSpecClient
    defaults: RunSpecDefaults


def execute_run_spec_file(client: RunSpecClient, spec_file: str) -> tuple[str, ...]:
    """Load and execute a run-spec file, returning printable output lines."""
    spec = load_run_spec(spec_file)
    return execute_run_spec(client, spec)


def execute_run_spec(client: RunSpecClient, spec: RunSpec) -> tuple[str, ...]:
    """Execute a parsed run-spec object and return output lines."""
    execution_client = (
        client.with_data_root(spec.defaults.data_root) if spec.defaults.data_root else client
    )
    context = RunSpecExecutionContext(client=execution_client, defaults=spec.defaults)
    output_lines: list[str] = []
    for step in spec.steps:
        output_lines.extend(_execute_step(context, step))
    return tuple(output_lines)


def format_manifest_row(manifest: RunManifest) -> str:
    """Render one run manifest as a tab-separated listing row."""
    return (
        f"{manifest.run_id}\t"
        f"{manifest.record_count}\t"
        f"{manifest.created_at.isoformat()}\t"
        f"{manifest.parent_run or '-'}"
    )


def format_normalize_result(manifest: RunManifest) -> str:
    """Render the summary line printed after a normalization run."""
    changes = ",".join(f"{key}={value}" for key, value in manifest.change_counts.items())
    return (
        f"{manifest.run_id}\t"
        f"records={manifest.record_count}\t"
        f"converted={manifest.converted_count}\t"
        f"placeholders={manifest.placeholder_count}\t"
        f"changes={changes or '-'}"
    )


def _execute_step(context: RunSpecExecutionContext, step: RunSpecStep) -> tuple[str, ...]:
    if step.command == "normalize":
        return (_execute_normalize_step(context, step),)
    if step.command == "runs":
        return _execute_runs_step(context, step)
    if step.command == "models":
        return _execute_models_step(context)
    raise KeystoneRunSpecError(f"Unsupported run-spec command '{step.command}'.")


def _execute_normalize_step(context: RunSpecExecutionContext, step: RunSpecStep) -> str:
    defaults = context.defaults
    options = NormalizeOptions(
        model_name=required_string(step.args, "model"),
        source_uri=required_string(step.args, "source"),
        xref_uri=optional_string(step.args, "xref") or defaults.xref,
        rates_uri=optional_string(step.args, "rates") or defaults.rates,
        vendor=optional_string(step.args, "vendor"),
        as_of_date=optional_date(step.args, "as_of_date") or _default_as_of(defaults),
        incremental=optional_bool(step.args, "incremental", default_value=False),
        skip_invalid=optional_bool(step.args, "skip_invalid", default_value=False),
        max_workers=optional_int(step.args, "max_workers"),
    )
    return format_normalize_result(context.client.normalize(options))


def _execute_runs_step(
    context: RunSpecExecutionContext,
    step: RunSpecStep,
) -> tuple[str, ...]:
    runs = context.client.list_runs(required_string(step.args, "model"))
    return tuple(format_manifest_row(manifest) for manifest in runs)


def _execute_models_step(context: RunSpecExecutionContext) -> tuple[str, ...]:
    models = context.client.models()
    return tuple(f"{name}\t{description}" for name, description in models.items())


def _default_as_of(defaults: RunSpecDefaults) -> date | None:
    return date.fromisoformat(defaults.as_of_date) if defaults.as_of_date else None

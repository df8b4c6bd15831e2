"""Python SDK for normalization runs.

This module exposes high-level APIs for running normalizations and
inspecting persisted runs backed by the output store.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from core.config import KeystoneConfig
from core.run_spec_execution import execute_run_spec_file
from core.types import NormalizedRecord, NormalizeOptions, RunManifest
from entity_models.registry import get_model, model_names
from ingest.pipeline import normalize_records
from store.output_store import OutputStore


class KeystoneClient:
    """Primary SDK entry point."""

    def __init__(self, config: KeystoneConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or KeystoneConfig.from_env()
        self._store = OutputStore(self._config)

    @property
    def config(self) -> KeystoneConfig:
        """Runtime configuration used by this client."""
        return self._config

    def normalize(self, options: NormalizeOptions) -> RunManifest:
        """Normalize a source into a persisted run.

        Args:
            options: Normalization options.

        Returns:
            Manifest of the created run.

        Raises:
            KeystoneIngestError: If source or reference tables cannot be read.
            KeystoneStoreError: If run persistence fails.
        """
        return normalize_records(options, self._config)

    def list_runs(self, model_name: str) -> list[RunManifest]:
        """List persisted runs of a model, oldest first."""
        return self._store.list_runs(model_name)

    def load_run(
        self,
        model_name: str,
        run_id: str | None = None,
    ) -> tuple[RunManifest, list[NormalizedRecord]]:
        """Load one run of a model; the latest when ``run_id`` is omitted."""
        return self._store.load_run(model_name, run_id)

    def load_changes(self, model_name: str, run_id: str) -> dict[str, list[str]]:
        """Load the record ids per change kind of an incremental run."""
        return self._store.load_changes(model_name, run_id)

    def models(self) -> dict[str, str]:
        """Return registered model names with their descriptions."""
        return {name: get_model(name).description for name in model_names()}

    def with_data_root(self, data_root: str) -> "KeystoneClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        updated_config = replace(self._config, data_root=resolved_root)
        return KeystoneClient(updated_config)

    def run_spec(self, spec_file: str) -> tuple[str, ...]:
        """Execute a YAML run-spec through the shared execution engine.

        Args:
            spec_file: Path to YAML run-spec file.

        Returns:
            Ordered command output lines.
        """
        return execute_run_spec_file(self, spec_file)

"""Run output store and per-model catalog.

This module persists immutable normalization runs with lineage metadata.
It provides write, list, and load operations for the pipeline and SDK.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any, cast

import pyarrow as pa
import pyarrow.parquet as pq

from core.config import KeystoneConfig
from core.constants import (
    CATALOG_FILE_NAME,
    CHANGES_FILE_NAME,
    MODELS_DIR_NAME,
    PARQUET_FILE_NAME,
    RECORDS_FILE_NAME,
    RUNS_DIR_NAME,
)
from core.errors import KeystoneStoreError
from core.logging_config import get_logger
from core.types import NormalizedRecord, RunManifest, RunWriteRequest
from store.catalog_io import (
    build_run_id,
    manifest_from_dict,
    read_catalog_file,
    update_catalog,
    write_manifest_file,
)
from store.record_payload import (
    json_value,
    read_normalized_records_jsonl,
    write_normalized_records_jsonl,
)

_LOGGER = get_logger(__name__)


class OutputStore:
    """Immutable run store.

    This class owns model directories, run manifests, and catalog
    updates. Runs are never modified after they are written.
    """

    def __init__(self, config: KeystoneConfig) -> None:
        """Initialize output store from config.

        Args:
            config: Runtime configuration.
        """
        self._config = config
        self._models_root = config.data_root / MODELS_DIR_NAME
        self._models_root.mkdir(parents=True, exist_ok=True)

    def write_run(self, request: RunWriteRequest) -> RunManifest:
        """Persist one normalization run.

        Args:
            request: Run write request payload.

        Returns:
            Persisted run manifest.

        Raises:
            KeystoneStoreError: If persistence fails.
        """
        model_root = self._model_root(request.model_name)
        records = list(request.records)
        run_id = build_run_id(request.model_name, records)
        run_dir = model_root / RUNS_DIR_NAME / run_id
        try:
            run_dir.mkdir(parents=True, exist_ok=False)
            write_normalized_records_jsonl(run_dir / RECORDS_FILE_NAME, records)
            _write_changes_file(run_dir, request)
        except OSError as error:
            raise KeystoneStoreError(
                f"Failed to persist run output at {run_dir}: {error}. "
                "Check write permissions and available disk space."
            ) from error
        parquet_written = _write_parquet_mirror(run_dir, records)
        manifest = RunManifest(
            model_name=request.model_name,
            run_id=run_id,
            created_at=datetime.now(timezone.utc),
            as_of_date=request.as_of_date,
            parent_run=request.parent_run,
            record_count=len(records),
            converted_count=sum(1 for record in records if record.converted),
            placeholder_count=request.placeholder_count,
            change_counts={key: len(ids) for key, ids in request.changes.items()},
        )
        write_manifest_file(run_dir, manifest, parquet_written)
        update_catalog(model_root / CATALOG_FILE_NAME, manifest)
        _LOGGER.info(
            "run_persisted",
            model_name=request.model_name,
            run_id=run_id,
            record_count=manifest.record_count,
            parent_run=manifest.parent_run,
            parquet_written=parquet_written,
        )
        return manifest

    def list_runs(self, model_name: str) -> list[RunManifest]:
        """List manifests for a model sorted by creation time.

        Raises:
            KeystoneStoreError: If the model catalog does not exist.
        """
        catalog = read_catalog_file(self._model_root(model_name) / CATALOG_FILE_NAME)
        run_payloads = cast(list[dict[str, Any]], catalog["runs"])
        runs = [manifest_from_dict(item) for item in run_payloads]
        return sorted(runs, key=lambda item: item.created_at)

    def load_run(
        self,
        model_name: str,
        run_id: str | None = None,
    ) -> tuple[RunManifest, list[NormalizedRecord]]:
        """Load records for one run; the latest when ``run_id`` is omitted.

        Raises:
            KeystoneStoreError: If the model or run is missing.
        """
        manifest = self._resolve_manifest(model_name, run_id)
        records_path = self._run_dir(model_name, manifest.run_id) / RECORDS_FILE_NAME
        try:
            records = read_normalized_records_jsonl(records_path)
        except (OSError, ValueError) as error:
            raise KeystoneStoreError(
                f"Failed to load run records at {records_path}: {error}. "
                "Re-run the normalization to rebuild the run."
            ) from error
        return manifest, records

    def load_latest(self, model_name: str) -> tuple[RunManifest, list[NormalizedRecord]] | None:
        """Load the latest run, ``None`` when the model has no runs yet."""
        if not (self._model_root(model_name) / CATALOG_FILE_NAME).exists():
            return None
        return self.load_run(model_name)

    def load_changes(self, model_name: str, run_id: str) -> dict[str, list[str]]:
        """Load the record ids per change kind persisted with a run."""
        changes_path = self._run_dir(model_name, run_id) / CHANGES_FILE_NAME
        if not changes_path.exists():
            return {}
        payload = json.loads(changes_path.read_text(encoding="utf-8"))
        return {str(key): [str(item) for item in value] for key, value in payload.items()}

    def _model_root(self, model_name: str) -> Path:
        return self._models_root / model_name

    def _resolve_manifest(self, model_name: str, run_id: str | None) -> RunManifest:
        manifests = self.list_runs(model_name)
        if not manifests:
            raise KeystoneStoreError(
                f"No runs exist for model '{model_name}'. "
                "Run a normalization before loading output."
            )
        if run_id is None:
            return manifests[-1]
        for manifest in manifests:
            if manifest.run_id == run_id:
                return manifest
        raise KeystoneStoreError(
            f"Run '{run_id}' not found for model '{model_name}'. "
            "Use list_runs to discover valid run ids."
        )

    def _run_dir(self, model_name: str, run_id: str) -> Path:
        run_dir = self._model_root(model_name) / RUNS_DIR_NAME / run_id
        if not run_dir.exists():
            raise KeystoneStoreError(
                f"Missing run directory for {model_name}:{run_id} at {run_dir}. "
                "Re-run the normalization before loading."
            )
        return run_dir


def _write_changes_file(run_dir: Path, request: RunWriteRequest) -> None:
    payload = {key: list(ids) for key, ids in request.changes.items()}
    changes_path = run_dir / CHANGES_FILE_NAME
    changes_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def _write_parquet_mirror(run_dir: Path, records: list[NormalizedRecord]) -> bool:
    """Write a columnar mirror of the run records.

    Returns:
        ``False`` when there are no records to mirror.

    Raises:
        KeystoneStoreError: If the table cannot be built or written.
    """
    if not records:
        return False
    rows = _uniform_columns([_flat_row(record) for record in records])
    parquet_path = run_dir / PARQUET_FILE_NAME
    try:
        table = pa.Table.from_pylist(rows)
        pq.write_table(table, parquet_path)
    except (pa.ArrowException, OSError) as error:
        raise KeystoneStoreError(
            f"Failed to write Parquet mirror at {parquet_path}: {error}. "
            "Check that each output field keeps one value type across records."
        ) from error
    return True


def _flat_row(record: NormalizedRecord) -> dict[str, object]:
    row: dict[str, object] = {
        name: _column_value(json_value(value)) for name, value in record.fields.items()
    }
    row.update(
        {
            "record_id": record.record_id,
            "vendor": record.vendor,
            "canonical_id": record.canonical_id,
            "converted": record.converted,
            "fx_rate": record.fx_rate,
            "fingerprint": record.fingerprint,
        }
    )
    return row


def _column_value(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    return value


def _uniform_columns(rows: list[dict[str, object]]) -> list[dict[str, object]]:
    """Render columns holding more than one value type as strings."""
    kinds: dict[str, set[type]] = {}
    for row in rows:
        for name, value in row.items():
            if value is not None:
                kinds.setdefault(name, set()).add(type(value))
    mixed = {name for name, types in kinds.items() if len(types) > 1}
    if not mixed:
        return rows
    return [
        {
            name: str(value) if name in mixed and value is not None else value
            for name, value in row.items()
        }
        for row in rows
    ]

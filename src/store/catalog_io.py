"""Catalog and manifest persistence helpers.

This module isolates JSON catalog IO and run id generation.
It keeps output store orchestration focused on business flow.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime, timezone
import hashlib
import json
from pathlib import Path
from typing import Any, Sequence, cast

from core.constants import MANIFEST_FILE_NAME
from core.errors import KeystoneStoreError
from core.types import NormalizedRecord, RunManifest


def build_run_id(model_name: str, records: Sequence[NormalizedRecord]) -> str:
    """Build a run id from model name, UTC timestamp, and record fingerprints.

    Args:
        model_name: Entity model name.
        records: Run records.

    Returns:
        Run id string.
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    digest_seed = "|".join(record.fingerprint for record in records)
    digest = hashlib.sha256(digest_seed.encode("utf-8")).hexdigest()[:10]
    return f"{model_name}-{timestamp}-{digest}"


def manifest_to_dict(manifest: RunManifest) -> dict[str, Any]:
    """Serialize a run manifest into a JSON-safe dictionary."""
    manifest_dict = asdict(manifest)
    manifest_dict["created_at"] = manifest.created_at.isoformat()
    manifest_dict["as_of_date"] = manifest.as_of_date.isoformat()
    manifest_dict["change_counts"] = dict(manifest.change_counts)
    return manifest_dict


def write_manifest_file(run_dir: Path, manifest: RunManifest, parquet_written: bool) -> None:
    """Write per-run manifest file.

    Args:
        run_dir: Run directory.
        manifest: Manifest payload.
        parquet_written: Whether the Parquet mirror was created.
    """
    manifest_dict = manifest_to_dict(manifest)
    manifest_dict["parquet_written"] = parquet_written
    manifest_path = run_dir / MANIFEST_FILE_NAME
    manifest_path.write_text(json.dumps(manifest_dict, indent=2) + "\n", encoding="utf-8")


def update_catalog(catalog_path: Path, manifest: RunManifest) -> None:
    """Append manifest entry to the model catalog.

    Args:
        catalog_path: Catalog JSON path.
        manifest: Manifest to append.
    """
    if catalog_path.exists():
        catalog = read_catalog_file(catalog_path)
    else:
        catalog = {"latest_run": None, "runs": []}
    runs = cast(list[dict[str, Any]], catalog["runs"])
    runs.append(manifest_to_dict(manifest))
    catalog["latest_run"] = manifest.run_id
    catalog_path.write_text(json.dumps(catalog, indent=2) + "\n", encoding="utf-8")


def read_catalog_file(catalog_path: Path) -> dict[str, Any]:
    """Read and validate a model catalog payload.

    Args:
        catalog_path: Catalog JSON path.

    Returns:
        Parsed catalog object.

    Raises:
        KeystoneStoreError: If catalog is missing or invalid.
    """
    if not catalog_path.exists():
        raise KeystoneStoreError(
            f"Model catalog not found at {catalog_path}. "
            "Run a normalization before requesting runs."
        )
    try:
        payload = json.loads(catalog_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise KeystoneStoreError(
            f"Failed to parse model catalog at {catalog_path}: {error.msg}. "
            "Recreate the catalog from the run manifests."
        ) from error
    if not isinstance(payload, dict) or not isinstance(payload.get("runs"), list):
        raise KeystoneStoreError(
            f"Failed to parse model catalog at {catalog_path}: "
            "expected a JSON object with a 'runs' list. Recreate the catalog."
        )
    return payload


def manifest_from_dict(payload: dict[str, Any]) -> RunManifest:
    """Deserialize manifest payload from dictionary.

    Args:
        payload: Manifest dictionary.

    Returns:
        Typed run manifest.
    """
    return RunManifest(
        model_name=str(payload["model_name"]),
        run_id=str(payload["run_id"]),
        created_at=datetime.fromisoformat(str(payload["created_at"])),
        as_of_date=date.fromisoformat(str(payload["as_of_date"])),
        parent_run=str(payload["parent_run"]) if payload.get("parent_run") else None,
        record_count=int(payload["record_count"]),
        converted_count=int(payload.get("converted_count", 0)),
        placeholder_count=int(payload.get("placeholder_count", 0)),
        change_counts={
            str(key): int(value) for key, value in dict(payload.get("change_counts", {})).items()
        },
    )

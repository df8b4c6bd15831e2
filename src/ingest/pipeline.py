"""Normalization orchestration for entity models.

This module coordinates reference loading, source reading, consolidation,
snapshot windows, per-record normalization, change detection, and run
writes for one entity model.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date

from core.config import KeystoneConfig
from core.constants import DEFAULT_BASE_CURRENCY
from core.logging_config import get_logger
from core.types import (
    NormalizedRecord,
    NormalizeOptions,
    ProcessingContext,
    RunManifest,
    RunWriteRequest,
    SourceRecord,
)
from entity_models.base import EntityModel
from entity_models.registry import get_model
from ingest.incremental import ChangeSet, detect_changes
from ingest.input_reader import read_source_records
from ingest.reference_loader import load_cross_reference_table, load_rate_table
from store.output_store import OutputStore
from transforms.identity_resolution import CrossReferenceTable
from transforms.rate_selection import RateTable
from transforms.record_normalizer import (
    ReferenceData,
    apply_snapshot_window,
    is_placeholder_record,
    normalize_record,
    prepare_record,
    records_by_partition,
)

_LOGGER = get_logger(__name__)

PositionedRecord = tuple[int, SourceRecord]


@dataclass(frozen=True)
class IncrementalContext:
    """Change classification and the run it was computed against."""

    changes: ChangeSet | None
    parent_run: str | None


class NormalizationRunner:
    """Runner for one normalization of one entity model."""

    def __init__(self, options: NormalizeOptions, config: KeystoneConfig) -> None:
        self._options = options
        self._config = config
        self._model = get_model(options.model_name)
        self._store = OutputStore(config)
        self._context = ProcessingContext(
            as_of_date=options.as_of_date or config.as_of_date or date.today(),
            base_currency=DEFAULT_BASE_CURRENCY,
        )

    @property
    def context(self) -> ProcessingContext:
        """Processing context applied to every record of the run."""
        return self._context

    def run(self) -> RunManifest:
        """Execute the normalization and return the persisted run manifest."""
        reference = self._load_reference_data()
        read_result = read_source_records(
            self._options.source_uri,
            self._model,
            vendor=self._options.vendor,
            skip_invalid=self._options.skip_invalid,
        )
        source_records = self._consolidate(read_result.records)
        if self._model.window is not None:
            source_records = apply_snapshot_window(source_records, self._model.window)
        records = self._normalize_all(source_records, reference)
        incremental = self._load_incremental_context(records)
        manifest = self._store.write_run(
            RunWriteRequest(
                model_name=self._model.name,
                records=tuple(records),
                as_of_date=self._context.as_of_date,
                parent_run=incremental.parent_run,
                placeholder_count=sum(
                    1 for record in records if is_placeholder_record(record, self._model)
                ),
                changes=incremental.changes.as_mapping() if incremental.changes else {},
            )
        )
        _log_normalization_completion(
            self._options,
            self._context,
            len(read_result.records),
            read_result.rejected_count,
            manifest,
        )
        return manifest

    def _load_reference_data(self) -> ReferenceData:
        cross_reference = (
            load_cross_reference_table(self._options.xref_uri)
            if self._options.xref_uri
            else CrossReferenceTable(())
        )
        rates = (
            load_rate_table(self._options.rates_uri) if self._options.rates_uri else RateTable(())
        )
        return ReferenceData(cross_reference=cross_reference, rates=rates)

    def _consolidate(self, records: list[SourceRecord]) -> list[SourceRecord]:
        if self._model.consolidator is None:
            return records
        consolidated = self._model.consolidator(records)
        _LOGGER.info(
            "records_consolidated",
            model_name=self._model.name,
            input_count=len(records),
            output_count=len(consolidated),
        )
        return [prepare_record(record, self._model) for record in consolidated]

    def _normalize_all(
        self,
        records: list[SourceRecord],
        reference: ReferenceData,
    ) -> list[NormalizedRecord]:
        partitions = records_by_partition(records, self._model.partition_field)
        max_workers = self._options.max_workers or self._config.max_workers
        if max_workers <= 1 or len(partitions) <= 1:
            results = [
                item
                for partition in partitions.values()
                for item in _normalize_partition(partition, self._model, reference, self._context)
            ]
        else:
            results = self._normalize_parallel(partitions, reference, max_workers)
        return [record for _, record in sorted(results, key=lambda item: item[0])]

    def _normalize_parallel(
        self,
        partitions: dict[str, list[PositionedRecord]],
        reference: ReferenceData,
        max_workers: int,
    ) -> list[tuple[int, NormalizedRecord]]:
        results: list[tuple[int, NormalizedRecord]] = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(
                    _normalize_partition, partition, self._model, reference, self._context
                ): key
                for key, partition in partitions.items()
            }
            for future in as_completed(futures):
                results.extend(future.result())
        _LOGGER.debug(
            "partitions_normalized",
            model_name=self._model.name,
            partition_count=len(partitions),
            max_workers=max_workers,
        )
        return results

    def _load_incremental_context(self, records: list[NormalizedRecord]) -> IncrementalContext:
        if not self._options.incremental:
            return IncrementalContext(changes=None, parent_run=None)
        latest = self._store.load_latest(self._model.name)
        if latest is None:
            return IncrementalContext(changes=detect_changes(records, None), parent_run=None)
        manifest, previous_records = latest
        return IncrementalContext(
            changes=detect_changes(records, previous_records),
            parent_run=manifest.run_id,
        )


def normalize_records(options: NormalizeOptions, config: KeystoneConfig) -> RunManifest:
    """Run one normalization and persist its output.

    Args:
        options: Normalization request options.
        config: Runtime configuration.

    Returns:
        Manifest of the persisted run.

    Raises:
        KeystoneTransformError: If the model is unknown.
        KeystoneIngestError: If source or reference tables cannot be read.
        KeystoneStoreError: If run persistence fails.
    """
    runner = NormalizationRunner(options, config)
    return runner.run()


def normalize_in_memory(
    records: list[SourceRecord],
    model: EntityModel,
    reference: ReferenceData,
    context: ProcessingContext,
) -> list[NormalizedRecord]:
    """Normalize already-read records without touching the store.

    Records are prepared, consolidated and windowed the way a full run
    handles them.
    """
    prepared = [prepare_record(record, model) for record in records]
    if model.consolidator is not None:
        prepared = [prepare_record(record, model) for record in model.consolidator(prepared)]
    if model.window is not None:
        prepared = apply_snapshot_window(prepared, model.window)
    return [normalize_record(record, model, reference, context) for record in prepared]


def _normalize_partition(
    partition: list[PositionedRecord],
    model: EntityModel,
    reference: ReferenceData,
    context: ProcessingContext,
) -> list[tuple[int, NormalizedRecord]]:
    return [
        (position, normalize_record(record, model, reference, context))
        for position, record in partition
    ]


def _log_normalization_completion(
    options: NormalizeOptions,
    context: ProcessingContext,
    input_count: int,
    rejected_count: int,
    manifest: RunManifest,
) -> None:
    """Log run completion with contextual metadata."""
    _LOGGER.info(
        "normalization_completed",
        model_name=manifest.model_name,
        source_uri=options.source_uri,
        as_of_date=context.as_of_date.isoformat(),
        input_count=input_count,
        rejected_count=rejected_count,
        output_count=manifest.record_count,
        converted_count=manifest.converted_count,
        placeholder_count=manifest.placeholder_count,
        run_id=manifest.run_id,
        incremental=options.incremental,
        change_counts=dict(manifest.change_counts),
    )

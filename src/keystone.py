"""Public SDK surface for Keystone.

This module provides a stable import path for SDK users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from core.config import KeystoneConfig
from core.types import NormalizedRecord, NormalizeOptions, ProcessingContext, RunManifest
from entity_models.registry import get_model, model_names
from ingest.pipeline import normalize_in_memory
from store.sdk import KeystoneClient

__all__ = [
    "KeystoneClient",
    "KeystoneConfig",
    "NormalizeOptions",
    "NormalizedRecord",
    "ProcessingContext",
    "RunManifest",
    "get_model",
    "model_names",
    "normalize_in_memory",
]

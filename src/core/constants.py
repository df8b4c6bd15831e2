"""Core constants used across Keystone modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".keystone")
DEFAULT_BASE_CURRENCY = "USD"
DEFAULT_MAX_WORKERS = 1
MODELS_DIR_NAME = "models"
RUNS_DIR_NAME = "runs"
CATALOG_FILE_NAME = "catalog.json"
MANIFEST_FILE_NAME = "manifest.json"
CHANGES_FILE_NAME = "changes.json"
RECORDS_FILE_NAME = "records.jsonl"
PARQUET_FILE_NAME = "records.parquet"
HASH_ALGORITHM = "sha256"
FINGERPRINT_SEPARATOR = "\x1f"
FINGERPRINT_NULL_TOKEN = "\x00null"
SUPPORTED_SOURCE_EXTENSIONS = (".jsonl", ".csv", ".parquet")
QUALITY_HIGH = "HIGH_QUALITY"
QUALITY_MEDIUM = "MEDIUM_QUALITY"
QUALITY_LOW = "LOW_QUALITY"
RESOLVABLE_QUALITIES = (QUALITY_HIGH, QUALITY_MEDIUM)
SUPPORTED_QUALITIES = (QUALITY_HIGH, QUALITY_MEDIUM, QUALITY_LOW)
PLACEHOLDER_MARKER = "UNKNOWN"
CANONICAL_MARKER = "CANON"
FLAG_NO_ISSUES = "NO_ISSUES"
FLAG_FX_RATE_MISSING = "FX_RATE_MISSING"
FLAG_INCOMPLETE_DATA = "INCOMPLETE_DATA"
FLAG_NO_SOURCE = "NO_SOURCE"
ENTITY_KIND_COMPANY = "COMP"
ENTITY_KIND_FUND = "FUND"
ENTITY_KIND_INVESTOR = "INVESTOR"
ENTITY_KIND_COUNTERPARTY = "CPTY"
SUPPORTED_ENTITY_KINDS = (
    ENTITY_KIND_COMPANY,
    ENTITY_KIND_FUND,
    ENTITY_KIND_INVESTOR,
    ENTITY_KIND_COUNTERPARTY,
)
VENDOR_CRM = "CRM_VENDOR"
VENDOR_FUND_ADMIN = "FUND_ADMIN_VENDOR"
VENDOR_PORTFOLIO_MGMT = "PORTFOLIO_MGMT_VENDOR"

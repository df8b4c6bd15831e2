"""Keystone exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
Per-record data gaps are never errors; they surface as tier and flag values.
"""

from __future__ import annotations


class KeystoneError(Exception):
    """Base exception for all Keystone failures."""


class KeystoneConfigError(KeystoneError):
    """Raised for invalid runtime configuration."""


class KeystoneIngestError(KeystoneError):
    """Raised for source parsing and record sanitizing failures."""


class KeystoneReferenceDataError(KeystoneError):
    """Raised for malformed cross-reference or exchange-rate rows."""


class KeystoneRuleSetError(KeystoneError):
    """Raised when a classification plan is incomplete or circular."""


class KeystoneTransformError(KeystoneError):
    """Raised for normalization pipeline failures."""


class KeystoneStoreError(KeystoneError):
    """Raised for run output persistence failures."""


class KeystoneDependencyError(KeystoneError):
    """Raised when an optional runtime dependency is missing."""


class KeystoneRunSpecError(KeystoneError):
    """Raised for invalid or unsupported run-spec configuration."""

"""Unit tests for core config parsing."""

from __future__ import annotations

from datetime import date
import os

import pytest

from core.config import KeystoneConfig, parse_as_of_date
from core.errors import KeystoneConfigError


def test_from_env_reads_data_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve data root from environment."""
    monkeypatch.setenv("KEYSTONE_DATA_ROOT", "./.tmp-keystone")

    config = KeystoneConfig.from_env()

    assert config.data_root.name == ".tmp-keystone"


def test_from_env_reads_as_of_date(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should parse the processing date from environment."""
    monkeypatch.setenv("KEYSTONE_AS_OF_DATE", "2024-10-15")

    config = KeystoneConfig.from_env()

    assert config.as_of_date == date(2024, 10, 15)


def test_from_env_defaults_as_of_date_to_none(monkeypatch: pytest.MonkeyPatch) -> None:
    """An unset processing date should be left for the run to decide."""
    monkeypatch.delenv("KEYSTONE_AS_OF_DATE", raising=False)

    assert KeystoneConfig.from_env().as_of_date is None


def test_from_env_raises_for_invalid_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric worker counts."""
    monkeypatch.setenv("KEYSTONE_MAX_WORKERS", "not-a-number")

    with pytest.raises(KeystoneConfigError):
        KeystoneConfig.from_env()

    assert os.getenv("KEYSTONE_MAX_WORKERS") == "not-a-number"


def test_from_env_raises_for_zero_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should reject worker counts below one."""
    monkeypatch.setenv("KEYSTONE_MAX_WORKERS", "0")

    with pytest.raises(KeystoneConfigError):
        KeystoneConfig.from_env()
    assert True


def test_parse_as_of_date_rejects_non_iso_values() -> None:
    """Non-ISO dates should raise with the variable name in the message."""
    with pytest.raises(KeystoneConfigError, match="KEYSTONE_AS_OF_DATE"):
        parse_as_of_date("15/10/2024")
    assert True

from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from eventdigest.config import ConfigurationError, get_database_config, get_storage_config
from eventdigest.config.storage import DEFAULT_DB_FILENAME


def test_storage_config_prefers_explicit_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("EVENTDIGEST_DATA_DIR", str(custom))

    result = get_storage_config().resolve_data_dir()

    assert result == custom.resolve()


def test_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert get_database_config().uri == "sqlite:///override.db"


def test_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.delenv("EVENTDIGEST_DB_FILENAME", raising=False)
    monkeypatch.setenv("EVENTDIGEST_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_config().uri

    expected_path = (tmp_path / "data-dir" / DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_database_filename_can_be_overridden(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("EVENTDIGEST_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("EVENTDIGEST_DB_FILENAME", "school.db")

    assert get_storage_config().database_path() == (tmp_path / "school.db").resolve()


def test_database_filename_must_not_be_a_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EVENTDIGEST_DB_FILENAME", "../elsewhere.db")

    with pytest.raises(ConfigurationError, match="bare file name"):
        get_storage_config()

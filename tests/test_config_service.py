from __future__ import annotations

import pytest

from askdb.services.config_service import DEFAULT_MODEL, ConfigService

_VARS = (
    "ASKDB_DATABASE_URL",
    "ASKDB_MODEL",
    "ASKDB_ROW_LIMIT",
    "ASKDB_MAX_CELL_CHARS",
    "ASKDB_CONNECT_TIMEOUT",
    "ASKDB_STATEMENT_TIMEOUT",
    "ASKDB_MODEL_TIMEOUT",
    "ASKDB_SCHEMA_WORKERS",
    "ASKDB_VALIDATE_SQL",
    "ASKDB_MSSQL_ODBC_DRIVER",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_database_url_required() -> None:
    with pytest.raises(ValueError, match="ASKDB_DATABASE_URL"):
        ConfigService.get_database_url()


def test_database_url_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASKDB_DATABASE_URL", "mysql://u:p@h/db")
    assert ConfigService.get_database_url() == "mysql://u:p@h/db"


def test_defaults() -> None:
    assert ConfigService.get_model_name() == DEFAULT_MODEL
    assert ConfigService.result_row_limit() == 200
    assert ConfigService.result_max_cell_chars() == 200
    opts = ConfigService.adapter_options()
    assert (opts.connect_timeout, opts.statement_timeout, opts.schema_workers) == (10, 30, 4)
    assert opts.mssql_odbc_driver == "ODBC Driver 18 for SQL Server"
    settings = ConfigService.pipeline_settings()
    assert settings.model_timeout == 60.0
    assert settings.validate_sql is False


def test_overrides_and_bounds(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASKDB_MODEL", "openai:gpt-4o-mini")
    monkeypatch.setenv("ASKDB_ROW_LIMIT", "0")
    monkeypatch.setenv("ASKDB_MAX_CELL_CHARS", "not-a-number")
    monkeypatch.setenv("ASKDB_SCHEMA_WORKERS", "8")
    monkeypatch.setenv("ASKDB_STATEMENT_TIMEOUT", "5")
    assert ConfigService.get_model_name() == "openai:gpt-4o-mini"
    assert ConfigService.result_row_limit() == 1
    assert ConfigService.result_max_cell_chars() == 200
    opts = ConfigService.adapter_options()
    assert opts.schema_workers == 8
    assert opts.statement_timeout == 5


@pytest.mark.parametrize(("value", "expected"), [("true", True), ("YES", True), ("0", False)])
def test_validate_sql_flag(monkeypatch: pytest.MonkeyPatch, value: str, expected: bool) -> None:
    monkeypatch.setenv("ASKDB_VALIDATE_SQL", value)
    assert ConfigService.pipeline_settings().validate_sql is expected

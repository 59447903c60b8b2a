"""Configuration service for askdb.

This module centralizes environment variable handling. It is only used at
the MCP boundary; the adapters and the pipeline receive resolved values
(`AdapterOptions`, `PipelineSettings`, a model id) as arguments.
"""

from __future__ import annotations

import os

from askdb.agent.models import PipelineSettings
from askdb.database.adapters.common import AdapterOptions

DEFAULT_MODEL = "google-gla:gemini-2.5-flash"
DEFAULT_MSSQL_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, minimum: int) -> int:
    val = os.getenv(name, str(default))
    try:
        n = int(val)
    except ValueError:
        n = default
    return max(minimum, n)


class ConfigService:
    """Service for managing configuration."""

    @staticmethod
    def get_database_url() -> str:
        """Get database URL from environment variable.

        Returns:
            Database URL string

        Raises:
            ValueError: If ASKDB_DATABASE_URL environment variable is not set
        """
        database_url = os.getenv("ASKDB_DATABASE_URL")
        if not database_url:
            error_msg = "ASKDB_DATABASE_URL environment variable not set"
            raise ValueError(error_msg)
        return database_url

    @staticmethod
    def get_model_name() -> str:
        """Model id in pydantic-ai ``provider:model`` form.

        Provider credentials (for example ``GOOGLE_API_KEY``) are read by the
        provider itself from the environment.
        """
        return os.getenv("ASKDB_MODEL", DEFAULT_MODEL)

    # ---- Database options -------------------------------------------------
    @staticmethod
    def adapter_options() -> AdapterOptions:
        """Timeouts and worker count for the dialect adapters."""
        return AdapterOptions(
            connect_timeout=_env_int("ASKDB_CONNECT_TIMEOUT", 10, 1),
            statement_timeout=_env_int("ASKDB_STATEMENT_TIMEOUT", 30, 1),
            schema_workers=_env_int("ASKDB_SCHEMA_WORKERS", 4, 1),
            mssql_odbc_driver=os.getenv("ASKDB_MSSQL_ODBC_DRIVER", DEFAULT_MSSQL_ODBC_DRIVER),
        )

    # ---- Pipeline options -------------------------------------------------
    @staticmethod
    def pipeline_settings() -> PipelineSettings:
        """Model timeout and validation gate for the pipeline."""
        return PipelineSettings(
            model_timeout=float(_env_int("ASKDB_MODEL_TIMEOUT", 60, 1)),
            validate_sql=os.getenv("ASKDB_VALIDATE_SQL", "false").strip().lower() in _TRUTHY,
        )

    # ---- Result size budgets ---------------------------------------------
    @staticmethod
    def result_row_limit() -> int:
        """Maximum number of preview rows to return in tool results."""
        return _env_int("ASKDB_ROW_LIMIT", 200, 1)

    @staticmethod
    def result_max_cell_chars() -> int:
        """Maximum characters per cell value in tool results."""
        return _env_int("ASKDB_MAX_CELL_CHARS", 200, 10)

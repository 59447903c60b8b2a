"""MCP tool registration for direct SQL execution (execute_sql).

Provides a single tool `execute_sql(sql: str)` that runs caller SQL as-is
and, when the database rejects it, returns the error together with a model
explanation and a suggested fix.
"""

from __future__ import annotations

import asyncio
from typing import Annotated

from fastmcp import Context, FastMCP
from fastmcp.utilities.logging import get_logger
from pydantic import Field

from askdb.errors import AskDbError
from askdb.execute.models import ExecuteSqlResult
from askdb.execute.runner import ExecutionLimits, to_execute_result
from askdb.services.config_service import ConfigService
from askdb.session import run_sql

_logger = get_logger(__name__)

MAX_QUERY_DISPLAY = 500


def register_execute_sql_tool(mcp: FastMCP) -> None:
    """Register the `execute_sql` MCP tool on the given server instance."""

    @mcp.tool
    async def execute_sql(
        ctx: Context,
        sql: Annotated[
            str,
            Field(
                description=(
                    "SQL to execute verbatim. On error, the result includes the database "
                    "error, a model explanation and suggested_sql (never auto-executed)."
                )
            ),
        ],
    ) -> ExecuteSqlResult:  # pyright: ignore[reportUnusedFunction]
        """Execute SQL against the configured database and return preview rows."""
        preview = sql[:MAX_QUERY_DISPLAY] + ("..." if len(sql) > MAX_QUERY_DISPLAY else "")
        _logger.info("execute_sql: %s", preview)

        limits = ExecutionLimits(
            row_limit=ConfigService.result_row_limit(),
            max_cell_chars=ConfigService.result_max_cell_chars(),
        )
        try:
            outcome = await asyncio.to_thread(
                run_sql,
                ConfigService.get_database_url(),
                sql,
                ConfigService.get_model_name(),
                options=ConfigService.adapter_options(),
                settings=ConfigService.pipeline_settings(),
            )
        except (AskDbError, ValueError) as exc:
            await ctx.error(f"execute_sql failed: {exc}")
            raise
        return to_execute_result(outcome, limits)

    _ = execute_sql

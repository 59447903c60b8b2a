"""MCP tool registration for the ask_database pipeline.

Exposes a single tool `ask_database(question: str)` that introspects the
schema, generates SQL, executes it and answers, or returns a repair proposal
when execution fails.
"""

from __future__ import annotations

import asyncio
from typing import Annotated

from fastmcp import Context, FastMCP
from fastmcp.utilities.logging import get_logger
from pydantic import Field

from askdb.agent.models import AskDatabaseResult, AskOutcome
from askdb.errors import AskDbError
from askdb.execute.runner import ExecutionLimits, execution_metadata
from askdb.services.config_service import ConfigService
from askdb.session import ask_database as run_ask

_logger = get_logger(__name__)

MAX_QUESTION_DISPLAY = 200


def to_ask_result(outcome: AskOutcome, limits: ExecutionLimits) -> AskDatabaseResult:
    """Shape an `AskOutcome` into the ask_database tool payload."""
    meta, preview = execution_metadata(outcome.execution, outcome.dialect, limits)
    failure = outcome.execution.failure
    return AskDatabaseResult(
        question=outcome.question,
        sql=outcome.sql,
        answer=outcome.answer,
        execution=meta,
        results=preview,
        schema_warnings=outcome.schema_warnings,
        status="ok" if failure is None else "error",
        execution_error=failure.error_message if failure is not None else None,
        repair_explanation=outcome.repair.explanation if outcome.repair else None,
        suggested_sql=outcome.repair.fixed_sql if outcome.repair else None,
        repair_error=outcome.repair_error,
    )


def register_ask_database_tool(mcp: FastMCP) -> None:
    """Register the `ask_database` MCP tool on the given server instance."""

    @mcp.tool
    async def ask_database(
        ctx: Context,
        question: Annotated[
            str, Field(description="Natural language question about the configured database")
        ],
    ) -> AskDatabaseResult:  # pyright: ignore[reportUnusedFunction]
        """Answer a natural language database question.

        Generates one SQL statement from the live schema, executes it and
        summarises the rows. When execution fails, returns the database error
        with a model explanation and a suggested fix that is not executed.
        """
        preview = question[:MAX_QUESTION_DISPLAY] + (
            "..." if len(question) > MAX_QUESTION_DISPLAY else ""
        )
        _logger.info("ask_database: %s", preview)

        limits = ExecutionLimits(
            row_limit=ConfigService.result_row_limit(),
            max_cell_chars=ConfigService.result_max_cell_chars(),
        )
        try:
            outcome = await asyncio.to_thread(
                run_ask,
                ConfigService.get_database_url(),
                question,
                ConfigService.get_model_name(),
                options=ConfigService.adapter_options(),
                settings=ConfigService.pipeline_settings(),
            )
        except (AskDbError, ValueError) as exc:
            await ctx.error(f"ask_database failed: {exc}")
            raise
        return to_ask_result(outcome, limits)

    _ = ask_database

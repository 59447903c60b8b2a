"""MCP tool registration for schema inspection (describe_schema)."""

from __future__ import annotations

import asyncio

from fastmcp import Context, FastMCP
from fastmcp.utilities.logging import get_logger

from askdb.errors import AskDbError
from askdb.schema_tools.models import SchemaOverview
from askdb.services.config_service import ConfigService
from askdb.session import describe_schema

_logger = get_logger(__name__)


def register_schema_tools(mcp: FastMCP) -> None:
    """Register the `describe_schema` MCP tool on the given server instance."""

    @mcp.tool(name="describe_schema")
    async def describe_schema_tool(ctx: Context) -> SchemaOverview:  # pyright: ignore[reportUnusedFunction]
        """List tables, columns (type, PK, NOT NULL, default, FK) and relationships."""
        _logger.info("describe_schema requested")
        try:
            schema = await asyncio.to_thread(
                describe_schema,
                ConfigService.get_database_url(),
                options=ConfigService.adapter_options(),
            )
        except (AskDbError, ValueError) as exc:
            await ctx.error(f"Failed to load schema: {exc}")
            raise
        return SchemaOverview.from_schema(schema)

    _ = describe_schema_tool

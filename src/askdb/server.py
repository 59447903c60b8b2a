"""FastMCP server implementation for askdb."""

from __future__ import annotations

import dotenv
from fastmcp import FastMCP
from fastmcp.utilities.logging import get_logger
from starlette.requests import Request
from starlette.responses import JSONResponse

from askdb.agent.mcp_tools import register_ask_database_tool
from askdb.execute.mcp_tools import register_execute_sql_tool
from askdb.schema_tools.mcp_tools import register_schema_tools

# Load environment variables
dotenv.load_dotenv()

# Configure a module-level logger for local server logs.
_logger = get_logger(__name__)

# Create the main MCP server instance
mcp = FastMCP(
    name="askdb",
    instructions=(
        "Answers natural language questions about a relational database "
        "(PostgreSQL, MySQL or SQL Server): generates SQL from the live schema, "
        "executes it and explains failures."
    ),
)

# -- Tool Registration -------------------------------------------------------
register_schema_tools(mcp)
register_ask_database_tool(mcp)
register_execute_sql_tool(mcp)


# -- Health Check ----------------------------------------------------------
@mcp.custom_route("/health", methods=["GET"])
async def health_check(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "healthy", "service": "askdb"})

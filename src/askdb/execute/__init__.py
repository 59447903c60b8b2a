"""Execute tool package for direct SQL execution in MCP.

Exports typed models and the runner. The FastMCP registration helper lives in
`askdb.execute.mcp_tools` and is imported by the server directly.
"""

from __future__ import annotations

from .models import ExecuteSqlResult, SqlRunOutcome
from .runner import ExecutionLimits, run_sql_flow, to_execute_result, truncate_rows

__all__ = [
    "ExecuteSqlResult",
    "ExecutionLimits",
    "SqlRunOutcome",
    "run_sql_flow",
    "to_execute_result",
    "truncate_rows",
]

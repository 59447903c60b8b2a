"""Models for the generation-execution-repair pipeline.

`RepairProposal` and `ValidationVerdict` double as the structured output
types requested from the model; the remaining models describe one pipeline
invocation and the payload returned by the ``ask_database`` tool.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum, auto
from typing import Literal

from pydantic import BaseModel, Field

from askdb.models import QueryResult


class PipelineStage(Enum):
    """Position of one invocation in the pipeline state machine."""

    IDLE = auto()
    SCHEMA_FETCHED = auto()
    SQL_GENERATED = auto()
    EXECUTED_SUCCESS = auto()
    EXECUTED_FAILURE = auto()
    REPAIR_PROPOSED = auto()
    ANSWERED = auto()


@dataclass(slots=True)
class PipelineSettings:
    """Knobs for one pipeline instance, resolved by the caller."""

    sample_rows: int = 20
    model_timeout: float = 60.0
    validate_sql: bool = False
    allow_writes: bool = False


class RepairProposal(BaseModel):
    """Root-cause explanation and optional corrected SQL for a failed query."""

    explanation: str = Field(description="Likely root cause of the error in 2-4 sentences")
    fixed_sql: str | None = Field(
        default=None, description="A single corrected SQL statement, or null if none"
    )


class ValidationVerdict(BaseModel):
    """Whether SQL is safe to run for the question."""

    valid: bool = Field(description="Whether the SQL is safe, single-statement, and appropriate")
    reason: str | None = Field(
        default=None, description="Explanation when invalid or adjustments made"
    )
    safe_sql: str | None = Field(default=None, description="Cleaned SQL when valid")


class ExecutionFailure(BaseModel):
    """The SQL that failed and the driver's error text."""

    sql: str
    error_message: str


class ExecutionOutcome(BaseModel):
    """Result of the Execute stage: either a result or a failure."""

    sql: str
    elapsed_ms: float
    result: QueryResult | None = None
    failure: ExecutionFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class AskOutcome(BaseModel):
    """Everything one ``ask`` invocation produced."""

    question: str
    dialect: str
    stage: PipelineStage
    sql: str
    execution: ExecutionOutcome
    answer: str | None = None
    repair: RepairProposal | None = None
    repair_error: str | None = None
    validation: ValidationVerdict | None = None
    schema_warnings: list[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.stage is PipelineStage.ANSWERED


class AskDatabaseResult(BaseModel):
    """Structured response from the ask_database tool."""

    question: str = Field(description="Original natural language question")
    sql: str = Field(description="SQL generated for the question")
    answer: str | None = Field(default=None, description="Natural-language answer")
    execution: dict[str, int | float | str | bool] = Field(
        description="Execution metadata: dialect, elapsed_ms, row_count, rows_returned, truncated"
    )
    results: list[dict[str, str | int | float | bool | None]] = Field(
        default_factory=list, description="Preview rows with cell values truncated as needed"
    )
    schema_warnings: list[str] = Field(
        default_factory=list, description="Identifiers in the SQL that the schema does not define"
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="UTC ISO8601 timestamp of completion",
    )
    status: Literal["ok", "error"] = Field(default="ok", description="Overall status of the call")
    execution_error: str | None = Field(
        default=None, description="Database error when execution failed"
    )
    repair_explanation: str | None = Field(
        default=None, description="Model explanation of the execution error"
    )
    suggested_sql: str | None = Field(
        default=None, description="Corrected SQL proposed by the model; not executed"
    )
    repair_error: str | None = Field(
        default=None, description="Why the repair request itself failed"
    )

"""Model-assisted natural-language-to-SQL pipeline.

Exports the pipeline, its stage functions and typed models.
"""

from __future__ import annotations

from .agent import (
    ModelLike,
    explain_and_fix_sql,
    generate_answer,
    generate_sql,
    strip_code_fences,
    validate_sql,
)
from .models import (
    AskDatabaseResult,
    AskOutcome,
    ExecutionFailure,
    ExecutionOutcome,
    PipelineSettings,
    PipelineStage,
    RepairProposal,
    ValidationVerdict,
)
from .pipeline import AskPipeline

__all__ = [
    "AskDatabaseResult",
    "AskOutcome",
    "AskPipeline",
    "ExecutionFailure",
    "ExecutionOutcome",
    "ModelLike",
    "PipelineSettings",
    "PipelineStage",
    "RepairProposal",
    "ValidationVerdict",
    "explain_and_fix_sql",
    "generate_answer",
    "generate_sql",
    "strip_code_fences",
    "validate_sql",
]

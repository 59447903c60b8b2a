"""PydanticAI agents for the four model round trips.

Each stage builds a small single-purpose `Agent` and makes exactly one
``run_sync`` call. The model is passed in by the caller, either as a
pydantic-ai `Model` instance or as a ``provider:model`` id; credentials are
the provider's concern and are never looked up here.
"""

from __future__ import annotations

import re
from typing import Any, TypeVar

from fastmcp.utilities.logging import get_logger
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from askdb.agent import prompts
from askdb.agent.models import PipelineSettings, RepairProposal, ValidationVerdict
from askdb.database.connection import Dialect
from askdb.errors import ModelRequestError
from askdb.models import DatabaseSchema

_logger = get_logger(__name__)

ModelLike = Model | str
OutputT = TypeVar("OutputT")

_FENCED_BLOCK = re.compile(r"```[a-zA-Z]*\s*(.*?)```", re.DOTALL)
_STRAY_FENCE = re.compile(r"```[a-zA-Z]*\n?")


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced block, or the text without fences."""
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()
    return _STRAY_FENCE.sub("", text).strip()


def _run_agent(
    model: ModelLike,
    *,
    stage: str,
    system_prompt: str,
    output_type: type[OutputT],
    prompt: str,
    settings: PipelineSettings,
) -> OutputT:
    """Build an agent and make one round trip, wrapping every failure."""
    try:
        agent: Agent[None, Any] = Agent(
            model,
            system_prompt=system_prompt,
            output_type=output_type,
            model_settings=ModelSettings(temperature=0.0, timeout=settings.model_timeout),
        )
        result = agent.run_sync(prompt)
    except Exception as exc:  # noqa: BLE001 - every model failure becomes ModelRequestError
        msg = f"Model request failed during {stage}: {exc}"
        raise ModelRequestError(msg, stage=stage) from exc
    return result.output


def generate_sql(
    model: ModelLike,
    question: str,
    schema: DatabaseSchema,
    dialect: Dialect,
    settings: PipelineSettings,
) -> str:
    """Ask the model for one SQL statement answering ``question``."""
    text = _run_agent(
        model,
        stage="generate",
        system_prompt=prompts.GENERATE_SYSTEM,
        output_type=str,
        prompt=prompts.generate_prompt(question, schema, dialect),
        settings=settings,
    )
    sql = strip_code_fences(text)
    if not sql:
        msg = "Model did not return a SQL query"
        raise ModelRequestError(msg, stage="generate")
    return sql


def explain_and_fix_sql(
    model: ModelLike,
    sql: str,
    error_message: str,
    dialect: Dialect,
    settings: PipelineSettings,
) -> RepairProposal:
    """Ask the model why ``sql`` failed and how to fix it."""
    proposal = _run_agent(
        model,
        stage="repair",
        system_prompt=prompts.REPAIR_SYSTEM,
        output_type=RepairProposal,
        prompt=prompts.repair_prompt(sql, error_message, dialect),
        settings=settings,
    )
    explanation = proposal.explanation.strip()
    if not explanation:
        msg = "Model returned an empty explanation"
        raise ModelRequestError(msg, stage="repair")
    fixed = strip_code_fences(proposal.fixed_sql) if proposal.fixed_sql else ""
    return RepairProposal(explanation=explanation, fixed_sql=fixed or None)


def generate_answer(
    model: ModelLike,
    question: str,
    sql: str,
    sample_rows: list[dict[str, Any]],
    row_count: int,
    settings: PipelineSettings,
) -> str:
    """Ask the model to summarise a result sample in natural language."""
    text = _run_agent(
        model,
        stage="answer",
        system_prompt=prompts.ANSWER_SYSTEM,
        output_type=str,
        prompt=prompts.answer_prompt(question, sql, sample_rows, row_count),
        settings=settings,
    )
    return text.strip()


def validate_sql(
    model: ModelLike,
    question: str,
    sql: str,
    dialect: Dialect,
    settings: PipelineSettings,
) -> ValidationVerdict:
    """Ask the model whether ``sql`` is safe and appropriate for ``question``."""
    verdict = _run_agent(
        model,
        stage="validate",
        system_prompt=prompts.VALIDATE_SYSTEM,
        output_type=ValidationVerdict,
        prompt=prompts.validate_prompt(question, sql, dialect),
        settings=settings,
    )
    safe_sql = strip_code_fences(verdict.safe_sql) if verdict.safe_sql else None
    _logger.debug("Validation verdict: valid=%s reason=%s", verdict.valid, verdict.reason)
    return ValidationVerdict(valid=verdict.valid, reason=verdict.reason, safe_sql=safe_sql or None)

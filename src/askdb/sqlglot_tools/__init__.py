"""SQLGlot-backed checks for generated SQL.

Provides typed service wrappers around sqlglot. Implementation is pure and
dependency-injected for easy testing.
"""

from __future__ import annotations

from .models import (
    GlotDialect,
    SqlIdentifierRequest,
    SqlIdentifierResult,
    SqlPolicyRequest,
    SqlPolicyResult,
    SqlValidationRequest,
    SqlValidationResult,
)
from .service import SqlglotService, to_sqlglot_dialect

__all__ = [
    "GlotDialect",
    "SqlIdentifierRequest",
    "SqlIdentifierResult",
    "SqlPolicyRequest",
    "SqlPolicyResult",
    "SqlValidationRequest",
    "SqlValidationResult",
    "SqlglotService",
    "to_sqlglot_dialect",
]

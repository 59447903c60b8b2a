"""Schema inspection tool package."""

from __future__ import annotations

from .models import SchemaOverview

__all__ = ["SchemaOverview"]

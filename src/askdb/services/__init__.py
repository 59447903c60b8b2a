"""Services package for askdb.

Main Components:
- ConfigService: Environment-backed configuration for the MCP boundary
"""

from .config_service import ConfigService

__all__ = [
    "ConfigService",
]

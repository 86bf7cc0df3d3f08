"""MCP tool handlers for Jira operations.

This package contains MCP tool implementations that wrap the core JiraClient
with async handlers, flattened projections, and a uniform result envelope.
"""

from .errors import (
    ClientNotInitializedError,
    RoutingError,
    ToolNotFoundError,
    build_error_response,
)
from .fields import FIELD_SPECS
from .issues import ISSUE_SPECS
from .projects import PROJECT_SPECS
from .registry import ToolRegistry, ToolSpec
from .results import ToolFailure, ToolResult, ToolSuccess, to_envelope
from .users import USER_SPECS

ALL_SPECS: list[ToolSpec] = ISSUE_SPECS + PROJECT_SPECS + USER_SPECS + FIELD_SPECS

__all__ = [
    "build_error_response",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    "RoutingError",
    "ToolNotFoundError",
    "ClientNotInitializedError",
    # Results
    "ToolResult",
    "ToolSuccess",
    "ToolFailure",
    "to_envelope",
    # Spec lists
    "ALL_SPECS",
    "ISSUE_SPECS",
    "PROJECT_SPECS",
    "USER_SPECS",
    "FIELD_SPECS",
]

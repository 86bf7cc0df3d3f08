"""Error types and shared error handling for MCP tool handlers.

Four kinds of failure reach the agent, all as ``{"success": false, ...}``:

- remote/transport errors, normalized by the client into ``JiraApiError``;
- argument validation errors (carry a ``details`` list);
- routing errors: unknown tool, or no client configured;
- anything else a handler's mapping code raises.
"""

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import mcp.types as types

from ...core.client import JiraApiError, JiraClient
from .results import ToolFailure, ToolResult, to_envelope

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error occurred"

Handler = Callable[[JiraClient, dict[str, Any]], Awaitable[ToolResult]]


class RoutingError(Exception):
    """A call that cannot be routed to any handler."""


class ToolNotFoundError(RoutingError):
    def __init__(self, name: str):
        super().__init__(f'Tool "{name}" not found')
        self.name = name


class ClientNotInitializedError(RoutingError):
    def __init__(self) -> None:
        super().__init__(
            "Jira client not initialized. Please configure with valid credentials."
        )


def tool_handler(func: Handler) -> Handler:
    """Convert any exception raised by a handler into a ToolFailure.

    Handlers therefore never raise across the registry boundary.
    """

    @functools.wraps(func)
    async def wrapper(client: JiraClient, args: dict[str, Any]) -> ToolResult:
        try:
            return await func(client, args)
        except JiraApiError as e:
            return ToolFailure(e.message)
        except Exception as e:
            logger.exception("Unexpected error in %s", func.__name__)
            return ToolFailure(str(e) or UNKNOWN_ERROR)

    return wrapper


def build_error_response(
    message: str, details: list[dict[str, Any]] | None = None
) -> types.CallToolResult:
    """Build the envelope for a failure that happened outside any handler.

    Examples:
        >>> build_error_response('Tool "nope" not found')
        CallToolResult(content=[TextContent(...)])
    """
    return to_envelope(ToolFailure(message, details))

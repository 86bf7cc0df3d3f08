"""ToolSpec and ToolRegistry: discovery and dispatch for MCP tools.

Key concepts:
- ToolSpec: Immutable dataclass linking a tool name and description, its
  declared arguments (a tuple of FieldSpec), and an async handler with
  signature (client, args) -> ToolResult.
- ToolRegistry: Owns the name -> ToolSpec map. ``list_tools()`` derives the
  discovery descriptors from each spec's fields on every call;
  ``call_tool()`` looks up, validates, and executes; ``dispatch()`` also
  turns routing errors into failures and wraps the result in the MCP
  envelope.
"""

import logging
from dataclasses import dataclass
from typing import Any

import mcp.types as types
from pydantic import BaseModel, ValidationError

from ...core.client import JiraClient
from .errors import (
    ClientNotInitializedError,
    Handler,
    RoutingError,
    ToolNotFoundError,
    build_error_response,
)
from .results import ToolFailure, ToolResult, to_envelope
from .schema import (
    FieldSpec,
    build_argument_model,
    build_input_schema,
    format_validation_errors,
    validate_arguments,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Immutable definition of a single MCP tool.

    Attributes:
        name: Unique tool name.
        description: Shown to the agent in the discovery listing.
        arguments: Declared arguments; the single source for validation
            and the advertised inputSchema.
        handler: Async handler with signature (client, args) -> ToolResult.
    """

    name: str
    description: str
    arguments: tuple[FieldSpec, ...]
    handler: Handler

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=build_input_schema(self.arguments),
        )


class ToolRegistry:
    """Registry of ToolSpecs keyed by name.

    Raises:
        ValueError: At construction, if two specs share a name or a spec
            declares duplicate arguments.
    """

    def __init__(self, specs: list[ToolSpec]):
        self._specs: dict[str, ToolSpec] = {}
        self._models: dict[str, type[BaseModel]] = {}
        for spec in specs:
            if spec.name in self._specs:
                raise ValueError(f"Duplicate tool name: {spec.name}")
            self._specs[spec.name] = spec
            self._models[spec.name] = build_argument_model(
                spec.name, spec.arguments
            )

    def list_tools(self) -> list[types.Tool]:
        """Return discovery descriptors for all registered specs."""
        return [spec.to_tool() for spec in self._specs.values()]

    def tool_names(self) -> list[str]:
        return list(self._specs)

    def tool_count(self) -> int:
        """Return number of registered tools."""
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: Any,
        client: JiraClient | None,
    ) -> ToolResult:
        """Look up, validate, and execute a tool.

        Args:
            name: Tool name to invoke.
            arguments: Raw tool arguments (may be None).
            client: JiraClient instance, or None when not configured.

        Returns:
            The handler's ToolResult, or a ToolFailure with ``details`` when
            the arguments fail validation.

        Raises:
            ToolNotFoundError: If the tool name is not registered.
            ClientNotInitializedError: If client is None.
        """
        spec = self._specs.get(name)
        if spec is None:
            raise ToolNotFoundError(name)
        if client is None:
            raise ClientNotInitializedError()

        try:
            args = validate_arguments(
                self._models[name], spec.arguments, arguments
            )
        except ValidationError as e:
            logger.info(
                "Invalid arguments for %s: %d violation(s)",
                name,
                e.error_count(),
            )
            return ToolFailure(
                "Invalid arguments",
                details=format_validation_errors(e, spec.arguments),
            )

        try:
            return await spec.handler(client, args)
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return ToolFailure(str(e) or "Unknown error occurred")

    async def dispatch(
        self,
        name: str,
        arguments: Any,
        client: JiraClient | None,
    ) -> types.CallToolResult:
        """Run a tool call end to end and wrap the result in the MCP envelope.

        Routing errors become failures; nothing is raised.
        """
        try:
            result = await self.call_tool(name, arguments, client)
        except RoutingError as e:
            logger.warning("Rejected call to %s: %s", name, e)
            return build_error_response(str(e))
        return to_envelope(result)

"""Tool result variants and the MCP envelope they travel in.

Handlers return a ``ToolResult``: either ``ToolSuccess`` or ``ToolFailure``.
The dispatcher serializes it as pretty-printed JSON into a single text
content item. Callers tell outcomes apart by the ``success`` flag inside the
payload, never by the envelope.
"""

import json
from dataclasses import dataclass
from typing import Any

import mcp.types as types


@dataclass(frozen=True, slots=True)
class ToolSuccess:
    data: Any

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "data": self.data}


@dataclass(frozen=True, slots=True)
class ToolFailure:
    error: str
    details: list[dict[str, Any]] | None = None

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": False, "error": self.error}
        if self.details is not None:
            payload["details"] = self.details
        return payload


ToolResult = ToolSuccess | ToolFailure


def is_last_page(start_at: int, returned: int, total: int) -> bool:
    """Offset pagination: the page is last once it reaches ``total``."""
    return start_at + returned >= total


def to_envelope(result: ToolResult) -> types.CallToolResult:
    """Wrap a ToolResult into the outer MCP CallToolResult."""
    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text",
                text=json.dumps(
                    result.to_dict(), indent=2, ensure_ascii=False, default=str
                ),
            )
        ]
    )

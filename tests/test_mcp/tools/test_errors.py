"""Tests for mcp/tools/errors.py and results.py - failures and the envelope.

Covers:
- tool_handler() converting every exception into a ToolFailure
- routing error messages
- build_error_response() / to_envelope() structure and format
"""

import json

import mcp.types as types

from jira_mcp_server.core.client import JiraApiError
from jira_mcp_server.mcp.tools.errors import (
    UNKNOWN_ERROR,
    ClientNotInitializedError,
    RoutingError,
    ToolNotFoundError,
    build_error_response,
    tool_handler,
)
from jira_mcp_server.mcp.tools.results import (
    ToolFailure,
    ToolSuccess,
    is_last_page,
    to_envelope,
)


def _get_text(result: types.CallToolResult) -> str:
    """Extract text from first content item with type narrowing for Pyright."""
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


# ---------------------------------------------------------------------------
# tool_handler
# ---------------------------------------------------------------------------


class TestToolHandler:
    async def test_passes_result_through(self):
        @tool_handler
        async def handler(client, args):
            return ToolSuccess(args)

        assert await handler(None, {"a": 1}) == ToolSuccess({"a": 1})

    async def test_api_error_message(self):
        @tool_handler
        async def handler(client, args):
            raise JiraApiError("Issue does not exist", status_code=404)

        assert await handler(None, {}) == ToolFailure("Issue does not exist")

    async def test_mapping_error(self):
        @tool_handler
        async def handler(client, args):
            return ToolSuccess(None["fields"])

        result = await handler(None, {})
        assert isinstance(result, ToolFailure)
        assert "not subscriptable" in result.error

    async def test_empty_message_falls_back(self):
        @tool_handler
        async def handler(client, args):
            raise RuntimeError()

        assert await handler(None, {}) == ToolFailure(UNKNOWN_ERROR)

    def test_preserves_name(self):
        @tool_handler
        async def _handle_search(client, args):
            return ToolSuccess(None)

        assert _handle_search.__name__ == "_handle_search"


# ---------------------------------------------------------------------------
# Routing errors
# ---------------------------------------------------------------------------


class TestRoutingErrors:
    def test_tool_not_found(self):
        error = ToolNotFoundError("jira_nope")
        assert isinstance(error, RoutingError)
        assert str(error) == 'Tool "jira_nope" not found'
        assert error.name == "jira_nope"

    def test_client_not_initialized(self):
        error = ClientNotInitializedError()
        assert isinstance(error, RoutingError)
        assert str(error) == (
            "Jira client not initialized. Please configure with valid credentials."
        )


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class TestEnvelope:
    def test_success_payload(self):
        result = to_envelope(ToolSuccess({"key": "IDS-1"}))
        assert isinstance(result, types.CallToolResult)
        assert len(result.content) == 1
        assert json.loads(_get_text(result)) == {
            "success": True,
            "data": {"key": "IDS-1"},
        }

    def test_pretty_printed(self):
        text = _get_text(to_envelope(ToolSuccess({"key": "IDS-1"})))
        assert text == json.dumps(
            {"success": True, "data": {"key": "IDS-1"}}, indent=2
        )

    def test_failure_without_details(self):
        payload = json.loads(_get_text(to_envelope(ToolFailure("boom"))))
        assert payload == {"success": False, "error": "boom"}

    def test_is_error_never_set(self):
        assert not to_envelope(ToolFailure("boom")).isError

    def test_non_ascii_kept(self):
        text = _get_text(to_envelope(ToolSuccess({"name": "Zoë"})))
        assert "Zoë" in text

    def test_build_error_response_with_details(self):
        details = [{"path": ["jql"], "code": "missing"}]
        payload = json.loads(
            _get_text(build_error_response("Invalid arguments", details))
        )
        assert payload == {
            "success": False,
            "error": "Invalid arguments",
            "details": details,
        }

    def test_variant_flags(self):
        assert ToolSuccess(1).success is True
        assert ToolFailure("x").success is False


def test_is_last_page_boundaries():
    assert is_last_page(0, 0, 0)
    assert is_last_page(40, 5, 45)
    assert not is_last_page(0, 50, 120)

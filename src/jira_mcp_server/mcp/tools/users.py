"""User tool handlers for MCP server."""

from typing import Any

from ...core.async_utils import run_sync
from ...core.client import JiraClient
from .constants import MAX_RESULTS_DESCRIPTION, START_AT_DESCRIPTION
from .errors import tool_handler
from .registry import ToolSpec
from .results import ToolResult, ToolSuccess
from .schema import integer, string


def project_user(user: dict[str, Any]) -> dict[str, Any]:
    return {
        "accountId": user.get("accountId"),
        "displayName": user.get("displayName"),
        "emailAddress": user.get("emailAddress"),
        "active": user.get("active"),
        "timeZone": user.get("timeZone"),
        "accountType": user.get("accountType"),
        "avatarUrls": user.get("avatarUrls"),
    }


@tool_handler
async def _handle_current(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_get_current_user."""
    user = await run_sync(client.get_current_user, expand=args["expand"])
    return ToolSuccess(project_user(user))


@tool_handler
async def _handle_get(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_get_user."""
    user = await run_sync(client.get_user, args["accountId"], expand=args["expand"])
    return ToolSuccess(project_user(user))


@tool_handler
async def _handle_search(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_search_users."""
    users = await run_sync(
        client.search_users,
        query=args["query"],
        username=args["username"],
        account_id=args["accountId"],
        start_at=args["startAt"],
        max_results=args["maxResults"],
    )
    users = users or []
    return ToolSuccess(
        {"total": len(users), "users": [project_user(u) for u in users]}
    )


USER_SPECS: list[ToolSpec] = [
    ToolSpec(
        name="jira_get_current_user",
        description="Get information about the currently authenticated JIRA user.",
        arguments=(
            string(
                "expand",
                "Additional data to expand (groups, applicationRoles)",
                optional=True,
            ),
        ),
        handler=_handle_current,
    ),
    ToolSpec(
        name="jira_get_user",
        description="Get information about a specific JIRA user by account ID.",
        arguments=(
            string("accountId", "The account ID of the user"),
            string("expand", "Additional data to expand", optional=True),
        ),
        handler=_handle_get,
    ),
    ToolSpec(
        name="jira_search_users",
        description=(
            "Search for JIRA users by display name or email. On Jira Server, "
            "use username instead of query."
        ),
        arguments=(
            string(
                "query",
                "Search string matched against display name and email",
                optional=True,
            ),
            string(
                "username",
                "Search string for Jira Server / Data Center instances",
                optional=True,
            ),
            string("accountId", "Find a user by account ID", optional=True),
            integer("maxResults", MAX_RESULTS_DESCRIPTION, optional=True, minimum=0),
            integer("startAt", START_AT_DESCRIPTION, default=0, minimum=0),
        ),
        handler=_handle_search,
    ),
]

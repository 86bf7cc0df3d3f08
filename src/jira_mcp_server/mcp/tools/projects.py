"""Project tool handlers for MCP server."""

from typing import Any

from ...core.async_utils import run_sync
from ...core.client import JiraClient
from .constants import (
    MAX_RESULTS_DESCRIPTION,
    PROJECT_KEY_DESCRIPTION,
    START_AT_DESCRIPTION,
)
from .errors import tool_handler
from .registry import ToolSpec
from .results import ToolResult, ToolSuccess, is_last_page
from .schema import integer, string, string_list

ORDER_BY_VALUES = (
    "category",
    "-category",
    "+category",
    "key",
    "-key",
    "+key",
    "name",
    "-name",
    "+name",
    "owner",
    "-owner",
    "+owner",
)

ACTION_VALUES = ("view", "browse", "edit")


def project_summary(project: dict[str, Any]) -> dict[str, Any]:
    """Flatten a project as returned by the list and search endpoints."""
    return {
        "key": project.get("key"),
        "id": project.get("id"),
        "name": project.get("name"),
        "projectTypeKey": project.get("projectTypeKey"),
        "style": project.get("style"),
        # Heuristic: Jira does not document "simplified" as a privacy flag.
        "isPrivate": project.get("simplified") is False,
        "avatarUrls": project.get("avatarUrls"),
    }


def project_detail(project: dict[str, Any]) -> dict[str, Any]:
    lead = project.get("lead")
    category = project.get("projectCategory")
    detail = project_summary(project)
    detail.update(
        {
            "description": project.get("description"),
            "lead": (
                {
                    "displayName": lead.get("displayName"),
                    "accountId": lead.get("accountId"),
                }
                if lead
                else None
            ),
            "category": (
                {
                    "id": category.get("id"),
                    "name": category.get("name"),
                    "description": category.get("description"),
                }
                if category
                else None
            ),
            "components": [
                {
                    "id": c.get("id"),
                    "name": c.get("name"),
                    "description": c.get("description"),
                }
                for c in project.get("components") or []
            ],
            "issueTypes": [
                {
                    "id": it.get("id"),
                    "name": it.get("name"),
                    "description": it.get("description"),
                    "subtask": it.get("subtask"),
                    "hierarchyLevel": it.get("hierarchyLevel"),
                }
                for it in project.get("issueTypes") or []
            ],
            "versions": [
                {
                    "id": v.get("id"),
                    "name": v.get("name"),
                    "description": v.get("description"),
                    "archived": v.get("archived"),
                    "released": v.get("released"),
                    "releaseDate": v.get("releaseDate"),
                }
                for v in project.get("versions") or []
            ],
        }
    )
    return detail


@tool_handler
async def _handle_list(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_list_projects."""
    projects = await run_sync(
        client.get_all_projects, expand=args["expand"], recent=args["recent"]
    )
    projects = projects or []
    return ToolSuccess(
        {
            "total": len(projects),
            "projects": [project_summary(p) for p in projects],
        }
    )


@tool_handler
async def _handle_get(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_get_project."""
    project = await run_sync(
        client.get_project, args["projectIdOrKey"], expand=args["expand"]
    )
    return ToolSuccess(project_detail(project))


@tool_handler
async def _handle_search(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_search_projects."""
    result = await run_sync(
        client.search_projects,
        query=args["query"],
        start_at=args["startAt"],
        max_results=args["maxResults"],
        order_by=args["orderBy"],
        type_key=args["typeKey"],
        category_id=args["categoryId"],
        action=args["action"],
    )
    projects = result.get("values") or []
    start_at = result.get("startAt", args["startAt"]) or 0
    total = result.get("total", 0) or 0
    is_last = result.get("isLast")
    if is_last is None:
        is_last = is_last_page(start_at, len(projects), total)
    return ToolSuccess(
        {
            "total": total,
            "startAt": start_at,
            "maxResults": result.get("maxResults"),
            "isLast": is_last,
            "projects": [project_summary(p) for p in projects],
        }
    )


PROJECT_SPECS: list[ToolSpec] = [
    ToolSpec(
        name="jira_list_projects",
        description="List all JIRA projects accessible to the authenticated user.",
        arguments=(
            string_list(
                "expand",
                'Additional data to expand. Example: ["description", "lead", "url", "projectKeys"]',
                optional=True,
            ),
            integer(
                "recent",
                "Return only the N most recently accessed projects",
                optional=True,
                minimum=0,
            ),
        ),
        handler=_handle_list,
    ),
    ToolSpec(
        name="jira_get_project",
        description=(
            "Get detailed information about a JIRA project, including lead, "
            "components, issue types, and versions."
        ),
        arguments=(
            string("projectIdOrKey", PROJECT_KEY_DESCRIPTION),
            string_list(
                "expand",
                'Additional data to expand. Example: ["description", "lead", "issueTypes"]',
                optional=True,
            ),
        ),
        handler=_handle_get,
    ),
    ToolSpec(
        name="jira_search_projects",
        description="Search for JIRA projects by name, key, type, or category.",
        arguments=(
            string("query", "Text matched against project key and name", optional=True),
            integer("maxResults", MAX_RESULTS_DESCRIPTION, optional=True, minimum=0),
            integer("startAt", START_AT_DESCRIPTION, default=0, minimum=0),
            string(
                "orderBy",
                "Order results by field (default: key)",
                enum=ORDER_BY_VALUES,
                default="key",
            ),
            string("typeKey", "Project type key, e.g. software", optional=True),
            integer("categoryId", "Project category ID", optional=True),
            string(
                "action",
                "Only return projects the user has this permission for (default: browse)",
                enum=ACTION_VALUES,
                default="browse",
            ),
        ),
        handler=_handle_search,
    ),
]

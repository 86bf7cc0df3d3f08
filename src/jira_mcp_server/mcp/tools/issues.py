"""Issue tool handlers for MCP server.

This module implements issue read operations: search, get, comments, and
transitions. Handlers call the JiraClient through run_sync() and flatten the
REST payloads into compact projections.

The ``customFields`` map of a single issue only keeps keys of the form
``customfield_<digits>``. Keys that merely start with ``customfield_`` but
have a non-numeric suffix are dropped.
"""

import json
import re
from typing import Any

from ...core.async_utils import run_sync
from ...core.client import JiraClient
from .constants import (
    ISSUE_KEY_DESCRIPTION,
    MAX_RESULTS_DESCRIPTION,
    START_AT_DESCRIPTION,
    UNASSIGNED,
)
from .errors import tool_handler
from .registry import ToolSpec
from .results import ToolResult, ToolSuccess, is_last_page
from .schema import boolean, integer, string, string_list

# Numeric suffix only; a bare "customfield_" prefix is not enough.
CUSTOM_FIELD_PATTERN = re.compile(r"^customfield_\d+$")


def _name(value: dict[str, Any] | None, key: str = "name") -> Any:
    return (value or {}).get(key)


def project_search_issue(issue: dict[str, Any]) -> dict[str, Any]:
    """Flatten an issue from a search page."""
    fields = issue.get("fields") or {}
    issue_type = fields.get("issuetype") or {}
    return {
        "key": issue.get("key"),
        "id": issue.get("id"),
        "summary": fields.get("summary"),
        "status": _name(fields.get("status")),
        "priority": _name(fields.get("priority")),
        "assignee": _name(fields.get("assignee"), "displayName") or UNASSIGNED,
        "reporter": _name(fields.get("reporter"), "displayName"),
        "created": fields.get("created"),
        "updated": fields.get("updated"),
        "project": _name(fields.get("project")),
        "issueType": {
            "id": issue_type.get("id"),
            "name": issue_type.get("name"),
            "subtask": issue_type.get("subtask"),
        },
        "labels": fields.get("labels"),
        "components": [c.get("name") for c in fields.get("components") or []],
    }


def _person(user: dict[str, Any] | None) -> dict[str, Any] | None:
    if not user:
        return None
    return {
        "displayName": user.get("displayName"),
        "accountId": user.get("accountId"),
        "email": user.get("emailAddress"),
    }


def project_issue(issue: dict[str, Any]) -> dict[str, Any]:
    """Flatten a single issue, bucketing custom fields separately."""
    fields = issue.get("fields") or {}
    status = fields.get("status") or {}
    priority = fields.get("priority") or {}
    project = fields.get("project") or {}
    issue_type = fields.get("issuetype") or {}
    return {
        "key": issue.get("key"),
        "id": issue.get("id"),
        "summary": fields.get("summary"),
        "description": fields.get("description"),
        "status": {
            "name": status.get("name"),
            "category": _name(status.get("statusCategory")),
        },
        "priority": {"name": priority.get("name"), "id": priority.get("id")},
        "assignee": _person(fields.get("assignee")),
        "reporter": _person(fields.get("reporter")),
        "created": fields.get("created"),
        "updated": fields.get("updated"),
        "resolved": fields.get("resolutiondate"),
        "project": {"key": project.get("key"), "name": project.get("name")},
        "issueType": {
            "name": issue_type.get("name"),
            "subtask": issue_type.get("subtask"),
        },
        "labels": fields.get("labels"),
        "components": [
            {"id": c.get("id"), "name": c.get("name")}
            for c in fields.get("components") or []
        ],
        "fixVersions": [
            {"id": v.get("id"), "name": v.get("name"), "released": v.get("released")}
            for v in fields.get("fixVersions") or []
        ],
        "customFields": {
            key: value
            for key, value in fields.items()
            if CUSTOM_FIELD_PATTERN.match(key)
        },
    }


def project_comment(comment: dict[str, Any]) -> dict[str, Any]:
    body = comment.get("body")
    if body is not None and not isinstance(body, str):
        # Atlassian Document Format
        body = json.dumps(body)
    return {
        "id": comment.get("id"),
        "author": _name(comment.get("author"), "displayName"),
        "body": body,
        "created": comment.get("created"),
        "updated": comment.get("updated"),
        "updateAuthor": _name(comment.get("updateAuthor"), "displayName"),
    }


def project_transition(transition: dict[str, Any]) -> dict[str, Any]:
    to = transition.get("to") or {}
    return {
        "id": transition.get("id"),
        "name": transition.get("name"),
        "to": {
            "id": to.get("id"),
            "name": to.get("name"),
            "statusCategory": _name(to.get("statusCategory")),
        },
        "isAvailable": transition.get("isAvailable") is not False,
        "hasScreen": transition.get("hasScreen"),
        "isGlobal": transition.get("isGlobal"),
        "isInitial": transition.get("isInitial"),
    }


@tool_handler
async def _handle_search(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_search_issues."""
    if client.uses_cursor_search:
        result = await run_sync(
            client.search_issues_jql,
            args["jql"],
            max_results=args["maxResults"],
            fields=args["fields"],
            expand=args["expand"],
            properties=args["properties"],
            next_page_token=args["nextPageToken"],
        )
        issues = result.get("issues") or []
        return ToolSuccess(
            {
                "isLast": bool(result.get("isLast", True)),
                "nextPageToken": result.get("nextPageToken"),
                "maxResults": client.page_size(args["maxResults"]),
                "issues": [project_search_issue(i) for i in issues],
            }
        )

    result = await run_sync(
        client.search_issues,
        args["jql"],
        start_at=args["startAt"],
        max_results=args["maxResults"],
        fields=args["fields"],
        expand=args["expand"],
        properties=args["properties"],
    )
    issues = result.get("issues") or []
    start_at = result.get("startAt", args["startAt"]) or 0
    total = result.get("total", 0) or 0
    return ToolSuccess(
        {
            "total": total,
            "startAt": start_at,
            "maxResults": result.get("maxResults"),
            "isLast": is_last_page(start_at, len(issues), total),
            "issues": [project_search_issue(i) for i in issues],
        }
    )


@tool_handler
async def _handle_get(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_get_issue."""
    issue = await run_sync(
        client.get_issue,
        args["issueIdOrKey"],
        fields=args["fields"],
        expand=args["expand"],
        properties=args["properties"],
        update_history=args["updateHistory"],
    )
    return ToolSuccess(project_issue(issue))


@tool_handler
async def _handle_comments(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_get_issue_comments."""
    result = await run_sync(
        client.get_issue_comments,
        args["issueIdOrKey"],
        start_at=args["startAt"],
        max_results=args["maxResults"],
        order_by=args["orderBy"],
    )
    comments = result.get("comments") or []
    start_at = result.get("startAt", args["startAt"]) or 0
    total = result.get("total", 0) or 0
    return ToolSuccess(
        {
            "total": total,
            "startAt": start_at,
            "maxResults": result.get("maxResults"),
            "isLast": is_last_page(start_at, len(comments), total),
            "comments": [project_comment(c) for c in comments],
        }
    )


@tool_handler
async def _handle_transitions(
    client: JiraClient, args: dict[str, Any]
) -> ToolResult:
    """Handle jira_get_issue_transitions."""
    result = await run_sync(
        client.get_issue_transitions,
        args["issueIdOrKey"],
        include_unavailable_transitions=args["includeUnavailable"],
    )
    return ToolSuccess(
        {
            "transitions": [
                project_transition(t) for t in result.get("transitions") or []
            ]
        }
    )


ISSUE_SPECS: list[ToolSpec] = [
    ToolSpec(
        name="jira_search_issues",
        description=(
            "Search for JIRA issues using JQL (JIRA Query Language). Use this to "
            "find issues by project, status, assignee, text content, etc. "
            "Returns a summary of matching issues with page metadata."
        ),
        arguments=(
            string(
                "jql",
                'JQL query string. Examples: "project = IDS", '
                '"assignee = currentUser() AND status = Open", "key = IDS-10314". '
                'Use "key = ISSUE-123" to query a specific issue, not a text search.',
            ),
            integer("maxResults", MAX_RESULTS_DESCRIPTION, optional=True, minimum=0),
            string_list(
                "fields",
                "Field names to include. If omitted, returns common fields: "
                "summary, status, priority, assignee, reporter, created, updated, "
                "issuetype, project, labels, components",
                optional=True,
            ),
            string_list(
                "expand",
                'Entities to expand. Example: ["changelog", "transitions"]',
                optional=True,
            ),
            string_list(
                "properties",
                'Issue properties to include. Use "*all" to include all properties',
                optional=True,
            ),
            integer("startAt", START_AT_DESCRIPTION, default=0, minimum=0),
            string(
                "nextPageToken",
                "Cursor from a previous page (only used with cursor search)",
                optional=True,
            ),
        ),
        handler=_handle_search,
    ),
    ToolSpec(
        name="jira_get_issue",
        description=(
            'Get detailed information about a JIRA issue by its key (e.g., "IDS-10194"), '
            "including status, assignee, and custom fields. Request only the fields "
            "you need; use jira_search_issue_fields to discover custom field IDs."
        ),
        arguments=(
            string("issueIdOrKey", ISSUE_KEY_DESCRIPTION),
            string_list(
                "fields",
                'Specific fields to return. Example: ["summary", "status", "customfield_10001"]',
                optional=True,
            ),
            string_list(
                "expand",
                'Additional data to expand. Example: ["changelog", "renderedFields"]',
                optional=True,
            ),
            string_list(
                "properties",
                'Issue properties to include. Use "*all" to include all properties',
                optional=True,
            ),
            boolean(
                "updateHistory",
                "Whether to add the issue to the user's view history",
                optional=True,
            ),
        ),
        handler=_handle_get,
    ),
    ToolSpec(
        name="jira_get_issue_comments",
        description=(
            "Get the comments of a JIRA issue. Returns a paginated list of "
            "comments with author and timestamp information."
        ),
        arguments=(
            string("issueIdOrKey", ISSUE_KEY_DESCRIPTION),
            integer("maxResults", MAX_RESULTS_DESCRIPTION, optional=True, minimum=0),
            integer("startAt", START_AT_DESCRIPTION, default=0, minimum=0),
            string(
                "orderBy",
                'Sort order, e.g. "created" or "-created"',
                optional=True,
            ),
        ),
        handler=_handle_comments,
    ),
    ToolSpec(
        name="jira_get_issue_transitions",
        description=(
            "Get the workflow transitions available for a JIRA issue, i.e. which "
            "status changes are possible (e.g., Open -> In Progress)."
        ),
        arguments=(
            string("issueIdOrKey", ISSUE_KEY_DESCRIPTION),
            boolean(
                "includeUnavailable",
                "Include transitions not available to the current user (default: false)",
                default=False,
            ),
        ),
        handler=_handle_transitions,
    ),
]

"""Field discovery tool handlers for MCP server.

Agents rarely know custom field IDs such as ``customfield_25931``. These
tools expose issue types, create-screen field metadata, and an issue's edit
metadata so that IDs can be looked up by display name.

Name matching is a case-insensitive substring test. Results are sorted by
display name (casefolded); ties keep the order Jira returned.
"""

from typing import Any

from ...core.async_utils import run_sync
from ...core.client import JiraClient
from .constants import (
    ISSUE_KEY_DESCRIPTION,
    MAX_RESULTS_DESCRIPTION,
    PROJECT_KEY_DESCRIPTION,
    START_AT_DESCRIPTION,
)
from .errors import tool_handler
from .registry import ToolSpec
from .results import ToolResult, ToolSuccess, is_last_page
from .schema import boolean, integer, string, string_list


def _sort_key(entry: dict[str, Any]) -> str:
    return str(entry.get("name") or "").casefold()


def matches_term(name: str | None, term: str) -> bool:
    return term.casefold() in (name or "").casefold()


def first_matching_term(name: str | None, terms: list[str]) -> str | None:
    """Return the first term, in the given order, contained in ``name``."""
    for term in terms:
        if matches_term(name, term):
            return term
    return None


def _edit_meta_fields(meta: dict[str, Any] | None) -> dict[str, Any]:
    return (meta or {}).get("fields") or {}


def field_summary(field_id: str, field: dict[str, Any]) -> dict[str, Any]:
    """Flatten one editmeta entry."""
    schema = field.get("schema") or {}
    return {
        "fieldId": field_id,
        "name": field.get("name"),
        "required": field.get("required"),
        "type": schema.get("type"),
        "custom": "custom" in schema,
    }


def _create_meta_field(key: str, field: dict[str, Any]) -> dict[str, Any]:
    schema = field.get("schema") or {}
    return {
        "key": key,
        "name": field.get("name"),
        "required": field.get("required"),
        "schema": {
            "type": schema.get("type"),
            "items": schema.get("items"),
            "system": schema.get("system"),
            "custom": schema.get("custom"),
            "customId": schema.get("customId"),
        },
        "hasDefaultValue": field.get("hasDefaultValue"),
        "operations": field.get("operations"),
        "allowedValues": field.get("allowedValues"),
        "autoCompleteUrl": field.get("autoCompleteUrl"),
    }


def create_meta_fields(result: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten create-screen metadata.

    Jira Cloud returns a ``fields`` map keyed by field ID; Server and Data
    Center return a paginated ``values`` list whose entries carry ``fieldId``.
    """
    fields = result.get("fields")
    if isinstance(fields, dict):
        return [_create_meta_field(key, field) for key, field in fields.items()]
    return [
        _create_meta_field(field.get("fieldId") or field.get("key"), field)
        for field in result.get("values") or []
    ]


@tool_handler
async def _handle_issue_types(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_get_issue_types."""
    result = await run_sync(
        client.get_issue_types_for_project,
        args["projectIdOrKey"],
        start_at=args["startAt"],
        max_results=args["maxResults"],
    )
    values = result.get("values") or []
    start_at = result.get("startAt", args["startAt"]) or 0
    total = result.get("total", len(values)) or 0
    is_last = result.get("isLast")
    if is_last is None:
        is_last = is_last_page(start_at, len(values), total)
    return ToolSuccess(
        {
            "total": total,
            "startAt": start_at,
            "maxResults": result.get("maxResults"),
            "isLast": is_last,
            "issueTypes": [
                {
                    "id": it.get("id"),
                    "name": it.get("name"),
                    "description": it.get("description"),
                    "subtask": it.get("subtask"),
                    "iconUrl": it.get("iconUrl"),
                }
                for it in values
            ],
        }
    )


@tool_handler
async def _handle_issue_type_fields(
    client: JiraClient, args: dict[str, Any]
) -> ToolResult:
    """Handle jira_get_issue_type_fields."""
    result = await run_sync(
        client.get_issue_type_fields,
        args["projectIdOrKey"],
        args["issueTypeId"],
        start_at=args["startAt"],
        max_results=args["maxResults"],
    )
    result = result or {}
    fields = create_meta_fields(result)
    return ToolSuccess(
        {
            "issueType": {
                "id": result.get("id"),
                "name": result.get("name"),
                "description": result.get("description"),
                "subtask": result.get("subtask"),
            },
            "fields": fields,
            "totalFields": len(fields),
        }
    )


@tool_handler
async def _handle_field_names(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_get_issue_field_names."""
    meta = await run_sync(client.get_issue_edit_meta, args["issueIdOrKey"])
    fields = [
        field_summary(field_id, field)
        for field_id, field in _edit_meta_fields(meta).items()
    ]
    return ToolSuccess(
        {
            "issueKey": args["issueIdOrKey"],
            "totalFields": len(fields),
            "fields": sorted(fields, key=_sort_key),
        }
    )


@tool_handler
async def _handle_search_fields(
    client: JiraClient, args: dict[str, Any]
) -> ToolResult:
    """Handle jira_search_issue_fields."""
    terms = args["searchTerms"]
    meta = await run_sync(client.get_issue_edit_meta, args["issueIdOrKey"])

    matches = []
    for field_id, field in _edit_meta_fields(meta).items():
        term = first_matching_term(field.get("name"), terms)
        if term is None:
            continue
        match = field_summary(field_id, field)
        match["matchedTerm"] = term
        matches.append(match)

    return ToolSuccess(
        {
            "issueKey": args["issueIdOrKey"],
            "searchTerms": terms,
            "totalMatches": len(matches),
            "matches": sorted(matches, key=_sort_key),
        }
    )


@tool_handler
async def _handle_list_fields(client: JiraClient, args: dict[str, Any]) -> ToolResult:
    """Handle jira_list_fields."""
    all_fields = await run_sync(client.get_all_fields)
    query = args["query"]
    fields = []
    for field in all_fields or []:
        if args["customOnly"] and not field.get("custom"):
            continue
        if query and not matches_term(field.get("name"), query):
            continue
        fields.append(
            {
                "id": field.get("id"),
                "name": field.get("name"),
                "custom": field.get("custom"),
                "searchable": field.get("searchable"),
                "navigable": field.get("navigable"),
                "orderable": field.get("orderable"),
                "clauseNames": field.get("clauseNames"),
                "schemaType": (field.get("schema") or {}).get("type"),
            }
        )
    return ToolSuccess({"total": len(fields), "fields": sorted(fields, key=_sort_key)})


FIELD_SPECS: list[ToolSpec] = [
    ToolSpec(
        name="jira_get_issue_types",
        description=(
            "Get the issue types available for a project, with their IDs and "
            "names. Use this before jira_get_issue_type_fields."
        ),
        arguments=(
            string("projectIdOrKey", PROJECT_KEY_DESCRIPTION),
            integer("maxResults", MAX_RESULTS_DESCRIPTION, optional=True, minimum=0),
            integer("startAt", START_AT_DESCRIPTION, default=0, minimum=0),
        ),
        handler=_handle_issue_types,
    ),
    ToolSpec(
        name="jira_get_issue_type_fields",
        description=(
            "Get the fields available when creating an issue of a given type in "
            "a project: which are required, their types, allowed values, and "
            "whether they have defaults."
        ),
        arguments=(
            string("projectIdOrKey", PROJECT_KEY_DESCRIPTION),
            string("issueTypeId", 'The issue type ID. Example: "10001"'),
            integer("maxResults", MAX_RESULTS_DESCRIPTION, optional=True, minimum=0),
            integer("startAt", START_AT_DESCRIPTION, default=0, minimum=0),
        ),
        handler=_handle_issue_type_fields,
    ),
    ToolSpec(
        name="jira_get_issue_field_names",
        description=(
            "List the field IDs of an issue (like customfield_25931) with their "
            'display names (like "Target start"), read from its edit metadata.'
        ),
        arguments=(string("issueIdOrKey", ISSUE_KEY_DESCRIPTION),),
        handler=_handle_field_names,
    ),
    ToolSpec(
        name="jira_search_issue_fields",
        description=(
            "Find field IDs on an issue by display name. Matching is "
            'case-insensitive and partial: "test" matches "Task Test Procedure".'
        ),
        arguments=(
            string("issueIdOrKey", ISSUE_KEY_DESCRIPTION),
            string_list(
                "searchTerms",
                'Terms matched against field names. Example: ["test", "story points"]',
            ),
        ),
        handler=_handle_search_fields,
    ),
    ToolSpec(
        name="jira_list_fields",
        description=(
            "List all system and custom field definitions of the Jira instance, "
            "optionally filtered by name."
        ),
        arguments=(
            string("query", "Only return fields whose name contains this text", optional=True),
            boolean("customOnly", "Only return custom fields (default: false)", default=False),
        ),
        handler=_handle_list_fields,
    ),
]

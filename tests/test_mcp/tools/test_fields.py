"""Tests for field discovery tool handlers."""

import pytest

from jira_mcp_server.mcp.tools import FIELD_SPECS, ToolRegistry
from jira_mcp_server.mcp.tools.fields import (
    _handle_field_names,
    _handle_issue_type_fields,
    _handle_issue_types,
    _handle_list_fields,
    _handle_search_fields,
    create_meta_fields,
    first_matching_term,
)
from jira_mcp_server.mcp.tools.results import ToolSuccess

EDIT_META = {
    "fields": {
        "customfield_25931": {
            "name": "Target start",
            "required": False,
            "schema": {"type": "date", "custom": "com.atlassian.jpo:jpo-custom-field-baseline-start"},
        },
        "customfield_30100": {
            "name": "Task Test Procedure",
            "required": False,
            "schema": {"type": "string", "custom": "com.atlassian.jira.plugin.system.customfieldtypes:textarea"},
        },
        "duedate": {
            "name": "Due Date",
            "required": False,
            "schema": {"type": "date", "system": "duedate"},
        },
        "summary": {
            "name": "Summary",
            "required": True,
            "schema": {"type": "string", "system": "summary"},
        },
        "customfield_40000": {
            "name": "Latest Test Date",
            "required": False,
            "schema": {"type": "date", "custom": "x"},
        },
    }
}


@pytest.fixture
def registry():
    return ToolRegistry(FIELD_SPECS)


class TestFirstMatchingTerm:
    def test_case_insensitive_substring(self):
        assert first_matching_term("Task Test Procedure", ["TEST"]) == "TEST"

    def test_first_term_in_argument_order(self):
        assert first_matching_term("Latest Test Date", ["date", "test"]) == "date"
        assert first_matching_term("Latest Test Date", ["test", "date"]) == "test"

    def test_no_match(self):
        assert first_matching_term("Target start", ["test", "date"]) is None

    def test_missing_name(self):
        assert first_matching_term(None, ["x"]) is None


class TestSearchIssueFields:
    async def test_fuzzy_search(self, mock_jira_client):
        mock_jira_client.get_issue_edit_meta.return_value = EDIT_META

        result = await _handle_search_fields(
            mock_jira_client,
            {"issueIdOrKey": "IDS-10194", "searchTerms": ["test", "date"]},
        )

        mock_jira_client.get_issue_edit_meta.assert_called_once_with("IDS-10194")
        data = result.data
        names = [m["name"] for m in data["matches"]]
        assert "Task Test Procedure" in names
        assert "Target start" not in names
        assert names == sorted(names, key=str.casefold)
        assert names == ["Due Date", "Latest Test Date", "Task Test Procedure"]
        assert data["totalMatches"] == 3
        assert data["issueKey"] == "IDS-10194"
        assert data["searchTerms"] == ["test", "date"]

    async def test_field_appears_once_with_first_term(self, mock_jira_client):
        mock_jira_client.get_issue_edit_meta.return_value = EDIT_META

        result = await _handle_search_fields(
            mock_jira_client,
            {"issueIdOrKey": "IDS-1", "searchTerms": ["test", "date"]},
        )

        latest = [m for m in result.data["matches"] if m["fieldId"] == "customfield_40000"]
        assert len(latest) == 1
        assert latest[0] == {
            "fieldId": "customfield_40000",
            "name": "Latest Test Date",
            "required": False,
            "type": "date",
            "custom": True,
            "matchedTerm": "test",
        }

    async def test_system_field_not_custom(self, mock_jira_client):
        mock_jira_client.get_issue_edit_meta.return_value = EDIT_META

        result = await _handle_search_fields(
            mock_jira_client, {"issueIdOrKey": "IDS-1", "searchTerms": ["summ"]}
        )

        assert result.data["matches"][0]["custom"] is False
        assert result.data["matches"][0]["required"] is True

    async def test_search_terms_required(self, registry, mock_jira_client):
        result = await registry.call_tool(
            "jira_search_issue_fields", {"issueIdOrKey": "IDS-1"}, mock_jira_client
        )

        assert result.details[0]["path"] == ["searchTerms"]
        assert result.details[0]["expected"] == "array<string>"


class TestGetIssueFieldNames:
    async def test_sorted_names(self, mock_jira_client):
        mock_jira_client.get_issue_edit_meta.return_value = EDIT_META

        result = await _handle_field_names(mock_jira_client, {"issueIdOrKey": "IDS-1"})

        data = result.data
        assert data["issueKey"] == "IDS-1"
        assert data["totalFields"] == 5
        assert [f["name"] for f in data["fields"]] == [
            "Due Date",
            "Latest Test Date",
            "Summary",
            "Target start",
            "Task Test Procedure",
        ]

    async def test_empty_edit_meta(self, mock_jira_client):
        mock_jira_client.get_issue_edit_meta.return_value = {"fields": {}}

        result = await _handle_field_names(mock_jira_client, {"issueIdOrKey": "IDS-1"})

        assert result == ToolSuccess({"issueKey": "IDS-1", "totalFields": 0, "fields": []})


class TestIssueTypes:
    async def test_page(self, registry, mock_jira_client):
        mock_jira_client.get_issue_types_for_project.return_value = {
            "startAt": 0,
            "maxResults": 50,
            "total": 2,
            "isLast": True,
            "values": [
                {"id": "1", "name": "Bug", "description": "A bug", "subtask": False, "iconUrl": "u1", "self": "x"},
                {"id": "5", "name": "Sub-task", "description": "", "subtask": True, "iconUrl": "u5"},
            ],
        }

        result = await registry.call_tool(
            "jira_get_issue_types", {"projectIdOrKey": "IDS"}, mock_jira_client
        )

        mock_jira_client.get_issue_types_for_project.assert_called_once_with(
            "IDS", start_at=0, max_results=None
        )
        assert result.data["total"] == 2
        assert result.data["isLast"] is True
        assert result.data["issueTypes"][0] == {
            "id": "1",
            "name": "Bug",
            "description": "A bug",
            "subtask": False,
            "iconUrl": "u1",
        }

    async def test_is_last_computed(self, mock_jira_client):
        mock_jira_client.get_issue_types_for_project.return_value = {
            "startAt": 0,
            "total": 4,
            "values": [{"id": "1"}],
        }

        result = await _handle_issue_types(
            mock_jira_client, {"projectIdOrKey": "IDS", "startAt": 0, "maxResults": 1}
        )

        assert result.data["isLast"] is False


class TestIssueTypeFields:
    def test_fields_map(self):
        result = {
            "fields": {
                "summary": {
                    "name": "Summary",
                    "required": True,
                    "schema": {"type": "string", "system": "summary"},
                    "hasDefaultValue": False,
                    "operations": ["set"],
                }
            }
        }
        assert create_meta_fields(result) == [
            {
                "key": "summary",
                "name": "Summary",
                "required": True,
                "schema": {
                    "type": "string",
                    "items": None,
                    "system": "summary",
                    "custom": None,
                    "customId": None,
                },
                "hasDefaultValue": False,
                "operations": ["set"],
                "allowedValues": None,
                "autoCompleteUrl": None,
            }
        ]

    def test_values_list(self):
        result = {
            "values": [
                {
                    "fieldId": "customfield_10001",
                    "name": "Story Points",
                    "required": False,
                    "schema": {"type": "number", "custom": "float", "customId": 10001},
                }
            ]
        }
        fields = create_meta_fields(result)
        assert fields[0]["key"] == "customfield_10001"
        assert fields[0]["schema"]["customId"] == 10001

    async def test_handler(self, mock_jira_client):
        mock_jira_client.get_issue_type_fields.return_value = {
            "id": "10001",
            "name": "Task",
            "description": "A task",
            "subtask": False,
            "values": [{"fieldId": "summary", "name": "Summary", "required": True}],
        }

        result = await _handle_issue_type_fields(
            mock_jira_client,
            {"projectIdOrKey": "IDS", "issueTypeId": "10001", "startAt": 0, "maxResults": None},
        )

        mock_jira_client.get_issue_type_fields.assert_called_once_with(
            "IDS", "10001", start_at=0, max_results=None
        )
        assert result.data["issueType"] == {
            "id": "10001",
            "name": "Task",
            "description": "A task",
            "subtask": False,
        }
        assert result.data["totalFields"] == 1
        assert result.data["fields"][0]["schema"]["type"] is None


class TestListFields:
    ALL_FIELDS = [
        {"id": "summary", "name": "Summary", "custom": False, "searchable": True, "navigable": True,
         "orderable": True, "clauseNames": ["summary"], "schema": {"type": "string"}},
        {"id": "customfield_10001", "name": "story points", "custom": True, "searchable": True,
         "navigable": True, "orderable": True, "clauseNames": ["cf[10001]"], "schema": {"type": "number"}},
        {"id": "customfield_10002", "name": "Sprint", "custom": True, "clauseNames": ["sprint"]},
    ]

    async def test_all_sorted(self, mock_jira_client):
        mock_jira_client.get_all_fields.return_value = self.ALL_FIELDS

        result = await _handle_list_fields(mock_jira_client, {"query": None, "customOnly": False})

        assert result.data["total"] == 3
        assert [f["name"] for f in result.data["fields"]] == ["Sprint", "story points", "Summary"]
        assert result.data["fields"][1]["schemaType"] == "number"

    async def test_custom_only_with_query(self, registry, mock_jira_client):
        mock_jira_client.get_all_fields.return_value = self.ALL_FIELDS

        result = await registry.call_tool(
            "jira_list_fields", {"query": "S", "customOnly": True}, mock_jira_client
        )

        assert [f["id"] for f in result.data["fields"]] == [
            "customfield_10002",
            "customfield_10001",
        ]

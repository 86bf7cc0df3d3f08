"""Tests for user tool handlers."""

from jira_mcp_server.core.client import JiraApiError
from jira_mcp_server.mcp.tools import USER_SPECS, ToolRegistry
from jira_mcp_server.mcp.tools.results import ToolFailure
from jira_mcp_server.mcp.tools.users import (
    _handle_current,
    _handle_get,
    _handle_search,
    project_user,
)

USER = {
    "self": "https://jira.example.com/rest/api/2/user?accountId=a-1",
    "accountId": "a-1",
    "displayName": "Alice",
    "emailAddress": "alice@example.com",
    "active": True,
    "timeZone": "Europe/Berlin",
    "accountType": "atlassian",
    "avatarUrls": {"48x48": "https://jira.example.com/a.png"},
    "groups": {"size": 3},
}


def test_project_user():
    assert project_user(USER) == {
        "accountId": "a-1",
        "displayName": "Alice",
        "emailAddress": "alice@example.com",
        "active": True,
        "timeZone": "Europe/Berlin",
        "accountType": "atlassian",
        "avatarUrls": {"48x48": "https://jira.example.com/a.png"},
    }


async def test_current_user(mock_jira_client):
    mock_jira_client.get_current_user.return_value = USER

    result = await _handle_current(mock_jira_client, {"expand": "groups"})

    mock_jira_client.get_current_user.assert_called_once_with(expand="groups")
    assert result.data["displayName"] == "Alice"
    assert "groups" not in result.data


async def test_get_user(mock_jira_client):
    mock_jira_client.get_user.return_value = USER

    result = await _handle_get(mock_jira_client, {"accountId": "a-1", "expand": None})

    mock_jira_client.get_user.assert_called_once_with("a-1", expand=None)
    assert result.data["accountId"] == "a-1"


async def test_get_user_error(mock_jira_client):
    mock_jira_client.get_user.side_effect = JiraApiError("API Error: 404", status_code=404)

    result = await _handle_get(mock_jira_client, {"accountId": "x", "expand": None})

    assert result == ToolFailure("API Error: 404")


async def test_search_users(mock_jira_client):
    mock_jira_client.search_users.return_value = [USER, dict(USER, accountId="a-2")]

    result = await _handle_search(
        mock_jira_client,
        {
            "query": "ali",
            "username": None,
            "accountId": None,
            "maxResults": 10,
            "startAt": 0,
        },
    )

    mock_jira_client.search_users.assert_called_once_with(
        query="ali", username=None, account_id=None, start_at=0, max_results=10
    )
    assert result.data["total"] == 2
    assert [u["accountId"] for u in result.data["users"]] == ["a-1", "a-2"]


async def test_search_users_through_registry(mock_jira_client):
    mock_jira_client.search_users.return_value = []
    registry = ToolRegistry(USER_SPECS)

    result = await registry.call_tool(
        "jira_search_users", {"username": "alice"}, mock_jira_client
    )

    assert result.data == {"total": 0, "users": []}
    assert mock_jira_client.search_users.call_args[1]["username"] == "alice"
    assert mock_jira_client.search_users.call_args[1]["start_at"] == 0


async def test_get_user_requires_account_id(mock_jira_client):
    registry = ToolRegistry(USER_SPECS)

    result = await registry.call_tool("jira_get_user", {}, mock_jira_client)

    assert result.details[0]["path"] == ["accountId"]
    mock_jira_client.get_user.assert_not_called()

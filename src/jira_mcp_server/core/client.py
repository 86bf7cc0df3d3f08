import logging
import threading
from collections.abc import Iterable
from typing import Any
from urllib.parse import quote

import requests

from ..config import DEFAULT_MAX_RESULTS, Config

logger = logging.getLogger(__name__)

API_PREFIX = "/rest/api/2"

# Returned when the caller does not ask for specific fields, to keep
# payloads small.
DEFAULT_SEARCH_FIELDS = (
    "summary",
    "status",
    "priority",
    "assignee",
    "reporter",
    "created",
    "updated",
    "issuetype",
    "project",
    "labels",
    "components",
)

DEFAULT_ISSUE_FIELDS = (
    "summary",
    "status",
    "priority",
    "assignee",
    "reporter",
    "created",
    "updated",
    "description",
    "issuetype",
    "project",
    "resolution",
    "resolutiondate",
    "duedate",
    "labels",
    "components",
    "fixVersions",
    "versions",
)


class JiraApiError(Exception):
    """Normalized failure of a Jira REST call.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status for remote failures, None when no
            response was received.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def build_error_message(payload: Any, status_code: int) -> str:
    """Build the error message for a non-2xx response.

    Precedence: ``errorMessages`` list, then ``field: message`` pairs from
    the ``errors`` map, then a generic status message.
    """
    if isinstance(payload, dict):
        error_messages = payload.get("errorMessages") or []
        if error_messages:
            return ", ".join(str(m) for m in error_messages)

        errors = payload.get("errors") or {}
        if isinstance(errors, dict) and errors:
            return ", ".join(f"{key}: {value}" for key, value in errors.items())

    return f"API Error: {status_code}"


def _encode_params(params: dict[str, Any] | None) -> dict[str, Any]:
    """Drop unset values and render lists and booleans the way Jira expects."""
    encoded: dict[str, Any] = {}
    for key, value in (params or {}).items():
        match value:
            case None:
                continue
            case bool():
                encoded[key] = "true" if value else "false"
            case list() | tuple():
                if value:
                    encoded[key] = ",".join(str(v) for v in value)
            case _:
                encoded[key] = value
    return encoded


def _join(values: Iterable[str] | None) -> str | None:
    if not values:
        return None
    return ",".join(values)


class JiraClient:
    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.api_url = f"{config.base_url.rstrip('/')}{API_PREFIX}"

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    @property
    def timeout(self) -> float:
        """Request timeout in seconds."""
        return self.config.timeout_ms / 1000

    @property
    def uses_cursor_search(self) -> bool:
        return self.config.search_api == "cursor"

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
                "X-Atlassian-Token": "no-check",
            }
        )
        if self.config.email:
            session.auth = (self.config.email, self.config.api_token)
        else:
            session.headers["Authorization"] = (
                f"Bearer {self.config.api_token}"
            )
        session.verify = not self.config.insecure
        return session

    def page_size(self, max_results: int | None) -> int:
        """Resolve a page size: explicit value, then config, then 50."""
        if max_results is not None:
            return max_results
        return self.config.max_results or DEFAULT_MAX_RESULTS

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make a request against the Jira REST API.

        Raises:
            JiraApiError: For any non-2xx response, network failure, or
                request construction failure.
        """
        url = f"{self.api_url}{path}"
        logger.debug("%s %s params=%s", method, path, params)

        try:
            response = self._get_session().request(
                method,
                url,
                params=_encode_params(params),
                json=json_body,
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning("No response from Jira for %s %s: %s", method, path, e)
            raise JiraApiError("No response from server") from e
        except (requests.RequestException, ValueError) as e:
            raise JiraApiError(f"Request error: {e}") from e

        if not 200 <= response.status_code < 300:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = build_error_message(payload, response.status_code)
            logger.warning(
                "Jira API error %s for %s %s: %s",
                response.status_code,
                method,
                path,
                message,
            )
            raise JiraApiError(message, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise JiraApiError(f"Request error: {e}") from e

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("GET", path, params=params)

    # Issue operations

    def search_issues(
        self,
        jql: str,
        start_at: int | None = None,
        max_results: int | None = None,
        fields: list[str] | None = None,
        expand: list[str] | None = None,
        properties: list[str] | None = None,
        validate_query: bool | None = None,
    ) -> dict[str, Any]:
        """
        Search issues with JQL using offset pagination.

        Returns:
            Page dict with keys: startAt, maxResults, total, issues
        """
        return self._get(
            "/search",
            {
                "jql": jql,
                "startAt": start_at or 0,
                "maxResults": self.page_size(max_results),
                "fields": list(fields or DEFAULT_SEARCH_FIELDS),
                "expand": expand,
                "properties": properties,
                "validateQuery": validate_query,
            },
        )

    def search_issues_jql(
        self,
        jql: str,
        max_results: int | None = None,
        fields: list[str] | None = None,
        expand: list[str] | None = None,
        properties: list[str] | None = None,
        next_page_token: str | None = None,
    ) -> dict[str, Any]:
        """
        Search issues with JQL using cursor pagination (POST /search/jql).

        Returns:
            Page dict with keys: issues, isLast, nextPageToken (absent on
            the last page)
        """
        body = {
            "jql": jql,
            "maxResults": self.page_size(max_results),
            "fields": list(fields or DEFAULT_SEARCH_FIELDS),
            "expand": _join(expand),
            "properties": properties or None,
            "nextPageToken": next_page_token,
        }
        return self._request(
            "POST",
            "/search/jql",
            json_body={k: v for k, v in body.items() if v is not None},
        )

    def get_issue(
        self,
        issue_id_or_key: str,
        fields: list[str] | None = None,
        expand: list[str] | None = None,
        properties: list[str] | None = None,
        update_history: bool | None = None,
    ) -> dict[str, Any]:
        """Get a single issue by ID or key."""
        return self._get(
            f"/issue/{quote(issue_id_or_key, safe='')}",
            {
                "fields": list(fields or DEFAULT_ISSUE_FIELDS),
                "expand": expand,
                "properties": properties,
                "updateHistory": update_history,
            },
        )

    def get_issue_comments(
        self,
        issue_id_or_key: str,
        start_at: int | None = None,
        max_results: int | None = None,
        order_by: str | None = None,
        expand: str | None = None,
    ) -> dict[str, Any]:
        """
        Get a page of comments for an issue.

        Returns:
            Page dict with keys: startAt, maxResults, total, comments
        """
        return self._get(
            f"/issue/{quote(issue_id_or_key, safe='')}/comment",
            {
                "startAt": start_at or 0,
                "maxResults": self.page_size(max_results),
                "orderBy": order_by,
                "expand": expand,
            },
        )

    def get_issue_transitions(
        self,
        issue_id_or_key: str,
        transition_id: str | None = None,
        skip_remote_only_condition: bool | None = None,
        include_unavailable_transitions: bool | None = None,
        expand: str | None = None,
    ) -> dict[str, Any]:
        """
        Get workflow transitions for an issue.

        Returns:
            Dict with key: transitions
        """
        return self._get(
            f"/issue/{quote(issue_id_or_key, safe='')}/transitions",
            {
                "transitionId": transition_id,
                "skipRemoteOnlyCondition": skip_remote_only_condition,
                "includeUnavailableTransitions": include_unavailable_transitions,
                "expand": expand,
            },
        )

    def get_issue_edit_meta(self, issue_id_or_key: str) -> dict[str, Any]:
        """
        Get edit metadata for an issue.

        Returns:
            Dict with key ``fields`` mapping field ID to field definition
        """
        return self._get(f"/issue/{quote(issue_id_or_key, safe='')}/editmeta")

    # Project operations

    def get_all_projects(
        self,
        expand: list[str] | None = None,
        recent: int | None = None,
    ) -> list[dict[str, Any]]:
        return self._get("/project", {"expand": expand, "recent": recent})

    def get_project(
        self, project_id_or_key: str, expand: list[str] | None = None
    ) -> dict[str, Any]:
        return self._get(
            f"/project/{quote(project_id_or_key, safe='')}",
            {"expand": expand},
        )

    def search_projects(
        self,
        query: str | None = None,
        start_at: int | None = None,
        max_results: int | None = None,
        order_by: str | None = None,
        type_key: str | None = None,
        category_id: int | None = None,
        action: str | None = None,
        expand: str | None = None,
        status: list[str] | None = None,
    ) -> dict[str, Any]:
        """
        Search projects.

        Returns:
            Page dict with keys: startAt, maxResults, total, isLast, values
        """
        return self._get(
            "/project/search",
            {
                "startAt": start_at or 0,
                "maxResults": self.page_size(max_results),
                "orderBy": order_by or "key",
                "query": query,
                "typeKey": type_key,
                "categoryId": category_id,
                "action": action or "browse",
                "expand": expand,
                "status": status,
            },
        )

    # User operations

    def get_current_user(self, expand: str | None = None) -> dict[str, Any]:
        return self._get("/myself", {"expand": expand})

    def get_user(
        self, account_id: str, expand: str | None = None
    ) -> dict[str, Any]:
        return self._get("/user", {"accountId": account_id, "expand": expand})

    def search_users(
        self,
        query: str | None = None,
        username: str | None = None,
        account_id: str | None = None,
        start_at: int | None = None,
        max_results: int | None = None,
        property: str | None = None,
    ) -> list[dict[str, Any]]:
        return self._get(
            "/user/search",
            {
                "query": query,
                "username": username,
                "accountId": account_id,
                "startAt": start_at or 0,
                "maxResults": self.page_size(max_results),
                "property": property,
            },
        )

    # Field metadata

    def get_all_fields(self) -> list[dict[str, Any]]:
        """Get all system and custom field definitions."""
        return self._get("/field")

    def get_issue_types_for_project(
        self,
        project_id_or_key: str,
        start_at: int | None = None,
        max_results: int | None = None,
    ) -> dict[str, Any]:
        """
        Get the issue types available for creating issues in a project.

        Returns:
            Page dict with keys: startAt, maxResults, total, isLast, values
        """
        return self._get(
            f"/issue/createmeta/{quote(project_id_or_key, safe='')}/issuetypes",
            {
                "startAt": start_at or 0,
                "maxResults": self.page_size(max_results),
            },
        )

    def get_issue_type_fields(
        self,
        project_id_or_key: str,
        issue_type_id: str,
        start_at: int | None = None,
        max_results: int | None = None,
    ) -> dict[str, Any]:
        """Get the create-screen field metadata for an issue type."""
        return self._get(
            f"/issue/createmeta/{quote(project_id_or_key, safe='')}"
            f"/issuetypes/{quote(issue_type_id, safe='')}",
            {
                "startAt": start_at or 0,
                "maxResults": self.page_size(max_results),
            },
        )

    def validate_connection(self) -> str:
        """
        Validate credentials by fetching the current user.
        Returns the user's display name if successful.
        """
        user = self.get_current_user()
        return str((user or {}).get("displayName", ""))

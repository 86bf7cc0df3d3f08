"""Shared constants for MCP tool handlers."""

# Argument descriptions reused by several tools.
ISSUE_KEY_DESCRIPTION = 'The JIRA issue ID or key. Example: "IDS-10194" or "PROJ-123"'
PROJECT_KEY_DESCRIPTION = 'The JIRA project ID or key. Example: "IDS" or "10000"'
MAX_RESULTS_DESCRIPTION = (
    "Maximum number of results to return (default: configured page size, 50)"
)
START_AT_DESCRIPTION = "Starting index for pagination (default: 0)"

# Literal shown in search results for issues without an assignee.
UNASSIGNED = "Unassigned"

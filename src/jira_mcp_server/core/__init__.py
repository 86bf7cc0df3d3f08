"""Core Jira client functionality shared by the MCP tool handlers."""

from .async_utils import run_sync
from .client import JiraApiError, JiraClient

__all__ = ["JiraApiError", "JiraClient", "run_sync"]

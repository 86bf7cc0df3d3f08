"""Jira MCP Server - Model Context Protocol server for Jira issue tracking."""

__version__ = "0.3.0"

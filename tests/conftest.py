"""Shared pytest fixtures for jira-mcp-server tests."""

from unittest.mock import MagicMock, Mock

import pytest
from dotenv import load_dotenv

from jira_mcp_server.config import Config

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live Jira instance",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live Jira instance"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def mock_config():
    """Create a Config for bearer-token auth."""
    return Config(
        base_url="https://jira.example.com",
        api_token="test-token",
    )


@pytest.fixture
def basic_auth_config():
    """Create a Config for email + token basic auth."""
    return Config(
        base_url="https://example.atlassian.net",
        api_token="test-token",
        email="dev@example.com",
    )


@pytest.fixture
def mock_jira_client(mock_config):
    """Create a mock JiraClient instance for testing."""
    from jira_mcp_server.core.client import JiraClient

    client = MagicMock(spec=JiraClient)
    client.config = mock_config
    client.uses_cursor_search = False
    client.page_size.side_effect = lambda n: 50 if n is None else n
    return client


@pytest.fixture
def mock_json_response():
    """Factory fixture for creating requests.Response mocks."""

    def _create_response(payload=None, status_code=200, content=None):
        import json

        response = Mock()
        response.status_code = status_code
        if content is None:
            content = b"" if payload is None else json.dumps(payload).encode()
        response.content = content
        if payload is None:
            response.json.side_effect = ValueError("Expecting value")
        else:
            response.json.return_value = payload
        return response

    return _create_response

"""Lifespan management for MCP server startup and shutdown."""

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from ..config import Config, load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import LoggingSection, build_config
from ..core.async_utils import run_sync
from ..core.client import JiraApiError, JiraClient
from ..logger import setup_logging

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


def resolve_config(
    config_overrides: dict[str, Any] | None = None,
) -> tuple[Config, LoggingSection]:
    """Merge all configuration sources into a Config and the logging section.

    Precedence: CLI overrides > env vars (.env loaded first) > YAML > defaults.

    Raises:
        ValueError: If required settings are missing or invalid, or a config
            file cannot be read or parsed.
    """
    # Load .env before YAML so ${VAR} interpolation can use .env values
    load_dotenv()

    yaml_fallbacks: dict[str, Any] | None = None
    logging_section = LoggingSection()
    sources = []
    config_files = discover_config_files()
    if config_files:
        try:
            unified = build_config(load_hierarchical_config())
        except (ValidationError, yaml.YAMLError) as e:
            raise ValueError(f"Invalid config file {config_files[0]}: {e}") from e
        except OSError as e:
            raise ValueError(f"Cannot read config file: {e}") from e
        yaml_fallbacks = unified.jira.fallbacks()
        logging_section = unified.logging
        sources.append(f"config file: {config_files[0]}")

    overrides = config_overrides or {}
    config = load_config(
        url=overrides.get("url"),
        api_token=overrides.get("api_token"),
        email=overrides.get("email"),
        insecure=overrides.get("insecure", False),
        debug=overrides.get("debug", False),
        yaml_fallbacks=yaml_fallbacks,
    )

    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")
    logger.info("Configuration loaded from: %s", ", ".join(sources))
    return config, logging_section


def apply_logging_config(
    config: Config,
    logging_section: LoggingSection,
    config_overrides: dict[str, Any] | None = None,
) -> None:
    """Reconfigure logging from the resolved settings.

    Environment variables and CLI options take precedence over the
    ``logging`` section of the config file. Debug from any source forces
    the DEBUG level.
    """
    overrides = config_overrides or {}
    setup_logging(
        debug=config.debug,
        log_file=(
            overrides.get("log_file")
            or os.getenv("LOG_FILE")
            or logging_section.file
        ),
        debug_format=overrides.get("log_format", "text"),
        level=logging_section.level,
    )


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Resolve configuration from CLI, env, .env and YAML
    - Create the JiraClient and check connectivity via /myself

    Missing or invalid credentials do not abort startup: the context yields
    ``{"client": None}`` so that tool discovery keeps working and every tool
    call reports that the client is not initialized. A failed connectivity
    check is only logged.

    Args:
        config_overrides: Optional dict with config values from CLI
            (url, email, api_token, insecure, debug)

    Yields:
        Dict with 'client' key containing the JiraClient, or None
    """
    logger.info("MCP server starting...")
    _stderr_print("Jira MCP Server starting...")

    client: JiraClient | None = None
    try:
        config, logging_section = resolve_config(config_overrides)
    except ValueError as e:
        logger.warning("Configuration error: %s", e)
        _stderr_print(f"WARNING: Configuration error: {e}")
        _stderr_print(
            "  Tools will report an error until JIRA_BASE_URL and JIRA_API_TOKEN are set."
        )
    else:
        apply_logging_config(config, logging_section, config_overrides)
        client = JiraClient(config)
        logger.info("Jira URL: %s (%s auth)", config.base_url, config.auth_type)
        _stderr_print(f"  Jira URL: {config.base_url}")
        try:
            user = await run_sync(client.validate_connection)
            logger.info("Connected to Jira as %s", user)
            _stderr_print(f"  Connected as {user}")
        except JiraApiError as e:
            logger.warning("Jira connectivity check failed: %s", e)
            _stderr_print(f"WARNING: Jira connectivity check failed: {e}")

    _stderr_print("Server ready. Waiting for MCP client connection...")
    yield {"client": client}

    # Shutdown
    logger.info("MCP server shutting down")
    _stderr_print("Jira MCP Server shutting down.")

"""Unified configuration schema for jira_mcp_server.

Defines Pydantic models for the YAML config file, with dedicated sections
for the Jira connection and logging.

Usage:
    from jira_mcp_server.config_schema import build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    fallbacks = unified.jira.fallbacks()
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class JiraSection(BaseModel):
    """Jira connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    url: str | None = Field(default=None, description="Jira base URL")
    email: str | None = Field(
        default=None,
        description="Account email; enables basic auth with api_token",
    )
    api_token: str | None = Field(
        default=None, description="API token or personal access token"
    )
    max_results: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Default page size for paginated calls (1-1000)",
    )
    timeout_ms: int = Field(
        default=30000,
        ge=1000,
        le=600000,
        description="HTTP request timeout in milliseconds",
    )
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    search_api: Literal["offset", "cursor"] = Field(
        default="offset",
        description="Issue search strategy: offset (GET /search) or cursor (POST /search/jql)",
    )

    model_config = {"frozen": True}

    def fallbacks(self) -> dict[str, Any]:
        """Return the explicitly set, non-None values for ``load_config``.

        Only keys present in the YAML file are returned so that model
        defaults never shadow environment variables.
        """
        return {
            k: v
            for k, v in self.model_dump(exclude_unset=True).items()
            if v is not None
        }


class LoggingSection(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="WARNING", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level configuration.

    Every section has defaults, so ``UnifiedConfig()`` is always valid.
    """

    jira: JiraSection = Field(default_factory=JiraSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get defaults; unknown top-level sections are ignored.

    Raises:
        pydantic.ValidationError: If a section holds invalid values.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)

"""Configuration for the standalone Jira MCP server.

Reads Jira connection settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    JIRA_BASE_URL: Jira instance URL (required)
    JIRA_API_TOKEN: API token or personal access token (required)
    JIRA_EMAIL: Account email; when set, basic auth (email + token) is used
        instead of a bearer token (optional)
    JIRA_MAX_RESULTS: Default page size (optional, default: 50)
    JIRA_TIMEOUT: Request timeout in milliseconds (optional, default: 30000)
    JIRA_INSECURE: Skip SSL verification (optional, default: false)
    JIRA_SEARCH_API: "offset" (GET /search) or "cursor" (POST /search/jql)
"""

import logging
import os
from dataclasses import dataclass, replace
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 50
DEFAULT_TIMEOUT_MS = 30000
SEARCH_APIS = ("offset", "cursor")


@dataclass(frozen=True)
class Config:
    base_url: str
    api_token: str
    email: str | None = None
    max_results: int = DEFAULT_MAX_RESULTS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    insecure: bool = False
    debug: bool = False
    search_api: str = "offset"

    @property
    def auth_type(self) -> str:
        """``basic`` when an email is configured, otherwise ``bearer``."""
        return "basic" if self.email else "bearer"


def validate_config(config: Config) -> Config:
    """Validate configuration values and return a normalized copy.

    Args:
        config: Config instance to validate.

    Returns:
        Config with the base URL stripped of whitespace and trailing slash.

    Raises:
        ValueError: If URL format is invalid, the token is empty, or
            numeric settings are out of range.
    """
    base_url = config.base_url.strip()

    if not base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid Jira URL '{base_url}': must start with http:// or https://"
        )

    parsed = urlparse(base_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid Jira URL '{base_url}': URL must include a hostname"
        )

    if not config.api_token.strip():
        raise ValueError(
            "Jira API token cannot be empty. Set JIRA_API_TOKEN environment variable."
        )

    if config.email is not None and not config.email.strip():
        raise ValueError(
            "Jira email cannot be blank. Unset JIRA_EMAIL to use bearer token auth."
        )

    if config.search_api not in SEARCH_APIS:
        raise ValueError(
            f"Invalid search API '{config.search_api}': must be one of {', '.join(SEARCH_APIS)}"
        )

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )

    return replace(
        config,
        base_url=base_url.removesuffix("/"),
        api_token=config.api_token.strip(),
        email=config.email.strip() if config.email else None,
    )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _get_int_setting(
    env_key: str,
    fallbacks: dict,
    fallback_key: str,
    default: int,
    low: int,
    high: int,
) -> int:
    """Resolve a numeric setting: env var > YAML fallback > default."""
    raw = os.getenv(env_key)
    source = env_key
    if raw is None:
        if fallback_key not in fallbacks:
            return default
        raw = fallbacks[fallback_key]
        source = fallback_key

    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValueError(
            f"Invalid {source} '{raw}': must be a number between {low} and {high}"
        ) from None
    if not (low <= value <= high):
        raise ValueError(
            f"Invalid {source} '{raw}': must be a number between {low} and {high}"
        )
    return value


def load_config(
    url: str | None = None,
    api_token: str | None = None,
    email: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override Jira base URL.
        api_token: Override API token.
        email: Override account email (switches to basic auth).
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML config ``jira`` section.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If the URL or token is missing after checking all
            sources, or any value fails validation.
    """
    fb = yaml_fallbacks or {}

    base_url = url or os.getenv("JIRA_BASE_URL") or fb.get("url")
    if not base_url:
        raise ValueError(
            "Jira URL not found. Set JIRA_BASE_URL environment variable, "
            "pass --url CLI argument, or add 'url' to config.yml."
        )

    token = api_token or os.getenv("JIRA_API_TOKEN") or fb.get("api_token")
    if not token:
        raise ValueError(
            "Jira API token not found. Set JIRA_API_TOKEN environment variable, "
            "pass --token CLI argument, or add 'api_token' to config.yml."
        )

    final_email = email or os.getenv("JIRA_EMAIL") or fb.get("email") or None

    if insecure:
        final_insecure = True
    else:
        env_insecure = _get_bool_env("JIRA_INSECURE")
        if env_insecure is not None:
            final_insecure = env_insecure
        else:
            final_insecure = bool(fb.get("insecure", False))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("JIRA_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    max_results = _get_int_setting(
        "JIRA_MAX_RESULTS", fb, "max_results", DEFAULT_MAX_RESULTS, 1, 1000
    )
    timeout_ms = _get_int_setting(
        "JIRA_TIMEOUT", fb, "timeout_ms", DEFAULT_TIMEOUT_MS, 1000, 600000
    )

    search_api = (
        os.getenv("JIRA_SEARCH_API") or fb.get("search_api") or "offset"
    ).strip().lower()

    config = Config(
        base_url=base_url,
        api_token=token,
        email=final_email,
        max_results=max_results,
        timeout_ms=timeout_ms,
        insecure=final_insecure,
        debug=final_debug,
        search_api=search_api,
    )

    return validate_config(config)

"""
Configuration for the Pirsch MCP server.
"""
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .core.client import BASE_URL, DEFAULT_TIMEOUT, DEFAULT_TOKEN_SKEW_MS
from .core.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class PirschConfig:
    """Configuration for a Pirsch client and its tools."""

    # Required
    client_id: str
    client_secret: str

    # Defaults applied to tool calls
    default_domain_id: str | None = None
    timezone: str | None = None  # Sent as tz when a filter has none

    # Client settings
    token_skew_ms: int = DEFAULT_TOKEN_SKEW_MS
    base_url: str = BASE_URL
    http_timeout: float = DEFAULT_TIMEOUT

    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration after initialization."""
        missing = [
            name for name in ("client_id", "client_secret")
            if not getattr(self, name)
        ]
        if missing:
            env_names = " or ".join(f"PIRSCH_{name.upper()}" for name in missing)
            raise ConfigurationError(f"Missing required env: {env_names}")

        if self.token_skew_ms < 0:
            raise ConfigurationError(
                f"Token skew must be non-negative, got {self.token_skew_ms}ms"
            )

        if not self.default_domain_id:
            logger.debug("No default domain configured, the first listed domain will be used")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


def load_config() -> PirschConfig:
    """Build the configuration from environment variables.

    Variables from a .env file in the working directory are loaded first;
    variables already set in the environment take precedence.

    Raises:
        ConfigurationError: If credentials are missing or a value is malformed.
    """
    load_dotenv()

    return PirschConfig(
        client_id=os.getenv("PIRSCH_CLIENT_ID", ""),
        client_secret=os.getenv("PIRSCH_CLIENT_SECRET", ""),
        default_domain_id=os.getenv("PIRSCH_DEFAULT_DOMAIN_ID") or None,
        timezone=os.getenv("PIRSCH_TIMEZONE") or None,
        token_skew_ms=_env_int("PIRSCH_TOKEN_SKEW_MS", DEFAULT_TOKEN_SKEW_MS),
        base_url=os.getenv("PIRSCH_BASE_URL") or BASE_URL,
        http_timeout=_env_float("PIRSCH_HTTP_TIMEOUT", DEFAULT_TIMEOUT),
        log_level=os.getenv("PIRSCH_LOG_LEVEL", "INFO"),
    )

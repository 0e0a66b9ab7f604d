"""
Pirsch analytics tools for MCP clients.

Usage:
    from pirsch_mcp import setup_pirsch

    pirsch = setup_pirsch(
        client_id="your-client-id",
        client_secret="your-client-secret",
        default_domain_id="your-domain-id",
    )

    # Call tools directly
    result = await pirsch.dispatcher.dispatch("pirsch_total", {"filter": {"from": "2024-03-01"}})

    # Or expose them over HTTP next to the stdio server
    app.include_router(pirsch.tools_router, prefix="/pirsch")
"""

from .config import PirschConfig
from .core.client import BASE_URL, DEFAULT_TIMEOUT, DEFAULT_TOKEN_SKEW_MS, PirschClient
from .routes import create_tools_router
from .tools import ToolDispatcher

__version__ = "0.1.0"
__all__ = ["setup_pirsch", "Pirsch", "PirschClient", "PirschConfig", "ToolDispatcher"]


class Pirsch:
    """Client, dispatcher and HTTP router for one set of credentials."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        default_domain_id: str | None = None,
        timezone: str | None = None,
        token_skew_ms: int = DEFAULT_TOKEN_SKEW_MS,
        base_url: str = BASE_URL,
        http_timeout: float = DEFAULT_TIMEOUT,
    ):
        self.client = PirschClient(
            client_id=client_id,
            client_secret=client_secret,
            base_url=base_url,
            token_skew_ms=token_skew_ms,
            timezone_name=timezone,
            timeout=http_timeout,
        )
        self.dispatcher = ToolDispatcher(self.client, default_domain_id=default_domain_id)
        self.tools_router = create_tools_router(self.dispatcher)

    @classmethod
    def from_config(cls, config: PirschConfig) -> "Pirsch":
        return cls(
            client_id=config.client_id,
            client_secret=config.client_secret,
            default_domain_id=config.default_domain_id,
            timezone=config.timezone,
            token_skew_ms=config.token_skew_ms,
            base_url=config.base_url,
            http_timeout=config.http_timeout,
        )


def setup_pirsch(
    client_id: str,
    client_secret: str,
    default_domain_id: str | None = None,
    timezone: str | None = None,
    token_skew_ms: int = DEFAULT_TOKEN_SKEW_MS,
) -> Pirsch:
    """
    Set up Pirsch tools for a set of API credentials.

    Args:
        client_id: Pirsch API client ID
        client_secret: Pirsch API client secret
        default_domain_id: Domain used when a tool call names none. If unset,
                 the first domain the credentials can access is used.
        timezone: Timezone sent with statistics queries that set none
        token_skew_ms: Refresh the access token this long before it expires

    Returns:
        Pirsch instance with client, dispatcher and tools_router
    """
    return Pirsch(
        client_id=client_id,
        client_secret=client_secret,
        default_domain_id=default_domain_id,
        timezone=timezone,
        token_skew_ms=token_skew_ms,
    )

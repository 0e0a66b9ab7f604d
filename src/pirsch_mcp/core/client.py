"""
HTTP client for the Pirsch analytics API.

Handles bearer-token acquisition and refresh, and retries requests that
fail with 401 (token rejected) or 429 (rate limited).
"""
import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from .errors import (
    AuthenticationError,
    InvalidArgumentsError,
    RetryExhaustedError,
    UpstreamRequestError,
)
from .filters import build_filter_params
from .models import Domain, StatisticsFilter, TokenResponse

logger = logging.getLogger(__name__)

BASE_URL = "https://api.pirsch.io/api/v1"
DEFAULT_TOKEN_SKEW_MS = 60_000
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 2
RETRY_BACKOFF_SECONDS = 1.5

UTM_KINDS = ("source", "medium", "campaign", "content", "term")


class PirschClient:
    """Client for querying statistics from the Pirsch API.

    The access token is cached on the instance and shared by every call
    made through it. It is fetched lazily and refreshed once it is within
    ``token_skew_ms`` of expiring.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = BASE_URL,
        token_skew_ms: int = DEFAULT_TOKEN_SKEW_MS,
        timezone_name: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip("/")
        self.token_skew = timedelta(milliseconds=token_skew_ms)
        self.timezone_name = timezone_name
        self.timeout = timeout
        self._transport = transport

        self._token: str | None = None
        self._expires_at: datetime | None = None
        self._token_lock = asyncio.Lock()
        self._sleep = asyncio.sleep

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    # =========================================================================
    # TOKEN
    # =========================================================================

    def has_valid_token(self) -> bool:
        """Check if a token is cached and not within the skew of expiring."""
        if not self._token or self._expires_at is None:
            return False
        return self._now() + self.token_skew < self._expires_at

    def invalidate_token(self) -> None:
        """Drop the cached token so the next request acquires a new one."""
        self._token = None
        self._expires_at = None

    async def _acquire_token(self) -> None:
        """POST /token and cache the result. Not retried."""
        async with self._http() as http:
            response = await http.post(
                f"{self.base_url}/token",
                headers={"Content-Type": "application/json"},
                json={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
            )
        if not response.is_success:
            logger.error(f"Token request failed with status {response.status_code}")
            raise AuthenticationError(response.status_code, response.text)

        data = TokenResponse.model_validate(response.json())
        expires_at = data.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        self._token = data.access_token
        self._expires_at = expires_at
        logger.debug(f"Acquired access token, expires at {expires_at.isoformat()}")

    async def ensure_token(self) -> None:
        """Acquire a token if none is cached or the cached one is expiring."""
        if self.has_valid_token():
            return
        async with self._token_lock:
            # Another call may have refreshed while we waited
            if not self.has_valid_token():
                await self._acquire_token()

    async def refresh_token(self) -> None:
        """Acquire a new token unconditionally."""
        async with self._token_lock:
            await self._acquire_token()

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

    # =========================================================================
    # REQUESTS
    # =========================================================================

    def _retry_delay(self, response: httpx.Response, attempt: int) -> float:
        """Seconds to wait before retrying a 429 response."""
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return float(int(retry_after))
            except ValueError:
                logger.debug(f"Ignoring non-numeric Retry-After: {retry_after}")
        return (attempt + 1) * RETRY_BACKOFF_SECONDS

    async def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, str] | None = None,
        body: Any = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body.

        401 responses trigger a token refresh and a retry, 429 responses
        wait (Retry-After, or 1.5s times the attempt number) and retry.
        Both consume one of ``max_retries`` retries.

        Returns:
            Decoded JSON, or an empty dict for 204 No Content.

        Raises:
            AuthenticationError: If acquiring a token fails.
            UpstreamRequestError: On any other non-2xx status.
            RetryExhaustedError: If 401/429 persists after all retries.
        """
        await self.ensure_token()

        url = f"{self.base_url}{path}"
        last_status = 0
        attempts = 0

        async with self._http() as http:
            for attempt in range(max_retries + 1):
                attempts = attempt + 1
                response = await http.request(
                    method,
                    url,
                    params=dict(params) if params else None,
                    json=body,
                    headers=self._auth_headers(),
                )
                last_status = response.status_code

                if response.status_code == 401:
                    if attempt < max_retries:
                        logger.warning(f"{method} {path} returned 401, refreshing token")
                        await self.refresh_token()
                        continue
                    break

                if response.status_code == 429:
                    if attempt < max_retries:
                        delay = self._retry_delay(response, attempt)
                        logger.warning(f"{method} {path} rate limited, retrying in {delay}s")
                        await self._sleep(delay)
                        continue
                    break

                if not response.is_success:
                    logger.error(f"{method} {path} failed with status {response.status_code}")
                    raise UpstreamRequestError(response.status_code, response.text)

                if response.status_code == 204:
                    return {}
                return response.json()

        raise RetryExhaustedError(last_status, attempts)

    # =========================================================================
    # DOMAINS
    # =========================================================================

    async def list_domains(
        self,
        search: str | None = None,
        id: str | None = None,
        subdomain: str | None = None,
        domain: str | None = None,
        access: str | None = None,
    ) -> list[Domain] | Domain:
        """List domains accessible with the client credentials.

        The API returns a single object instead of a list when queried by id.
        An empty body or an object without an id counts as no domains.
        """
        query = {
            "search": search,
            "id": id,
            "subdomain": subdomain,
            "domain": domain,
            "access": access,
        }
        params = {k: v for k, v in query.items() if v}

        result = await self.request("GET", "/domain", params=params)
        if isinstance(result, list):
            return [Domain.model_validate(item) for item in result]
        if not isinstance(result, dict) or not result.get("id"):
            return []
        return Domain.model_validate(result)

    # =========================================================================
    # STATISTICS
    # =========================================================================

    async def get_overview(self, domain_id: str) -> Any:
        """Cached overview (visitors, views, members) for a domain."""
        return await self.request("GET", "/statistics/overview", params={"id": domain_id})

    async def get_statistics(
        self,
        endpoint: str,
        domain_id: str,
        filters: StatisticsFilter | Mapping[str, Any] | None = None,
    ) -> Any:
        """GET a statistics endpoint with an encoded filter."""
        params = build_filter_params(filters, domain_id, default_tz=self.timezone_name)
        return await self.request("GET", endpoint, params=params)

    async def get_total(self, domain_id: str, filters=None) -> Any:
        return await self.get_statistics("/statistics/total", domain_id, filters)

    async def get_visitors(self, domain_id: str, filters=None) -> Any:
        return await self.get_statistics("/statistics/visitor", domain_id, filters)

    async def get_pages(self, domain_id: str, filters=None) -> Any:
        return await self.get_statistics("/statistics/page", domain_id, filters)

    async def get_referrers(self, domain_id: str, filters=None) -> Any:
        return await self.get_statistics("/statistics/referrer", domain_id, filters)

    async def get_utm(self, kind: str, domain_id: str, filters=None) -> Any:
        """UTM breakdown by source, medium, campaign, content or term."""
        if kind not in UTM_KINDS:
            raise InvalidArgumentsError(f"Unknown UTM type: {kind}")
        return await self.get_statistics(f"/statistics/utm/{kind}", domain_id, filters)

    async def get_growth(self, domain_id: str, filters=None) -> Any:
        return await self.get_statistics("/statistics/growth", domain_id, filters)

    async def get_active(self, domain_id: str, start_seconds: int | float | None = None) -> Any:
        """Active visitors and pages for the past ``start_seconds``."""
        params = build_filter_params(
            {"start": start_seconds}, domain_id, default_tz=self.timezone_name
        )
        return await self.request("GET", "/statistics/active", params=params)

"""
Tool dispatch: validates arguments, resolves the domain, calls the client
and shapes the result.

``dispatch`` never raises. Failures come back as an error envelope
``{"error": true, "message": ...}`` so the protocol layer always has a
well-formed response.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

import httpx
from pydantic import ValidationError

from ..core.client import PirschClient
from ..core.dates import comparison_range, get_date_range, iso_date, parse_iso_date
from ..core.errors import InvalidArgumentsError, PirschError, UnknownToolError
from ..core.metrics import SUMMED_FIELDS, metric_with_change, sum_series
from ..core.models import ComparisonResult, ComparisonTotals
from .requests import (
    ActiveRequest,
    CompareRequest,
    DomainRequest,
    ListDomainsRequest,
    StatisticsRequest,
    ToolRequest,
    UtmRequest,
)
from .schemas import TOOLS_BY_NAME, ToolSpec

logger = logging.getLogger(__name__)

Handler = Callable[[ToolSpec, Any], Awaitable[dict[str, Any]]]


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "arguments"
        parts.append(f"{location}: {error['msg']}")
    return "Invalid arguments: " + "; ".join(parts)


def error_envelope(message: str) -> dict[str, Any]:
    return {"error": True, "message": message or "An error occurred"}


class ToolDispatcher:
    """Runs tools from the catalogue against a PirschClient."""

    def __init__(
        self,
        client: PirschClient,
        default_domain_id: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.client = client
        self.default_domain_id = default_domain_id
        self._clock = clock
        self._handlers: dict[str, Handler] = {
            "pirsch_list_domains": self._list_domains,
            "pirsch_overview": self._overview,
            "pirsch_total": self._statistics,
            "pirsch_visitors": self._statistics,
            "pirsch_pages": self._statistics,
            "pirsch_referrers": self._statistics,
            "pirsch_utm": self._utm,
            "pirsch_growth": self._statistics,
            "pirsch_active": self._active,
            "pirsch_compare": self._compare,
        }

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def parse_request(self, name: str, arguments: dict[str, Any] | None) -> ToolRequest:
        """Validate raw arguments into the tool's request model.

        Raises:
            UnknownToolError: If the tool is not in the catalogue.
            InvalidArgumentsError: If the arguments do not validate.
        """
        spec = TOOLS_BY_NAME.get(name)
        if spec is None:
            raise UnknownToolError(name)
        try:
            return spec.request_model.model_validate(arguments or {})
        except ValidationError as e:
            raise InvalidArgumentsError(_format_validation_error(e)) from e

    async def call(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a tool and return its result. Errors propagate."""
        request = self.parse_request(name, arguments)
        handler = self._handlers[name]
        return await handler(TOOLS_BY_NAME[name], request)

    async def dispatch(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a tool and return its result or an error envelope."""
        logger.info(f"Tool call: {name}")
        try:
            return await self.call(name, arguments)
        except (PirschError, httpx.HTTPError) as e:
            logger.error(f"Tool '{name}' failed: {e}")
            return error_envelope(str(e))
        except Exception as e:
            logger.exception(f"Tool '{name}' failed unexpectedly")
            return error_envelope(str(e))

    # -------------------------------------------------------------------------
    # Domain resolution
    # -------------------------------------------------------------------------

    async def resolve_domain_id(self, domain_id: str | None = None) -> str:
        """Pick the domain to query.

        Explicit argument first, then the configured default, then the
        first domain the credentials can access.

        Raises:
            InvalidArgumentsError: If no domain can be found.
        """
        if domain_id:
            return domain_id
        if self.default_domain_id:
            return self.default_domain_id

        domains = await self.client.list_domains()
        if isinstance(domains, list):
            if domains:
                return domains[0].id
        elif domains.id:
            return domains.id
        raise InvalidArgumentsError(
            "No domain found. Set PIRSCH_DEFAULT_DOMAIN_ID or provide domain_id"
        )

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def _list_domains(self, spec: ToolSpec, request: ListDomainsRequest) -> dict[str, Any]:
        result = await self.client.list_domains(search=request.search)
        domains = result if isinstance(result, list) else [result]
        return {
            "count": len(domains),
            "domains": [domain.model_dump(mode="json") for domain in domains],
        }

    async def _overview(self, spec: ToolSpec, request: DomainRequest) -> dict[str, Any]:
        domain_id = await self.resolve_domain_id(request.domain_id)
        data = await self.client.get_overview(domain_id)
        return {"domain_id": domain_id, spec.result_key: data}

    async def _statistics(self, spec: ToolSpec, request: StatisticsRequest) -> dict[str, Any]:
        domain_id = await self.resolve_domain_id(request.domain_id)
        data = await self.client.get_statistics(spec.endpoint, domain_id, request.filter or {})
        return {"domain_id": domain_id, spec.result_key: data}

    async def _utm(self, spec: ToolSpec, request: UtmRequest) -> dict[str, Any]:
        domain_id = await self.resolve_domain_id(request.domain_id)
        data = await self.client.get_utm(request.type, domain_id, request.filter or {})
        return {"domain_id": domain_id, "type": request.type, spec.result_key: data}

    async def _active(self, spec: ToolSpec, request: ActiveRequest) -> dict[str, Any]:
        domain_id = await self.resolve_domain_id(request.domain_id)
        start = request.start_seconds
        data = await self.client.get_active(domain_id, start)
        return {"domain_id": domain_id, "start": start, spec.result_key: data}

    def _comparison_dates(self, request: CompareRequest) -> tuple[str, str, str, str]:
        """Return (from, to, compare_from, compare_to) as YYYY-MM-DD.

        Raises:
            InvalidArgumentsError: If neither a period nor all four custom
                dates are given, or a custom date is malformed.
        """
        if request.is_custom:
            bounds = {
                "from": request.from_,
                "to": request.to,
                "compare_from": request.compare_from,
                "compare_to": request.compare_to,
            }
            missing = [name for name, value in bounds.items() if not value]
            if missing:
                raise InvalidArgumentsError(
                    "Provide either period or custom from/to + compare_from/compare_to "
                    f"(missing: {', '.join(missing)})"
                )
            parsed = [parse_iso_date(value, name) for name, value in bounds.items()]
            return tuple(iso_date(day) for day in parsed)

        current = get_date_range(request.period, now=self._clock())
        previous = comparison_range(current, request.compare or "previous")
        return (
            iso_date(current.start),
            iso_date(current.end),
            iso_date(previous.start),
            iso_date(previous.end),
        )

    async def _compare(self, spec: ToolSpec, request: CompareRequest) -> dict[str, Any]:
        # Dates are validated before any network call, domain lookup included
        current_from, current_to, previous_from, previous_to = self._comparison_dates(request)
        domain_id = await self.resolve_domain_id(request.domain_id)

        results = await asyncio.gather(
            self.client.get_visitors(
                domain_id, {"from": current_from, "to": current_to, "scale": request.scale}
            ),
            self.client.get_visitors(
                domain_id, {"from": previous_from, "to": previous_to, "scale": request.scale}
            ),
            return_exceptions=True,
        )
        # No partial comparison: the first failure fails the whole call
        for result in results:
            if isinstance(result, BaseException):
                raise result
        current, previous = results

        current_totals = sum_series(current if isinstance(current, list) else [])
        previous_totals = sum_series(previous if isinstance(previous, list) else [])

        result = ComparisonResult(
            period={"from": current_from, "to": current_to},
            compare_to={"from": previous_from, "to": previous_to},
            totals=ComparisonTotals(**{
                field: metric_with_change(
                    getattr(current_totals, field), getattr(previous_totals, field)
                )
                for field in SUMMED_FIELDS
            }),
            series={"current": current, "previous": previous},
        )
        return result.model_dump(mode="json")

"""Tests for the tool dispatcher."""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from conftest import FakePirsch
from pirsch_mcp.core.errors import (
    InvalidArgumentsError,
    RetryExhaustedError,
    UnknownToolError,
    UpstreamRequestError,
)
from pirsch_mcp.core.models import Domain
from pirsch_mcp.tools.dispatcher import ToolDispatcher
from pirsch_mcp.tools.schemas import TOOLS_BY_NAME

# Wednesday
NOW = datetime(2024, 3, 13, 10, 0)


def run_async(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


def mock_client(domains=None):
    """A PirschClient stand-in with async fetches."""
    client = MagicMock()
    client.list_domains = AsyncMock(return_value=domains if domains is not None else [
        Domain(id="first-domain", hostname="example.com"),
        Domain(id="second-domain", hostname="example.org"),
    ])
    client.get_overview = AsyncMock(return_value={"visitors": 100, "members": []})
    client.get_statistics = AsyncMock(return_value={"visitors": 7})
    client.get_utm = AsyncMock(return_value=[{"utm_source": "newsletter", "visitors": 3}])
    client.get_active = AsyncMock(return_value={"visitors": 2, "pages": []})
    client.get_visitors = AsyncMock(return_value=[])
    return client


def make_dispatcher(client=None, default_domain_id=None):
    return ToolDispatcher(client or mock_client(), default_domain_id=default_domain_id, clock=lambda: NOW)


class TestDomainResolution:
    """Test resolve_domain_id precedence."""

    def test_explicit_argument_wins(self):
        client = mock_client()
        dispatcher = make_dispatcher(client, default_domain_id="configured")
        assert run_async(dispatcher.resolve_domain_id("explicit")) == "explicit"
        client.list_domains.assert_not_awaited()

    def test_configured_default(self):
        client = mock_client()
        dispatcher = make_dispatcher(client, default_domain_id="configured")
        assert run_async(dispatcher.resolve_domain_id(None)) == "configured"
        client.list_domains.assert_not_awaited()

    def test_empty_argument_uses_default(self):
        dispatcher = make_dispatcher(default_domain_id="configured")
        assert run_async(dispatcher.resolve_domain_id("")) == "configured"

    def test_first_listed_domain(self):
        dispatcher = make_dispatcher()
        assert run_async(dispatcher.resolve_domain_id()) == "first-domain"

    def test_single_domain_object(self):
        client = mock_client(domains=Domain(id="only-domain", hostname="example.com"))
        dispatcher = make_dispatcher(client)
        assert run_async(dispatcher.resolve_domain_id()) == "only-domain"

    def test_no_domain_found(self):
        dispatcher = make_dispatcher(mock_client(domains=[]))
        with pytest.raises(InvalidArgumentsError) as exc_info:
            run_async(dispatcher.resolve_domain_id())
        assert "No domain found" in str(exc_info.value)

    def test_empty_listing_response(self, make_client):
        """A 204 from /domain is reported as no domain, not a parse failure."""
        fake = FakePirsch({"/domain": [httpx.Response(204)]})
        dispatcher = ToolDispatcher(make_client(fake))

        result = run_async(dispatcher.dispatch("pirsch_overview", {}))

        assert result == {
            "error": True,
            "message": "No domain found. Set PIRSCH_DEFAULT_DOMAIN_ID or provide domain_id",
        }
        assert fake.calls_to("/statistics/overview") == []


class TestArgumentValidation:
    """Test parse_request."""

    def test_unknown_tool(self):
        with pytest.raises(UnknownToolError):
            make_dispatcher().parse_request("pirsch_nope", {})

    def test_missing_required_argument(self):
        with pytest.raises(InvalidArgumentsError) as exc_info:
            make_dispatcher().parse_request("pirsch_utm", {})
        assert "type" in str(exc_info.value)

    def test_invalid_enum(self):
        with pytest.raises(InvalidArgumentsError):
            make_dispatcher().parse_request("pirsch_compare", {"period": "fortnight"})

    def test_unknown_arguments_ignored(self):
        request = make_dispatcher().parse_request("pirsch_overview", {"domain_id": "d", "extra": 1})
        assert request.domain_id == "d"

    def test_none_arguments(self):
        request = make_dispatcher().parse_request("pirsch_list_domains", None)
        assert request.search is None

    def test_every_tool_has_a_handler(self):
        dispatcher = make_dispatcher()
        assert set(dispatcher._handlers) == set(TOOLS_BY_NAME)


class TestToolCalls:
    """Test results of individual tools."""

    def test_list_domains(self):
        client = mock_client()
        result = run_async(make_dispatcher(client).dispatch("pirsch_list_domains", {"search": "example"}))

        assert result["count"] == 2
        assert result["domains"][0]["id"] == "first-domain"
        assert result["domains"][0]["hostname"] == "example.com"
        client.list_domains.assert_awaited_once_with(search="example")

    def test_list_domains_wraps_single_object(self):
        client = mock_client(domains=Domain(id="only", hostname="example.com"))
        result = run_async(make_dispatcher(client).dispatch("pirsch_list_domains", {}))
        assert result["count"] == 1
        assert result["domains"][0]["id"] == "only"

    def test_overview(self):
        result = run_async(make_dispatcher().dispatch("pirsch_overview", {"domain_id": "d"}))
        assert result == {"domain_id": "d", "overview": {"visitors": 100, "members": []}}

    @pytest.mark.parametrize("name,endpoint,key", [
        ("pirsch_total", "/statistics/total", "total"),
        ("pirsch_visitors", "/statistics/visitor", "series"),
        ("pirsch_pages", "/statistics/page", "pages"),
        ("pirsch_referrers", "/statistics/referrer", "referrers"),
        ("pirsch_growth", "/statistics/growth", "growth"),
    ])
    def test_statistics_tools(self, name, endpoint, key):
        client = mock_client()
        filters = {"from": "2024-03-01", "to": "2024-03-31", "limit": 10}

        result = run_async(make_dispatcher(client).dispatch(name, {"domain_id": "d", "filter": filters}))

        assert result == {"domain_id": "d", key: {"visitors": 7}}
        client.get_statistics.assert_awaited_once_with(endpoint, "d", filters)

    def test_statistics_without_filter(self):
        client = mock_client()
        run_async(make_dispatcher(client).dispatch("pirsch_total", {"domain_id": "d"}))
        client.get_statistics.assert_awaited_once_with("/statistics/total", "d", {})

    def test_filter_values_passed_through_uncoerced(self):
        """Mistyped filter values reach the encoder untouched, to be dropped there."""
        client = mock_client()
        filters = {"limit": "10", "include_title": "yes"}
        run_async(make_dispatcher(client).dispatch("pirsch_pages", {"domain_id": "d", "filter": filters}))
        assert client.get_statistics.await_args.args[2] == filters

    def test_utm(self):
        client = mock_client()
        result = run_async(make_dispatcher(client).dispatch("pirsch_utm", {"domain_id": "d", "type": "source"}))

        assert result["type"] == "source"
        assert result["utm"] == [{"utm_source": "newsletter", "visitors": 3}]
        client.get_utm.assert_awaited_once_with("source", "d", {})

    def test_active_default_start(self):
        client = mock_client()
        result = run_async(make_dispatcher(client).dispatch("pirsch_active", {"domain_id": "d"}))

        assert result["start"] == 600
        assert result["active"] == {"visitors": 2, "pages": []}
        client.get_active.assert_awaited_once_with("d", 600)

    def test_active_explicit_start(self):
        client = mock_client()
        result = run_async(make_dispatcher(client).dispatch("pirsch_active", {"domain_id": "d", "start": 0}))
        assert result["start"] == 0
        client.get_active.assert_awaited_once_with("d", 0)

    def test_active_fractional_start(self):
        client = mock_client()
        run_async(make_dispatcher(client).dispatch("pirsch_active", {"domain_id": "d", "start": 90.5}))
        client.get_active.assert_awaited_once_with("d", 90.5)

    @pytest.mark.parametrize("start", ["300", True, [300]])
    def test_active_non_numeric_start_not_coerced(self, start):
        client = mock_client()
        result = run_async(make_dispatcher(client).dispatch("pirsch_active", {"domain_id": "d", "start": start}))
        assert result["start"] == 600
        client.get_active.assert_awaited_once_with("d", 600)

    def test_domain_resolved_from_listing(self):
        client = mock_client()
        result = run_async(make_dispatcher(client).dispatch("pirsch_overview", {}))
        assert result["domain_id"] == "first-domain"
        client.get_overview.assert_awaited_once_with("first-domain")


class TestCompare:
    """Test pirsch_compare."""

    def _dispatcher(self, current, previous, current_from):
        client = mock_client()

        async def fetch(domain_id, filters):
            return current if filters["from"] == current_from else previous

        client.get_visitors = AsyncMock(side_effect=fetch)
        return client, make_dispatcher(client)

    def test_week_against_previous_week(self, visitors_series):
        previous = [{"day": "2024-03-04", "visitors": 12, "views": 20, "sessions": 12, "bounces": 0}]
        client, dispatcher = self._dispatcher(visitors_series, previous, "2024-03-11")

        result = run_async(dispatcher.dispatch("pirsch_compare", {"domain_id": "d", "period": "week"}))

        assert result["period"] == {"from": "2024-03-11", "to": "2024-03-17"}
        assert result["compare_to"] == {"from": "2024-03-04", "to": "2024-03-10"}
        assert result["totals"]["visitors"] == {"current": 15, "previous": 12, "change": pytest.approx(0.25)}
        assert result["totals"]["views"]["current"] == 34
        assert result["totals"]["bounces"] == {"current": 6, "previous": 0, "change": None}
        assert result["series"] == {"current": visitors_series, "previous": previous}

        calls = client.get_visitors.await_args_list
        assert len(calls) == 2
        assert calls[0].args == ("d", {"from": "2024-03-11", "to": "2024-03-17", "scale": "day"})
        assert calls[1].args == ("d", {"from": "2024-03-04", "to": "2024-03-10", "scale": "day"})

    def test_year_comparison(self):
        client, dispatcher = self._dispatcher([], [], "2024-03-01")

        result = run_async(dispatcher.dispatch(
            "pirsch_compare", {"domain_id": "d", "period": "month", "compare": "year", "scale": "week"}
        ))

        assert result["period"] == {"from": "2024-03-01", "to": "2024-03-31"}
        assert result["compare_to"] == {"from": "2023-03-01", "to": "2023-03-31"}
        assert client.get_visitors.await_args_list[0].args[1]["scale"] == "week"

    def test_yesterday_compares_to_day_before(self):
        _, dispatcher = self._dispatcher([], [], "2024-03-12")
        result = run_async(dispatcher.dispatch("pirsch_compare", {"domain_id": "d", "period": "yesterday"}))
        assert result["period"] == {"from": "2024-03-12", "to": "2024-03-12"}
        assert result["compare_to"] == {"from": "2024-03-11", "to": "2024-03-11"}

    def test_custom_ranges(self, visitors_series):
        _, dispatcher = self._dispatcher(visitors_series, [], "2024-03-10")

        result = run_async(dispatcher.dispatch("pirsch_compare", {
            "domain_id": "d",
            "compare": "custom",
            "from": "2024-03-10",
            "to": "2024-03-12",
            "compare_from": "2023-03-10",
            "compare_to": "2023-03-12",
        }))

        assert result["period"] == {"from": "2024-03-10", "to": "2024-03-12"}
        assert result["compare_to"] == {"from": "2023-03-10", "to": "2023-03-12"}
        assert result["totals"]["visitors"]["change"] is None

    def test_custom_without_compare_dates_fails_before_network(self):
        client = mock_client()
        dispatcher = make_dispatcher(client)

        result = run_async(dispatcher.dispatch("pirsch_compare", {
            "compare": "custom", "period": "week", "from": "2024-03-10", "to": "2024-03-12",
        }))

        assert result["error"] is True
        assert "compare_from" in result["message"]
        client.list_domains.assert_not_awaited()
        client.get_visitors.assert_not_awaited()

    def test_neither_period_nor_dates(self):
        client = mock_client()
        with pytest.raises(InvalidArgumentsError):
            run_async(make_dispatcher(client).call("pirsch_compare", {"domain_id": "d"}))
        client.get_visitors.assert_not_awaited()

    def test_malformed_custom_date(self):
        result = run_async(make_dispatcher().dispatch("pirsch_compare", {
            "from": "March 10", "to": "2024-03-12",
            "compare_from": "2024-03-07", "compare_to": "2024-03-09",
        }))
        assert result["error"] is True
        assert "YYYY-MM-DD" in result["message"]

    def test_one_failed_fetch_fails_comparison(self):
        client = mock_client()
        client.get_visitors = AsyncMock(side_effect=[[], UpstreamRequestError(500, "boom")])

        result = run_async(make_dispatcher(client).dispatch("pirsch_compare", {"domain_id": "d", "period": "today"}))

        assert result == {"error": True, "message": "Pirsch API error (500): boom"}

    def test_failed_fetch_waits_for_the_other(self):
        client = mock_client()
        client.get_visitors = AsyncMock(side_effect=[UpstreamRequestError(500, "boom"), []])

        result = run_async(make_dispatcher(client).dispatch("pirsch_compare", {"domain_id": "d", "period": "today"}))

        assert result["message"] == "Pirsch API error (500): boom"
        assert client.get_visitors.await_count == 2

    def test_both_fetches_fail_reports_first(self):
        client = mock_client()
        client.get_visitors = AsyncMock(side_effect=[
            UpstreamRequestError(500, "current failed"),
            UpstreamRequestError(502, "previous failed"),
        ])

        result = run_async(make_dispatcher(client).dispatch("pirsch_compare", {"domain_id": "d", "period": "today"}))

        assert result == {"error": True, "message": "Pirsch API error (500): current failed"}


class TestErrorEnvelope:
    """Test that dispatch never raises."""

    def test_unknown_tool(self):
        result = run_async(make_dispatcher().dispatch("pirsch_nope", {}))
        assert result == {"error": True, "message": "Unknown tool: pirsch_nope"}

    def test_invalid_arguments(self):
        result = run_async(make_dispatcher().dispatch("pirsch_utm", {"type": "keyword"}))
        assert result["error"] is True
        assert result["message"].startswith("Invalid arguments")

    def test_client_error(self):
        client = mock_client()
        client.get_statistics = AsyncMock(side_effect=RetryExhaustedError(429, 3))
        result = run_async(make_dispatcher(client).dispatch("pirsch_total", {"domain_id": "d"}))
        assert result["error"] is True
        assert "Max retries exceeded" in result["message"]

    def test_transport_error(self):
        client = mock_client()
        client.get_overview = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        result = run_async(make_dispatcher(client).dispatch("pirsch_overview", {"domain_id": "d"}))
        assert result == {"error": True, "message": "connection refused"}

    def test_unexpected_error(self):
        client = mock_client()
        client.get_overview = AsyncMock(side_effect=KeyError("x"))
        result = run_async(make_dispatcher(client).dispatch("pirsch_overview", {"domain_id": "d"}))
        assert result["error"] is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

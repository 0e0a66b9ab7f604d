"""
Tool catalogue: names, descriptions and JSON input schemas.

The filter schema mirrors the fields understood by the filter encoder.
"""
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from .requests import (
    ActiveRequest,
    CompareRequest,
    DomainRequest,
    ListDomainsRequest,
    StatisticsRequest,
    UtmRequest,
)

SCALES = ["day", "week", "month", "year"]

FILTER_SCHEMA_PROPERTIES: dict[str, Any] = {
    "from": {"type": "string", "description": "YYYY-MM-DD"},
    "to": {"type": "string", "description": "YYYY-MM-DD"},
    "from_time": {"type": "string", "description": "HH:MM (same-day only)"},
    "to_time": {"type": "string", "description": "HH:MM (same-day only)"},
    "tz": {"type": "string"},
    "start": {"type": "number", "description": "Past seconds for active view"},
    "scale": {"type": "string", "enum": SCALES},
    "hostname": {"type": "string"},
    "path": {"type": "string"},
    "entry_path": {"type": "string"},
    "exit_path": {"type": "string"},
    "pattern": {"type": "string"},
    "event": {"type": "string"},
    "event_meta_key": {"type": "string"},
    "language": {"type": "string"},
    "country": {"type": "string"},
    "city": {"type": "string"},
    "referrer": {"type": "string"},
    "referrer_name": {"type": "string"},
    "channel": {"type": "string"},
    "os": {"type": "string"},
    "browser": {"type": "string"},
    "platform": {"type": "string", "enum": ["desktop", "mobile", "unknown"]},
    "screen_class": {"type": "string"},
    "utm_source": {"type": "string"},
    "utm_medium": {"type": "string"},
    "utm_campaign": {"type": "string"},
    "utm_content": {"type": "string"},
    "utm_term": {"type": "string"},
    "custom_metric_type": {"type": "string", "enum": ["integer", "float"]},
    "custom_metric_key": {"type": "string"},
    "tag": {"type": "string"},
    "offset": {"type": "number"},
    "limit": {"type": "number"},
    "include_avg_time_on_page": {"type": "boolean"},
    "include_title": {"type": "boolean"},
    "sort": {"type": "string"},
    "direction": {"type": "string", "enum": ["asc", "desc"]},
    "search": {"type": "string"},
    "visitor_id": {"type": "string"},
    "session_id": {"type": "string"},
}

_DOMAIN_ID = {"type": "string"}
_FILTER = {"type": "object", "properties": FILTER_SCHEMA_PROPERTIES}


@dataclass(frozen=True)
class ToolSpec:
    """
    Definition of a tool.

    Attributes:
        name: Unique identifier for the tool
        description: Human-readable description
        input_schema: JSON Schema for expected input
        request_model: Model the arguments are validated into
        endpoint: Statistics endpoint, for tools that pass a filter through
        result_key: Key holding the upstream data in the result
    """

    name: str
    description: str
    input_schema: dict[str, Any]
    request_model: type[BaseModel]
    endpoint: str | None = None
    result_key: str | None = None


def _statistics_tool(name: str, description: str, endpoint: str, result_key: str) -> ToolSpec:
    return ToolSpec(
        name=name,
        description=description,
        input_schema={
            "type": "object",
            "properties": {"domain_id": _DOMAIN_ID, "filter": _FILTER},
        },
        request_model=StatisticsRequest,
        endpoint=endpoint,
        result_key=result_key,
    )


TOOLS: list[ToolSpec] = [
    ToolSpec(
        name="pirsch_list_domains",
        description="List accessible Pirsch domains to discover domain IDs",
        input_schema={"type": "object", "properties": {"search": {"type": "string"}}},
        request_model=ListDomainsRequest,
    ),
    ToolSpec(
        name="pirsch_overview",
        description="Get cached overview (visitors, views, members) for a domain",
        input_schema={"type": "object", "properties": {"domain_id": _DOMAIN_ID}},
        request_model=DomainRequest,
        result_key="overview",
    ),
    _statistics_tool(
        "pirsch_total",
        "Get totals for visitors, views, sessions, bounces, bounce_rate, cr with filters",
        "/statistics/total",
        "total",
    ),
    _statistics_tool(
        "pirsch_visitors",
        "Get visitors time series with optional scale and filters",
        "/statistics/visitor",
        "series",
    ),
    _statistics_tool(
        "pirsch_pages",
        "Get page stats with sorting, search, and optional average time on page",
        "/statistics/page",
        "pages",
    ),
    _statistics_tool(
        "pirsch_referrers",
        "Get referrer statistics with filters and sorting",
        "/statistics/referrer",
        "referrers",
    ),
    ToolSpec(
        name="pirsch_utm",
        description="Get UTM stats by dimension (source, medium, campaign, content, term)",
        input_schema={
            "type": "object",
            "properties": {
                "domain_id": _DOMAIN_ID,
                "type": {
                    "type": "string",
                    "enum": ["source", "medium", "campaign", "content", "term"],
                },
                "filter": _FILTER,
            },
            "required": ["type"],
        },
        request_model=UtmRequest,
        result_key="utm",
    ),
    _statistics_tool(
        "pirsch_growth",
        "Get growth rates across core metrics for the selected period",
        "/statistics/growth",
        "growth",
    ),
    ToolSpec(
        name="pirsch_active",
        description="Get active visitors and pages for the past N seconds (default 600)",
        input_schema={
            "type": "object",
            "properties": {"domain_id": _DOMAIN_ID, "start": {"type": "number"}},
        },
        request_model=ActiveRequest,
        result_key="active",
    ),
    ToolSpec(
        name="pirsch_compare",
        description="Compare visitors time series between two periods and return deltas/growth",
        input_schema={
            "type": "object",
            "properties": {
                "domain_id": _DOMAIN_ID,
                "period": {
                    "type": "string",
                    "enum": ["today", "yesterday", "week", "lastWeek", "month", "lastMonth"],
                },
                "compare": {
                    "type": "string",
                    "enum": ["previous", "year", "custom"],
                    "description": "Compare to previous period, same period last year, or custom range",
                },
                "from": {"type": "string"},
                "to": {"type": "string"},
                "compare_from": {"type": "string"},
                "compare_to": {"type": "string"},
                "scale": {"type": "string", "enum": SCALES},
            },
        },
        request_model=CompareRequest,
    ),
]

TOOLS_BY_NAME: dict[str, ToolSpec] = {tool.name: tool for tool in TOOLS}

"""
Pydantic models for Pirsch API data.
"""
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Scale = Literal["day", "week", "month", "year"]
Period = Literal["today", "yesterday", "week", "lastWeek", "month", "lastMonth"]
CompareMode = Literal["previous", "year", "custom"]
UtmKind = Literal["source", "medium", "campaign", "content", "term"]

# =============================================================================
# Auth / Domain Models
# =============================================================================

class TokenResponse(BaseModel):
    """Response of POST /token."""
    access_token: str
    expires_at: datetime  # ISO-8601 UTC


class Domain(BaseModel):
    """An analytics property (tracked website)."""
    model_config = ConfigDict(extra="allow")

    id: str
    hostname: str
    subdomain: str | None = None
    custom_domain: str | None = None
    display_name: str | None = None
    timezone: str | None = None


# =============================================================================
# Filter Model
# =============================================================================

class StatisticsFilter(BaseModel):
    """Query filter for the statistics endpoints.

    Every field is optional. The encoder in filters.py decides which
    values are sent; this model only gives typed callers a place to
    build them.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None  # always replaced by the domain id when encoded

    # Date / time
    from_: str | None = Field(default=None, alias="from")  # YYYY-MM-DD
    to: str | None = None
    from_time: str | None = None  # HH:MM, same-day only
    to_time: str | None = None
    tz: str | None = None
    start: int | float | None = None  # past seconds for active view
    scale: Scale | None = None

    # Dimensions
    hostname: str | None = None
    path: str | None = None
    entry_path: str | None = None
    exit_path: str | None = None
    pattern: str | None = None
    event: str | None = None
    event_meta_key: str | None = None
    language: str | None = None
    country: str | None = None
    city: str | None = None
    referrer: str | None = None
    referrer_name: str | None = None
    channel: str | None = None
    os: str | None = None
    browser: str | None = None
    platform: Literal["desktop", "mobile", "unknown"] | None = None
    screen_class: str | None = None

    # UTM
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_content: str | None = None
    utm_term: str | None = None

    # Custom metrics
    custom_metric_type: Literal["integer", "float"] | None = None
    custom_metric_key: str | None = None

    tag: str | None = None

    # Pagination and sorting
    offset: int | None = None
    limit: int | None = None
    include_avg_time_on_page: bool | None = None
    include_title: bool | None = None
    sort: str | None = None
    direction: Literal["asc", "desc"] | None = None
    search: str | None = None

    # Sessions
    visitor_id: str | None = None
    session_id: str | None = None

    def active_filters(self) -> dict[str, Any]:
        """Return dict of set (non-None) fields keyed by their wire names."""
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Statistics Models
# =============================================================================

class VisitorsPoint(BaseModel):
    """One time bucket of the visitor series.

    Exactly one of day/week/month/year is populated, depending on scale.
    """
    model_config = ConfigDict(extra="allow")

    day: str | None = None
    week: str | None = None
    month: str | None = None
    year: str | None = None
    visitors: int = 0
    views: int = 0
    sessions: int = 0
    bounces: int = 0
    bounce_rate: float = 0
    cr: float = 0


class DateRange(BaseModel):
    """A local-time range, start at 00:00:00.000, end at 23:59:59.999."""
    start: datetime
    end: datetime


class MetricChange(BaseModel):
    """A metric with its value in the comparison period."""
    current: int
    previous: int
    change: float | None = None  # fraction, None when previous is 0


class ComparisonTotals(BaseModel):
    visitors: MetricChange
    views: MetricChange
    sessions: MetricChange
    bounces: MetricChange


class ComparisonResult(BaseModel):
    """Result of comparing the visitor series of two periods."""
    period: dict[str, str]  # {from, to}
    compare_to: dict[str, str]  # {from, to}
    totals: ComparisonTotals
    series: dict[str, Any]  # {current, previous}, raw upstream series

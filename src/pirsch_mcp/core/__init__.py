"""
Core Pirsch module.

Contains the API client, filter encoding, date ranges and aggregation.
"""

from .client import PirschClient
from .dates import comparison_range, get_date_range, previous_period
from .errors import (
    AuthenticationError,
    ConfigurationError,
    InvalidArgumentsError,
    PirschError,
    RetryExhaustedError,
    UnknownToolError,
    UpstreamRequestError,
)
from .filters import build_filter_params
from .metrics import pct_change, sum_series
from .models import (
    ComparisonResult,
    DateRange,
    Domain,
    MetricChange,
    StatisticsFilter,
    VisitorsPoint,
)

__all__ = [
    "PirschClient",
    "build_filter_params",
    "get_date_range", "previous_period", "comparison_range",
    "sum_series", "pct_change",
    "Domain", "StatisticsFilter", "VisitorsPoint", "DateRange",
    "MetricChange", "ComparisonResult",
    "PirschError", "ConfigurationError", "AuthenticationError",
    "UpstreamRequestError", "RetryExhaustedError",
    "InvalidArgumentsError", "UnknownToolError",
]

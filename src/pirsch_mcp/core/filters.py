"""
Query-string encoding for statistics filters.

Pirsch takes filters as flat query parameters. A field is sent only when
it carries a value: None and "" are dropped, and typed fields (numbers,
flags) are dropped unless the value has the expected type. Numeric 0 and
boolean False are real values and are always sent.
"""
from collections.abc import Mapping
from enum import Enum
from typing import Any

from .models import StatisticsFilter


class FieldKind(str, Enum):
    """How a filter field is checked and rendered."""
    TEXT = "text"
    NUMBER = "number"
    FLAG = "flag"


# Wire name -> kind. Order only affects the order of the query string.
FILTER_FIELDS: dict[str, FieldKind] = {
    # Date / time
    "from": FieldKind.TEXT,
    "to": FieldKind.TEXT,
    "from_time": FieldKind.TEXT,
    "to_time": FieldKind.TEXT,
    "tz": FieldKind.TEXT,
    "start": FieldKind.NUMBER,
    "scale": FieldKind.TEXT,
    # Dimensions
    "hostname": FieldKind.TEXT,
    "path": FieldKind.TEXT,
    "entry_path": FieldKind.TEXT,
    "exit_path": FieldKind.TEXT,
    "pattern": FieldKind.TEXT,
    "event": FieldKind.TEXT,
    "event_meta_key": FieldKind.TEXT,
    "language": FieldKind.TEXT,
    "country": FieldKind.TEXT,
    "city": FieldKind.TEXT,
    "referrer": FieldKind.TEXT,
    "referrer_name": FieldKind.TEXT,
    "channel": FieldKind.TEXT,
    "os": FieldKind.TEXT,
    "browser": FieldKind.TEXT,
    "platform": FieldKind.TEXT,
    "screen_class": FieldKind.TEXT,
    # UTM
    "utm_source": FieldKind.TEXT,
    "utm_medium": FieldKind.TEXT,
    "utm_campaign": FieldKind.TEXT,
    "utm_content": FieldKind.TEXT,
    "utm_term": FieldKind.TEXT,
    # Custom metrics
    "custom_metric_type": FieldKind.TEXT,
    "custom_metric_key": FieldKind.TEXT,
    "tag": FieldKind.TEXT,
    # Pagination and sorting
    "offset": FieldKind.NUMBER,
    "limit": FieldKind.NUMBER,
    "include_avg_time_on_page": FieldKind.FLAG,
    "include_title": FieldKind.FLAG,
    "sort": FieldKind.TEXT,
    "direction": FieldKind.TEXT,
    "search": FieldKind.TEXT,
    # Sessions
    "visitor_id": FieldKind.TEXT,
    "session_id": FieldKind.TEXT,
}


def is_present(kind: FieldKind, value: Any) -> bool:
    """Check whether a value should be encoded for a field of this kind."""
    if kind is FieldKind.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is FieldKind.FLAG:
        return isinstance(value, bool)
    return value is not None and value != ""


def format_value(value: Any) -> str:
    """Render a value the way it appears in a query string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def build_filter_params(
    filters: StatisticsFilter | Mapping[str, Any] | None,
    domain_id: str,
    default_tz: str | None = None,
) -> dict[str, str]:
    """Encode a filter into query parameters for a statistics endpoint.

    Args:
        filters: Typed filter or a raw mapping keyed by wire names
            (e.g. tool arguments). Unknown keys are ignored.
        domain_id: Domain to query. Always sent as ``id``, replacing any
            ``id`` in the filter.
        default_tz: Timezone used when the filter has no ``tz``.

    Returns:
        Ordered dict of parameter name to string value, one entry per key.
    """
    if filters is None:
        values: Mapping[str, Any] = {}
    elif isinstance(filters, StatisticsFilter):
        values = filters.active_filters()
    else:
        values = filters

    params = {"id": domain_id}

    for name, kind in FILTER_FIELDS.items():
        value = values.get(name)
        if name == "tz" and not value:
            value = default_tz
        if is_present(kind, value):
            params[name] = format_value(value)

    return params

"""
Typed arguments for each tool.

Tool arguments arrive as loosely typed JSON objects. Each tool validates
them into one of these models before anything else happens.
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator

from ..core.models import CompareMode, Period, Scale, UtmKind

DEFAULT_ACTIVE_SECONDS = 600


class ToolRequest(BaseModel):
    """Base for tool arguments. Unknown arguments are ignored."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ListDomainsRequest(ToolRequest):
    search: str | None = None


class DomainRequest(ToolRequest):
    """Arguments of tools that operate on one domain."""
    domain_id: str | None = None


class StatisticsRequest(DomainRequest):
    # Kept as a raw mapping; the filter encoder drops unset or mistyped values
    filter: dict[str, Any] | None = None


class UtmRequest(StatisticsRequest):
    type: UtmKind


class ActiveRequest(DomainRequest):
    start: StrictInt | StrictFloat | None = None

    @field_validator("start", mode="before")
    @classmethod
    def drop_non_numeric_start(cls, value: Any) -> Any:
        # Not coerced: "600" or true fall back to the default window
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value

    @property
    def start_seconds(self) -> int | float:
        return DEFAULT_ACTIVE_SECONDS if self.start is None else self.start


class CompareRequest(DomainRequest):
    """Arguments for comparing two periods.

    Either ``period`` (with an optional ``compare`` mode) or all four of
    ``from``, ``to``, ``compare_from`` and ``compare_to`` are required.
    """
    period: Period | None = None
    compare: CompareMode | None = None
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    compare_from: str | None = None
    compare_to: str | None = None
    scale: Scale = "day"

    @property
    def is_custom(self) -> bool:
        return self.compare == "custom" or self.period is None

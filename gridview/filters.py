from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

MIN_DAY = 1
MAX_DAY = 366


class FilterValidationError(ValueError):
    pass


class DemandMetric(str, Enum):
    PEAK = "peak"
    MIN = "min"

    @property
    def column(self) -> str:
        return "peak_demand" if self is DemandMetric.PEAK else "min_demand"

    @property
    def label(self) -> str:
        return "Measured at Peak Hour" if self is DemandMetric.PEAK else "Measured at Min Hour"


# "avg_peak" / "avg_min" are the legacy radio values.
_METRIC_ALIASES = {
    "peak": DemandMetric.PEAK,
    "avg_peak": DemandMetric.PEAK,
    "min": DemandMetric.MIN,
    "avg_min": DemandMetric.MIN,
}


@dataclass(frozen=True)
class FilterState:
    min_day: int = MIN_DAY
    max_day: int = 365
    metric: DemandMetric = DemandMetric.PEAK


def validate_range(min_day: int, max_day: int) -> None:
    if not (MIN_DAY <= min_day <= max_day <= MAX_DAY):
        raise FilterValidationError(
            f"invalid day range [{min_day}, {max_day}]: expected {MIN_DAY} <= min_day <= max_day <= {MAX_DAY}"
        )


def parse_metric(value: Union[str, DemandMetric, None]) -> DemandMetric:
    if isinstance(value, DemandMetric):
        return value
    key = str(value or "").strip().lower()
    try:
        return _METRIC_ALIASES[key]
    except KeyError:
        raise FilterValidationError(f"unknown demand metric: {value!r}") from None


def _as_day(value: object, name: str) -> int:
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise FilterValidationError(f"{name} must be an integer day of year, got {value!r}") from None
    if not out.is_integer():
        raise FilterValidationError(f"{name} must be an integer day of year, got {value!r}")
    return int(out)


def make_filter_state(min_day: int, max_day: int, metric: Union[str, DemandMetric]) -> FilterState:
    min_day = _as_day(min_day, "min_day")
    max_day = _as_day(max_day, "max_day")
    validate_range(min_day, max_day)
    return FilterState(min_day=min_day, max_day=max_day, metric=parse_metric(metric))


def normalize_filters(raw: Optional[dict], *, days_in_year: int = 365) -> FilterState:
    """Build a validated FilterState from a request/UI dict, defaulting to the whole year and peak demand."""
    raw = raw or {}
    min_day = raw.get("min_day")
    max_day = raw.get("max_day")
    metric = raw.get("metric")
    return make_filter_state(
        MIN_DAY if min_day is None else min_day,
        days_in_year if max_day is None else max_day,
        DemandMetric.PEAK if metric is None else metric,
    )

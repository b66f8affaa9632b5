from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from gridview.charts import day_of_week_chart, to_vega_spec
from gridview.config import DashboardConfig
from gridview.data import DashboardData, window
from gridview.filters import DemandMetric, FilterState, parse_metric


def group_by_day_of_week(frame: pd.DataFrame, column: str) -> List[Dict[str, Any]]:
    """Mean of `column` per day_of_week; days with no values are left out."""
    if frame.empty or column not in frame.columns:
        return []
    values = pd.to_numeric(frame[column], errors="coerce")
    means = values.groupby(frame["day_of_week"]).mean().dropna().sort_index()
    return [{"day_of_week": int(day), "value": float(value)} for day, value in means.items()]


def day_of_week_means(
    demand: pd.DataFrame, min_day: int, max_day: int, metric: Union[DemandMetric, str] = DemandMetric.PEAK
) -> List[Dict[str, Any]]:
    metric = parse_metric(metric)
    return group_by_day_of_week(window(demand, min_day, max_day), metric.column)


def demand_chart_title(region: str, metric: Union[DemandMetric, str]) -> str:
    return f"{region} ({parse_metric(metric).label})"


def compute_day_of_week(filters: FilterState, data: DashboardData, config: Optional[DashboardConfig] = None) -> Dict[str, Any]:
    config = config or DashboardConfig()
    regions: List[Dict[str, Any]] = []
    for index, (name, demand) in enumerate(zip(data.regions, data.demand)):
        bars = day_of_week_means(demand, filters.min_day, filters.max_day, filters.metric)
        title = demand_chart_title(name, filters.metric)
        regions.append(
            {
                "region_index": index,
                "region": name,
                "title": title,
                "bars": bars,
                "chart": to_vega_spec(day_of_week_chart(bars, title, config.demand_y_max)),
            }
        )
    return {
        "filters": asdict(filters),
        "metric": filters.metric.value,
        "y_max": config.demand_y_max,
        "regions": regions,
    }

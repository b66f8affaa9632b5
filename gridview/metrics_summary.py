from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from gridview.config import DashboardConfig
from gridview.data import DashboardData, window
from gridview.dates import format_range_label
from gridview.filters import FilterState


def _date_span(df: pd.DataFrame) -> Dict[str, Optional[str]]:
    if df.empty or "date" not in df.columns:
        return {"first": None, "last": None}
    return {"first": df["date"].min().date().isoformat(), "last": df["date"].max().date().isoformat()}


def compute_summary(filters: FilterState, data: DashboardData, config: Optional[DashboardConfig] = None) -> Dict[str, Any]:
    config = config or DashboardConfig()
    energy_in_window = window(data.energy, filters.min_day, filters.max_day)
    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "range_label": format_range_label(filters.min_day, filters.max_day, config.year),
        "files": list(data.files),
        "row_counts": {
            "fractional_energy_rows": int(len(data.energy)),
            "geometry_features": int(len(data.geometry.get("features", []))),
            "price_rows": int(sum(len(df) for df in data.prices)),
            "demand_rows": int(sum(len(df) for df in data.demand)),
        },
        "fractional_energy": {
            "span": _date_span(data.energy),
            "rows_in_window": int(len(energy_in_window)),
            "missing_values": {
                region: int(data.energy[region].isna().sum()) for region in data.energy_regions
            },
        },
        "regions": [],
    }
    for name, prices, demand in zip(data.regions, data.prices, data.demand):
        prices_in_window = window(prices, filters.min_day, filters.max_day)
        demand_in_window = window(demand, filters.min_day, filters.max_day)
        payload["regions"].append(
            {
                "region": name,
                "span": _date_span(prices),
                "price_rows_in_window": int(prices_in_window["avg_rt_lmp"].notna().sum()),
                "demand_rows_in_window": int(len(demand_in_window)),
                "missing_prices": int(prices["avg_rt_lmp"].isna().sum()),
            }
        )
    return payload

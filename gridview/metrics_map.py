from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from gridview.charts import FRACTIONAL_ENERGY_HELP, map_chart, to_vega_spec
from gridview.config import DashboardConfig
from gridview.data import CALENDAR_COLUMNS, DashboardData, window
from gridview.filters import FilterState


def regional_window_averages(energy: pd.DataFrame, min_day: int, max_day: int) -> Dict[str, float]:
    """Mean fractional energy per region inside the window.

    Missing values are skipped; a region with no contributing rows gets no entry at all.
    """
    rows = window(energy, min_day, max_day)
    regions = [c for c in energy.columns if c not in CALENDAR_COLUMNS and c != "day_of_week"]
    if rows.empty or not regions:
        return {}
    means = rows[regions].apply(pd.to_numeric, errors="coerce").mean(skipna=True)
    return {str(region): float(value) for region, value in means.items() if pd.notna(value)}


def compute_map(filters: FilterState, data: DashboardData, config: Optional[DashboardConfig] = None) -> Dict[str, Any]:
    config = config or DashboardConfig()
    averages = regional_window_averages(data.energy, filters.min_day, filters.max_day)
    legend_domain = [float(v) for v in config.legend_domain]

    named = [(f.get("properties") or {}).get("name") for f in data.geometry.get("features", [])]
    no_data: List[str] = [str(name) for name in named if name is not None and name not in averages]

    chart = map_chart(data.geometry, averages, config.legend_domain)
    return {
        "filters": asdict(filters),
        "averages": averages,
        "legend_domain": legend_domain,
        "no_data": no_data,
        "help": FRACTIONAL_ENERGY_HELP,
        "charts": {"map": to_vega_spec(chart)},
    }

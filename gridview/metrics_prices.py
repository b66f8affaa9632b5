from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from gridview.charts import histogram_chart, histogram_title, to_vega_spec
from gridview.config import DashboardConfig
from gridview.data import DashboardData, window
from gridview.filters import FilterState

DEFAULT_BIN_COUNT = 20
EMPTY_DOMAIN = (0.0, 1.0)


def histogram_bins(values: pd.Series, bin_count: int = DEFAULT_BIN_COUNT) -> List[Dict[str, Any]]:
    """Equal-width bins over [min, max] of the non-missing values.

    The last bin is closed on the right, so the counts add up to the number of values.
    An empty input falls back to the [0, 1] domain.
    """
    clean = pd.to_numeric(values, errors="coerce").dropna().to_numpy(dtype=float)
    bin_count = max(1, int(bin_count))
    if clean.size:
        lo, hi = float(clean.min()), float(clean.max())
    else:
        lo, hi = EMPTY_DOMAIN
    if lo == hi:
        lo, hi = lo - 0.5, hi + 0.5
    counts, edges = np.histogram(clean, bins=bin_count, range=(lo, hi))
    return [
        {"lower_bound": float(edges[i]), "upper_bound": float(edges[i + 1]), "count": int(counts[i])}
        for i in range(len(counts))
    ]


def price_histogram(prices: pd.DataFrame, min_day: int, max_day: int, bin_count: int = DEFAULT_BIN_COUNT) -> List[Dict[str, Any]]:
    rows = window(prices, min_day, max_day)
    values = rows["avg_rt_lmp"] if "avg_rt_lmp" in rows.columns else pd.Series(dtype=float)
    return histogram_bins(values, bin_count)


def compute_histograms(filters: FilterState, data: DashboardData, config: Optional[DashboardConfig] = None) -> Dict[str, Any]:
    config = config or DashboardConfig()
    regions: List[Dict[str, Any]] = []
    for index, (name, prices) in enumerate(zip(data.regions, data.prices)):
        bins = price_histogram(prices, filters.min_day, filters.max_day, config.histogram_bins)
        title = histogram_title(name)
        regions.append(
            {
                "region_index": index,
                "region": name,
                "title": title,
                "observations": int(sum(b["count"] for b in bins)),
                "bins": bins,
                "chart": to_vega_spec(histogram_chart(bins, title)),
            }
        )
    return {"filters": asdict(filters), "bin_count": config.histogram_bins, "regions": regions}

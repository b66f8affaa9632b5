from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from gridview.config import DashboardConfig


logger = logging.getLogger(__name__)

ENERGY_COLUMNS = {"Date": "date"}
PRICE_COLUMNS = {"Date": "date", "Avg_RT_LMP": "avg_rt_lmp"}
DEMAND_COLUMNS = {"Date": "date", "Peak_Demand": "peak_demand", "Min_Demand": "min_demand"}
CALENDAR_COLUMNS = ["date", "day_of_year"]


class DataLoadError(RuntimeError):
    def __init__(self, source: object, message: str):
        super().__init__(f"{source}: {message}")
        self.source = str(source)


@dataclass(frozen=True, eq=False)
class DashboardData:
    energy: pd.DataFrame
    geometry: Dict[str, Any]
    prices: Tuple[pd.DataFrame, ...]
    demand: Tuple[pd.DataFrame, ...]
    regions: Tuple[str, ...]
    files: Tuple[str, ...] = ()

    @property
    def energy_regions(self) -> List[str]:
        return [c for c in self.energy.columns if c not in CALENDAR_COLUMNS]

    def region_index(self, name: str) -> int:
        return self.regions.index(name)


def get_source_files(config: DashboardConfig) -> List[Path]:
    return [config.fractional_energy_path, config.geometry_path, *config.region_paths]


def file_signature(files: Iterable[Path]) -> Tuple[Tuple[str, float], ...]:
    sig = []
    for f in files:
        try:
            sig.append((str(f), f.stat().st_mtime))
        except OSError as exc:
            raise DataLoadError(f, "file not found") from exc
    return tuple(sig)


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            # "inf" parses to infinity; treat it as missing like any other non-number.
            df[col] = pd.to_numeric(df[col], errors="coerce").replace([np.inf, -np.inf], np.nan)
    return df


def read_csv_checked(path: Path, required: Iterable[str]) -> pd.DataFrame:
    try:
        df = pd.read_csv(path)
    except FileNotFoundError as exc:
        raise DataLoadError(path, "file not found") from exc
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DataLoadError(path, f"could not read CSV ({exc})") from exc
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise DataLoadError(path, f"missing required columns: {missing}")
    return df


def add_calendar_columns(df: pd.DataFrame, source: object) -> pd.DataFrame:
    """Parse `date` into naive calendar dates and derive day_of_year / day_of_week (1=Mon..7=Sun)."""
    dates = pd.to_datetime(df["date"], errors="coerce")
    bad = int(dates.isna().sum())
    if bad:
        logger.warning("%s: dropping %d row(s) with unparseable dates", source, bad)
    df = df.assign(date=dates.dt.normalize())
    df = df[df["date"].notna()].reset_index(drop=True).copy()
    df["day_of_year"] = df["date"].dt.dayofyear.astype(int)
    df["day_of_week"] = (df["date"].dt.dayofweek + 1).astype(int)
    return df


def load_fractional_energy(path: Path) -> pd.DataFrame:
    df = read_csv_checked(path, ENERGY_COLUMNS).rename(columns=ENERGY_COLUMNS)
    regions = [c for c in df.columns if c != "date"]
    df = numericize(df, regions)
    df = add_calendar_columns(df, path)
    logger.info("Loaded fractional energy: %d rows, %d regions from %s", len(df), len(regions), path)
    return df[CALENDAR_COLUMNS + regions]


def load_region_geometry(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            geometry = json.load(f)
    except FileNotFoundError as exc:
        raise DataLoadError(path, "file not found") from exc
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DataLoadError(path, f"could not read GeoJSON ({exc})") from exc
    if not isinstance(geometry, dict) or not isinstance(geometry.get("features"), list):
        raise DataLoadError(path, "expected a GeoJSON FeatureCollection with a 'features' list")
    logger.info("Loaded region geometry: %d features from %s", len(geometry["features"]), path)
    return geometry


def load_region_file(path: Path) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Read one per-region file and split it into its price and demand frames."""
    df = read_csv_checked(path, list(PRICE_COLUMNS) + list(DEMAND_COLUMNS))
    df = df.rename(columns={**PRICE_COLUMNS, **DEMAND_COLUMNS})
    df = numericize(df, ["avg_rt_lmp", "peak_demand", "min_demand"])
    df = add_calendar_columns(df, path)
    prices = df[["date", "day_of_year", "avg_rt_lmp"]].copy()
    demand = df[["date", "day_of_year", "day_of_week", "peak_demand", "min_demand"]].copy()
    logger.info("Loaded region file: %d rows from %s", len(df), path)
    return prices, demand


# ---------------- Public API (Streamlit + FastAPI) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, float], ...], config: DashboardConfig) -> DashboardData:
    energy = load_fractional_energy(config.fractional_energy_path)
    geometry = load_region_geometry(config.geometry_path)
    prices: List[pd.DataFrame] = []
    demand: List[pd.DataFrame] = []
    for path in config.region_paths:
        region_prices, region_demand = load_region_file(path)
        prices.append(region_prices)
        demand.append(region_demand)

    return DashboardData(
        energy=energy,
        geometry=geometry,
        prices=tuple(prices),
        demand=tuple(demand),
        regions=tuple(config.region_names),
        files=tuple(name for name, _ in files_sig),
    )


def load_dashboard_data(config: Optional[DashboardConfig] = None) -> DashboardData:
    """Load every fixture or none: any failure raises DataLoadError."""
    config = config or DashboardConfig.from_env()
    files = get_source_files(config)
    return _load_dashboard_data_cached(file_signature(files), config)


def clear_cache() -> None:
    _load_dashboard_data_cached.cache_clear()


def window(df: pd.DataFrame, min_day: int, max_day: int) -> pd.DataFrame:
    """Rows whose day_of_year lies in the inclusive window."""
    if df.empty or "day_of_year" not in df.columns:
        return df.iloc[0:0]
    return df[(df["day_of_year"] >= min_day) & (df["day_of_year"] <= max_day)]

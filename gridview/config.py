from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Tuple


BASE_DIR = Path(__file__).resolve().parents[1]

DEFAULT_REGIONS: Tuple[Tuple[str, str], ...] = (
    ("ME", "Maine"),
    ("NH", "New Hampshire"),
    ("VT", "Vermont"),
    ("CT", "Connecticut"),
    ("RI", "Rhode Island"),
    ("SEMA", "South East Massachusetts"),
    ("NEMA", "North East Massachusetts"),
    ("WCMA", "Worcester Massachusetts"),
)


@dataclass(frozen=True)
class DashboardConfig:
    data_dir: Path = BASE_DIR
    year: int = 2023
    regions: Tuple[Tuple[str, str], ...] = DEFAULT_REGIONS
    fractional_energy_file: str = "data/fractional-energy-by-state.csv"
    geometry_file: str = "assets/new-england.json"
    region_file_template: str = "data/{year}_{code}-filt.csv"
    histogram_bins: int = 20
    legend_domain: Tuple[float, float] = (0.0, 0.5)
    demand_y_max: float = 4500.0
    log_level: str = "INFO"

    @property
    def region_names(self) -> List[str]:
        return [name for _, name in self.regions]

    @property
    def fractional_energy_path(self) -> Path:
        return Path(self.data_dir) / self.fractional_energy_file

    @property
    def geometry_path(self) -> Path:
        return Path(self.data_dir) / self.geometry_file

    def region_path(self, code: str) -> Path:
        return Path(self.data_dir) / self.region_file_template.format(year=self.year, code=code)

    @property
    def region_paths(self) -> List[Path]:
        return [self.region_path(code) for code, _ in self.regions]

    @classmethod
    def from_env(cls, **overrides) -> "DashboardConfig":
        """Build a config from defaults, GRIDVIEW_* environment variables and explicit overrides."""
        config = cls()
        data_dir = os.getenv("GRIDVIEW_DATA_DIR", "").strip()
        if data_dir:
            config = replace(config, data_dir=Path(data_dir))
        year = os.getenv("GRIDVIEW_YEAR", "").strip()
        if year:
            config = replace(config, year=int(year))
        log_level = os.getenv("GRIDVIEW_LOG_LEVEL", "").strip().upper()
        if log_level:
            config = replace(config, log_level=log_level)
        return replace(config, **overrides) if overrides else config


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

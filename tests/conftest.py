import json
from pathlib import Path

import pandas as pd
import pytest

from gridview.config import DEFAULT_REGIONS, DashboardConfig
from gridview.data import clear_cache

# (date, Avg_RT_LMP, Peak_Demand, Min_Demand); blanks are missing values.
REGION_ROWS = [
    ("2023-01-02", "10", "100", "50"),  # Mon, day 2
    ("2023-01-03", "20", "200", "60"),  # Tue, day 3
    ("2023-01-09", "30", "300", "70"),  # Mon, day 9
    ("2023-01-10", "", "400", "80"),  # Tue, day 10
    ("2023-01-15", "50", "", "90"),  # Sun, day 15
]

ENERGY_CSV = (
    "Date,Maine,New Hampshire,Vermont\n"
    "2023-01-10,0.1,0.2,\n"
    "2023-01-20,0.3,,\n"
    "2023-01-30,0.5,n/a,\n"
)


def _square(x: float, y: float) -> dict:
    return {"type": "Polygon", "coordinates": [[[x, y], [x + 1, y], [x + 1, y + 1], [x, y + 1], [x, y]]]}


GEOMETRY = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"name": "Maine"}, "geometry": _square(-70.0, 45.0)},
        {"type": "Feature", "properties": {"name": "New Hampshire"}, "geometry": _square(-72.0, 43.5)},
        {"type": "Feature", "properties": {"name": "Vermont"}, "geometry": _square(-73.0, 43.5)},
    ],
}


def write_region_file(path: Path, rows=REGION_ROWS, scale: int = 1) -> None:
    lines = ["Date,Avg_RT_LMP,Peak_Demand,Min_Demand"]
    for date, price, peak, low in rows:
        cells = [date] + [str(float(v) * scale) if v else "" for v in (price, peak, low)]
        lines.append(",".join(cells))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


@pytest.fixture(autouse=True)
def _fresh_load_cache():
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    config = DashboardConfig(data_dir=tmp_path)
    config.fractional_energy_path.parent.mkdir(parents=True, exist_ok=True)
    config.fractional_energy_path.write_text(ENERGY_CSV, encoding="utf-8")
    config.geometry_path.parent.mkdir(parents=True, exist_ok=True)
    config.geometry_path.write_text(json.dumps(GEOMETRY), encoding="utf-8")
    for index, (code, _) in enumerate(DEFAULT_REGIONS):
        write_region_file(config.region_path(code), scale=index + 1)
    return tmp_path


@pytest.fixture
def config(data_dir: Path) -> DashboardConfig:
    return DashboardConfig(data_dir=data_dir)


@pytest.fixture
def energy_frame() -> pd.DataFrame:
    dates = pd.to_datetime(["2023-01-10", "2023-01-20", "2023-01-30"])
    return pd.DataFrame(
        {
            "date": dates,
            "day_of_year": dates.dayofyear,
            "Maine": [0.1, 0.3, 0.5],
            "Vermont": [float("nan"), 0.2, float("nan")],
        }
    )


@pytest.fixture
def geometry() -> dict:
    return json.loads(json.dumps(GEOMETRY))

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import altair as alt
import pandas as pd

from gridview.dates import DAY_LABELS

alt.data_transformers.disable_max_rows()

NO_DATA_FILL = "#ccc"
BAR_FILL = "steelblue"
MAP_SIZE = 600
CHART_WIDTH = 320
CHART_HEIGHT = 230

FRACTIONAL_ENERGY_HELP = (
    'For each day the "fractional energy" is calculated by dividing the regional energy field by the sum of '
    'the daily energy for all regions, then the "average fractional energy" is taken over the specified time interval.'
)


def histogram_title(region: str) -> str:
    return f"Region: {region} (USD vs. # of Days)"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def map_chart(geometry: Mapping[str, Any], color_assignment: Mapping[str, float], legend_domain: Tuple[float, float]) -> alt.Chart:
    features = []
    for feature in geometry.get("features", []):
        props = dict(feature.get("properties") or {})
        props["fractional_energy"] = color_assignment.get(props.get("name"))
        features.append({**feature, "properties": props})

    color = alt.Color(
        "properties.fractional_energy:Q",
        title="Avg fractional energy",
        scale=alt.Scale(domain=list(legend_domain), scheme="blues", clamp=True),
        legend=alt.Legend(orient="left", description=FRACTIONAL_ENERGY_HELP),
    )
    return (
        alt.Chart(alt.InlineData(values=features))
        .mark_geoshape(stroke="#fff", strokeWidth=1)
        .encode(
            color=alt.condition("isValid(datum.properties.fractional_energy)", color, alt.value(NO_DATA_FILL)),
            tooltip=[
                alt.Tooltip("properties.name:N", title="State"),
                alt.Tooltip("properties.fractional_energy:Q", title="Avg fractional energy", format=".3f"),
            ],
        )
        .project(type="albersUsa")
        .properties(width=MAP_SIZE, height=MAP_SIZE)
    )


def histogram_chart(bins: Sequence[Mapping[str, Any]], title: str) -> alt.Chart:
    df = pd.DataFrame(list(bins), columns=["lower_bound", "upper_bound", "count"])
    return (
        alt.Chart(df)
        .mark_bar(color=BAR_FILL, binSpacing=1)
        .encode(
            x=alt.X("lower_bound:Q", bin="binned", title="Daily Average Price per MWh in US Dollars"),
            x2="upper_bound:Q",
            y=alt.Y("count:Q", title="Frequency in days", axis=alt.Axis(tickMinStep=1)),
            tooltip=[
                alt.Tooltip("lower_bound:Q", title="From ($)", format=",.2f"),
                alt.Tooltip("upper_bound:Q", title="To ($)", format=",.2f"),
                alt.Tooltip("count:Q", title="Days"),
            ],
        )
        .properties(title=title, width=CHART_WIDTH, height=CHART_HEIGHT)
    )


def day_of_week_chart(bar_data: Sequence[Mapping[str, Any]], title: str, y_max: float) -> alt.Chart:
    df = pd.DataFrame(list(bar_data), columns=["day_of_week", "value"])
    df["day"] = [DAY_LABELS[int(d) - 1] for d in df["day_of_week"]]
    return (
        alt.Chart(df)
        .mark_bar(color=BAR_FILL)
        .encode(
            x=alt.X("day:N", sort=DAY_LABELS, title=None, axis=alt.Axis(labelAngle=-45)),
            y=alt.Y("value:Q", title="Avg MWh Supplied", scale=alt.Scale(domain=[0, y_max])),
            tooltip=[alt.Tooltip("day:N", title="Day"), alt.Tooltip("value:Q", title="Avg MWh", format=",.0f")],
        )
        .properties(title=title, width=CHART_WIDTH, height=CHART_HEIGHT)
    )


class DashboardRenderer:
    """Draw surface the filter controller talks to."""

    def draw_map(self, color_assignment: Dict[str, float], legend_domain: Tuple[float, float]) -> None:
        raise NotImplementedError

    def draw_histogram(self, region_index: int, bins: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def draw_day_of_week_chart(self, region_index: int, title: str, bar_data: List[Dict[str, Any]]) -> None:
        raise NotImplementedError


class AltairRenderer(DashboardRenderer):
    """Keeps the latest Altair chart for every slot of the dashboard."""

    def __init__(self, geometry: Mapping[str, Any], regions: Sequence[str], *, demand_y_max: float = 4500.0):
        self.geometry = geometry
        self.regions = list(regions)
        self.demand_y_max = demand_y_max
        self.map: Optional[alt.Chart] = None
        self.histograms: Dict[int, alt.Chart] = {}
        self.day_of_week: Dict[int, alt.Chart] = {}

    def draw_map(self, color_assignment: Dict[str, float], legend_domain: Tuple[float, float]) -> None:
        self.map = map_chart(self.geometry, color_assignment, legend_domain)

    def draw_histogram(self, region_index: int, bins: List[Dict[str, Any]]) -> None:
        title = histogram_title(self.regions[region_index])
        self.histograms[region_index] = histogram_chart(bins, title)

    def draw_day_of_week_chart(self, region_index: int, title: str, bar_data: List[Dict[str, Any]]) -> None:
        self.day_of_week[region_index] = day_of_week_chart(bar_data, title, self.demand_y_max)

    def specs(self) -> Dict[str, Any]:
        return {
            "map": to_vega_spec(self.map) if self.map is not None else None,
            "histograms": [to_vega_spec(self.histograms[i]) for i in sorted(self.histograms)],
            "day_of_week": [to_vega_spec(self.day_of_week[i]) for i in sorted(self.day_of_week)],
        }
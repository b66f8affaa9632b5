from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from gridview.charts import DashboardRenderer
from gridview.config import DashboardConfig
from gridview.data import DashboardData, load_dashboard_data
from gridview.dates import days_in_year
from gridview.filters import DemandMetric, FilterState, make_filter_state
from gridview.metrics_demand import compute_day_of_week, day_of_week_means, demand_chart_title
from gridview.metrics_map import compute_map, regional_window_averages
from gridview.metrics_prices import compute_histograms, price_histogram
from gridview.metrics_summary import compute_summary


logger = logging.getLogger(__name__)


class SessionNotReadyError(RuntimeError):
    pass


class SessionStatus(str, Enum):
    CREATED = "created"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class DashboardSession:
    """Owns the loaded collections: construct -> load() -> ready."""

    def __init__(
        self,
        config: Optional[DashboardConfig] = None,
        *,
        loader: Callable[[DashboardConfig], DashboardData] = load_dashboard_data,
    ):
        self.config = config or DashboardConfig.from_env()
        self.status = SessionStatus.CREATED
        self.error: Optional[BaseException] = None
        self._loader = loader
        self._data: Optional[DashboardData] = None

    @property
    def ready(self) -> bool:
        return self.status is SessionStatus.READY

    @property
    def data(self) -> DashboardData:
        if not self.ready or self._data is None:
            raise SessionNotReadyError(f"dashboard data is not loaded (status: {self.status.value})")
        return self._data

    def load(self) -> "DashboardSession":
        self.status = SessionStatus.LOADING
        try:
            data = self._loader(self.config)
        except Exception as exc:
            self.status = SessionStatus.FAILED
            self.error = exc
            logger.exception("Dashboard data load failed")
            raise
        self._data = data
        self.error = None
        self.status = SessionStatus.READY
        logger.info("Dashboard ready: %d regions, %d fractional-energy rows", len(data.regions), len(data.energy))
        return self

    def initial_filters(self) -> FilterState:
        return FilterState(min_day=1, max_day=days_in_year(self.config.year), metric=DemandMetric.PEAK)

    def compute(self, filters: FilterState) -> Dict[str, Any]:
        data = self.data
        return {
            "map": compute_map(filters, data, self.config),
            "histograms": compute_histograms(filters, data, self.config),
            "day_of_week": compute_day_of_week(filters, data, self.config),
        }

    def summary(self, filters: FilterState) -> Dict[str, Any]:
        return compute_summary(filters, self.data, self.config)


class FilterController:
    """Holds the current FilterState; every accepted change recomputes and redraws everything."""

    def __init__(self, session: DashboardSession, renderer: DashboardRenderer):
        self.session = session
        self.renderer = renderer
        self.state = session.initial_filters()
        self.redraws = 0

    def set_range(self, min_day: int, max_day: int) -> FilterState:
        return self._apply(make_filter_state(min_day, max_day, self.state.metric))

    def set_metric(self, metric: Union[DemandMetric, str]) -> FilterState:
        return self._apply(make_filter_state(self.state.min_day, self.state.max_day, metric))

    def update(self, min_day: int, max_day: int, metric: Union[DemandMetric, str]) -> FilterState:
        return self._apply(make_filter_state(min_day, max_day, metric))

    def _apply(self, state: FilterState) -> FilterState:
        self.state = state
        self.refresh()
        return state

    def refresh(self) -> None:
        data = self.session.data
        config = self.session.config
        s = self.state

        averages = regional_window_averages(data.energy, s.min_day, s.max_day)
        self.renderer.draw_map(averages, config.legend_domain)
        for index, prices in enumerate(data.prices):
            self.renderer.draw_histogram(index, price_histogram(prices, s.min_day, s.max_day, config.histogram_bins))
        for index, (name, demand) in enumerate(zip(data.regions, data.demand)):
            bars = day_of_week_means(demand, s.min_day, s.max_day, s.metric)
            self.renderer.draw_day_of_week_chart(index, demand_chart_title(name, s.metric), bars)
        self.redraws += 1
        logger.debug("Redrew dashboard for days %d-%d (%s)", s.min_day, s.max_day, s.metric.value)

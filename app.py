import logging
from contextlib import contextmanager
from typing import Optional

import pandas as pd
import streamlit as st

from gridview.charts import AltairRenderer
from gridview.config import DashboardConfig, configure_logging
from gridview.data import DataLoadError, clear_cache, window
from gridview.dates import days_in_year, format_range_label
from gridview.filters import DemandMetric, FilterValidationError
from gridview.session import DashboardSession, FilterController

logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body


def format_filter_summary(range_label: str, metric: DemandMetric) -> str:
    chips = [range_label.replace("Range: ", "Days: "), f"Demand: {metric.label}"]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        btn_cols = st.columns(2)
        if btn_cols[0].button("Reload data"):
            clear_cache()
            get_session.clear()
            st.session_state.pop("controller", None)
            st.rerun()
        if export_df is not None and not export_df.empty:
            btn_cols[1].download_button(
                "Export CSV",
                data=export_df.to_csv(index=False, date_format="%Y-%m-%d").encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


@st.cache_resource(show_spinner="Loading ISO-NE market data...")
def get_session(config: DashboardConfig) -> DashboardSession:
    return DashboardSession(config).load()


def get_controller(session: DashboardSession) -> FilterController:
    controller = st.session_state.get("controller")
    if controller is None or controller.session is not session:
        renderer = AltairRenderer(session.data.geometry, session.data.regions, demand_y_max=session.config.demand_y_max)
        controller = FilterController(session, renderer)
        st.session_state["controller"] = controller
    return controller


def chart_grid(charts: dict, columns: int = 2):
    indices = sorted(charts)
    for start in range(0, len(indices), columns):
        cols = st.columns(columns)
        for col, index in zip(cols, indices[start:start + columns]):
            with col:
                st.altair_chart(charts[index], use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="ISO-NE Energy Markets Dashboard", layout="wide")
config = DashboardConfig.from_env()
configure_logging(config.log_level)
inject_base_styles()

try:
    session = get_session(config)
except DataLoadError as exc:
    logger.error("Could not load dashboard data: %s", exc)
    st.error(f"Could not load the dashboard data. {exc}")
    st.stop()

controller = get_controller(session)
last_day = days_in_year(config.year)

with st.sidebar:
    st.markdown("### Filters")
    min_day, max_day = st.slider("Day of year", min_value=1, max_value=last_day, value=(1, last_day), step=1)
    range_label = format_range_label(min_day, max_day, config.year)
    st.caption(range_label)
    metric_choice = st.radio("Demand metric", ["Peak", "Min"], index=0, horizontal=True, help="Demand measured at the peak or the minimum hour of each day.")
    metric = DemandMetric.PEAK if metric_choice == "Peak" else DemandMetric.MIN

try:
    state = controller.update(min_day, max_day, metric)
except FilterValidationError as exc:
    st.warning(str(exc))
    st.stop()

renderer: AltairRenderer = controller.renderer
render_page_header(
    "ISO-NE Energy Markets",
    f"New England · {config.year}",
    format_filter_summary(range_label, state.metric),
    export_df=window(session.data.energy, state.min_day, state.max_day),
    export_name="fractional_energy.csv",
)

with card("Average fractional energy by state"):
    if renderer.map is not None:
        st.altair_chart(renderer.map, use_container_width=False)

with card("Real-time price distribution"):
    chart_grid(renderer.histograms)

with card(f"Average demand by day of week ({state.metric.label.lower()})"):
    chart_grid(renderer.day_of_week)

with st.expander("Data summary", expanded=False):
    summary = session.summary(state)
    st.json(summary["row_counts"])
    st.dataframe(pd.json_normalize(summary["regions"]), use_container_width=True)

import pytest

from gridview.charts import DashboardRenderer
from gridview.data import DataLoadError
from gridview.filters import DemandMetric, FilterState, FilterValidationError
from gridview.session import DashboardSession, FilterController, SessionNotReadyError, SessionStatus


class RecordingRenderer(DashboardRenderer):
    def __init__(self):
        self.calls = []

    def draw_map(self, color_assignment, legend_domain):
        self.calls.append(("map", dict(color_assignment), tuple(legend_domain)))

    def draw_histogram(self, region_index, bins):
        self.calls.append(("histogram", region_index, sum(b["count"] for b in bins)))

    def draw_day_of_week_chart(self, region_index, title, bar_data):
        self.calls.append(("day_of_week", region_index, title, list(bar_data)))


@pytest.fixture
def session(config):
    return DashboardSession(config).load()


def test_session_lifecycle(config):
    session = DashboardSession(config)
    assert session.status is SessionStatus.CREATED
    with pytest.raises(SessionNotReadyError):
        session.data
    assert session.load() is session
    assert session.ready
    assert len(session.data.regions) == 8


def test_failed_load_is_reported_and_leaves_no_data(config, caplog):
    config.geometry_path.unlink()
    session = DashboardSession(config)
    with caplog.at_level("ERROR", logger="gridview.session"):
        with pytest.raises(DataLoadError):
            session.load()
    assert session.status is SessionStatus.FAILED
    assert isinstance(session.error, DataLoadError)
    assert "Dashboard data load failed" in caplog.text
    with pytest.raises(SessionNotReadyError):
        session.data


def test_initial_filters_cover_the_whole_year(session):
    assert session.initial_filters() == FilterState(1, 365, DemandMetric.PEAK)


def test_compute_returns_all_three_views(session):
    payload = session.compute(FilterState(1, 25))
    assert set(payload) == {"map", "histograms", "day_of_week"}
    assert payload["map"]["averages"]["Maine"] == pytest.approx(0.2)


def test_summary_counts_rows(session):
    summary = session.summary(FilterState(1, 5))
    assert summary["range_label"] == "Range: Jan 1st, 2023 - Jan 5th, 2023"
    assert summary["row_counts"]["fractional_energy_rows"] == 3
    assert summary["row_counts"]["price_rows"] == 40
    assert summary["fractional_energy"]["rows_in_window"] == 0
    assert summary["fractional_energy"]["missing_values"]["Vermont"] == 3
    maine = summary["regions"][0]
    assert maine["price_rows_in_window"] == 2
    assert maine["missing_prices"] == 1
    assert maine["span"] == {"first": "2023-01-02", "last": "2023-01-15"}


def test_controller_redraws_everything_on_range_change(session):
    renderer = RecordingRenderer()
    controller = FilterController(session, renderer)
    state = controller.set_range(1, 25)
    assert state == FilterState(1, 25, DemandMetric.PEAK)
    kinds = [call[0] for call in renderer.calls]
    assert kinds == ["map"] + ["histogram"] * 8 + ["day_of_week"] * 8
    assert renderer.calls[0][1]["Maine"] == pytest.approx(0.2)
    assert renderer.calls[0][2] == (0.0, 0.5)
    assert renderer.calls[1] == ("histogram", 0, 4)
    assert renderer.calls[9][2] == "Maine (Measured at Peak Hour)"
    assert controller.redraws == 1


def test_controller_metric_change_keeps_range(session):
    renderer = RecordingRenderer()
    controller = FilterController(session, renderer)
    controller.set_range(1, 5)
    renderer.calls.clear()
    state = controller.set_metric("min")
    assert state == FilterState(1, 5, DemandMetric.MIN)
    maine_bars = renderer.calls[9]
    assert maine_bars[2] == "Maine (Measured at Min Hour)"
    assert maine_bars[3] == [{"day_of_week": 1, "value": 50.0}, {"day_of_week": 2, "value": 60.0}]


def test_controller_empty_window_draws_no_data(session):
    renderer = RecordingRenderer()
    FilterController(session, renderer).set_range(1, 5)
    assert renderer.calls[0][1] == {}


@pytest.mark.parametrize("min_day, max_day", [(200, 100), (0, 10), (1, 400)])
def test_controller_rejects_invalid_range_without_redraw(session, min_day, max_day):
    renderer = RecordingRenderer()
    controller = FilterController(session, renderer)
    controller.refresh()
    before = controller.state
    renderer.calls.clear()
    with pytest.raises(FilterValidationError):
        controller.set_range(min_day, max_day)
    assert controller.state == before
    assert renderer.calls == []
    assert controller.redraws == 1


def test_controller_rejects_unknown_metric(session):
    controller = FilterController(session, RecordingRenderer())
    with pytest.raises(FilterValidationError):
        controller.set_metric("median")
    assert controller.state.metric is DemandMetric.PEAK


def test_controller_needs_a_loaded_session(config):
    controller = FilterController(DashboardSession(config), RecordingRenderer())
    with pytest.raises(SessionNotReadyError):
        controller.set_range(1, 10)


def test_end_to_end_maine_scenario(session):
    renderer = RecordingRenderer()
    controller = FilterController(session, renderer)
    controller.update(1, 25, DemandMetric.PEAK)
    assert renderer.calls[0][1]["Maine"] == pytest.approx(0.2)
    controller.update(1, 5, DemandMetric.PEAK)
    assert "Maine" not in renderer.calls[-17][1]


def test_controller_skips_infinite_prices(config):
    config.region_path("ME").write_text(
        "Date,Avg_RT_LMP,Peak_Demand,Min_Demand\n2023-01-02,10,100,50\n2023-01-03,inf,200,60\n2023-01-09,30,300,70\n",
        encoding="utf-8",
    )
    renderer = RecordingRenderer()
    controller = FilterController(DashboardSession(config).load(), renderer)
    controller.set_range(1, 366)
    histograms = {call[1]: call[2] for call in renderer.calls if call[0] == "histogram"}
    assert histograms[0] == 2

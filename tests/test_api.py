import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(data_dir, monkeypatch):
    monkeypatch.setenv("GRIDVIEW_DATA_DIR", str(data_dir))
    from api.main import app

    return TestClient(app)


def test_meta_regions(client):
    resp = client.get("/meta/regions")
    assert resp.status_code == 200
    assert resp.json()["regions"][:3] == ["Maine", "New Hampshire", "Vermont"]


def test_meta_range(client):
    body = client.get("/meta/range").json()
    assert body == {"year": 2023, "min_day": 1, "max_day": 365, "label": "Range: Jan 1st, 2023 - Dec 31st, 2023"}


def test_map_endpoint(client):
    body = client.post("/map", json={"min_day": 1, "max_day": 25}).json()
    assert body["averages"]["Maine"] == pytest.approx(0.2)
    assert body["filters"] == {"min_day": 1, "max_day": 25, "metric": "peak"}
    assert "map" in body["charts"]


def test_histograms_endpoint_defaults_to_whole_year(client):
    body = client.post("/histograms", json={}).json()
    assert body["filters"]["max_day"] == 365
    assert body["regions"][0]["observations"] == 4


def test_day_of_week_endpoint_accepts_legacy_radio_values(client):
    body = client.post("/day-of-week", json={"metric": "avg_min"}).json()
    assert body["metric"] == "min"
    assert body["regions"][0]["bars"][-1] == {"day_of_week": 7, "value": 90.0}


def test_dashboard_endpoint(client):
    body = client.post("/dashboard", json={"min_day": 1, "max_day": 5, "metric": "peak"}).json()
    assert body["map"]["averages"] == {}
    assert len(body["histograms"]["regions"]) == 8
    assert len(body["day_of_week"]["regions"]) == 8


def test_summary_endpoint(client):
    body = client.post("/summary", json={"min_day": 1, "max_day": 5}).json()
    assert body["regions"][0]["price_rows_in_window"] == 2


@pytest.mark.parametrize("payload", [{"min_day": 200, "max_day": 100}, {"max_day": 367}, {"metric": "median"}])
def test_invalid_filters_are_rejected(client, payload):
    resp = client.post("/dashboard", json=payload)
    assert resp.status_code == 422
    assert resp.json()["type"] == "FilterValidationError"


def test_load_failure_is_a_server_error(client, data_dir):
    (data_dir / "assets" / "new-england.json").write_text("{broken", encoding="utf-8")
    resp = client.post("/map", json={})
    assert resp.status_code == 500
    assert resp.json()["type"] == "DataLoadError"


def test_export_prices_csv(client):
    resp = client.post("/export/prices", json={"min_day": 1, "max_day": 3})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0] == "date,day_of_year,avg_rt_lmp,region"
    assert lines[1] == "2023-01-02,2,10.0,Maine"
    assert len(lines) == 1 + 2 * 8


def test_export_unknown_page_is_empty(client):
    resp = client.post("/export/other", json={})
    assert resp.status_code == 200


def test_export_load_failure_is_a_json_server_error(client, data_dir):
    (data_dir / "assets" / "new-england.json").write_text("{broken", encoding="utf-8")
    resp = client.post("/export/prices", json={})
    assert resp.status_code == 500
    assert resp.json()["type"] == "DataLoadError"


def test_load_failure_traceback_is_logged_once(client, data_dir, caplog):
    (data_dir / "assets" / "new-england.json").write_text("{broken", encoding="utf-8")
    with caplog.at_level("ERROR"):
        resp = client.post("/map", json={})
    assert resp.status_code == 500
    assert len([r for r in caplog.records if r.exc_info]) == 1
    assert any(r.name == "api.main" and "map failed" in r.getMessage() for r in caplog.records)


def test_serve_runs_the_app_with_uvicorn(monkeypatch):
    import api.main

    calls = []
    monkeypatch.setattr(api.main.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    api.main.serve(port=9000)
    assert calls == [("api.main:app", {"host": "127.0.0.1", "port": 9000})]


def test_logging_is_configured_at_startup(data_dir, monkeypatch):
    import api.main

    levels = []
    monkeypatch.setenv("GRIDVIEW_LOG_LEVEL", "DEBUG")
    monkeypatch.setattr(api.main, "configure_logging", levels.append)
    assert levels == []
    with TestClient(api.main.app):
        pass
    assert levels == ["DEBUG"]

from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from typing import List

import numpy as np
import pandas as pd
import uvicorn
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import FilterStateModel, MetaRangeResponse, MetaRegionsResponse
from gridview.config import DashboardConfig, configure_logging
from gridview.data import DataLoadError, window
from gridview.dates import days_in_year, format_range_label
from gridview.filters import FilterState, FilterValidationError, normalize_filters
from gridview.metrics_demand import compute_day_of_week
from gridview.metrics_map import compute_map
from gridview.metrics_prices import compute_histograms
from gridview.session import DashboardSession


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    configure_logging(DashboardConfig.from_env().log_level)
    yield


app = FastAPI(title="ISO-NE Energy Markets Dashboard API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _load_session() -> DashboardSession:
    # Loads are cached per file signature, so this is cheap after the first request.
    return DashboardSession(DashboardConfig.from_env()).load()


def _filters_from_model(model: FilterStateModel, session: DashboardSession) -> FilterState:
    raw = model.model_dump()
    return normalize_filters(raw, days_in_year=days_in_year(session.config.year))


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/regions", response_model=MetaRegionsResponse)
def meta_regions():
    try:
        session = _load_session()
        return _json({"regions": list(session.data.regions)})
    except DataLoadError as exc:
        logger.error("meta_regions failed: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("meta_regions failed")
        return _error(exc)


@app.get("/meta/range", response_model=MetaRangeResponse)
def meta_range():
    try:
        session = _load_session()
        f = session.initial_filters()
        return _json(
            {
                "year": session.config.year,
                "min_day": f.min_day,
                "max_day": f.max_day,
                "label": format_range_label(f.min_day, f.max_day, session.config.year),
            }
        )
    except DataLoadError as exc:
        logger.error("meta_range failed: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("meta_range failed")
        return _error(exc)


@app.post("/map")
def map_view(filters: FilterStateModel):
    try:
        session = _load_session()
        f = _filters_from_model(filters, session)
        return _json(compute_map(f, session.data, session.config))
    except FilterValidationError as exc:
        return _error(exc, status_code=422)
    except DataLoadError as exc:
        logger.error("map failed: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("map failed")
        return _error(exc)


@app.post("/histograms")
def histograms(filters: FilterStateModel):
    try:
        session = _load_session()
        f = _filters_from_model(filters, session)
        return _json(compute_histograms(f, session.data, session.config))
    except FilterValidationError as exc:
        return _error(exc, status_code=422)
    except DataLoadError as exc:
        logger.error("histograms failed: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("histograms failed")
        return _error(exc)


@app.post("/day-of-week")
def day_of_week(filters: FilterStateModel):
    try:
        session = _load_session()
        f = _filters_from_model(filters, session)
        return _json(compute_day_of_week(f, session.data, session.config))
    except FilterValidationError as exc:
        return _error(exc, status_code=422)
    except DataLoadError as exc:
        logger.error("day_of_week failed: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("day_of_week failed")
        return _error(exc)


@app.post("/dashboard")
def dashboard(filters: FilterStateModel):
    try:
        session = _load_session()
        f = _filters_from_model(filters, session)
        return _json(session.compute(f))
    except FilterValidationError as exc:
        return _error(exc, status_code=422)
    except DataLoadError as exc:
        logger.error("dashboard failed: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@app.post("/summary")
def summary(filters: FilterStateModel):
    try:
        session = _load_session()
        f = _filters_from_model(filters, session)
        return _json(session.summary(f))
    except FilterValidationError as exc:
        return _error(exc, status_code=422)
    except DataLoadError as exc:
        logger.error("summary failed: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("summary failed")
        return _error(exc)


def _stack_regions(frames: List[pd.DataFrame], regions: List[str], f: FilterState) -> pd.DataFrame:
    parts = [window(df, f.min_day, f.max_day).assign(region=name) for name, df in zip(regions, frames)]
    return pd.concat(parts, ignore_index=True) if parts else pd.DataFrame()


@app.post("/export/{page}")
def export_page(page: str, filters: FilterStateModel):
    try:
        session = _load_session()
        f = _filters_from_model(filters, session)
    except FilterValidationError as exc:
        return _error(exc, status_code=422)
    except DataLoadError as exc:
        logger.error("export failed: %s", exc)
        return _error(exc)
    except Exception as exc:
        logger.exception("export failed")
        return _error(exc)
    data = session.data

    export_df = None
    filename = f"{page}.csv"
    if page == "map":
        export_df = window(data.energy, f.min_day, f.max_day)
        filename = "fractional_energy.csv"
    elif page in {"prices", "histograms"}:
        export_df = _stack_regions(list(data.prices), list(data.regions), f)
        filename = "prices.csv"
    elif page in {"demand", "day-of-week"}:
        export_df = _stack_regions(list(data.demand), list(data.regions), f)
        filename = "demand.csv"
    else:
        export_df = pd.DataFrame()

    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    csv_bytes = export_df.to_csv(index=False, date_format="%Y-%m-%d").encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})


def serve(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Run the API with uvicorn (installed as the `gridview-api` command)."""
    uvicorn.run("api.main:app", host=host, port=port)

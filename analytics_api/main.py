from __future__ import annotations

import logging
import math
from datetime import date

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from analytics_api.schemas import ContactFiltersModel, OptionsResponse, SummaryResponse
from analytics_core.data import DataLoadError, load_dashboard_data, prepare_context
from analytics_core.export import records_export_csv, weekly_export_csv
from analytics_core.filters import ContactFilters, normalize_filters
from analytics_core.metrics_weekly import aggregate_weekly, compute_summary, compute_weekly


app = FastAPI(title="Support Week Analytics API", version="0.1.0")
logger = logging.getLogger(__name__)

CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8501"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: ContactFiltersModel, *, date_bounds) -> ContactFilters:
    raw = model.model_dump()
    return normalize_filters(raw, date_bounds=date_bounds)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
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
                date: lambda d: d.isoformat(),
            },
        )
    )


def _error(exc: Exception, where: str) -> JSONResponse:
    if isinstance(exc, DataLoadError):
        logger.error("%s failed: %s", where, exc)
        return JSONResponse(status_code=503, content={"error": str(exc), "type": type(exc).__name__})
    logger.exception("%s failed", where)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/options")
def meta_options():
    try:
        data_ctx = load_dashboard_data()
        lo, hi = data_ctx.get("date_bounds") or (None, None)
        payload = OptionsResponse(date_bounds={"min": lo, "max": hi}, options=data_ctx.get("options", {}))
        return _json(payload.model_dump())
    except Exception as exc:
        return _error(exc, "meta_options")


@app.post("/weekly")
def weekly(filters: ContactFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters, date_bounds=data_ctx.get("date_bounds"))
        ctx = prepare_context(f, data_ctx)
        return _json(compute_weekly(f, ctx))
    except Exception as exc:
        return _error(exc, "weekly")


@app.post("/summary")
def summary(filters: ContactFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters, date_bounds=data_ctx.get("date_bounds"))
        ctx = prepare_context(f, data_ctx)
        return _json(SummaryResponse(**compute_summary(ctx["filtered_records"])).model_dump())
    except Exception as exc:
        return _error(exc, "summary")


@app.post("/export/{kind}")
def export(kind: str, filters: ContactFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters, date_bounds=data_ctx.get("date_bounds"))
        ctx = prepare_context(f, data_ctx)
    except Exception as exc:
        return _error(exc, "export")

    stamp = date.today().isoformat()
    if kind == "weekly":
        content = weekly_export_csv(aggregate_weekly(ctx["filtered_records"]))
        filename = f"analytics-export-{stamp}.csv"
    elif kind == "records":
        content = records_export_csv(ctx["filtered_records"])
        filename = f"filtered-records-{stamp}.csv"
    else:
        return JSONResponse(status_code=404, content={"error": f"Unknown export: {kind}", "type": "NotFound"})
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )

"""
Chart API routes — mounted as a sub-router on the main FastAPI app.

Records always arrive in the request body; every endpoint is a thin wrapper
around the pure builders in ``skills``.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException

from core import config
from core.metrics import MetricRegistry, default_registry
from core.models import CategoryRequest, ChartRequest, ChartType, SeriesOptions, SeriesRequest
from core.utils import json_safe
from skills.categories import parse_category_counts
from skills.chart_config import (
    breakdown_chart_data,
    create_chart_config,
    renderer_payload,
    series_chart_data,
)
from skills.series import build_series

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api", tags=["charts"])


def get_registry() -> MetricRegistry:
    """Registry used by a request; override in ``app.dependency_overrides``."""
    return default_registry()


def _log_response(ctx: str, payload) -> None:
    if not config.LOG_PAYLOADS:
        return
    try:
        logger.info("%s response: %s", ctx, json.dumps(payload, indent=2, default=str))
    except (TypeError, ValueError):
        logger.info("%s response (non-serializable): %s", ctx, str(payload))


def _series_from(body: SeriesRequest, registry: MetricRegistry):
    options = SeriesOptions(normalize=body.normalize, sort=body.sort or config.DEFAULT_SORT)
    return build_series(
        body.records,
        body.metric_key or config.DEFAULT_METRIC_KEY,
        options,
        registry=registry,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/metrics")
def list_metrics(registry: MetricRegistry = Depends(get_registry)):
    """Metrics selectable for the series endpoint, in display order."""
    return {"metrics": [{"key": m.key, "label": m.label} for m in registry.list()]}


@router.post("/series")
def create_series(body: SeriesRequest, registry: MetricRegistry = Depends(get_registry)):
    try:
        series = _series_from(body, registry)
    except Exception as e:
        logger.exception("Series build failed")
        raise HTTPException(status_code=500, detail=f"Series build failed: {e}")

    resp = json_safe(series.model_dump())
    _log_response("SERIES", resp)
    return resp


@router.post("/categories")
def create_category_counts(body: CategoryRequest):
    field = body.field or config.CATEGORY_FIELD
    if body.payload is not None:
        breakdown = parse_category_counts(body.payload, records_key=config.RECORDS_KEY, field=field)
    else:
        breakdown = parse_category_counts(body.records, field=field)

    resp = breakdown.model_dump()
    _log_response("CATEGORIES", resp)
    return resp


@router.post("/charts/{chart_type}")
def create_chart(
    chart_type: str,
    body: ChartRequest,
    registry: MetricRegistry = Depends(get_registry),
):
    """
    Build a renderer payload for a bar (series) or pie (category) chart.

    Unrecognised chart types fall back to bar, like ``create_chart_config``.
    """
    try:
        if chart_type == ChartType.pie.value:
            breakdown = parse_category_counts(body.records, field=body.field or config.CATEGORY_FIELD)
            cfg = create_chart_config(
                chart_type,
                data=breakdown_chart_data(breakdown, label=body.title or "Passengers"),
                options=body.options,
            )
        else:
            metric_key = body.metric_key or config.DEFAULT_METRIC_KEY
            series = _series_from(body, registry)
            metric = registry.get(metric_key)
            cfg = create_chart_config(
                chart_type,
                data=series_chart_data(series, label=body.title or (metric.label if metric else metric_key)),
                options=body.options,
                rows=series.rows,
                metric_index=registry.index_of(metric_key),
                registry=registry,
            )
    except Exception as e:
        logger.exception("Chart config failed")
        raise HTTPException(status_code=500, detail=f"Chart config failed: {e}")

    resp = renderer_payload(cfg)
    _log_response("CHART", resp)
    return resp

"""
Chart configuration factory.

Produces renderer-agnostic configs of the shape
``{type, data: {labels, datasets}, options}`` that any bar/pie engine with a
Chart.js-like contract can consume.

Option merging is shallow with one nested level: caller keys replace default
keys, except that when both sides hold a dict (``plugins``, ``scales``) the two
dicts are merged so untouched nested defaults survive.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence

from core.metrics import MetricRegistry, default_registry
from core.models import CategoryBreakdown, ChartConfig, ChartType, SeriesOutput
from core.utils import format_number, json_safe

logger = logging.getLogger("uvicorn.error")

DEFAULT_VALUE_LABEL = "Value"
UNKNOWN_NAME = "Unknown"


# ---------------------------------------------------------------------------
# Tooltip labels
# ---------------------------------------------------------------------------

class TooltipLabelFormatter:
    """
    Tooltip label callback for bar charts.

    Called with a data index and the raw value at that index; returns the
    tooltip lines::

        "<metric label>: <value> — <row name>"
        "Purchases: <n>"
        "Visits: <n>"
    """

    def __init__(
        self,
        rows: Optional[Sequence[Mapping]] = None,
        metric_index: Optional[int] = None,
        registry: Optional[MetricRegistry] = None,
    ) -> None:
        self.rows: List[Mapping] = list(rows or [])
        self.metric_index = metric_index
        self.registry = registry if registry is not None else default_registry()

    def _row(self, index: Any) -> Optional[Mapping]:
        if isinstance(index, bool) or not isinstance(index, int):
            return None
        if 0 <= index < len(self.rows) and isinstance(self.rows[index], Mapping):
            return self.rows[index]
        return None

    def metric_label(self) -> str:
        return self.registry.label_at(self.metric_index) or DEFAULT_VALUE_LABEL

    def __call__(self, index: Any, raw: Any) -> List[str]:
        row = self._row(index)
        label = self.metric_label()
        if row is None:
            return [f"{label}: {raw} — {UNKNOWN_NAME}"]

        name = row.get("name") or UNKNOWN_NAME
        lines = [f"{label}: {format_number(raw)} — {name}"]
        if "purchases" in row:
            lines.append(f"Purchases: {format_number(row['purchases'])}")
        if "visits" in row:
            lines.append(f"Visits: {format_number(row['visits'])}")
        return lines

    def labels_for(self, values: Optional[Sequence[Any]] = None) -> List[List[str]]:
        """Precompute lines for every index (defaults to each row's ``value``)."""
        if values is None:
            values = [row.get("value") for row in self.rows]
        return [self(i, v) for i, v in enumerate(values)]


# ---------------------------------------------------------------------------
# Option merging
# ---------------------------------------------------------------------------

def merge_options(defaults: Dict[str, Any], overrides: Optional[Mapping]) -> Dict[str, Any]:
    """Merge caller options over defaults without mutating either."""
    merged = dict(defaults)
    for key, value in (overrides or {}).items():
        base = merged.get(key)
        if isinstance(base, Mapping) and isinstance(value, Mapping):
            merged[key] = {**base, **value}
        else:
            merged[key] = value
    return merged


def _empty_data() -> Dict[str, Any]:
    return {"labels": [], "datasets": []}


def _bar_defaults(formatter: TooltipLabelFormatter) -> Dict[str, Any]:
    return {
        "indexAxis": "y",
        "plugins": {
            "legend": {"display": False},
            "tooltip": {"callbacks": {"label": formatter}},
        },
        "scales": {"x": {"beginAtZero": True}},
        "maintainAspectRatio": False,
    }


def _pie_defaults() -> Dict[str, Any]:
    return {
        "plugins": {"legend": {"position": "bottom"}},
        "maintainAspectRatio": False,
    }


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def build_bar_config(
    data: Optional[Mapping] = None,
    options: Optional[Mapping] = None,
    *,
    rows: Optional[Sequence[Mapping]] = None,
    metric_index: Optional[int] = None,
    registry: Optional[MetricRegistry] = None,
) -> ChartConfig:
    formatter = TooltipLabelFormatter(rows=rows, metric_index=metric_index, registry=registry)
    merged = merge_options(_bar_defaults(formatter), options)
    return ChartConfig(
        type=ChartType.bar,
        data=dict(data) if data is not None else _empty_data(),
        options=merged,
    )


def build_pie_config(
    data: Optional[Mapping] = None,
    options: Optional[Mapping] = None,
) -> ChartConfig:
    merged = merge_options(_pie_defaults(), options)
    return ChartConfig(
        type=ChartType.pie,
        data=dict(data) if data is not None else _empty_data(),
        options=merged,
    )


def create_chart_config(
    chart_type: Any = ChartType.bar.value,
    data: Optional[Mapping] = None,
    options: Optional[Mapping] = None,
    *,
    rows: Optional[Sequence[Mapping]] = None,
    metric_index: Optional[int] = None,
    registry: Optional[MetricRegistry] = None,
) -> ChartConfig:
    """Dispatch on chart type; anything other than "pie" builds a bar chart."""
    if chart_type == ChartType.pie.value:
        return build_pie_config(data=data, options=options)
    if chart_type != ChartType.bar.value:
        logger.debug("Unknown chart type %r, falling back to bar", chart_type)
    return build_bar_config(
        data=data, options=options,
        rows=rows, metric_index=metric_index, registry=registry,
    )


# ---------------------------------------------------------------------------
# Chart data assembly
# ---------------------------------------------------------------------------

def series_chart_data(series: SeriesOutput, label: str = "") -> Dict[str, Any]:
    return {
        "labels": list(series.labels),
        "datasets": [{"label": label, "data": list(series.values)}],
    }


def breakdown_chart_data(breakdown: CategoryBreakdown, label: str = "Passengers") -> Dict[str, Any]:
    return {
        "labels": list(breakdown.labels),
        "datasets": [{"label": label, "data": list(breakdown.values)}],
    }


def _materialize(value: Any) -> Any:
    if isinstance(value, TooltipLabelFormatter):
        return {"lines": value.labels_for()}
    if isinstance(value, Mapping):
        return {k: _materialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_materialize(v) for v in value]
    if callable(value):
        return None
    return value


def renderer_payload(config: ChartConfig) -> Dict[str, Any]:
    """JSON-able form of a config: tooltip callbacks become precomputed lines."""
    return json_safe({
        "type": config.type.value,
        "data": _materialize(config.data),
        "options": _materialize(config.options),
    })

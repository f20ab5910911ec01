"""
Series builder skill.

Records → derived rows → selected metric values → optional 0–100 scaling →
optional ordering. The output keeps ``labels``, ``values`` and ``rows``
index-aligned so a bar chart and its tooltips read from the same positions.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np

from core.metrics import MetricRegistry, default_registry
from core.models import AccessorMetric, SeriesOptions, SeriesOutput, SortOrder
from core.utils import safe_number
from skills.derive import derive_records
from skills.scaling import min_max_normalize

logger = logging.getLogger("uvicorn.error")

DEFAULT_METRIC_KEY = "purchases"

# Computed metrics whose formula wins over any registry entry.
_COMPUTED_METRICS = ("totalSpend", "spendPerVisit")


def _coerce_options(options: Union[SeriesOptions, Mapping, None]) -> SeriesOptions:
    if isinstance(options, SeriesOptions):
        return options
    if not isinstance(options, Mapping):
        return SeriesOptions()
    normalize = bool(options.get("normalize") or False)
    sort = options.get("sort")
    return SeriesOptions(
        normalize=normalize,
        sort=sort if isinstance(sort, str) else SortOrder.none.value,
    )


def select_values(
    rows: List[Dict[str, Any]],
    metric_key: str,
    registry: Optional[MetricRegistry] = None,
) -> List[float]:
    """Pick the numeric value of *metric_key* from each derived row."""
    if metric_key in _COMPUTED_METRICS:
        return [row[metric_key] for row in rows]

    metric = registry.get(metric_key) if registry is not None else None
    if isinstance(metric, AccessorMetric):
        return [safe_number(metric.accessor(row)) for row in rows]
    return [safe_number(row.get(metric_key)) for row in rows]


def _final_order(values: List[float], sort: str) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if sort == SortOrder.desc.value:
        # negating keeps the stable sort's tie order
        return np.argsort(-arr, kind="stable")
    if sort == SortOrder.asc.value:
        return np.argsort(arr, kind="stable")
    return np.arange(len(values))


def build_series(
    records: Optional[Iterable[Any]] = None,
    metric_key: Optional[str] = DEFAULT_METRIC_KEY,
    options: Union[SeriesOptions, Mapping, None] = None,
    *,
    registry: Optional[MetricRegistry] = None,
) -> SeriesOutput:
    """
    Build ``{labels, values, rows}`` for one metric over a list of records.

    - ``normalize``: rescale the selected values to 0–100
    - ``sort``: ``"asc"``, ``"desc"``; anything else keeps input order
    """
    opts = _coerce_options(options)
    key = metric_key or DEFAULT_METRIC_KEY
    reg = registry if registry is not None else default_registry()

    rows = derive_records(records)
    if not rows:
        logger.debug("Series empty: metric=%s", key)
        return SeriesOutput(labels=[], values=[], rows=[])

    values = select_values(rows, key, reg)
    if opts.normalize:
        values = min_max_normalize(values)

    combined = [{**row, "value": values[i]} for i, row in enumerate(rows)]
    ordered = [combined[int(i)] for i in _final_order(values, opts.sort)]

    logger.debug(
        "Series built: metric=%s rows=%d normalize=%s sort=%s",
        key, len(ordered), opts.normalize, opts.sort,
    )
    return SeriesOutput(
        labels=[r["name"] for r in ordered],
        values=[r["value"] for r in ordered],
        rows=ordered,
    )

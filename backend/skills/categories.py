"""
Categorical breakdown skill — counts records per category for pie charts.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, List

import pandas as pd

from core.models import CategoryBreakdown

logger = logging.getLogger("uvicorn.error")

UNKNOWN_CATEGORY = "UNKNOWN"


def _records_from(payload: Any, records_key: str) -> List[Any]:
    if isinstance(payload, Mapping):
        records = payload.get(records_key)
    else:
        records = payload
    if isinstance(records, (list, tuple)):
        return list(records)
    return []


def category_label(record: Any, field: str = "type") -> str:
    """String form of the record's category.

    Missing, null, NaN and falsy values (``""``, ``0``, ``False``, empty
    containers) all count as "UNKNOWN". ``True`` is written "true", as it
    reads in the JSON the records come from.
    """
    if not isinstance(record, Mapping):
        return UNKNOWN_CATEGORY
    value = record.get(field)
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return UNKNOWN_CATEGORY
    if not value:
        return UNKNOWN_CATEGORY
    if isinstance(value, bool):
        return "true"
    return str(value)


def parse_category_counts(
    payload: Any,
    *,
    records_key: str = "passengers",
    field: str = "type",
) -> CategoryBreakdown:
    """Count records per category, labels in first-seen order."""
    records = _records_from(payload, records_key)
    if not records:
        return CategoryBreakdown(labels=[], values=[])

    categories = pd.Series([category_label(r, field) for r in records], dtype=object)
    counts = categories.value_counts()
    labels = [str(label) for label in pd.unique(categories)]
    values = [int(counts[label]) for label in labels]

    logger.debug("Categories counted: field=%s records=%d distinct=%d", field, len(records), len(labels))
    return CategoryBreakdown(labels=labels, values=values)

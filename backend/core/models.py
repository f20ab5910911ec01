"""
Core Pydantic models for the chart-series service.

All domain types live here so every module shares the same vocabulary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Metric descriptors
# ---------------------------------------------------------------------------

class MetricDescriptor(BaseModel):
    """A metric read from the derived record by direct key lookup."""
    model_config = ConfigDict(frozen=True)

    key: str
    label: str


class AccessorMetric(MetricDescriptor):
    """A metric whose value is computed by an accessor over the derived record.

    The accessor must be callable; a non-callable value fails validation, so
    holders of a ``Metric`` can branch on the variant instead of probing it.
    """

    accessor: Callable[[Dict[str, Any]], Any]


Metric = Union[AccessorMetric, MetricDescriptor]


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------

class SortOrder(str, Enum):
    none = "none"
    asc = "asc"
    desc = "desc"


class SeriesOptions(BaseModel):
    normalize: bool = False
    sort: str = SortOrder.none.value     # unrecognised values behave as "none"


class SeriesOutput(BaseModel):
    labels: List[str] = Field(default_factory=list)
    values: List[float] = Field(default_factory=list)
    rows: List[Dict[str, Any]] = Field(default_factory=list)   # derived record + "value"


class CategoryBreakdown(BaseModel):
    labels: List[str] = Field(default_factory=list)
    values: List[int] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Renderer configuration
# ---------------------------------------------------------------------------

class ChartType(str, Enum):
    bar = "bar"
    pie = "pie"


class ChartConfig(BaseModel):
    type: ChartType
    data: Dict[str, Any] = Field(default_factory=lambda: {"labels": [], "datasets": []})
    options: Dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# HTTP request bodies
# ---------------------------------------------------------------------------

class SeriesRequest(BaseModel):
    records: List[Dict[str, Any]] = Field(default_factory=list)
    metric_key: Optional[str] = None
    normalize: bool = False
    sort: Optional[str] = None


class CategoryRequest(BaseModel):
    payload: Optional[Dict[str, Any]] = None
    records: Optional[List[Dict[str, Any]]] = None
    field: Optional[str] = None


class ChartRequest(SeriesRequest):
    options: Optional[Dict[str, Any]] = None
    field: Optional[str] = None           # category field for pie charts
    title: str = ""

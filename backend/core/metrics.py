"""
Metric registry: the catalog of metrics a series can be built from.

Registries are plain objects passed to the builders. Nothing here is global
state; ``default_registry()`` hands out a fresh copy of the defaults each time.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from .models import Metric, MetricDescriptor

logger = logging.getLogger("uvicorn.error")

DEFAULT_METRICS: Tuple[Metric, ...] = (
    MetricDescriptor(key="purchases", label="Purchases"),
    MetricDescriptor(key="visits", label="Visits"),
    MetricDescriptor(key="miles", label="Miles"),
    MetricDescriptor(key="avgSpend", label="AvgSpend"),
    MetricDescriptor(key="totalSpend", label="TotalSpend"),
    MetricDescriptor(key="spendPerVisit", label="SpendPerVisit"),
)


class MetricRegistry:
    """Ordered, runtime-mutable list of metric descriptors."""

    def __init__(self, metrics: Optional[Iterable[Metric]] = None) -> None:
        self._metrics: List[Metric] = []
        for metric in metrics if metrics is not None else DEFAULT_METRICS:
            self.register(metric)

    def __len__(self) -> int:
        return len(self._metrics)

    def __iter__(self):
        return iter(list(self._metrics))

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None if isinstance(key, str) else False

    def get(self, key: str) -> Optional[Metric]:
        for metric in self._metrics:
            if metric.key == key:
                return metric
        return None

    def index_of(self, key: str) -> Optional[int]:
        for idx, metric in enumerate(self._metrics):
            if metric.key == key:
                return idx
        return None

    def label_at(self, index: Optional[int]) -> Optional[str]:
        """Label of the metric at *index*, or None when it cannot be resolved."""
        if index is None or isinstance(index, bool) or not isinstance(index, int):
            return None
        if index < 0 or index >= len(self._metrics):
            return None
        return self._metrics[index].label

    def list(self) -> List[Metric]:
        return list(self._metrics)

    def register(self, metric: Metric) -> None:
        if self.get(metric.key) is not None:
            raise ValueError(f"Metric '{metric.key}' is already registered.")
        self._metrics.append(metric)

    def replace(self, metric: Metric) -> None:
        """Overwrite the metric with the same key in place, or append it."""
        idx = self.index_of(metric.key)
        if idx is None:
            self._metrics.append(metric)
        else:
            self._metrics[idx] = metric
        logger.debug("Metric replaced: key=%s position=%s", metric.key, idx)

    def remove(self, key: str) -> bool:
        idx = self.index_of(key)
        if idx is None:
            return False
        del self._metrics[idx]
        return True

    def copy(self) -> "MetricRegistry":
        return MetricRegistry(self._metrics)


def default_registry() -> MetricRegistry:
    return MetricRegistry(DEFAULT_METRICS)

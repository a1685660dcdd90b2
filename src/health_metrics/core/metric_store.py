# ============================================================================
# src/health_metrics/core/metric_store.py
# ============================================================================
"""
Metric persistence seam.

The extraction service hands every HealthMetric draft to a MetricStore.
Real deployments plug in their own database writer; the in-memory store
backs the CLI and tests.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union

from .context.health_metric import HealthMetric


class MetricStore(ABC):
    """Persistence collaborator for extracted metric drafts."""

    @abstractmethod
    def save(self, metric: HealthMetric) -> HealthMetric:
        """Persist one metric and return it (possibly with storage metadata)."""
        pass


class InMemoryMetricStore(MetricStore):
    def __init__(self):
        self._metrics: List[HealthMetric] = []
        self._lock = threading.Lock()
        self.logger = logging.getLogger(self.__class__.__name__)

    def save(self, metric: HealthMetric) -> HealthMetric:
        with self._lock:
            self._metrics.append(metric)
            metric.metadata.setdefault('store_index', len(self._metrics))
        self.logger.debug(f"Stored metric: type={metric.type} patient_id={metric.patient_id}")
        return metric

    def get_metrics(self, patient_id: Optional[Union[int, str]] = None) -> List[HealthMetric]:
        with self._lock:
            if patient_id is None:
                return list(self._metrics)
            return [metric for metric in self._metrics if metric.patient_id == patient_id]

    def clear(self) -> None:
        with self._lock:
            self._metrics.clear()

    def __len__(self) -> int:
        return len(self._metrics)

    def summary(self) -> Dict[str, object]:
        by_type: Dict[str, int] = {}
        for metric in self.get_metrics():
            by_type[metric.type] = by_type.get(metric.type, 0) + 1
        return {'total': len(self), 'by_type': by_type}

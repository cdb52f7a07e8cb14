from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np


@dataclass(frozen=True)
class Metric:
    """
    A distance metric split into three stages:
      transform: per-element function of the difference (square, abs)
      reduce:    associative ufunc folded over the feature axis (add, maximum)
      close:     optional transform of the reduced value (sqrt)
    """

    name: str
    transform: Callable[[np.ndarray], np.ndarray]
    reduce: np.ufunc
    close: Optional[Callable[[np.ndarray], np.ndarray]] = None

    @property
    def is_squared(self) -> bool:
        return self.transform is np.square and self.close is None


SQEUCLIDEAN = Metric("sqeuclidean", np.square, np.add)
EUCLIDEAN = Metric("euclidean", np.square, np.add, np.sqrt)
MANHATTAN = Metric("manhattan", np.abs, np.add)
CHEBYSHEV = Metric("chebyshev", np.abs, np.maximum)

METRICS: dict[str, Metric] = {
    m.name: m for m in (SQEUCLIDEAN, EUCLIDEAN, MANHATTAN, CHEBYSHEV)
}

# hnswlib calls squared L2 "l2"
_ALIASES = {
    "l2": "sqeuclidean",
    "cityblock": "manhattan",
    "l1": "manhattan",
    "linf": "chebyshev",
}


METRIC_CHOICES = sorted(list(METRICS) + list(_ALIASES))


def get_metric(metric: str | Metric) -> Metric:
    if isinstance(metric, Metric):
        return metric
    key = str(metric).lower()
    key = _ALIASES.get(key, key)
    if key not in METRICS:
        known = ", ".join(METRIC_CHOICES)
        raise ValueError(f"Unsupported metric: {metric!r} (expected one of: {known})")
    return METRICS[key]

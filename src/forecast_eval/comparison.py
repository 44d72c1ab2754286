"""
Model Comparison

Side-by-side metric table for several models forecasting the same test
horizon, plus the aligned series a plotting layer needs. Rows keep the
caller's model order; no ranking or winner is produced.
"""

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .backends import ForecastResult
from .errors import AlignmentError
from .evaluation import ForecastMetrics, MetricBundle, evaluate
from .series import TimeSeries

logger = logging.getLogger(__name__)

METRIC_COLUMNS = ["mae", "mse", "rmse", "mape", "accuracy_pct", "coverage"]


@dataclass(frozen=True, eq=False)
class ComparisonTable:
    """Per-model metrics and aligned forecasts for one comparison run"""
    actual: np.ndarray
    ds: Optional[np.ndarray]
    metrics: Mapping[str, MetricBundle]
    forecasts: Mapping[str, ForecastResult]
    coverage: Mapping[str, Optional[float]]
    failures: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("metrics", "forecasts", "coverage", "failures"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @property
    def model_names(self):
        return list(self.metrics.keys())

    def with_failures(self, failures: Mapping[str, str]) -> "ComparisonTable":
        """Copy of this table carrying per-model failure messages"""
        return replace(self, failures=dict(failures))

    def to_frame(self) -> pd.DataFrame:
        """One row per model, in insertion order"""
        rows = []
        for name, bundle in self.metrics.items():
            row = {"model": name, **bundle.as_dict(), "coverage": self.coverage.get(name)}
            rows.append(row)

        return pd.DataFrame(rows, columns=["model"] + METRIC_COLUMNS).set_index("model")

    def aligned_frame(self) -> pd.DataFrame:
        """
        Actual and every model's forecast, aligned by position.

        Columns: ds (or step), actual, then <model>, <model>_lo, <model>_hi
        per model.
        """
        if self.ds is not None:
            frame = pd.DataFrame({"ds": self.ds, "actual": self.actual})
        else:
            frame = pd.DataFrame({"step": np.arange(len(self.actual)), "actual": self.actual})

        for name, result in self.forecasts.items():
            frame[name] = result.mean
            frame[f"{name}_lo"] = result.lower
            frame[f"{name}_hi"] = result.upper

        return frame


def compare(
    actual: Union[TimeSeries, Sequence[float]],
    forecasts: Mapping[str, ForecastResult],
) -> ComparisonTable:
    """
    Evaluate every model against the same held-out segment.

    Args:
        actual: Test segment (TimeSeries or plain values)
        forecasts: Model name -> ForecastResult, iteration order preserved

    Returns:
        ComparisonTable with exactly one entry per supplied model

    Raises:
        AlignmentError: a forecast's length differs from the test length
    """
    if not forecasts:
        raise ValueError("No forecasts to compare")

    if isinstance(actual, TimeSeries):
        y_true, ds = actual.y, actual.ds
    else:
        y_true, ds = np.asarray(actual, dtype=float), None

    expected = len(y_true)
    for name, result in forecasts.items():
        if len(result) != expected:
            raise AlignmentError(name, expected=expected, got=len(result))

    metrics = {}
    coverage = {}
    for name, result in forecasts.items():
        metrics[name] = evaluate(y_true, result.mean)
        coverage[name] = (
            ForecastMetrics.coverage(y_true, result.lower, result.upper)
            if result.has_intervals else None
        )
        logger.info(
            f"{name}: MAE={metrics[name].mae:.4f} RMSE={metrics[name].rmse:.4f} "
            f"MAPE={metrics[name].mape:.2f}%"
        )

    return ComparisonTable(
        actual=y_true,
        ds=ds,
        metrics=metrics,
        forecasts=dict(forecasts),
        coverage=coverage,
    )

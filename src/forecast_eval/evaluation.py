"""
Forecast Accuracy Metrics

Fixed metric bundle (MAE, MSE, RMSE, MAPE, accuracy %) over positionally
aligned actual/forecast sequences. Fail-loud: bad input raises, nothing is
masked and no NaN reaches a reported metric.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Sequence, Tuple

import numpy as np

from .errors import DivisionByZeroError, LengthMismatchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricBundle:
    """Accuracy metrics for one model on one test horizon"""
    mae: float
    mse: float
    rmse: float
    mape: float
    accuracy_pct: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def _as_pair(actual: Sequence[float], forecast: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """Validate and convert an (actual, forecast) pair to float arrays"""
    y_true = np.asarray(actual, dtype=float).ravel()
    y_pred = np.asarray(forecast, dtype=float).ravel()

    if len(y_true) != len(y_pred):
        raise LengthMismatchError(
            f"actual has {len(y_true)} values, forecast has {len(y_pred)}"
        )
    if len(y_true) == 0:
        raise LengthMismatchError("actual and forecast are empty")
    if not (np.all(np.isfinite(y_true)) and np.all(np.isfinite(y_pred))):
        raise ValueError("actual and forecast must not contain NaN or inf")

    return y_true, y_pred


class ForecastMetrics:
    """Individual metric functions"""

    @staticmethod
    def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Mean Absolute Error"""
        y_true, y_pred = _as_pair(y_true, y_pred)
        return float(np.mean(np.abs(y_true - y_pred)))

    @staticmethod
    def mse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Mean Squared Error"""
        y_true, y_pred = _as_pair(y_true, y_pred)
        return float(np.mean((y_true - y_pred) ** 2))

    @staticmethod
    def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Root Mean Squared Error"""
        return float(np.sqrt(ForecastMetrics.mse(y_true, y_pred)))

    @staticmethod
    def mape(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Mean Absolute Percentage Error (%)

        Undefined when any actual is zero: raises DivisionByZeroError with the
        position of the first zero instead of masking it out.
        """
        y_true, y_pred = _as_pair(y_true, y_pred)

        zeros = np.flatnonzero(y_true == 0)
        if len(zeros):
            raise DivisionByZeroError(position=int(zeros[0]))

        return float(np.mean(np.abs((y_true - y_pred) / y_true)) * 100)

    @staticmethod
    def coverage(
        y_true: np.ndarray,
        lower: np.ndarray,
        upper: np.ndarray
    ) -> float:
        """
        Prediction Interval Coverage (%)

        Percentage of actual values within [lower, upper].
        """
        y_true, lower = _as_pair(y_true, lower)
        _, upper = _as_pair(y_true, upper)

        covered = (y_true >= lower) & (y_true <= upper)
        return float(100 * np.mean(covered))


def evaluate(actual: Sequence[float], forecast: Sequence[float]) -> MetricBundle:
    """
    Compute the full metric bundle.

    Args:
        actual: Held-out observations
        forecast: Point forecasts aligned by position with `actual`

    Returns:
        MetricBundle; accuracy_pct = 100 - MAPE and may be negative

    Raises:
        LengthMismatchError: lengths differ or are zero
        DivisionByZeroError: an actual value is zero
    """
    y_true, y_pred = _as_pair(actual, forecast)

    mse = ForecastMetrics.mse(y_true, y_pred)
    mape = ForecastMetrics.mape(y_true, y_pred)

    return MetricBundle(
        mae=ForecastMetrics.mae(y_true, y_pred),
        mse=mse,
        rmse=float(np.sqrt(mse)),
        mape=mape,
        accuracy_pct=100 - mape,
    )

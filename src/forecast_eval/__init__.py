"""
Forecast Evaluation Pipeline

Holdout comparison of forecasting models on one stock-price series:
- Positional train/test split
- Uniform backend contract (AutoARIMA, MSTL, Prophet, naive trend)
- Accuracy metrics (MAE, MSE, RMSE, MAPE, accuracy %, interval coverage)
- Side-by-side comparison table
"""

from .backends import (AdditiveSeasonalBackend, ArimaBackend, BackendFactory,
                       FittedModel, ForecastBackend, ForecastResult,
                       MstlBackend, NaiveTrendBackend)
from .comparison import ComparisonTable, compare
from .config import PipelineConfig, load_config
from .errors import (AlignmentError, DivisionByZeroError, FitError,
                     FitTimeoutError, ForecastError, ForecastEvalError,
                     InsufficientDataError, LengthMismatchError)
from .evaluation import ForecastMetrics, MetricBundle, evaluate
from .pipeline import ComparisonPipeline, ComparisonRun, fit_with_timeout
from .series import TimePoint, TimeSeries, require_nonempty
from .splitting import SplitResult, split_series

__all__ = [
    # Series
    "TimePoint",
    "TimeSeries",
    "require_nonempty",
    # Splitting
    "SplitResult",
    "split_series",
    # Backends
    "ForecastBackend",
    "ArimaBackend",
    "MstlBackend",
    "AdditiveSeasonalBackend",
    "NaiveTrendBackend",
    "BackendFactory",
    "FittedModel",
    "ForecastResult",
    # Evaluation
    "MetricBundle",
    "ForecastMetrics",
    "evaluate",
    # Comparison
    "ComparisonTable",
    "compare",
    # Pipeline
    "ComparisonPipeline",
    "ComparisonRun",
    "fit_with_timeout",
    "PipelineConfig",
    "load_config",
    # Errors
    "ForecastEvalError",
    "InsufficientDataError",
    "FitError",
    "FitTimeoutError",
    "ForecastError",
    "LengthMismatchError",
    "AlignmentError",
    "DivisionByZeroError",
]

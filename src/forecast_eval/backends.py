"""
Forecasting Backends

One call contract over heterogeneous forecasting libraries:

    model = backend.fit(train)
    result = backend.forecast(model, horizon)

Backends:
1. AutoARIMA (statsforecast), order picked by information criterion
2. MSTL with AutoARIMA trend (statsforecast)
3. Prophet additive trend + seasonality
4. Naive trend baseline (no intervals)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Type

import numpy as np
import pandas as pd
from pandas.tseries.frequencies import to_offset

from .errors import FitError, ForecastError
from .series import TimeSeries

logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252


@dataclass(frozen=True, eq=False)
class FittedModel:
    """Opaque handle returned by ForecastBackend.fit"""
    backend: str
    handle: Any
    train_end: pd.Timestamp
    n_train: int
    freq: str


@dataclass(frozen=True, eq=False)
class ForecastResult:
    """Point forecast plus interval bounds, one entry per horizon step"""
    model_name: str
    ds: np.ndarray
    mean: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    confidence_level: int
    has_intervals: bool

    def __post_init__(self):
        arrays = {}
        for field_name in ("mean", "lower", "upper"):
            arr = np.array(getattr(self, field_name), dtype=float)
            arr.setflags(write=False)
            arrays[field_name] = arr

        ds = pd.DatetimeIndex(self.ds).to_numpy(dtype="datetime64[ns]")
        lengths = {len(ds)} | {len(a) for a in arrays.values()}
        if len(lengths) != 1:
            raise ValueError(
                f"Forecast arrays for {self.model_name!r} differ in length: "
                f"ds={len(ds)}, "
                + ", ".join(f"{k}={len(v)}" for k, v in arrays.items())
            )

        object.__setattr__(self, "ds", ds)
        for field_name, arr in arrays.items():
            object.__setattr__(self, field_name, arr)

    @classmethod
    def point_only(
        cls,
        model_name: str,
        ds: Sequence,
        mean: Sequence[float],
        confidence_level: int = 95,
    ) -> "ForecastResult":
        """Degenerate interval: bounds equal the point estimate"""
        mean = np.asarray(mean, dtype=float)
        return cls(
            model_name=model_name,
            ds=ds,
            mean=mean,
            lower=mean,
            upper=mean,
            confidence_level=confidence_level,
            has_intervals=False,
        )

    def __len__(self) -> int:
        return len(self.mean)

    def __iter__(self) -> Iterator[Tuple[float, float, float]]:
        for point, lo, hi in zip(self.mean, self.lower, self.upper):
            yield float(point), float(lo), float(hi)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "ds": self.ds,
            "yhat": self.mean,
            "yhat_lo": self.lower,
            "yhat_hi": self.upper,
        })


def future_dates(train_end: pd.Timestamp, horizon: int, freq: str) -> pd.DatetimeIndex:
    """Timestamps of the `horizon` periods following the training end"""
    offset = to_offset(freq)
    return pd.date_range(start=pd.Timestamp(train_end) + offset, periods=horizon, freq=offset)


class ForecastBackend(ABC):
    """Base class for forecasting backends"""

    name: str = "base"
    supports_intervals: bool = True

    def __init__(self, confidence_level: int = 95):
        if not 0 < confidence_level < 100:
            raise ValueError(f"confidence_level must be in (0, 100), got {confidence_level}")
        self.confidence_level = int(confidence_level)

    def min_train_size(self) -> int:
        """Fewest training points this backend can fit"""
        return 2

    def fit(self, train: TimeSeries) -> FittedModel:
        """
        Fit backend to a training series.

        Raises:
            FitError: series shorter than min_train_size(), or the underlying
                library failed
        """
        required = self.min_train_size()
        if len(train) < required:
            raise FitError(
                self.name,
                f"needs at least {required} training points, got {len(train)}",
            )

        try:
            handle = self._fit(train)
        except Exception as e:
            raise FitError(self.name, f"{type(e).__name__}: {e}") from e

        logger.debug(f"{self.name} fitted on {len(train)} points of {train.name}")
        return FittedModel(
            backend=self.name,
            handle=handle,
            train_end=train.end,
            n_train=len(train),
            freq=train.freq,
        )

    def forecast(self, model: FittedModel, horizon: int) -> ForecastResult:
        """Generate `horizon` steps after the training end"""
        if horizon < 1:
            raise ValueError(f"horizon must be >= 1, got {horizon}")
        if model.backend != self.name:
            raise ValueError(
                f"Model was fitted by {model.backend!r}, cannot forecast with {self.name!r}"
            )

        ds = future_dates(model.train_end, horizon, model.freq)

        try:
            mean, lower, upper = self._forecast(model, horizon, ds)
        except Exception as e:
            raise ForecastError(self.name, f"{type(e).__name__}: {e}") from e

        if not self.supports_intervals:
            lower = upper = mean
        self._check_output(horizon, mean=mean, lower=lower, upper=upper)

        if not self.supports_intervals:
            return ForecastResult.point_only(self.name, ds, mean, self.confidence_level)

        return ForecastResult(
            model_name=self.name,
            ds=ds,
            mean=mean,
            lower=lower,
            upper=upper,
            confidence_level=self.confidence_level,
            has_intervals=True,
        )

    def _check_output(self, horizon: int, **arrays) -> None:
        """Library output must cover the horizon with finite values"""
        for label, values in arrays.items():
            if values is None:
                raise ForecastError(self.name, f"{label} bounds missing")
            try:
                values = np.asarray(values, dtype=float).ravel()
            except (TypeError, ValueError) as e:
                raise ForecastError(self.name, f"{label} is not numeric: {e}") from e
            if len(values) != horizon:
                raise ForecastError(
                    self.name, f"{label} has {len(values)} steps, expected {horizon}"
                )
            if not np.all(np.isfinite(values)):
                n_bad = int((~np.isfinite(values)).sum())
                raise ForecastError(self.name, f"{label} has {n_bad} non-finite values")

    @abstractmethod
    def _fit(self, train: TimeSeries) -> Any:
        """Fit the underlying library, return its model object"""

    @abstractmethod
    def _forecast(
        self,
        model: FittedModel,
        horizon: int,
        ds: pd.DatetimeIndex,
    ) -> Tuple[np.ndarray, Optional[np.ndarray], Optional[np.ndarray]]:
        """Return (mean, lower, upper); bounds may be None without intervals"""


class _StatsForecastBackend(ForecastBackend):
    """Shared fit/predict plumbing for statsforecast models"""

    alias: str = ""

    @abstractmethod
    def _build_models(self) -> List[Any]:
        pass

    def _fit(self, train: TimeSeries) -> Any:
        from statsforecast import StatsForecast

        sf = StatsForecast(
            models=self._build_models(),
            freq=train.freq,
            n_jobs=1,
        )
        sf.fit(df=train.to_frame())
        return sf

    def _forecast(self, model, horizon, ds):
        level = self.confidence_level
        forecast_df = model.handle.predict(h=horizon, level=[level])

        mean = forecast_df[self.alias].to_numpy(dtype=float)
        lower = forecast_df[f"{self.alias}-lo-{level}"].to_numpy(dtype=float)
        upper = forecast_df[f"{self.alias}-hi-{level}"].to_numpy(dtype=float)
        return mean, lower, upper


class ArimaBackend(_StatsForecastBackend):
    """AutoARIMA with (optionally seasonal) order selection"""

    name = "arima"
    alias = "AutoARIMA"

    def __init__(
        self,
        season_length: int = TRADING_DAYS_PER_YEAR,
        confidence_level: int = 95,
        information_criterion: str = "aicc",
    ):
        super().__init__(confidence_level)
        if season_length < 1:
            raise ValueError(f"season_length must be >= 1, got {season_length}")
        self.season_length = season_length
        self.information_criterion = information_criterion

    def min_train_size(self) -> int:
        # two full seasonal cycles
        if self.season_length > 1:
            return 2 * self.season_length
        return 3

    def _build_models(self):
        from statsforecast.models import AutoARIMA

        return [AutoARIMA(season_length=self.season_length, ic=self.information_criterion)]


class MstlBackend(_StatsForecastBackend):
    """Multiple-seasonal STL decomposition with an AutoARIMA trend"""

    name = "mstl"
    alias = "MSTL_ARIMA"

    def __init__(
        self,
        season_lengths: Sequence[int] = (5, TRADING_DAYS_PER_YEAR),
        confidence_level: int = 95,
    ):
        super().__init__(confidence_level)
        if not season_lengths or min(season_lengths) < 2:
            raise ValueError(f"season_lengths must all be >= 2, got {season_lengths}")
        self.season_lengths = list(season_lengths)

    def min_train_size(self) -> int:
        return 2 * max(self.season_lengths)

    def _build_models(self):
        from statsforecast.models import MSTL, AutoARIMA

        return [
            MSTL(
                season_length=self.season_lengths,
                trend_forecaster=AutoARIMA(),
                alias=self.alias,
            )
        ]


class AdditiveSeasonalBackend(ForecastBackend):
    """Prophet: additive trend + multiple seasonality, no holiday effects"""

    name = "prophet"

    def __init__(
        self,
        confidence_level: int = 95,
        yearly_seasonality="auto",
        weekly_seasonality="auto",
    ):
        super().__init__(confidence_level)
        self.yearly_seasonality = yearly_seasonality
        self.weekly_seasonality = weekly_seasonality

    def _fit(self, train: TimeSeries) -> Any:
        from prophet import Prophet

        logging.getLogger("prophet").setLevel(logging.WARNING)
        logging.getLogger("cmdstanpy").setLevel(logging.WARNING)

        model = Prophet(
            growth="linear",
            seasonality_mode="additive",
            yearly_seasonality=self.yearly_seasonality,
            weekly_seasonality=self.weekly_seasonality,
            daily_seasonality=False,
            interval_width=self.confidence_level / 100,
        )
        model.fit(pd.DataFrame({"ds": train.ds, "y": train.y}))
        return model

    def _forecast(self, model, horizon, ds):
        forecast_df = model.handle.predict(pd.DataFrame({"ds": ds}))
        return (
            forecast_df["yhat"].to_numpy(dtype=float),
            forecast_df["yhat_lower"].to_numpy(dtype=float),
            forecast_df["yhat_upper"].to_numpy(dtype=float),
        )


class NaiveTrendBackend(ForecastBackend):
    """Last value plus mean recent drift; point forecasts only"""

    name = "naive_trend"
    supports_intervals = False

    def __init__(self, trend_window: int = 10, confidence_level: int = 95):
        super().__init__(confidence_level)
        if trend_window < 2:
            raise ValueError(f"trend_window must be >= 2, got {trend_window}")
        self.trend_window = trend_window

    def _fit(self, train: TimeSeries) -> Dict[str, float]:
        recent = train.y[-self.trend_window:]
        return {
            "level": float(train.y[-1]),
            "trend": float(np.mean(np.diff(recent))),
        }

    def _forecast(self, model, horizon, ds):
        level = model.handle["level"]
        trend = model.handle["trend"]
        steps = np.arange(1, horizon + 1)
        return level + trend * steps, None, None


class BackendFactory:
    """Factory for creating backend instances"""

    _backends: Dict[str, Type[ForecastBackend]] = {
        "arima": ArimaBackend,
        "mstl": MstlBackend,
        "prophet": AdditiveSeasonalBackend,
        "naive_trend": NaiveTrendBackend,
    }

    @classmethod
    def create(cls, name: str, **kwargs) -> ForecastBackend:
        """Create backend by name"""
        if name not in cls._backends:
            raise ValueError(
                f"Unknown backend: {name}. Available: {cls.list_backends()}"
            )

        return cls._backends[name](**kwargs)

    @classmethod
    def list_backends(cls) -> List[str]:
        """List available backends"""
        return list(cls._backends.keys())

    @classmethod
    def supports_intervals(cls, name: str) -> bool:
        """Capability flag of a registered backend"""
        return cls._backends[name].supports_intervals

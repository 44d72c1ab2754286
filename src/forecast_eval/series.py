"""
Time Series Objects

A TimeSeries is an ordered, read-only sequence of (timestamp, value) points
for one selection (e.g. one brand within one industry). Construction is the
only place invariants are checked; everything downstream trusts them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional, Sequence

import numpy as np
import pandas as pd

from .errors import InsufficientDataError


class TimePoint(NamedTuple):
    timestamp: pd.Timestamp
    value: float


def _to_utc_naive(values) -> np.ndarray:
    """Parse timestamps and normalize to timezone-naive UTC datetime64[ns]."""
    parsed = pd.to_datetime(pd.Index(values), errors="raise", utc=True)
    return parsed.tz_localize(None).to_numpy(dtype="datetime64[ns]")


@dataclass(frozen=True, eq=False)
class TimeSeries:
    """Immutable univariate series with a sampling frequency"""
    ds: np.ndarray
    y: np.ndarray
    name: str = "series"
    freq: str = "B"

    def __post_init__(self):
        ds = _to_utc_naive(self.ds)
        y = np.array(self.y, dtype=float)

        if y.ndim != 1:
            raise ValueError(f"Series values must be 1-D, got shape {y.shape}")
        if len(ds) != len(y):
            raise ValueError(
                f"Length mismatch: {len(ds)} timestamps vs {len(y)} values"
            )
        if len(y) and not np.all(np.isfinite(y)):
            n_bad = int((~np.isfinite(y)).sum())
            raise ValueError(f"Series {self.name!r} has {n_bad} missing/non-finite values")
        if len(ds) > 1 and not np.all(np.diff(ds) > np.timedelta64(0, "ns")):
            raise ValueError(
                f"Series {self.name!r} timestamps must be strictly increasing "
                "(unsorted or duplicated)"
            )

        ds.setflags(write=False)
        y.setflags(write=False)
        object.__setattr__(self, "ds", ds)
        object.__setattr__(self, "y", y)

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        ds_col: str = "ds",
        y_col: str = "y",
        name: Optional[str] = None,
        freq: str = "B",
    ) -> "TimeSeries":
        """
        Build from a clean DataFrame.

        Args:
            df: Frame holding a timestamp column and a numeric value column
            ds_col: Timestamp column name
            y_col: Value column name
            name: Series identifier (defaults to y_col)
            freq: Pandas offset alias of the sampling frequency

        Returns:
            TimeSeries in the frame's row order
        """
        missing = [c for c in (ds_col, y_col) if c not in df.columns]
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

        values = pd.to_numeric(df[y_col], errors="raise")
        return cls(
            ds=df[ds_col].to_numpy(),
            y=values.to_numpy(dtype=float),
            name=name or y_col,
            freq=freq,
        )

    @classmethod
    def from_values(
        cls,
        values: Sequence[float],
        start: str = "2020-01-01",
        freq: str = "B",
        name: str = "series",
    ) -> "TimeSeries":
        """Build a series with implicit, evenly spaced timestamps."""
        ds = pd.date_range(start=start, periods=len(values), freq=freq)
        return cls(ds=ds, y=values, name=name, freq=freq)

    def __len__(self) -> int:
        return len(self.y)

    def __getitem__(self, i: int) -> TimePoint:
        return TimePoint(pd.Timestamp(self.ds[i]), float(self.y[i]))

    def __iter__(self) -> Iterator[TimePoint]:
        for i in range(len(self)):
            yield self[i]

    @property
    def start(self) -> pd.Timestamp:
        return pd.Timestamp(self.ds[0])

    @property
    def end(self) -> pd.Timestamp:
        return pd.Timestamp(self.ds[-1])

    def slice(self, start: int, stop: int) -> "TimeSeries":
        """Positional sub-series [start, stop)"""
        return TimeSeries(
            ds=self.ds[start:stop],
            y=self.y[start:stop],
            name=self.name,
            freq=self.freq,
        )

    def to_frame(self) -> pd.DataFrame:
        """StatsForecast long format: [unique_id, ds, y]"""
        return pd.DataFrame({
            "unique_id": [self.name] * len(self),
            "ds": self.ds,
            "y": self.y,
        })


def require_nonempty(series: TimeSeries) -> TimeSeries:
    """Fail before splitting when the selected subset has no observations."""
    if len(series) == 0:
        raise InsufficientDataError(
            f"Series {series.name!r} is empty; nothing to split or fit"
        )
    return series

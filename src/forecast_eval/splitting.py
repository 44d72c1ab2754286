"""
Train/Test Splitting

Positional holdout split for a single series. The first floor(ratio * n)
points train the model, the remainder is held out. Never shuffled.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict

from .errors import InsufficientDataError
from .series import TimeSeries

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class SplitResult:
    """Contiguous, non-overlapping train/test segments of one series"""
    train: TimeSeries
    test: TimeSeries
    ratio: float

    def __post_init__(self):
        """Validate no leakage"""
        if len(self.train) == 0 or len(self.test) == 0:
            raise InsufficientDataError(
                f"Degenerate split: train={len(self.train)}, test={len(self.test)}"
            )
        if self.train.end >= self.test.start:
            raise ValueError(
                f"Train/test leakage: train_end ({self.train.end}) >= "
                f"test_start ({self.test.start})"
            )

    @property
    def train_size(self) -> int:
        return len(self.train)

    @property
    def test_size(self) -> int:
        return len(self.test)

    @property
    def horizon(self) -> int:
        """Forecast horizon is always the held-out length"""
        return len(self.test)

    @property
    def info(self) -> Dict:
        """Serialize split info"""
        return {
            "series": self.train.name,
            "ratio": self.ratio,
            "train_start": self.train.start.isoformat(),
            "train_end": self.train.end.isoformat(),
            "test_start": self.test.start.isoformat(),
            "test_end": self.test.end.isoformat(),
            "train_size": self.train_size,
            "test_size": self.test_size,
        }


def split_series(series: TimeSeries, ratio: float = 0.8) -> SplitResult:
    """
    Split a series into train/test by position.

    Args:
        series: Ordered series to split
        ratio: Share of points used for training, strictly between 0 and 1

    Returns:
        SplitResult with train = first floor(ratio * n) points

    Raises:
        ValueError: ratio outside (0, 1)
        InsufficientDataError: either side of the split would be empty
    """
    if not 0 < ratio < 1:
        raise ValueError(f"Split ratio must be in (0, 1), got {ratio}")

    n = len(series)
    train_size = math.floor(ratio * n)

    if train_size == 0 or train_size == n:
        raise InsufficientDataError(
            f"Series {series.name!r} too short for ratio {ratio}: "
            f"n={n}, train_size={train_size}"
        )

    split = SplitResult(
        train=series.slice(0, train_size),
        test=series.slice(train_size, n),
        ratio=ratio,
    )
    logger.info(
        f"Split {series.name}: train={split.train_size} "
        f"({split.train.start.date()} to {split.train.end.date()}), "
        f"test={split.test_size}"
    )
    return split

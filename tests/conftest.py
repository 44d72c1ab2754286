import numpy as np
import pandas as pd
import pytest

from src.forecast_eval.series import TimeSeries


@pytest.fixture
def linear_series():
    """60 trading days on an exact 0.5/day trend"""
    values = 100 + 0.5 * np.arange(60)
    return TimeSeries.from_values(values, start="2024-01-01", freq="B", name="ACME")


@pytest.fixture
def random_walk_series():
    """Synthetic stock price: positive random walk over 120 trading days"""
    rng = np.random.default_rng(42)
    values = 100 + np.cumsum(rng.normal(0, 1, 120))
    return TimeSeries.from_values(values, start="2023-01-02", freq="B", name="RW")


@pytest.fixture
def price_csv(tmp_path, linear_series):
    path = tmp_path / "acme.csv"
    pd.DataFrame({"ds": linear_series.ds, "y": linear_series.y}).to_csv(path, index=False)
    return path

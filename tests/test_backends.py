"""
Backend Tests

Every backend honours the same fit/forecast contract. Library-backed
backends are skipped when their library is not installed.
"""

import numpy as np
import pandas as pd
import pytest

from src.forecast_eval.backends import (AdditiveSeasonalBackend, ArimaBackend,
                                        BackendFactory, ForecastResult,
                                        MstlBackend, NaiveTrendBackend,
                                        future_dates)
from src.forecast_eval.errors import FitError, ForecastError
from src.forecast_eval.series import TimeSeries
from src.forecast_eval.splitting import split_series


@pytest.mark.smoke
class TestNaiveTrendBackend:

    def test_fit_forecast_contract(self, linear_series):
        split = split_series(linear_series, 0.8)
        backend = NaiveTrendBackend()

        model = backend.fit(split.train)
        result = backend.forecast(model, split.horizon)

        assert isinstance(result, ForecastResult)
        assert len(result) == split.horizon
        np.testing.assert_allclose(result.mean, split.test.y)

    def test_no_intervals_surfaced(self, linear_series):
        backend = NaiveTrendBackend()
        result = backend.forecast(backend.fit(linear_series), 5)

        assert backend.supports_intervals is False
        assert result.has_intervals is False
        np.testing.assert_array_equal(result.lower, result.mean)
        np.testing.assert_array_equal(result.upper, result.mean)

    def test_iterates_point_lower_upper(self, linear_series):
        backend = NaiveTrendBackend()
        result = backend.forecast(backend.fit(linear_series), 3)

        steps = list(result)
        assert len(steps) == 3
        assert all(point == lo == hi for point, lo, hi in steps)

    def test_future_dates_follow_training_end(self, linear_series):
        backend = NaiveTrendBackend()
        model = backend.fit(linear_series)
        result = backend.forecast(model, 3)

        assert pd.Timestamp(result.ds[0]) > linear_series.end
        # business days: no weekend timestamps
        assert all(pd.Timestamp(ts).dayofweek < 5 for ts in result.ds)


@pytest.mark.fail_loud
class TestBackendContract:
    """Misuse and undersized inputs are reported, not crashed through"""

    def test_too_short_training_raises_fit_error(self):
        backend = NaiveTrendBackend()
        with pytest.raises(FitError, match="at least 2"):
            backend.fit(TimeSeries.from_values([1.0]))

    def test_arima_needs_two_seasonal_cycles(self):
        backend = ArimaBackend(season_length=5)
        assert backend.min_train_size() == 10

        with pytest.raises(FitError, match="at least 10"):
            backend.fit(TimeSeries.from_values(np.arange(1, 10, dtype=float)))

    def test_arima_default_season_is_trading_year(self):
        assert ArimaBackend().min_train_size() == 2 * 252

    def test_mstl_needs_two_longest_cycles(self):
        backend = MstlBackend(season_lengths=(5, 20))
        with pytest.raises(FitError, match="at least 40"):
            backend.fit(TimeSeries.from_values(np.arange(1, 31, dtype=float)))

    def test_library_failure_wrapped_in_fit_error(self, linear_series):
        class Exploding(NaiveTrendBackend):
            name = "exploding"

            def _fit(self, train):
                raise np.linalg.LinAlgError("singular matrix")

        with pytest.raises(FitError, match="singular matrix") as exc_info:
            Exploding().fit(linear_series)

        assert isinstance(exc_info.value.__cause__, np.linalg.LinAlgError)
        assert exc_info.value.backend == "exploding"

    def test_forecast_failure_wrapped(self, linear_series):
        class BrokenForecast(NaiveTrendBackend):
            name = "broken"

            def _forecast(self, model, horizon, ds):
                raise KeyError("yhat")

        backend = BrokenForecast()
        with pytest.raises(ForecastError, match="broken"):
            backend.forecast(backend.fit(linear_series), 3)

    def test_short_library_output_is_forecast_error(self, linear_series):
        class ShortOutput(NaiveTrendBackend):
            name = "short"

            def _forecast(self, model, horizon, ds):
                return np.ones(horizon - 1), None, None

        backend = ShortOutput()
        with pytest.raises(ForecastError, match="4 steps, expected 5"):
            backend.forecast(backend.fit(linear_series), 5)

    def test_short_interval_bounds_are_forecast_error(self, linear_series):
        class ShortBounds(NaiveTrendBackend):
            name = "short_bounds"
            supports_intervals = True

            def _forecast(self, model, horizon, ds):
                mean = np.ones(horizon)
                return mean, mean - 1, np.ones(horizon + 2)

        backend = ShortBounds()
        with pytest.raises(ForecastError, match="upper has 7 steps"):
            backend.forecast(backend.fit(linear_series), 5)

    def test_missing_bounds_are_forecast_error(self, linear_series):
        class NoBounds(NaiveTrendBackend):
            name = "no_bounds"
            supports_intervals = True

        backend = NoBounds()
        with pytest.raises(ForecastError, match="lower bounds missing"):
            backend.forecast(backend.fit(linear_series), 3)

    def test_non_finite_output_is_forecast_error(self, linear_series):
        class NanOutput(NaiveTrendBackend):
            name = "nan_output"

            def _forecast(self, model, horizon, ds):
                mean = np.ones(horizon)
                mean[2] = np.nan
                return mean, None, None

        backend = NanOutput()
        with pytest.raises(ForecastError, match="1 non-finite"):
            backend.forecast(backend.fit(linear_series), 4)

    def test_zero_horizon_raises(self, linear_series):
        backend = NaiveTrendBackend()
        with pytest.raises(ValueError, match="horizon"):
            backend.forecast(backend.fit(linear_series), 0)

    def test_model_from_other_backend_rejected(self, linear_series):
        model = NaiveTrendBackend().fit(linear_series)
        with pytest.raises(ValueError, match="naive_trend"):
            AdditiveSeasonalBackend().forecast(model, 3)

    @pytest.mark.parametrize("level", [0, 100, 150])
    def test_invalid_confidence_level(self, level):
        with pytest.raises(ValueError, match="confidence_level"):
            NaiveTrendBackend(confidence_level=level)


@pytest.mark.fail_loud
class TestForecastResult:

    def test_mismatched_arrays_raise(self):
        ds = pd.date_range("2024-01-01", periods=3, freq="B")
        with pytest.raises(ValueError, match="differ in length"):
            ForecastResult(
                model_name="m", ds=ds, mean=[1, 2, 3], lower=[0, 1], upper=[2, 3, 4],
                confidence_level=95, has_intervals=True,
            )

    def test_point_only_is_degenerate(self):
        ds = pd.date_range("2024-01-01", periods=2, freq="B")
        result = ForecastResult.point_only("m", ds, [1.0, 2.0])

        assert not result.has_intervals
        assert list(result.to_frame().columns) == ["ds", "yhat", "yhat_lo", "yhat_hi"]


@pytest.mark.smoke
class TestBackendFactory:

    def test_lists_all_backends(self):
        assert BackendFactory.list_backends() == ["arima", "mstl", "prophet", "naive_trend"]

    def test_create_with_kwargs(self):
        backend = BackendFactory.create("arima", season_length=5, confidence_level=80)
        assert isinstance(backend, ArimaBackend)
        assert backend.season_length == 5
        assert backend.confidence_level == 80

    def test_capability_flags(self):
        assert BackendFactory.supports_intervals("arima")
        assert BackendFactory.supports_intervals("prophet")
        assert not BackendFactory.supports_intervals("naive_trend")

    def test_unknown_backend_raises(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            BackendFactory.create("lstm")


def test_future_dates_skip_weekend():
    friday = pd.Timestamp("2024-01-05")
    dates = future_dates(friday, 2, "B")
    assert list(dates) == [pd.Timestamp("2024-01-08"), pd.Timestamp("2024-01-09")]


class TestLibraryBackends:
    """Real statsforecast / prophet fits on small synthetic series"""

    def test_arima_forecast_with_intervals(self, random_walk_series):
        pytest.importorskip("statsforecast")
        split = split_series(random_walk_series, 0.8)
        backend = ArimaBackend(season_length=1)

        result = backend.forecast(backend.fit(split.train), split.horizon)

        assert len(result) == split.horizon
        assert result.has_intervals
        assert np.all(np.isfinite(result.mean))
        assert np.all(result.lower <= result.mean)
        assert np.all(result.mean <= result.upper)

    def test_mstl_forecast_with_intervals(self, random_walk_series):
        pytest.importorskip("statsforecast")
        split = split_series(random_walk_series, 0.8)
        backend = MstlBackend(season_lengths=(5, 20))

        result = backend.forecast(backend.fit(split.train), split.horizon)

        assert len(result) == split.horizon
        assert np.all(result.lower <= result.upper)

    def test_prophet_forecast_with_intervals(self, random_walk_series):
        pytest.importorskip("prophet")
        split = split_series(random_walk_series, 0.8)
        backend = AdditiveSeasonalBackend()

        result = backend.forecast(backend.fit(split.train), split.horizon)

        assert len(result) == split.horizon
        assert result.has_intervals
        assert result.confidence_level == 95
        assert np.all(result.lower <= result.upper)

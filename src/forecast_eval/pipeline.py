"""
Comparison Pipeline

Orchestrates split -> fit -> forecast -> evaluate -> compare for one series.
Each model is isolated: a model that cannot be fitted or cannot forecast is
reported in the table's failures and the remaining models still compare.
"""

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .backends import BackendFactory, FittedModel, ForecastBackend, ForecastResult
from .comparison import ComparisonTable, compare
from .config import PipelineConfig
from .errors import FitError, FitTimeoutError, ForecastError
from .series import TimeSeries, require_nonempty
from .splitting import SplitResult, split_series

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ComparisonRun:
    """Everything one pipeline run produced"""
    split: SplitResult
    table: ComparisonTable
    timings: Dict[str, Dict[str, float]]


def fit_with_timeout(
    backend: ForecastBackend,
    train: TimeSeries,
    timeout: Optional[float] = None,
) -> FittedModel:
    """
    Fit a backend, optionally bounded in wall time.

    The worker thread cannot be interrupted; on timeout it is abandoned and
    its result discarded. The abandoned fit still runs to completion, and the
    interpreter waits for it at exit, so a timeout frees the caller, not the
    process.
    """
    if timeout is None:
        return backend.fit(train)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"fit-{backend.name}")
    future = executor.submit(backend.fit, train)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeoutError as e:
        raise FitTimeoutError(backend.name, timeout) from e
    finally:
        executor.shutdown(wait=False)


class ComparisonPipeline:
    """Runs every configured backend over one holdout split"""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        backends: Optional[Sequence[ForecastBackend]] = None,
    ):
        """
        Initialize comparison pipeline

        Args:
            config: Pipeline settings (defaults to PipelineConfig())
            backends: Explicit backend instances; built from config.models
                when omitted
        """
        self.config = config or PipelineConfig()

        if backends is None:
            backends = [
                BackendFactory.create(name, **self.config.backend_kwargs(name))
                for name in self.config.models
            ]

        names = [b.name for b in backends]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate backend names: {names}")
        if not backends:
            raise ValueError("At least one backend is required")

        self.backends: List[ForecastBackend] = list(backends)

    def run(self, series: TimeSeries, output_dir: Optional[Path] = None) -> ComparisonRun:
        """
        Run complete comparison for one series

        Args:
            series: Clean, time-ordered series
            output_dir: Directory to save results (falls back to config.output_dir)

        Returns:
            ComparisonRun with split, metric table and timings
        """
        logger.info(
            f"Starting comparison for {series.name} with {len(self.backends)} models: "
            f"{[b.name for b in self.backends]}"
        )

        require_nonempty(series)
        if self.config.freq and self.config.freq != series.freq:
            logger.info(f"Using configured frequency {self.config.freq} (series had {series.freq})")
            series = TimeSeries(ds=series.ds, y=series.y, name=series.name, freq=self.config.freq)

        split = split_series(series, self.config.split_ratio)

        forecasts: Dict[str, ForecastResult] = {}
        failures: Dict[str, str] = {}
        timings: Dict[str, Dict[str, float]] = {}
        last_error: Optional[Exception] = None

        for backend in self.backends:
            try:
                result, timing = self._fit_and_forecast(backend, split)
            except (FitError, ForecastError) as e:
                logger.warning(f"{backend.name} failed on {series.name}: {e}")
                failures[backend.name] = str(e)
                last_error = e
                continue

            forecasts[backend.name] = result
            timings[backend.name] = timing

        if not forecasts:
            logger.error(f"All models failed on {series.name}")
            raise last_error

        table = compare(split.test, forecasts).with_failures(failures)
        run = ComparisonRun(split=split, table=table, timings=timings)

        output_dir = output_dir or self.config.output_path()
        if output_dir:
            save_run(run, Path(output_dir))

        return run

    def _fit_and_forecast(
        self,
        backend: ForecastBackend,
        split: SplitResult,
    ) -> Tuple[ForecastResult, Dict[str, float]]:
        """Train backend and forecast the held-out horizon"""
        start_time = time.time()
        model = fit_with_timeout(backend, split.train, self.config.fit_timeout_seconds)
        train_time = time.time() - start_time

        start_time = time.time()
        result = backend.forecast(model, horizon=split.horizon)
        forecast_time = time.time() - start_time

        logger.info(
            f"{backend.name}: fit {train_time:.2f}s, forecast {forecast_time:.2f}s "
            f"({split.horizon} steps)"
        )
        return result, {"train_time": train_time, "forecast_time": forecast_time}


def save_run(run: ComparisonRun, output_dir: Path) -> None:
    """Write metrics.csv, aligned.csv and split.json"""
    output_dir.mkdir(parents=True, exist_ok=True)

    run.table.to_frame().to_csv(output_dir / "metrics.csv")
    run.table.aligned_frame().to_csv(output_dir / "aligned.csv", index=False)

    summary = {
        "split": run.split.info,
        "failures": dict(run.table.failures),
        "timings": run.timings,
    }
    with open(output_dir / "split.json", "w") as f:
        json.dump(summary, f, indent=2)

    logger.info(f"Saved results to {output_dir}")

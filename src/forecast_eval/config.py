"""
Pipeline Configuration

Defaults match the stock-price study: 80/20 holdout, trading-day frequency,
annual seasonal period of 252 trading days, 95% intervals. Environment
variables (or a local .env) override defaults; explicit arguments override
both.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from .backends import TRADING_DAYS_PER_YEAR, BackendFactory


@dataclass(frozen=True)
class PipelineConfig:
    # Split
    split_ratio: float = 0.8

    # Backends
    models: Tuple[str, ...] = ("arima", "prophet")
    season_length: int = TRADING_DAYS_PER_YEAR
    confidence_level: int = 95
    # None keeps the frequency the series was built with
    freq: Optional[str] = None
    fit_timeout_seconds: Optional[float] = None

    # IO
    output_dir: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "models", tuple(self.models))

        if not 0 < self.split_ratio < 1:
            raise ValueError(f"split_ratio must be in (0, 1), got {self.split_ratio}")
        if not 0 < self.confidence_level < 100:
            raise ValueError(f"confidence_level must be in (0, 100), got {self.confidence_level}")
        if self.season_length < 1:
            raise ValueError(f"season_length must be >= 1, got {self.season_length}")
        if self.fit_timeout_seconds is not None and self.fit_timeout_seconds <= 0:
            raise ValueError(f"fit_timeout_seconds must be > 0, got {self.fit_timeout_seconds}")
        if not self.models:
            raise ValueError("At least one model is required")

        unknown = [m for m in self.models if m not in BackendFactory.list_backends()]
        if unknown:
            raise ValueError(
                f"Unknown models: {unknown}. Available: {BackendFactory.list_backends()}"
            )
        if "mstl" in self.models and self.season_length <= 5:
            raise ValueError(
                f"mstl pairs a weekly period of 5 with season_length, which must be > 5, "
                f"got {self.season_length}"
            )

    def backend_kwargs(self, model: str) -> dict:
        """Constructor arguments for one backend"""
        kwargs = {"confidence_level": self.confidence_level}
        if model == "arima":
            kwargs["season_length"] = self.season_length
        elif model == "mstl":
            if self.season_length <= 5:
                raise ValueError(f"mstl needs season_length > 5, got {self.season_length}")
            kwargs["season_lengths"] = (5, self.season_length)
        return kwargs

    def output_path(self) -> Optional[Path]:
        return Path(self.output_dir) if self.output_dir else None


_ENV_FIELDS = {
    "split_ratio": ("FORECAST_SPLIT_RATIO", float),
    "season_length": ("FORECAST_SEASON_LENGTH", int),
    "confidence_level": ("FORECAST_CONFIDENCE_LEVEL", int),
    "freq": ("FORECAST_FREQ", str),
    "models": ("FORECAST_MODELS", lambda v: tuple(m.strip() for m in v.split(",") if m.strip())),
    "fit_timeout_seconds": ("FORECAST_FIT_TIMEOUT", float),
    "output_dir": ("FORECAST_OUTPUT_DIR", str),
}


def load_config(**overrides) -> PipelineConfig:
    """
    Load configuration from environment.

    Reads FORECAST_* variables from the .env file or environment. Keyword
    arguments that are not None take precedence.
    """
    load_dotenv()

    values = {}
    for name, (env_var, parse) in _ENV_FIELDS.items():
        raw = os.getenv(env_var)
        if raw is None or raw.strip() == "":
            continue
        try:
            values[name] = parse(raw.strip())
        except ValueError as e:
            raise ValueError(f"Invalid {env_var}={raw!r}: {e}") from e

    values.update({k: v for k, v in overrides.items() if v is not None})
    return PipelineConfig(**values)

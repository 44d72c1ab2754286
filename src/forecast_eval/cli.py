from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from src.forecast_eval.backends import BackendFactory
from src.forecast_eval.config import load_config
from src.forecast_eval.errors import ForecastEvalError
from src.forecast_eval.pipeline import ComparisonPipeline
from src.forecast_eval.series import TimeSeries

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


@app.command()
def compare(
    csv_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    ds_col: str = "ds",
    y_col: str = "y",
    name: Optional[str] = None,
    models: Optional[str] = typer.Option(None, help="Comma separated backend names"),
    split_ratio: Optional[float] = None,
    season_length: Optional[int] = None,
    confidence_level: Optional[int] = None,
    freq: Optional[str] = None,
    fit_timeout: Optional[float] = typer.Option(
        None,
        help="Seconds before a fit is skipped; the abandoned fit still finishes before the process exits",
    ),
    output_dir: Optional[str] = None,
):
    """Fit every model on the first part of a series and score it on the rest."""
    try:
        cfg = load_config(
            models=tuple(m.strip() for m in models.split(",")) if models else None,
            split_ratio=split_ratio,
            season_length=season_length,
            confidence_level=confidence_level,
            freq=freq,
            fit_timeout_seconds=fit_timeout,
            output_dir=output_dir,
        )

        df = pd.read_csv(csv_path)
        series = TimeSeries.from_frame(
            df, ds_col=ds_col, y_col=y_col, name=name or csv_path.stem, freq=cfg.freq or "B"
        )

        run = ComparisonPipeline(cfg).run(series)
    except (ForecastEvalError, ValueError) as e:
        console.print(f"[red]Comparison failed:[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(title=f"Forecast comparison: {series.name} (horizon={run.split.horizon})")
    table.add_column("Model", style="cyan")
    for col in ("MAE", "MSE", "RMSE", "MAPE %", "Accuracy %", "Coverage %"):
        table.add_column(col, style="green", justify="right")

    metrics = run.table.to_frame()
    for model, row in metrics.iterrows():
        coverage = "n/a" if pd.isna(row["coverage"]) else f"{row['coverage']:.1f}"
        table.add_row(
            str(model),
            f"{row['mae']:.4f}",
            f"{row['mse']:.4f}",
            f"{row['rmse']:.4f}",
            f"{row['mape']:.2f}",
            f"{row['accuracy_pct']:.2f}",
            coverage,
        )

    console.print(table)

    for model, message in run.table.failures.items():
        console.print(f"[yellow]{model} skipped:[/yellow] {message}")


@app.command("backends")
def list_backends():
    """List available forecasting backends."""
    table = Table(title="Backends")
    table.add_column("Name", style="cyan")
    table.add_column("Intervals", style="green")

    for name in BackendFactory.list_backends():
        table.add_row(name, "yes" if BackendFactory.supports_intervals(name) else "no")

    console.print(table)


if __name__ == "__main__":
    app()

"""
Forecast Evaluation Test Suite

Tests organized by stage:
- test_series_split.py — series invariants and positional holdout split
- test_metrics.py — metric bundle formulas and fail-loud inputs
- test_backends.py — backend call contract and capability flags
- test_comparison.py — side-by-side table and alignment
- test_pipeline.py — end-to-end runner, per-model failures, config
- test_cli.py — Typer command line
"""

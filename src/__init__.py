"""
Stock Forecast Evaluation

Modules:
- forecast_eval: Holdout split, forecasting backends, accuracy metrics and
  model comparison for one stock-price series
"""

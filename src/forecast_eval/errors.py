"""
Error taxonomy for the forecast evaluation pipeline.

Every error is raised to the caller; nothing here is recovered into a
default forecast or a default metric value.
"""


class ForecastEvalError(Exception):
    """Base class for all pipeline errors"""


class InsufficientDataError(ForecastEvalError, ValueError):
    """Series too short (or empty) for the requested operation"""


class FitError(ForecastEvalError, RuntimeError):
    """Backend could not be fitted on the training series"""

    def __init__(self, backend: str, message: str):
        self.backend = backend
        super().__init__(f"[{backend}] {message}")


class FitTimeoutError(FitError, TimeoutError):
    """Backend fit exceeded the configured time budget"""

    def __init__(self, backend: str, timeout: float):
        self.timeout = timeout
        super().__init__(backend, f"fit did not finish within {timeout:g}s")


class ForecastError(ForecastEvalError, RuntimeError):
    """Fitted backend failed to produce a forecast"""

    def __init__(self, backend: str, message: str):
        self.backend = backend
        super().__init__(f"[{backend}] {message}")


class LengthMismatchError(ForecastEvalError, ValueError):
    """Actual and forecast sequences differ in length (or are empty)"""


class AlignmentError(LengthMismatchError):
    """A model's forecast does not cover the test horizon position-for-position"""

    def __init__(self, model_name: str, expected: int, got: int):
        self.model_name = model_name
        self.expected = expected
        self.got = got
        super().__init__(
            f"Forecast for {model_name!r} has {got} steps, expected {expected}"
        )


class DivisionByZeroError(ForecastEvalError, ZeroDivisionError):
    """MAPE is undefined because an actual observation is zero"""

    def __init__(self, position: int):
        self.position = position
        super().__init__(
            f"MAPE undefined: actual value at position {position} is zero"
        )

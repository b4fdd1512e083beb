# backend/app/errors.py
"""
Domain errors raised by the services and mapped to HTTP responses in the routers.
"""

from typing import Iterable


class FloodWatchError(Exception):
    """Base class for errors surfaced to API callers."""


class NotFoundError(FloodWatchError):
    def __init__(self, kind: str, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class ValidationStatusError(FloodWatchError, ValueError):
    """Raised when a prediction is validated with a status outside the allowed set."""

    def __init__(self, status, allowed_values: Iterable[str]):
        self.status = status
        self.allowed_values = list(allowed_values)
        super().__init__(
            f"Invalid validation status {status!r}; allowed: {', '.join(self.allowed_values)}"
        )


class InvalidForecastWindow(FloodWatchError, ValueError):
    def __init__(self, forecast_hours):
        self.forecast_hours = forecast_hours
        super().__init__(f"forecast_hours must be positive, got {forecast_hours}")


class UnknownParameterError(FloodWatchError, ValueError):
    """Raised when statistics are requested for a field that is not a numeric reading column."""

    def __init__(self, unknown: Iterable[str], allowed_values: Iterable[str]):
        self.unknown = list(unknown)
        self.allowed_values = list(allowed_values)
        super().__init__(
            f"Unknown parameter(s) {', '.join(self.unknown)}; allowed: {', '.join(self.allowed_values)}"
        )

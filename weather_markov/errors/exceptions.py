"""Exceptions raised by the weather Markov chain engine and its collaborators."""

from typing import Optional


class WeatherPayloadError(ValueError):
    """Upstream weather payload is malformed or incomplete."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class UnknownStateError(ValueError):
    """A state label or state is not part of the alphabet in use."""


class MatrixNotBuiltError(RuntimeError):
    """Simulation or steady-state requested before any transition matrix exists."""


class InvalidTransitionMatrixError(ValueError):
    """Supplied probabilities do not form a valid row-stochastic matrix."""


class WeatherApiError(RuntimeError):
    """WeatherAPI request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

"""Exception hierarchy for the forecast engine."""

from __future__ import annotations

from typing import Optional


class ForecastEngineError(Exception):
    """Base class for every error raised by :mod:`energy_budget`."""


class TransportError(ForecastEngineError):
    """The forecast service could not be reached or answered with an error.

    Not retried here; the caller decides whether to try again.
    """

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class ValidationError(ForecastEngineError):
    """A forecast row from the service is malformed."""


class PersistenceError(ForecastEngineError):
    """A save was rejected by the forecast service."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class InvalidSaveTarget(ForecastEngineError):
    """A save was requested for the synthetic all-sites entity."""

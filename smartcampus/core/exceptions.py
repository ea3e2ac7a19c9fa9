"""
SmartCampus - Exceptions
Error types raised across the report-submission pipeline.
"""

from enum import Enum


class SmartCampusError(Exception):
    """Base class for application errors."""


class WizardDisposedError(SmartCampusError):
    """The wizard was navigated away from and accepts no more input."""


class SubmissionError(SmartCampusError):
    """A submission attempt failed; the draft is kept for retry."""


class UnauthenticatedError(SubmissionError):
    """No identity was available at submission time."""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class StoreWriteError(SubmissionError):
    """The report store rejected or failed the append."""


class GeolocationErrorCode(str, Enum):
    """Failure codes reported by a device location service."""
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"


class GeolocationError(SmartCampusError):
    """Device location service could not produce a fix."""

    def __init__(self, code: GeolocationErrorCode, message: str = ""):
        self.code = GeolocationErrorCode(code)
        super().__init__(message or self.code.value)

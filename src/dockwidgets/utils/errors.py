"""
Error types for DockWidgets.

Provides the poll error taxonomy shared by every probe. Probes catch these
at their tick boundary and publish them as values instead of raising.
"""

import enum
from typing import Optional


class DockWidgetsError(Exception):
    """Base exception for all DockWidgets-specific errors."""

    pass


class ConfigurationError(DockWidgetsError):
    """Raised when there's an issue with configuration."""

    pass


class PollErrorKind(enum.Enum):
    """Classification of a failed external poll."""

    INVALID_INPUT = "invalid_input"
    NO_DATA = "no_data"
    HTTP_STATUS = "http_status"
    NETWORK = "network"
    DECODE = "decode"
    PERMISSION_DENIED = "permission_denied"


class PollError(DockWidgetsError):
    """
    Raised when sampling an external source fails.

    Probes catch these and attach them to their published value instead of
    letting them cross component boundaries.
    """

    kind: PollErrorKind = PollErrorKind.NO_DATA

    @property
    def retriable(self) -> bool:
        """Only transport failures are worth another attempt."""
        return self.kind is PollErrorKind.NETWORK


class InvalidInputError(PollError):
    """The request could not be built from the given input."""

    kind = PollErrorKind.INVALID_INPUT


class NoDataError(PollError):
    """The source answered but had nothing to report."""

    kind = PollErrorKind.NO_DATA


class HTTPStatusError(PollError):
    """The HTTP service answered with a non-200 status."""

    kind = PollErrorKind.HTTP_STATUS

    def __init__(self, code: int, message: Optional[str] = None):
        self.code = code
        self.message = message
        text = f"HTTP {code}"
        if message:
            text = f"{text}: {message}"
        super().__init__(text)


class NetworkError(PollError):
    """The source could not be reached (connection, timeout, spawn failure)."""

    kind = PollErrorKind.NETWORK

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class DecodeError(PollError):
    """The source answered with a payload that could not be parsed."""

    kind = PollErrorKind.DECODE

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class PermissionDeniedError(PollError):
    """The OS refused automation access to the target application."""

    kind = PollErrorKind.PERMISSION_DENIED

    def __init__(self, message: str, app: Optional[str] = None):
        self.app = app
        super().__init__(message)

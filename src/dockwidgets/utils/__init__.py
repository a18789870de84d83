"""
Utility modules for DockWidgets.
"""

from .errors import (
    ConfigurationError,
    DecodeError,
    DockWidgetsError,
    HTTPStatusError,
    InvalidInputError,
    NetworkError,
    NoDataError,
    PermissionDeniedError,
    PollError,
    PollErrorKind,
)

__all__ = [
    "DockWidgetsError",
    "ConfigurationError",
    "PollError",
    "PollErrorKind",
    "InvalidInputError",
    "NoDataError",
    "HTTPStatusError",
    "NetworkError",
    "DecodeError",
    "PermissionDeniedError",
]

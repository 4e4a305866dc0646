"""Error taxonomy for the launch pipeline.

``str(error)`` is always the user-facing message, so each message carries
the context needed to self-diagnose (attempted URL, setting source,
required vs observed build hash).
"""

from __future__ import annotations

from enum import Enum, auto


class CraClientError(Exception):
    """Base class for CRA Client errors."""


class ConfigErrorKind(Enum):
    MISSING_APP_URL = auto()
    INVALID_APP_URL = auto()
    MISSING_ALLOWED_HOSTS = auto()
    LOCALHOST_NOT_ALLOWED_IN_RELEASE = auto()
    APP_HOST_NOT_ALLOWLISTED = auto()
    SOURCE_UNREADABLE = auto()
    INVALID_SETTING = auto()
    PROVISIONING_FAILED = auto()


class ConfigError(CraClientError):
    """Configuration problem; terminal for the current attempt."""

    def __init__(self, kind: ConfigErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class ReachErrorKind(Enum):
    CONNECTION_REFUSED = auto()
    TIMEOUT = auto()
    DNS_FAILURE = auto()
    TLS_FAILURE = auto()
    PROTOCOL_ERROR = auto()
    SERVER_ERROR = auto()


class ReachError(CraClientError):
    """The target server could not be reached; recoverable by retry."""

    def __init__(self, kind: ReachErrorKind, url: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.url = url
        self.message = message


class ParityErrorKind(Enum):
    FETCH_FAILED = auto()
    MALFORMED_RESPONSE = auto()


class ParityError(CraClientError):
    """The server's deploy descriptor could not be obtained or trusted."""

    def __init__(self, kind: ParityErrorKind, url: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.url = url
        self.message = message


class LaunchError(CraClientError):
    """``launch_app`` was requested before the gate reached Launched."""

"""
Error values for the APNS transport.

Errors are carried as values on a Result rather than raised past the
transport boundary: callers check ``result.ok`` and inspect
``result.error.kind``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of transport error kinds."""

    FORMAT_INVALID = "format_invalid"
    MINT_FAILED = "mint_failed"
    TRANSPORT_FAILED = "transport_failed"


class PushTransportError(Exception):
    """Base class for push transport errors."""

    kind: ErrorKind = ErrorKind.TRANSPORT_FAILED
    default_message = "Push transport error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidAppleTokenError(PushTransportError):
    """Device token is not 64 hexadecimal characters."""

    kind = ErrorKind.FORMAT_INVALID
    default_message = "Invalid Apple push token format"


class ProviderTokenError(PushTransportError):
    """Provider token could not be minted."""

    kind = ErrorKind.MINT_FAILED
    default_message = "Failed to mint APNS provider token"


class TransportFailedError(PushTransportError):
    """Request to APNs failed before a response was received."""

    kind = ErrorKind.TRANSPORT_FAILED
    default_message = "APNS request failed"


@dataclass(frozen=True)
class Result:
    """Outcome of an operation that can fail with a PushTransportError."""

    error: Optional[PushTransportError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> "Result":
        return cls()

    @classmethod
    def failure(cls, error: PushTransportError) -> "Result":
        return cls(error=error)

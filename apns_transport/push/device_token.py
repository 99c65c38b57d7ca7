"""
Apple device token codec.

Device tokens travel as 64 hexadecimal characters and are stored as
their 32 raw bytes.
"""

import binascii
import re

from apns_transport.push.constants import DEVICE_TOKEN_BYTES, DEVICE_TOKEN_PATTERN
from apns_transport.push.errors import InvalidAppleTokenError, Result

_DEVICE_TOKEN_RE = re.compile(DEVICE_TOKEN_PATTERN)


def validate_push_token(token: str) -> Result:
    """Check that a token is exactly 64 hex characters, in either case."""
    if not isinstance(token, str) or _DEVICE_TOKEN_RE.fullmatch(token) is None:
        return Result.failure(InvalidAppleTokenError())
    return Result.success()


def encode_push_token(token: str) -> bytes:
    """Encode a hex device token to raw bytes for storage.

    Raises:
        InvalidAppleTokenError: If the token is not valid hex or not 32 bytes
    """
    try:
        raw = binascii.unhexlify(token)
    except (binascii.Error, ValueError, TypeError) as e:
        raise InvalidAppleTokenError(f"Invalid Apple push token format: {e}") from e

    if len(raw) != DEVICE_TOKEN_BYTES:
        raise InvalidAppleTokenError(
            f"Apple push token must be {DEVICE_TOKEN_BYTES} bytes, got {len(raw)}"
        )
    return raw


def decode_push_token(encoded_token: bytes) -> str:
    """Decode a stored device token to its uppercase hex wire form."""
    return binascii.hexlify(encoded_token).decode("ascii").upper()

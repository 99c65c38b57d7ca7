"""
APNS provider token minting.

A provider token is an ES256 JSON Web Token with header
``{"alg": "ES256", "kid": <key id>, "typ": "JWT"}`` and claims
``{"iss": <team id>, "iat": <unix time>}``, signed with the team's .p8
key. APNs accepts a token for up to an hour after ``iat``.
"""

import json
import logging
import time
from typing import Callable, Dict, Optional, Tuple, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from jwt.utils import base64url_encode

from apns_transport.push.constants import (
    JWT_ALGORITHM,
    JWT_REFRESH_MARGIN_SECONDS,
    JWT_TOKEN_LIFETIME_SECONDS,
    JWT_TYPE,
)
from apns_transport.push.signature import ecdsa_der_to_raw

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _segment(data: dict) -> bytes:
    """Serialize a JOSE object as compact JSON and base64url-encode it."""
    return base64url_encode(json.dumps(data, separators=(",", ":")).encode("utf-8"))


def load_signing_key(private_key: Union[str, bytes]) -> Optional[ec.EllipticCurvePrivateKey]:
    """
    Parse a PEM-encoded P-256 private key (the contents of a .p8 file).

    Returns:
        The key, or None if it cannot be parsed or is not a P-256 EC key
    """
    if isinstance(private_key, str):
        private_key = private_key.encode("utf-8")

    try:
        key = serialization.load_pem_private_key(private_key, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        logger.error(f"Unable to parse APNS private key: {e}")
        return None

    if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(key.curve, ec.SECP256R1):
        logger.error("APNS key must be a P-256 EC private key (ES256)")
        return None

    return key


def mint_provider_token(
    team_id: str,
    key_id: str,
    private_key: Union[str, bytes],
    clock: Clock = time.time,
) -> str:
    """
    Mint a signed APNS provider token.

    Args:
        team_id: 10-character Apple team identifier (``iss`` claim)
        key_id: 10-character key identifier (``kid`` header)
        private_key: PEM text of the .p8 auth key
        clock: Source of the current unix time for the ``iat`` claim

    Returns:
        ``header.claims.signature`` token string, or ``""`` if the key is
        unusable or signing fails. A partial token is never returned.
    """
    header = {
        "alg": JWT_ALGORITHM,
        "kid": key_id,
        "typ": JWT_TYPE,
    }
    claims = {
        "iss": team_id,
        "iat": int(clock()),
    }
    signing_input = _segment(header) + b"." + _segment(claims)

    key = load_signing_key(private_key)
    if key is None:
        return ""

    try:
        der_signature = key.sign(signing_input, ec.ECDSA(hashes.SHA256()))
    except Exception as e:
        logger.error(f"APNS provider token signing failed: {e}", exc_info=True)
        return ""

    raw_signature = ecdsa_der_to_raw(der_signature)
    if not raw_signature:
        logger.error("APNS provider token signature could not be transcoded")
        return ""

    token = (signing_input + b"." + base64url_encode(raw_signature)).decode("ascii")

    logger.debug(
        "Minted APNS provider token",
        extra={"team_id": team_id, "key_id": key_id, "iat": claims["iat"]},
    )
    return token


class ProviderTokenCache:
    """
    Reuses provider tokens per (team_id, key_id) within their lifetime.

    A token is reused until ``lifetime_seconds`` minus a 60 second margin
    has elapsed since it was minted. A lifetime of 0 disables caching, so
    every call mints a fresh token. Lifetimes above an hour are capped, as
    APNs rejects older tokens. Failed mints are never cached.

    Attributes:
        lifetime_seconds: How long a minted token may be reused
        _entries: (team_id, key_id) -> (token, minted_at)
    """

    def __init__(self, lifetime_seconds: int = 0, clock: Clock = time.time):
        self.lifetime_seconds = min(lifetime_seconds, JWT_TOKEN_LIFETIME_SECONDS)
        self._clock = clock
        self._entries: Dict[Tuple[str, str], Tuple[str, float]] = {}

    def get_or_mint(self, team_id: str, key_id: str, private_key: Union[str, bytes]) -> str:
        """Return a cached token for the credentials, minting one if needed."""
        now = self._clock()
        cache_key = (team_id, key_id)

        entry = self._entries.get(cache_key)
        if entry is not None:
            token, minted_at = entry
            if now < minted_at + self.lifetime_seconds - JWT_REFRESH_MARGIN_SECONDS:
                return token
            del self._entries[cache_key]

        token = mint_provider_token(team_id, key_id, private_key, clock=self._clock)
        if token and self.lifetime_seconds > JWT_REFRESH_MARGIN_SECONDS:
            self._entries[cache_key] = (token, now)
        return token

    def invalidate(self, team_id: Optional[str] = None, key_id: Optional[str] = None) -> None:
        """Drop cached tokens; all of them when no credentials are given."""
        if team_id is None and key_id is None:
            self._entries.clear()
            return
        self._entries.pop((team_id, key_id), None)

"""
ECDSA signature transcoding for ES256 provider tokens.

OpenSSL-style signers emit ``SEQUENCE { INTEGER r, INTEGER s }`` in DER,
while JWS requires the fixed-width ``r || s`` form.
"""

import logging

from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from apns_transport.push.constants import ES256_COMPONENT_SIZE

logger = logging.getLogger(__name__)


def ecdsa_der_to_raw(der: bytes, size: int = ES256_COMPONENT_SIZE) -> bytes:
    """
    Convert a DER-encoded ECDSA signature to raw ``r || s`` form.

    Each integer has its DER sign padding removed and is left-padded with
    zeros to ``size`` bytes, so the output is always ``2 * size`` bytes.

    Args:
        der: DER signature produced by the signer
        size: Width of each integer in bytes (32 for P-256)

    Returns:
        Raw signature, or ``b""`` if the input is truncated, wrongly tagged,
        has inconsistent lengths, or holds an integer wider than ``size``.
        Decoding is strict DER, so integers with redundant leading zero
        bytes beyond the single sign byte are rejected as well.
    """
    try:
        r, s = decode_dss_signature(bytes(der))
    except (ValueError, TypeError) as e:
        logger.debug(f"Rejected malformed DER signature: {e}")
        return b""

    if r < 0 or s < 0 or r.bit_length() > size * 8 or s.bit_length() > size * 8:
        logger.debug(
            "Rejected DER signature with out-of-range integer",
            extra={"r_bits": r.bit_length(), "s_bits": s.bit_length()},
        )
        return b""

    return r.to_bytes(size, "big") + s.to_bytes(size, "big")

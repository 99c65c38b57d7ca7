"""
Tests for DER to raw ECDSA signature transcoding.
"""

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from apns_transport.push.signature import ecdsa_der_to_raw


# Both integers have the high bit set, so DER adds a 0x00 sign byte to each
HIGH_R = int("F1" + "23" * 31, 16)
HIGH_S = int("80" + "00" * 30 + "01", 16)


class TestEcdsaDerToRaw:
    """Tests for ecdsa_der_to_raw."""

    def test_strips_sign_padding(self):
        """Integers needing a sign byte come out as exactly 32 bytes each."""
        der = encode_dss_signature(HIGH_R, HIGH_S)

        # 0x30 len 0x02 0x21 0x00 <32 bytes> 0x02 0x21 0x00 <32 bytes>
        assert der[3] == 0x21 and der[4] == 0x00

        raw = ecdsa_der_to_raw(der)

        assert len(raw) == 64
        assert raw[:32] == HIGH_R.to_bytes(32, "big")
        assert raw[32:] == HIGH_S.to_bytes(32, "big")

    def test_left_pads_short_integers(self):
        """Small integers are zero-padded on the left to 32 bytes."""
        der = encode_dss_signature(1, 0x0102)

        raw = ecdsa_der_to_raw(der)

        assert raw == b"\x00" * 31 + b"\x01" + b"\x00" * 30 + b"\x01\x02"

    def test_hand_built_der(self):
        """A literal DER buffer is decoded byte for byte."""
        r = bytes([0x00, 0x80] + [0x11] * 31)
        s = bytes([0x7F] + [0x22] * 31)
        der = bytes([0x30, 2 + len(r) + 2 + len(s), 0x02, len(r)]) + r + bytes([0x02, len(s)]) + s

        raw = ecdsa_der_to_raw(der)

        assert raw == r[1:] + s

    def test_real_signature_round_trip(self):
        """Output of a real P-256 signer decodes to its r and s."""
        key = ec.generate_private_key(ec.SECP256R1())
        der = key.sign(b"signing input", ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)

        raw = ecdsa_der_to_raw(der)

        assert len(raw) == 64
        assert int.from_bytes(raw[:32], "big") == r
        assert int.from_bytes(raw[32:], "big") == s

    def test_truncated_input_fails(self):
        """A truncated buffer yields an empty result."""
        der = encode_dss_signature(HIGH_R, HIGH_S)

        assert ecdsa_der_to_raw(der[:-5]) == b""
        assert ecdsa_der_to_raw(der[:3]) == b""
        assert ecdsa_der_to_raw(b"") == b""

    def test_wrong_outer_tag_fails(self):
        """Outer tag must be SEQUENCE (0x30)."""
        der = encode_dss_signature(HIGH_R, HIGH_S)

        assert ecdsa_der_to_raw(b"\x31" + der[1:]) == b""

    def test_wrong_integer_tag_fails(self):
        """Elements must be INTEGER (0x02)."""
        der = bytearray(encode_dss_signature(HIGH_R, HIGH_S))
        der[2] = 0x04  # OCTET STRING

        assert ecdsa_der_to_raw(bytes(der)) == b""

    def test_inconsistent_length_fails(self):
        """Sequence length that disagrees with the content is rejected."""
        der = bytearray(encode_dss_signature(HIGH_R, HIGH_S))
        der[1] += 1

        assert ecdsa_der_to_raw(bytes(der)) == b""

    def test_trailing_bytes_fail(self):
        """Data after the sequence is rejected."""
        der = encode_dss_signature(HIGH_R, HIGH_S)

        assert ecdsa_der_to_raw(der + b"\x00") == b""

    def test_oversized_integer_fails(self):
        """An integer wider than 32 bytes cannot be a P-256 signature."""
        der = encode_dss_signature(2 ** 256, 1)

        assert ecdsa_der_to_raw(der) == b""

    @pytest.mark.parametrize("value", [None, "not bytes", 12345])
    def test_non_bytes_input_fails(self, value):
        """Garbage input never raises."""
        assert ecdsa_der_to_raw(value) == b""

    def test_redundant_leading_zeros_fail(self):
        """Only the single DER sign byte is allowed before an integer."""
        # r = 1 encoded as 00 01, s = 1
        der = bytes([0x30, 0x07, 0x02, 0x02, 0x00, 0x01, 0x02, 0x01, 0x01])

        assert ecdsa_der_to_raw(der) == b""

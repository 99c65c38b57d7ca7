"""Pytest fixtures and configuration for test suite

This module provides:
1. Throwaway P-256 signing keys in .p8 (PKCS#8 PEM) form
2. APNS credentials built from those keys
3. A mock httpx AsyncClient and a fixed clock

Factory Functions:
    - make_device_token(seed) -> str
    - make_private_key_pem(curve) -> str
"""
import hashlib
import pytest
from unittest.mock import AsyncMock

import httpx
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from apns_transport.push.models import APNSConfig


FIXED_NOW = 1_700_000_000


# =============================================================================
# Factory Functions for Test Objects
# =============================================================================

def make_private_key_pem(curve: ec.EllipticCurve = None) -> str:
    """
    Generate an EC private key and return it as .p8 PEM text.

    Args:
        curve: Curve to generate on (default P-256, the only one APNs accepts)

    Returns:
        PKCS#8 PEM string
    """
    private_key = ec.generate_private_key(curve or ec.SECP256R1())
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def make_device_token(seed: str = "device") -> str:
    """Return a deterministic 64-character uppercase hex device token."""
    return hashlib.sha256(seed.encode()).hexdigest().upper()


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def private_key_pem():
    """P-256 signing key in .p8 PEM form."""
    return make_private_key_pem()


@pytest.fixture
def public_key_pem(private_key_pem):
    """PEM public key matching private_key_pem, for verifying tokens."""
    key = serialization.load_pem_private_key(private_key_pem.encode(), password=None)
    return key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture
def apns_config(private_key_pem):
    """Create a test APNS configuration."""
    return APNSConfig(
        team_id="TEAMID1234",
        key_id="KEYID12345",
        private_key=private_key_pem,
        bundle_id="com.example.test",
        use_sandbox=True,
    )


@pytest.fixture
def fixed_clock():
    """Clock returning a constant unix time."""
    return lambda: FIXED_NOW


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.is_closed = False
    return mock_client

"""
APNS push transport.

This package contains:
- Provider token minting (ES256) and DER signature transcoding
- Device token validation and storage codec
- APNSProvider - per-device dispatch and response classification
- PushDispatchService - scheduled event adapter
"""

from apns_transport.push.apns_provider import APNSProvider, classify_response
from apns_transport.push.device_token import (
    decode_push_token,
    encode_push_token,
    validate_push_token,
)
from apns_transport.push.dispatch_service import PushDispatchService
from apns_transport.push.errors import (
    ErrorKind,
    InvalidAppleTokenError,
    ProviderTokenError,
    PushTransportError,
    Result,
    TransportFailedError,
)
from apns_transport.push.models import (
    APNSAlert,
    APNSConfig,
    APNSPayload,
    DeliveryResult,
    DeliveryStatus,
    DispatchOutcome,
    MessageEnvelope,
    PushTokenRecord,
    ScheduledEventResult,
    SkipReason,
)
from apns_transport.push.provider_token import ProviderTokenCache, mint_provider_token
from apns_transport.push.signature import ecdsa_der_to_raw

__all__ = [
    # Dispatch
    "APNSProvider",
    "PushDispatchService",
    "classify_response",
    # Provider token
    "mint_provider_token",
    "ProviderTokenCache",
    "ecdsa_der_to_raw",
    # Device tokens
    "validate_push_token",
    "encode_push_token",
    "decode_push_token",
    # Models
    "APNSConfig",
    "APNSAlert",
    "APNSPayload",
    "DeliveryResult",
    "DeliveryStatus",
    "DispatchOutcome",
    "SkipReason",
    "MessageEnvelope",
    "PushTokenRecord",
    "ScheduledEventResult",
    # Errors
    "ErrorKind",
    "PushTransportError",
    "InvalidAppleTokenError",
    "ProviderTokenError",
    "TransportFailedError",
    "Result",
]

"""
Models for the APNS transport.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apns_transport.core.config import Settings, settings as default_settings
from apns_transport.push.constants import DEFAULT_SOUND
from apns_transport.push.errors import PushTransportError


class DeliveryStatus(str, Enum):
    """Classification of a single device delivery."""

    DELIVERED = "delivered"
    INVALID_TOKEN = "invalid_token"
    UNRESOLVED = "unresolved"  # APNs answered, but neither success nor a dead token
    TRANSPORT_ERROR = "transport_error"  # No response received


class SkipReason(str, Enum):
    """Why a dispatch call sent nothing."""

    MISSING_CREDENTIALS = "missing_credentials"
    NO_TOKENS = "no_tokens"
    MINT_FAILED = "mint_failed"


@dataclass
class DeliveryResult:
    """Result of a push notification delivery attempt."""

    device_token: str
    status: DeliveryStatus
    status_code: Optional[int] = None
    reason: str = ""  # APNS JSON "reason" field
    error: Optional[PushTransportError] = None
    apns_id: Optional[str] = None  # APNS unique notification ID
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def success(self) -> bool:
        return self.status == DeliveryStatus.DELIVERED


@dataclass
class DispatchOutcome:
    """Outcome of one dispatch call.

    Either the call was skipped before any request was made
    (``skipped_reason`` set, all lists empty) or every token was attempted
    and sorted into ``delivered``, ``invalid`` or ``unresolved``. Tokens
    that hit a transport error appear only in ``results``.

    Attributes:
        skipped_reason: Set when nothing was sent
        delivered: Tokens APNs accepted (HTTP 200)
        invalid: Tokens APNs reported as permanently undeliverable
        unresolved: Tokens with any other APNs response
        results: Per-token DeliveryResult list, in input order
        error: Mint failure detail when skipped_reason is MINT_FAILED
        duration_ms: Total dispatch duration in milliseconds
    """

    skipped_reason: Optional[SkipReason] = None
    delivered: List[str] = field(default_factory=list)
    invalid: List[str] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)
    results: List[DeliveryResult] = field(default_factory=list)
    error: Optional[PushTransportError] = None
    duration_ms: float = 0.0

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None

    def as_pair(self) -> Tuple[List[str], List[str]]:
        """Return the (delivered, invalid) pair."""
        return list(self.delivered), list(self.invalid)


class APNSConfig(BaseModel):
    """Credentials for the APNS provider.

    Fields may be empty; the provider then skips every dispatch instead of
    failing at construction time.

    Attributes:
        team_id: 10-character team identifier
        key_id: 10-character key identifier from Apple Developer Portal
        private_key: PEM text of the .p8 auth key
        bundle_id: App bundle identifier, sent as apns-topic
        use_sandbox: Whether to use sandbox environment (development builds)
    """

    model_config = ConfigDict(frozen=True)

    team_id: str = Field(default="", description="10-character team ID")
    key_id: str = Field(default="", description="10-character key ID")
    private_key: str = Field(default="", repr=False, description="PEM .p8 key contents")
    bundle_id: str = Field(default="", description="App bundle identifier")
    use_sandbox: bool = Field(default=False, description="Use sandbox environment")

    @field_validator("key_id", "team_id")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        """Validate that identifiers are alphanumeric."""
        v = v.strip()
        if v and not v.isalnum():
            raise ValueError("Must be alphanumeric")
        return v

    @property
    def is_complete(self) -> bool:
        """True when every credential field is non-empty."""
        return bool(self.team_id and self.key_id and self.private_key and self.bundle_id)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "APNSConfig":
        """Build credentials from APNS_* settings."""
        settings = settings or default_settings
        return cls(
            team_id=settings.APNS_TEAM_ID or "",
            key_id=settings.APNS_KEY_ID or "",
            private_key=settings.apns_private_key or "",
            bundle_id=settings.APNS_BUNDLE_ID or "",
            use_sandbox=settings.APNS_USE_SANDBOX,
        )


class APNSAlert(BaseModel):
    """APNS alert dictionary. Empty fields are left out of the payload."""

    title: Optional[str] = Field(None, description="Alert title")
    subtitle: Optional[str] = Field(None, description="Alert subtitle")
    body: Optional[str] = Field(None, description="Alert body text")

    def to_apns_dict(self) -> Dict[str, str]:
        alert = {}
        if self.title:
            alert["title"] = self.title
        if self.subtitle:
            alert["subtitle"] = self.subtitle
        if self.body:
            alert["body"] = self.body
        return alert


class APNSPayload(BaseModel):
    """APNS notification payload.

    See: https://developer.apple.com/documentation/usernotifications/generating-a-remote-notification

    Attributes:
        alert: The alert content (title, subtitle, body)
        sound: Sound filename or "default"
        badge: App icon badge number, omitted when None
        url: Deep link placed at the payload root, omitted when empty
    """

    alert: APNSAlert
    sound: str = Field(default=DEFAULT_SOUND, description="Sound name or 'default'")
    badge: Optional[int] = Field(None, description="Badge number")
    url: Optional[str] = Field(None, description="Deep link URL")

    def to_apns_dict(self) -> Dict[str, Any]:
        """Convert to APNS payload dictionary format.

        Returns:
            Dictionary ready for JSON serialization to APNS.
        """
        aps: Dict[str, Any] = {
            "alert": self.alert.to_apns_dict(),
            "sound": self.sound,
        }
        if self.badge is not None:
            aps["badge"] = self.badge

        payload: Dict[str, Any] = {"aps": aps}
        if self.url:
            payload["url"] = self.url

        return payload


def build_alert_payload(
    title: str,
    body: str,
    subtitle: Optional[str] = None,
    url: Optional[str] = None,
    badge: Optional[int] = None,
) -> APNSPayload:
    """Build the alert payload sent to every device in a dispatch call."""
    return APNSPayload(
        alert=APNSAlert(title=title, subtitle=subtitle, body=body),
        sound=DEFAULT_SOUND,
        badge=badge,
        url=url,
    )


class MessageEnvelope(BaseModel):
    """Notification content supplied by the content source."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    message: str = ""
    subtitle: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    url: Optional[str] = None


@dataclass
class PushTokenRecord:
    """A stored subscriber device token."""

    id: int
    token: bytes
    user_id: Optional[int] = None


@dataclass
class ScheduledEventResult:
    """Subscriber ids resolved by a scheduled event dispatch."""

    success_ids: List[int] = field(default_factory=list)
    invalid_ids: List[int] = field(default_factory=list)

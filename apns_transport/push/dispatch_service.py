"""
Scheduled Event Dispatch Service.

Turns the subscriber token records of a scheduled push event into one
APNS dispatch and maps the outcome back to subscriber ids.

Features:
- Per-subscriber viewing permission filter
- Single batched dispatch per event
- Delivered / invalid results mapped back to subscriber ids, deduplicated
"""

import logging
from typing import Callable, Dict, List, Mapping, Sequence, Union

from apns_transport.push.apns_provider import APNSProvider
from apns_transport.push.constants import SCHEDULED_EVENT_BADGE
from apns_transport.push.device_token import decode_push_token
from apns_transport.push.models import (
    DispatchOutcome,
    MessageEnvelope,
    PushTokenRecord,
    ScheduledEventResult,
)

logger = logging.getLogger(__name__)

# can_view(record, content_type, content_id) -> bool
ViewPermissionCheck = Callable[[PushTokenRecord, str, int], bool]


def _unique(ids: List[int]) -> List[int]:
    """Drop duplicate ids, keeping the first occurrence of each."""
    return list(dict.fromkeys(ids))


class PushDispatchService:
    """
    Apple push transport for the scheduled event pipeline.

    The outer push service hands over every stored token record for an
    event; this service filters them by viewing permission, sends one
    batch through the APNS provider and reports which subscribers were
    reached and which tokens should be deleted.

    Usage:
        service = PushDispatchService(provider, can_view=permissions.can_view)
        result = await service.handle_scheduled_event(
            tokens=records,
            envelope=MessageEnvelope(title="New reply", message="..."),
            content_type="topic",
            content_id=42,
        )
    """

    transport_id = "apple"
    supports_subtitle = True

    def __init__(
        self,
        provider: APNSProvider,
        can_view: ViewPermissionCheck,
    ):
        """
        Initialize dispatch service.

        Args:
            provider: APNS provider used for delivery
            can_view: Callback(record, content_type, content_id) deciding
                whether the record's subscriber may see the content
        """
        self._provider = provider
        self._can_view = can_view

    async def handle_scheduled_event(
        self,
        tokens: Sequence[PushTokenRecord],
        envelope: Union[MessageEnvelope, Mapping],
        content_type: str,
        content_id: int,
    ) -> ScheduledEventResult:
        """
        Dispatch a scheduled event to every permitted subscriber token.

        Args:
            tokens: Stored token records for the event's audience
            envelope: Notification content (title, message, subtitle,
                imageUrl, url)
            content_type: Type of the content being announced
            content_id: ID of the content being announced

        Returns:
            ScheduledEventResult with delivered and invalid subscriber ids
        """
        if not isinstance(envelope, MessageEnvelope):
            envelope = MessageEnvelope.model_validate(envelope)

        apple_tokens: List[str] = []
        id_by_token: Dict[str, int] = {}
        filtered = 0

        for record in tokens:
            if not self._can_view(record, content_type, content_id):
                filtered += 1
                continue

            if not record.token:
                continue

            token_str = decode_push_token(record.token)
            apple_tokens.append(token_str)
            id_by_token[token_str] = int(record.id)

        if not apple_tokens:
            logger.debug(
                "Scheduled event has no permitted Apple tokens",
                extra={
                    "content_type": content_type,
                    "content_id": content_id,
                    "filtered": filtered,
                }
            )
            return ScheduledEventResult()

        outcome: DispatchOutcome = await self._provider.dispatch(
            apple_tokens,
            envelope.title,
            envelope.message,
            subtitle=envelope.subtitle,
            image_url=envelope.image_url,
            url=envelope.url,
            badge=SCHEDULED_EVENT_BADGE,
        )

        success_ids = [id_by_token[t] for t in outcome.delivered if t in id_by_token]
        invalid_ids = [id_by_token[t] for t in outcome.invalid if t in id_by_token]

        result = ScheduledEventResult(
            success_ids=_unique(success_ids),
            invalid_ids=_unique(invalid_ids),
        )

        logger.info(
            "Scheduled event dispatched",
            extra={
                "content_type": content_type,
                "content_id": content_id,
                "tokens": len(apple_tokens),
                "filtered": filtered,
                "success": len(result.success_ids),
                "invalid": len(result.invalid_ids),
                "skipped_reason": outcome.skipped_reason,
            }
        )

        return result

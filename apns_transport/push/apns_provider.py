"""
APNS (Apple Push Notification Service) Provider.

Sends alert notifications to Apple devices over HTTP/2.

Features:
- Token-based authentication (ES256 provider token minted from the .p8 key)
- HTTP/2 connection reuse through a single httpx client
- Bounded per-request timeout and optional bounded concurrency
- Classification of every device token as delivered, invalid or unresolved
"""

import asyncio
import json
import logging
import time
import uuid
from typing import Callable, List, Optional, Sequence, Tuple

import httpx

from apns_transport.core.config import Settings, settings as default_settings
from apns_transport.core.logging_config import clear_batch_id, mask_token, set_batch_id
from apns_transport.push.constants import (
    APNS_AUTH_ERROR_STATUS_CODES,
    APNS_DEVICE_PATH,
    APNS_ERROR_CODES,
    APNS_PRODUCTION_HOST,
    APNS_PUSH_TYPE,
    APNS_REQUEST_TIMEOUT_SECONDS,
    APNS_SANDBOX_HOST,
    APNS_SUCCESS_STATUS_CODE,
    APNS_TOKEN_INVALID_REASONS,
    APNS_TOKEN_INVALID_STATUS_CODES,
)
from apns_transport.push.errors import ProviderTokenError, TransportFailedError
from apns_transport.push.models import (
    APNSConfig,
    DeliveryResult,
    DeliveryStatus,
    DispatchOutcome,
    SkipReason,
    build_alert_payload,
)
from apns_transport.push.provider_token import ProviderTokenCache, mint_provider_token

logger = logging.getLogger(__name__)


def classify_response(status_code: int, reason: str) -> DeliveryStatus:
    """
    Classify an APNs response.

    200 is delivered. 410, or a reason saying the token is bad, unregistered
    or bound to another topic, marks the token invalid. Everything else is
    unresolved.
    """
    if status_code == APNS_SUCCESS_STATUS_CODE:
        return DeliveryStatus.DELIVERED
    if status_code in APNS_TOKEN_INVALID_STATUS_CODES or reason in APNS_TOKEN_INVALID_REASONS:
        return DeliveryStatus.INVALID_TOKEN
    return DeliveryStatus.UNRESOLVED


def parse_reason(response: httpx.Response) -> str:
    """Read the ``reason`` field from an APNs error body, or ``""``."""
    if not response.content:
        return ""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict) and body.get("reason") is not None:
        return str(body["reason"])
    return ""


class APNSProvider:
    """
    APNS provider for sending push notifications to Apple devices.

    Mints a provider token once per dispatch call (or reuses one from
    ``token_cache``) and POSTs the same alert payload to every device token.

    Usage:
        config = APNSConfig(
            team_id="YYYYYYYYYY",
            key_id="XXXXXXXXXX",
            private_key=Path("AuthKey.p8").read_text(),
            bundle_id="com.example.app",
        )
        async with APNSProvider(config) as provider:
            delivered, invalid = await provider.send(tokens, "Title", "Body")

    Attributes:
        config: APNS credentials
        concurrency: Maximum in-flight requests per dispatch call
        timeout: Per-request timeout in seconds
        _client: httpx AsyncClient with HTTP/2 enabled
        _owns_client: Whether close() should close the client
    """

    def __init__(
        self,
        config: APNSConfig,
        client: Optional[httpx.AsyncClient] = None,
        concurrency: int = 1,
        timeout: float = APNS_REQUEST_TIMEOUT_SECONDS,
        token_cache: Optional[ProviderTokenCache] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize APNS provider.

        Args:
            config: APNS credentials
            client: Optional pre-built client; created lazily when omitted
            concurrency: Maximum in-flight requests (1 sends sequentially)
            timeout: Per-request timeout in seconds
            token_cache: Optional provider token cache shared across calls
            clock: Source of unix time for the token ``iat`` claim
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.config = config
        self.concurrency = concurrency
        self.timeout = timeout
        self._token_cache = token_cache
        self._clock = clock

        self._client = client
        self._owns_client = client is None

        self._host = APNS_SANDBOX_HOST if config.use_sandbox else APNS_PRODUCTION_HOST
        self._base_url = f"https://{self._host}"

        logger.info(
            "APNS provider initialized",
            extra={
                "host": self._host,
                "bundle_id": config.bundle_id,
                "sandbox": config.use_sandbox,
                "concurrency": concurrency,
            }
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "APNSProvider":
        """Build a provider from APNS_* settings."""
        settings = settings or default_settings
        token_cache = None
        if settings.APNS_TOKEN_LIFETIME_SECONDS:
            token_cache = ProviderTokenCache(settings.APNS_TOKEN_LIFETIME_SECONDS)
        return cls(
            APNSConfig.from_settings(settings),
            concurrency=settings.APNS_CONCURRENCY,
            timeout=settings.APNS_REQUEST_TIMEOUT,
            token_cache=token_cache,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP/2 client."""
        if self._client is None or (self._owns_client and self._client.is_closed):
            self._client = httpx.AsyncClient(
                http2=True,
                timeout=httpx.Timeout(self.timeout),
            )
            self._owns_client = True
        return self._client

    def _provider_token(self) -> str:
        """Mint, or reuse from the cache, the token for this dispatch call."""
        if self._token_cache is not None:
            return self._token_cache.get_or_mint(
                self.config.team_id,
                self.config.key_id,
                self.config.private_key,
            )
        return mint_provider_token(
            self.config.team_id,
            self.config.key_id,
            self.config.private_key,
            clock=self._clock,
        )

    def _build_headers(self, provider_token: str) -> dict:
        """Build request headers for APNS."""
        return {
            "authorization": f"bearer {provider_token}",
            "apns-topic": self.config.bundle_id,
            "apns-push-type": APNS_PUSH_TYPE,
            "content-type": "application/json",
        }

    async def _send_one(
        self,
        client: httpx.AsyncClient,
        device_token: str,
        headers: dict,
        body: str,
    ) -> DeliveryResult:
        """POST the payload to one device and classify the response."""
        url = f"{self._base_url}{APNS_DEVICE_PATH.format(device_token=device_token)}"

        try:
            response = await client.post(
                url,
                content=body,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"APNS request failed: {e}",
                extra={"device_token": mask_token(device_token)},
            )
            return DeliveryResult(
                device_token=device_token,
                status=DeliveryStatus.TRANSPORT_ERROR,
                error=TransportFailedError(f"HTTP error: {e}"),
            )

        reason = parse_reason(response)
        status = classify_response(response.status_code, reason)

        if status == DeliveryStatus.INVALID_TOKEN:
            logger.info(
                "APNS device token invalid",
                extra={
                    "device_token": mask_token(device_token),
                    "status_code": response.status_code,
                    "reason": reason,
                }
            )
        elif status == DeliveryStatus.UNRESOLVED:
            logger.debug(
                "APNS notification not delivered",
                extra={
                    "device_token": mask_token(device_token),
                    "status_code": response.status_code,
                    "reason": reason,
                    "description": APNS_ERROR_CODES.get(reason, "Unknown"),
                }
            )

        return DeliveryResult(
            device_token=device_token,
            status=status,
            status_code=response.status_code,
            reason=reason,
            apns_id=response.headers.get("apns-id"),
        )

    async def dispatch(
        self,
        tokens: Sequence[str],
        title: str,
        body: str,
        subtitle: Optional[str] = None,
        image_url: Optional[str] = None,
        url: Optional[str] = None,
        badge: Optional[int] = None,
    ) -> DispatchOutcome:
        """
        Send one alert notification to every device token.

        Nothing is sent when a credential is missing, ``tokens`` is empty, or
        the provider token cannot be minted; the outcome then carries the
        skip reason. Per-token transport errors are logged and never abort
        the batch.

        Args:
            tokens: 64-character hex device tokens
            title: Alert title
            body: Alert body text
            subtitle: Optional alert subtitle
            image_url: Accepted for interface parity with other transports;
                APNs alerts carry no image field
            url: Optional deep link added at the payload root
            badge: Optional badge number

        Returns:
            DispatchOutcome with delivered, invalid and unresolved tokens
        """
        start_time = time.time()

        if not self.config.is_complete:
            logger.warning(
                "APNS dispatch skipped: credentials incomplete",
                extra={"bundle_id": self.config.bundle_id},
            )
            return DispatchOutcome(skipped_reason=SkipReason.MISSING_CREDENTIALS)

        tokens = list(tokens)
        if not tokens:
            logger.debug("APNS dispatch skipped: no device tokens")
            return DispatchOutcome(skipped_reason=SkipReason.NO_TOKENS)

        provider_token = self._provider_token()
        if not provider_token:
            logger.error(
                "APNS dispatch aborted: provider token could not be minted",
                extra={"team_id": self.config.team_id, "key_id": self.config.key_id},
            )
            return DispatchOutcome(
                skipped_reason=SkipReason.MINT_FAILED,
                error=ProviderTokenError(),
            )

        payload = build_alert_payload(
            title=title,
            body=body,
            subtitle=subtitle,
            url=url,
            badge=badge,
        )
        request_body = json.dumps(payload.to_apns_dict(), separators=(",", ":"))
        headers = self._build_headers(provider_token)

        batch_token = set_batch_id(str(uuid.uuid4()))
        try:
            client = await self._get_client()
            results = await self._send_all(client, tokens, headers, request_body)
        finally:
            clear_batch_id(batch_token)

        auth_errors = [r for r in results if r.status_code in APNS_AUTH_ERROR_STATUS_CODES]
        if auth_errors:
            logger.error(
                "APNS authentication error",
                extra={
                    "status_code": auth_errors[0].status_code,
                    "reason": auth_errors[0].reason,
                }
            )
            # Force a new provider token on the next call
            if self._token_cache is not None:
                self._token_cache.invalidate(self.config.team_id, self.config.key_id)

        outcome = DispatchOutcome(results=results)
        for result in results:
            if result.status == DeliveryStatus.DELIVERED:
                outcome.delivered.append(result.device_token)
            elif result.status == DeliveryStatus.INVALID_TOKEN:
                outcome.invalid.append(result.device_token)
            elif result.status == DeliveryStatus.UNRESOLVED:
                outcome.unresolved.append(result.device_token)

        outcome.duration_ms = (time.time() - start_time) * 1000

        logger.info(
            "APNS dispatch complete",
            extra={
                "total": len(results),
                "delivered": len(outcome.delivered),
                "invalid_tokens": len(outcome.invalid),
                "unresolved": len(outcome.unresolved),
                "transport_errors": len(results) - len(outcome.delivered)
                - len(outcome.invalid) - len(outcome.unresolved),
                "duration_ms": round(outcome.duration_ms, 2),
            }
        )

        return outcome

    async def _send_all(
        self,
        client: httpx.AsyncClient,
        tokens: List[str],
        headers: dict,
        body: str,
    ) -> List[DeliveryResult]:
        """Send to every token with at most ``concurrency`` requests in flight."""
        if self.concurrency == 1:
            results = []
            for token in tokens:
                try:
                    results.append(await self._send_one(client, token, headers, body))
                except Exception as e:
                    results.append(self._failed_result(token, e))
            return results

        semaphore = asyncio.Semaphore(self.concurrency)

        async def send_with_semaphore(token: str) -> DeliveryResult:
            async with semaphore:
                return await self._send_one(client, token, headers, body)

        gathered = await asyncio.gather(
            *[send_with_semaphore(token) for token in tokens],
            return_exceptions=True,
        )

        # Convert exceptions to failed results
        results = []
        for token, result in zip(tokens, gathered):
            if isinstance(result, Exception):
                results.append(self._failed_result(token, result))
            else:
                results.append(result)
        return results

    def _failed_result(self, device_token: str, exc: Exception) -> DeliveryResult:
        logger.error(
            f"APNS unexpected error: {exc}",
            extra={"device_token": mask_token(device_token)},
            exc_info=exc,
        )
        return DeliveryResult(
            device_token=device_token,
            status=DeliveryStatus.TRANSPORT_ERROR,
            error=TransportFailedError(f"Unexpected error: {exc}"),
        )

    async def send(
        self,
        tokens: Sequence[str],
        title: str,
        body: str,
        subtitle: Optional[str] = None,
        image_url: Optional[str] = None,
        url: Optional[str] = None,
        badge: Optional[int] = None,
    ) -> Tuple[List[str], List[str]]:
        """
        Send a notification and return ``(delivered, invalid)`` tokens.

        Tokens that were neither delivered nor confirmed invalid are in
        neither list; use dispatch() to see them.
        """
        outcome = await self.dispatch(
            tokens,
            title,
            body,
            subtitle=subtitle,
            image_url=image_url,
            url=url,
            badge=badge,
        )
        return outcome.as_pair()

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.debug("APNS provider closed")

    async def __aenter__(self) -> "APNSProvider":
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()

"""
HTTP Response Mock Factories

Factory functions for creating response objects that match the parts of
httpx.Response the APNS provider reads.
"""
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
import json


@dataclass
class MockHeaders:
    """Mock HTTP headers object with case-insensitive dict-like access."""
    _headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self._headers = {k.lower(): v for k, v in self._headers.items()}

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._headers.get(key.lower(), default)

    def __getitem__(self, key: str) -> str:
        return self._headers[key.lower()]

    def __contains__(self, key: str) -> bool:
        return key.lower() in self._headers


@dataclass
class MockHTTPResponse:
    """
    Mock HTTP response object.

    Designed to match httpx.Response structure for use in tests.
    """
    status_code: int = 200
    headers: MockHeaders = field(default_factory=MockHeaders)
    _content: bytes = b""
    _json_data: Optional[Any] = None

    @property
    def content(self) -> bytes:
        """Return response content as bytes."""
        if self._json_data is not None:
            return json.dumps(self._json_data).encode()
        return self._content

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    def json(self) -> Any:
        """Parse response content as JSON."""
        if self._json_data is not None:
            return self._json_data
        return json.loads(self.content)


def create_http_response(
    status_code: int = 200,
    json_data: Optional[Any] = None,
    content: Optional[bytes] = None,
    headers: Optional[Dict[str, str]] = None,
) -> MockHTTPResponse:
    """
    Create a mock HTTP response.

    Args:
        status_code: HTTP status code
        json_data: JSON response data (will be serialized)
        content: Raw response content (mutually exclusive with json_data)
        headers: Response headers

    Returns:
        MockHTTPResponse matching httpx.Response structure
    """
    return MockHTTPResponse(
        status_code=status_code,
        headers=MockHeaders(_headers=headers or {}),
        _content=content or b"",
        _json_data=json_data,
    )


def create_apns_response(
    status_code: int = 200,
    reason: Optional[str] = None,
    apns_id: str = "mock-apns-id-12345",
) -> MockHTTPResponse:
    """
    Create a mock APNs response.

    APNs answers success with an empty body and errors with
    ``{"reason": "..."}``.

    Args:
        status_code: HTTP status code
        reason: APNs reason string for error responses
        apns_id: Value of the apns-id response header

    Returns:
        MockHTTPResponse shaped like an APNs reply
    """
    return create_http_response(
        status_code=status_code,
        json_data={"reason": reason} if reason is not None else None,
        headers={"apns-id": apns_id},
    )

"""
Constants for the APNS transport.
"""

# APNS Hosts
APNS_PRODUCTION_HOST = "api.push.apple.com"
APNS_SANDBOX_HOST = "api.sandbox.push.apple.com"

# APNS API path
APNS_DEVICE_PATH = "/3/device/{device_token}"

# Request defaults
APNS_PUSH_TYPE = "alert"
APNS_REQUEST_TIMEOUT_SECONDS = 15.0
DEFAULT_SOUND = "default"
SCHEDULED_EVENT_BADGE = 1

# JWT configuration
JWT_ALGORITHM = "ES256"
JWT_TYPE = "JWT"
JWT_TOKEN_LIFETIME_SECONDS = 3600  # APNs rejects provider tokens older than 1 hour
JWT_REFRESH_MARGIN_SECONDS = 60

# ES256 signatures are two P-256 integers of 32 bytes each
ES256_COMPONENT_SIZE = 32

# Device tokens are 32 bytes, sent as 64 hex characters
DEVICE_TOKEN_BYTES = 32
DEVICE_TOKEN_PATTERN = r"^[A-Fa-f0-9]{64}$"

# HTTP status codes
APNS_SUCCESS_STATUS_CODE = 200
APNS_TOKEN_INVALID_STATUS_CODES = {410}  # Unregistered
APNS_AUTH_ERROR_STATUS_CODES = {401, 403}  # Provider token rejected

# Reasons meaning the device token will never be deliverable for this topic
APNS_TOKEN_INVALID_REASONS = {
    "BadDeviceToken",
    "Unregistered",
    "DeviceTokenNotForTopic",
}

# APNS Error Codes (from the JSON "reason" field)
APNS_ERROR_CODES = {
    # Client errors
    "BadCollapseId": "The collapse identifier exceeds the maximum allowed size",
    "BadDeviceToken": "The specified device token is invalid",
    "BadExpirationDate": "The apns-expiration value is invalid",
    "BadMessageId": "The apns-id value is invalid",
    "BadPriority": "The apns-priority value is invalid",
    "BadTopic": "The apns-topic value is invalid",
    "DeviceTokenNotForTopic": "The device token doesn't match the specified topic",
    "DuplicateHeaders": "One or more headers are repeated",
    "IdleTimeout": "Idle timeout",
    "InvalidPushType": "The apns-push-type value is invalid",
    "MissingDeviceToken": "The device token is not specified in the request path",
    "MissingTopic": "The apns-topic header is missing from the request",
    "PayloadEmpty": "The message payload is empty",
    "PayloadTooLarge": "The message payload is too large",
    "TopicDisallowed": "Pushing to this topic is not allowed",

    # Token errors
    "ExpiredProviderToken": "The provider token is stale and a new token should be generated",
    "Forbidden": "The specified action is not allowed",
    "InvalidProviderToken": "The provider token is not valid or the token signature cannot be verified",
    "MissingProviderToken": "No provider certificate was used to connect to APNs",

    # Device token errors
    "Unregistered": "The device token is no longer active for the topic",

    # Server errors
    "TooManyProviderTokenUpdates": "The provider token has been updated too often",
    "TooManyRequests": "Too many requests were made consecutively to the same device token",
    "InternalServerError": "An internal server error occurred",
    "ServiceUnavailable": "The service is unavailable",
    "Shutdown": "The server is shutting down",
}

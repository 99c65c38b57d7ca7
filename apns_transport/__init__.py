"""Apple Push Notification service transport with self-minted provider tokens."""

__version__ = "1.0.0"

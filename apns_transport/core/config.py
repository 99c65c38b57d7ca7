"""Transport configuration using Pydantic Settings"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional
import os


class Settings(BaseSettings):
    """Transport settings loaded from environment variables"""

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None  # No file logging unless set

    # APNS credentials
    APNS_KEY_FILE: Optional[str] = None  # Path to .p8 auth key file
    APNS_PRIVATE_KEY: Optional[str] = None  # PEM text, takes precedence over APNS_KEY_FILE
    APNS_KEY_ID: Optional[str] = None  # 10-character key identifier
    APNS_TEAM_ID: Optional[str] = None  # 10-character team identifier
    APNS_BUNDLE_ID: Optional[str] = None  # App bundle ID (e.g., com.example.app)
    APNS_USE_SANDBOX: bool = False  # Use sandbox for development builds

    # Dispatch behavior
    APNS_REQUEST_TIMEOUT: float = 15.0  # Seconds per device request
    APNS_CONCURRENCY: int = 1  # In-flight requests per dispatch call
    APNS_TOKEN_LIFETIME_SECONDS: int = 0  # 0 mints a fresh provider token per call

    @field_validator('APNS_REQUEST_TIMEOUT', mode='after')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate request timeout is positive."""
        if v <= 0:
            raise ValueError("APNS_REQUEST_TIMEOUT must be positive")
        return v

    @field_validator('APNS_CONCURRENCY', mode='after')
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Validate concurrency allows at least one request."""
        if v < 1:
            raise ValueError("APNS_CONCURRENCY must be at least 1")
        return v

    @field_validator('APNS_TOKEN_LIFETIME_SECONDS', mode='after')
    @classmethod
    def validate_token_lifetime(cls, v: int) -> int:
        """Provider tokens older than an hour are rejected by APNs."""
        if v < 0 or v > 3600:
            raise ValueError("APNS_TOKEN_LIFETIME_SECONDS must be between 0 and 3600")
        return v

    @property
    def apns_private_key(self) -> Optional[str]:
        """Return the .p8 key text from APNS_PRIVATE_KEY or APNS_KEY_FILE."""
        if self.APNS_PRIVATE_KEY:
            return self.APNS_PRIVATE_KEY
        if self.APNS_KEY_FILE and os.path.exists(self.APNS_KEY_FILE):
            with open(self.APNS_KEY_FILE, encoding="utf-8") as f:
                return f.read()
        return None

    @property
    def apns_ready(self) -> bool:
        """Check if APNS is properly configured and ready to use."""
        return bool(
            self.APNS_KEY_ID
            and self.APNS_TEAM_ID
            and self.APNS_BUNDLE_ID
            and self.apns_private_key
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance
settings = Settings()

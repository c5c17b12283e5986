"""
Runtime settings for the authentication core.

Built once from ``ApplicationConfig`` when the app starts and handed to the
components that need it.
"""

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ConfigurationError(RuntimeError):
    """Fatal misconfiguration detected at process start"""


class AuthSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    jwt_secret: str = Field(..., min_length=1)
    jwt_algorithm: str = "HS256"
    access_ttl_minutes: int = Field(default=15, gt=0)
    refresh_ttl_hours: int = Field(default=24, gt=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    # Hex-encoded secret must fit bcrypt's 72-byte input
    refresh_secret_bytes: int = Field(default=32, ge=16, le=36)
    session_write_retries: int = Field(default=3, ge=1)
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    email_verification_ttl_hours: int = Field(default=24, gt=0)
    public_base_url: str = "http://localhost:8000"
    cookie_secure: bool = False

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(minutes=self.access_ttl_minutes)

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(hours=self.refresh_ttl_hours)

    @property
    def email_verification_ttl(self) -> timedelta:
        return timedelta(hours=self.email_verification_ttl_hours)

    @classmethod
    def from_config(cls, config) -> "AuthSettings":
        """
        Build settings from an ApplicationConfig-like class.

        Raises:
            ConfigurationError: JWT_SECRET is missing or empty
        """
        secret: Optional[str] = getattr(config, "JWT_SECRET", None)
        if not secret:
            raise ConfigurationError(
                "JWT_SECRET is required for authentication and must be set before starting the server"
            )
        return cls(
            jwt_secret=secret,
            access_ttl_minutes=int(getattr(config, "ACCESS_TTL_MIN", 15)),
            refresh_ttl_hours=int(getattr(config, "REFRESH_TTL_HOURS", 24)),
            bcrypt_rounds=int(getattr(config, "BCRYPT_ROUNDS", 12)),
            session_write_retries=int(getattr(config, "SESSION_WRITE_RETRIES", 3)),
            store_timeout_seconds=float(getattr(config, "STORE_TIMEOUT_SECONDS", 5)),
            email_verification_ttl_hours=int(
                getattr(config, "EMAIL_VERIFICATION_TTL_HOURS", 24)
            ),
            public_base_url=getattr(config, "PUBLIC_BASE_URL", "http://localhost:8000"),
            cookie_secure=bool(getattr(config, "COOKIE_SECURE", False)),
        )

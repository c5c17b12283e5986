"""
Authentication Use Case DTOs (Data Transfer Objects)

All Response classes for the auth domain.
Provides type safety and clear contracts between layers.
"""

from datetime import datetime

from pydantic import BaseModel

from authgate.domain.entities import Account


# ============================================================================
# Nested models
# ============================================================================


class AccountInfo(BaseModel):
    """Account fields exposed to callers (never the password hash)"""

    id: int
    email: str
    role: str
    status: str
    first_name: str = ""
    last_name: str = ""

    @classmethod
    def from_entity(cls, account: Account) -> "AccountInfo":
        return cls(
            id=account.id,
            email=account.email,
            role=account.role.value,
            status=account.status.value,
            first_name=account.first_name,
            last_name=account.last_name,
        )


class Identity(BaseModel):
    """Resolved caller identity attached to authenticated requests"""

    account: AccountInfo
    session_id: int


class IssuedSession(BaseModel):
    """A live session together with the raw secret that was just installed"""

    session_id: int
    account_id: int
    raw_secret: str
    expires_at: datetime


# ============================================================================
# Response DTOs
# ============================================================================


class TokenPair(BaseModel):
    """Response for refresh token use case"""

    access_token: str
    refresh_token: str


class LoginResponse(BaseModel):
    """Response for login use case"""

    access_token: str
    refresh_token: str
    account: AccountInfo


class VerifyEmailResponse(BaseModel):
    """Response for email verification use case"""

    status: str
    message: str

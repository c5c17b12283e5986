"""
Account Entity

Represents a person who can sign in. Owned by user management; the
authentication core only reads it, apart from the status flip performed by
email verification.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Column, DateTime, Field, SQLModel

from authgate.domain.base import utcnow
from .enums import AccountRole, AccountStatus


def normalize_email(email: str) -> str:
    return email.strip().lower()


class Account(SQLModel, table=True):
    """
    Account entity - a person who can authenticate.

    Business Rules:
    - Email is unique and stored trimmed and lower-cased
    - Password stored as bcrypt hash
    - New accounts start as pending until their email is verified
    """

    __tablename__ = "accounts"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)

    role: AccountRole = Field(default=AccountRole.user)
    status: AccountStatus = Field(default=AccountStatus.pending)

    email_verification_token: Optional[str] = Field(
        default=None, unique=True, index=True, max_length=64
    )
    email_verification_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

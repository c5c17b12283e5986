"""
Session Entity

One authenticated login lineage for an account. Stores the hash of the
current refresh secret, never the secret itself.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import text
from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authgate.domain.base import utcnow
from .enums import SessionState


class Session(SQLModel, table=True):
    """
    Session entity - one login lineage per account.

    Business Rules:
    - Active iff revoked_at is null and expires_at is in the future
    - At most one non-revoked row per account (partial unique index)
    - secret_hash always belongs to the most recently issued refresh token
    - Revocation is terminal for the lineage; a later login may reuse the row
    - version is bumped on every secret write (compare-and-swap)
    """

    __tablename__ = "sessions"

    id: Optional[int] = Field(default=None, primary_key=True)

    account_id: int = Field(foreign_key="accounts.id", nullable=False, index=True)

    secret_hash: str = Field(max_length=60)  # Bcrypt output
    version: int = Field(default=1, nullable=False)

    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index(
            "uq_session_live_account",
            "account_id",
            unique=True,
            sqlite_where=text("revoked_at IS NULL"),
            postgresql_where=text("revoked_at IS NULL"),
        ),
    )

    def state(self, now: datetime) -> SessionState:
        if self.revoked_at is not None:
            return SessionState.revoked
        if self.expires_at <= now:
            return SessionState.expired
        return SessionState.active

    def is_active(self, now: datetime) -> bool:
        return self.state(now) == SessionState.active

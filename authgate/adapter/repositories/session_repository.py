from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from authgate.app.repositories.session_repository import (
    ISessionRepository,
    SessionConflictError,
)
from authgate.domain.base import utcnow
from authgate.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, account_id: int, secret_hash: str, expires_at: datetime
    ) -> Session:
        """Create a new session; the partial unique index rejects a second live row"""
        session_obj = Session(
            account_id=account_id, secret_hash=secret_hash, expires_at=expires_at
        )
        self.session.add(session_obj)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise SessionConflictError(
                f"account {account_id} already has a live session"
            ) from exc
        await self.session.refresh(session_obj)
        return session_obj

    async def find_active_by_account(
        self, account_id: int, now: datetime
    ) -> Optional[Session]:
        """Highest-id active session for the account"""
        stmt = (
            select(Session)
            .where(
                Session.account_id == account_id,
                col(Session.revoked_at).is_(None),
                col(Session.expires_at) > now,
            )
            .order_by(col(Session.id).desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def get_by_id(self, session_id: int) -> Optional[Session]:
        """Get session by ID"""
        stmt = (
            select(Session)
            .where(Session.id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def update_secret(
        self,
        session_id: int,
        secret_hash: str,
        expires_at: datetime,
        expected_version: int,
    ) -> Session:
        """Compare-and-swap on version; zero matched rows means we lost a race"""
        stmt = (
            update(Session)
            .where(
                col(Session.id) == session_id,
                col(Session.version) == expected_version,
                col(Session.revoked_at).is_(None),
            )
            .values(
                secret_hash=secret_hash,
                expires_at=expires_at,
                version=expected_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            raise SessionConflictError(f"session {session_id} changed concurrently")
        await self.session.flush()

        updated = await self.get_by_id(session_id)
        if updated is None:
            raise SessionConflictError(f"session {session_id} disappeared")
        return updated

    async def revoke(self, session_id: int) -> bool:
        """Revoke a specific session by ID"""
        stmt = (
            update(Session)
            .where(col(Session.id) == session_id, col(Session.revoked_at).is_(None))
            .values(revoked_at=utcnow(), version=Session.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all_except(self, account_id: int, session_id: int) -> int:
        """Revoke all live sessions for an account except the specified session"""
        stmt = (
            update(Session)
            .where(
                col(Session.account_id) == account_id,
                col(Session.id) != session_id,
                col(Session.revoked_at).is_(None),
            )
            .values(revoked_at=utcnow(), version=Session.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_expired_by_account(self, account_id: int, now: datetime) -> int:
        """Close out expired rows so they no longer hold the account's live slot"""
        stmt = (
            update(Session)
            .where(
                col(Session.account_id) == account_id,
                col(Session.revoked_at).is_(None),
                col(Session.expires_at) <= now,
            )
            .values(revoked_at=now, version=Session.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

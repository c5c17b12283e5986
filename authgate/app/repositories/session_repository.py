from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from authgate.domain.entities import Session


class SessionConflictError(Exception):
    """A concurrent writer won the race for the session row or the account's session slot"""


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def create(
        self, account_id: int, secret_hash: str, expires_at: datetime
    ) -> Session:
        """
        Create a new live session for an account.

        Raises:
            SessionConflictError: another live session already holds the account's slot
        """
        pass

    @abstractmethod
    async def find_active_by_account(
        self, account_id: int, now: datetime
    ) -> Optional[Session]:
        """
        Find the account's active session.

        If more than one row qualifies, the one with the highest id wins.
        """
        pass

    @abstractmethod
    async def get_by_id(self, session_id: int) -> Optional[Session]:
        """Get session by ID regardless of state"""
        pass

    @abstractmethod
    async def update_secret(
        self,
        session_id: int,
        secret_hash: str,
        expires_at: datetime,
        expected_version: int,
    ) -> Session:
        """
        Replace secret hash and expiry in a single conditional write.

        The write only applies if the row is still at ``expected_version``
        and not revoked.

        Raises:
            SessionConflictError: a concurrent writer changed or revoked the row
        """
        pass

    @abstractmethod
    async def revoke(self, session_id: int) -> bool:
        """Revoke a session. Idempotent; returns True if this call revoked it."""
        pass

    @abstractmethod
    async def revoke_all_except(self, account_id: int, session_id: int) -> int:
        """Revoke every live session of an account except one. Returns count."""
        pass

    @abstractmethod
    async def revoke_expired_by_account(self, account_id: int, now: datetime) -> int:
        """Revoke the account's expired but never-revoked rows. Returns count."""
        pass

from abc import ABC, abstractmethod
from typing import Optional

from authgate.domain.entities import Account, AccountStatus


class IAccountRepository(ABC):
    """Account repository interface - application layer"""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by (normalized) email address"""
        pass

    @abstractmethod
    async def get_by_id(self, account_id: int) -> Optional[Account]:
        """Get account by ID"""
        pass

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """Create a new account. Raises EmailAlreadyExistsError on a duplicate email."""
        pass

    @abstractmethod
    async def update_status(self, account_id: int, status: AccountStatus) -> Account:
        """Set the account status and return the updated account"""
        pass

    @abstractmethod
    async def get_by_verification_token(self, token: str) -> Optional[Account]:
        """Get account by email verification token"""
        pass

    @abstractmethod
    async def consume_verification_token(self, account_id: int) -> None:
        """Mark the verification token used; the token itself stays so repeat links resolve"""
        pass


class EmailAlreadyExistsError(Exception):
    """Raised when a concurrent writer already holds the email"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from authgate.app.repositories.account_repository import (
    EmailAlreadyExistsError,
    IAccountRepository,
)
from authgate.domain.entities import Account, AccountStatus, normalize_email


class AccountRepository(IAccountRepository):
    """Account repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email address"""
        stmt = select(Account).where(Account.email == normalize_email(email))
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_id(self, account_id: int) -> Optional[Account]:
        """Get account by ID"""
        stmt = select(Account).where(Account.id == account_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, account: Account) -> Account:
        """Create a new account"""
        account.email = normalize_email(account.email)
        self.session.add(account)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise EmailAlreadyExistsError(account.email) from exc
        await self.session.refresh(account)
        return account

    async def update_status(self, account_id: int, status: AccountStatus) -> Account:
        """Set account status"""
        account = await self.get_by_id(account_id)
        if account is None:
            raise LookupError(f"account {account_id} not found")
        account.status = status
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def get_by_verification_token(self, token: str) -> Optional[Account]:
        """Get account by email verification token"""
        stmt = select(Account).where(Account.email_verification_token == token)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def consume_verification_token(self, account_id: int) -> None:
        """Drop the token expiry so it can never activate the account again"""
        account = await self.get_by_id(account_id)
        if account is None:
            return
        account.email_verification_expires_at = None
        self.session.add(account)
        await self.session.flush()

"""
Register Account Use Case

Creates a pending account and sends its email verification link.
"""

import logging
import secrets

from authgate.app import errors
from authgate.app.repositories.account_repository import EmailAlreadyExistsError
from authgate.app.services.email_sender import IEmailSender
from authgate.app.services.password_hasher import IPasswordHasher
from authgate.app.services.unit_of_work import UnitOfWork
from authgate.app.use_cases.auth.dtos import AccountInfo
from authgate.app.use_cases.auth.session_lifecycle import STORE_FAILURES
from authgate.domain.base import utcnow
from authgate.domain.entities import Account, AccountRole, AccountStatus, normalize_email
from authgate.libs.result import Result, Return
from authgate.settings import AuthSettings
from .dtos import RegisterAccountCommand

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt input limit


class RegisterAccountUseCase:
    """
    Use case for creating an account.

    Business Rules:
    - Email trimmed, lower-cased and unique
    - Password at least 6 characters, stored as bcrypt hash
    - Role defaults to user; status starts as pending
    - A single-use verification token is issued and mailed
    """

    def __init__(
        self,
        uow: UnitOfWork,
        password_hasher: IPasswordHasher,
        email_sender: IEmailSender,
        settings: AuthSettings,
    ):
        self.uow = uow
        self.password_hasher = password_hasher
        self.email_sender = email_sender
        self.settings = settings

    async def execute(self, command: RegisterAccountCommand) -> Result[AccountInfo]:
        email = normalize_email(command.email)
        if len(email) <= 3 or "@" not in email:
            return Return.err(errors.validation_error("invalid email"))
        if len(command.password) < MIN_PASSWORD_LENGTH:
            return Return.err(
                errors.validation_error(
                    f"password must be at least {MIN_PASSWORD_LENGTH} characters"
                )
            )
        if len(command.password.encode()) > MAX_PASSWORD_BYTES:
            return Return.err(
                errors.validation_error(
                    f"password must be at most {MAX_PASSWORD_BYTES} bytes"
                )
            )

        verification_token = secrets.token_urlsafe(32)

        async with self.uow:
            try:
                existing = await self.uow.accounts.get_by_email(email)
                if existing is not None:
                    return Return.err(errors.email_already_exists())

                account = await self.uow.accounts.create(
                    Account(
                        email=email,
                        password_hash=self.password_hasher.hash(command.password),
                        role=command.role or AccountRole.user,
                        status=AccountStatus.pending,
                        first_name=command.first_name,
                        last_name=command.last_name,
                        email_verification_token=verification_token,
                        email_verification_expires_at=utcnow()
                        + self.settings.email_verification_ttl,
                    )
                )
                account_info = AccountInfo.from_entity(account)
                await self.uow.commit()
            except EmailAlreadyExistsError:
                return Return.err(errors.email_already_exists())
            except STORE_FAILURES as exc:
                logger.error(f"Account store failure during registration: {exc!r}")
                return Return.err(errors.infrastructure_error())

        link = f"{self.settings.public_base_url}/verify-email?token={verification_token}"
        if not await self.email_sender.send_verification_email(account_info.email, link):
            logger.warning(f"Verification email to account {account_info.id} not delivered")

        return Return.ok(account_info)

"""
Login Use Case

Checks email/password and establishes the account's session.
"""

import logging

from authgate.app import errors
from authgate.app.services.credential_issuer import CredentialIssuer
from authgate.app.services.password_hasher import IPasswordHasher
from authgate.app.services.unit_of_work import UnitOfWork
from authgate.domain.entities import AccountStatus
from authgate.libs.result import Result, Return
from .dtos import AccountInfo, LoginResponse
from .session_lifecycle import STORE_FAILURES, SessionLifecycle

logger = logging.getLogger(__name__)


class LoginUseCase:
    """
    Use case for login and credential issuance.

    Business Rules:
    - Constant-time password comparison, also when the email is unknown
    - Error never reveals whether email or password was wrong
    - Disabled accounts cannot log in
    - One active session per account (reused if present)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        lifecycle: SessionLifecycle,
        password_hasher: IPasswordHasher,
        issuer: CredentialIssuer,
    ):
        self.uow = uow
        self.lifecycle = lifecycle
        self.password_hasher = password_hasher
        self.issuer = issuer

    async def execute(self, email: object, password: object) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            email: Account email (any case)
            password: Plain text password

        Returns:
            Result with LoginResponse containing both credentials, or Error
        """
        if not isinstance(email, str) or not email.strip():
            return Return.err(errors.validation_error("email required"))
        if not isinstance(password, str) or not password:
            return Return.err(errors.validation_error("password required"))

        async with self.uow:
            try:
                account = await self.uow.accounts.get_by_email(email)
            except STORE_FAILURES as exc:
                logger.error(f"Account store failure during login: {exc!r}")
                return Return.err(errors.infrastructure_error())

            if account is None:
                self.password_hasher.burn(password)
                return Return.err(errors.invalid_credentials())

            if not self.password_hasher.compare(password, account.password_hash):
                return Return.err(errors.invalid_credentials())

            if account.status == AccountStatus.disabled:
                return Return.err(errors.account_disabled())

            account_info = AccountInfo.from_entity(account)

        issued = await self.lifecycle.login(account_info.id)
        if issued.is_err():
            return Return.err(issued.error)

        session = issued.value
        return Return.ok(
            LoginResponse(
                access_token=self.issuer.issue_access_credential(
                    account_info.id, session.session_id
                ),
                refresh_token=self.issuer.issue_refresh_token(
                    session.session_id, session.raw_secret
                ),
                account=account_info,
            )
        )

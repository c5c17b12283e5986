"""
Verify Email Use Case

Activates a pending account via its email verification token.
"""

import logging

from fastapi import status

from authgate.app import errors
from authgate.app.errors import ErrorCode
from authgate.app.services.unit_of_work import UnitOfWork
from authgate.domain.base import utcnow
from authgate.domain.entities import AccountStatus
from authgate.libs.result import Error, Result, Return
from .dtos import VerifyEmailResponse
from .session_lifecycle import STORE_FAILURES

logger = logging.getLogger(__name__)


class VerifyEmailUseCase:
    """
    Use case for email verification.

    Business Rules:
    - Token must match the account's email_verification_token
    - Token must not be expired
    - Sets status = active through the account store's status update
    - Consumes the token expiry; the token stays so a repeated link is idempotent
    - Accounts that are already active return success
    - Disabled accounts cannot be reactivated by a verification link
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, token: object) -> Result[VerifyEmailResponse]:
        """
        Execute email verification use case.

        Args:
            token: Verification token from email link

        Returns:
            Result with verification status, or Error

        Errors:
            - INVALID_TOKEN: Token not found
            - TOKEN_EXPIRED: Token has expired
        """
        if not isinstance(token, str) or not token:
            return Return.err(errors.validation_error("token required"))

        async with self.uow:
            try:
                account = await self.uow.accounts.get_by_verification_token(token)

                if account is None:
                    return Return.err(
                        Error(
                            ErrorCode.INVALID_TOKEN.value,
                            "Invalid or non-existent verification token",
                            status.HTTP_400_BAD_REQUEST,
                        )
                    )

                if account.status == AccountStatus.active:
                    return Return.ok(
                        VerifyEmailResponse(
                            status="verified", message="Email is already verified"
                        )
                    )

                if account.status != AccountStatus.pending:
                    return Return.err(
                        Error(
                            ErrorCode.INVALID_TOKEN.value,
                            "Invalid or non-existent verification token",
                            status.HTTP_400_BAD_REQUEST,
                        )
                    )

                expires_at = account.email_verification_expires_at
                if expires_at is None or utcnow() > expires_at:
                    return Return.err(
                        Error(
                            ErrorCode.TOKEN_EXPIRED.value,
                            "Verification token has expired",
                            status.HTTP_410_GONE,
                        )
                    )

                account_id = account.id
                await self.uow.accounts.update_status(account_id, AccountStatus.active)
                await self.uow.accounts.consume_verification_token(account_id)
                await self.uow.commit()
            except STORE_FAILURES as exc:
                logger.error(f"Account store failure during email verification: {exc!r}")
                return Return.err(errors.infrastructure_error())

        logger.info(f"Email verified for account {account_id}")
        return Return.ok(
            VerifyEmailResponse(status="verified", message="Email successfully verified")
        )

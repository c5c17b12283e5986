from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from authgate.api.error import to_http_error
from authgate.app.services.email_sender import IEmailSender
from authgate.app.services.password_hasher import IPasswordHasher
from authgate.app.services.unit_of_work import UnitOfWork
from authgate.app.use_cases.accounts import RegisterAccountCommand, RegisterAccountUseCase
from authgate.app.use_cases.auth import AccountInfo
from authgate.depends import (
    get_email_sender,
    get_password_hasher,
    get_settings,
    get_unit_of_work,
    require_role,
)
from authgate.domain.entities import AccountRole
from authgate.settings import AuthSettings

router = APIRouter(prefix="/accounts", tags=["Accounts"])


class RegisterAccountRequest(BaseModel):
    """
    Account creation HTTP request payload
    """

    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=6, max_length=72, description="Password (6-72 chars)")
    role: Optional[AccountRole] = Field(default=None, description="admin or user")
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=AccountInfo,
    dependencies=[Depends(require_role(AccountRole.admin))],
)
async def register_account(
    request: RegisterAccountRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    password_hasher: IPasswordHasher = Depends(get_password_hasher),
    email_sender: IEmailSender = Depends(get_email_sender),
    settings: AuthSettings = Depends(get_settings),
):
    """
    Create Account (admin only)

    Creates a pending account and sends its verification link.

    Raises:
        - 400 Bad Request: Invalid input
        - 403 Forbidden: Caller is not an admin
        - 409 Conflict: Email already in use
    """
    command = RegisterAccountCommand(
        email=request.email,
        password=request.password,
        role=request.role,
        first_name=request.first_name,
        last_name=request.last_name,
    )

    use_case = RegisterAccountUseCase(uow, password_hasher, email_sender, settings)
    result = await use_case.execute(command)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value

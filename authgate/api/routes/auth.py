from typing import Optional

from fastapi import APIRouter, Body, Cookie, Depends, Header, Response, status
from pydantic import BaseModel, EmailStr, Field

from authgate.api.error import to_http_error
from authgate.api.utils.access_gate import extract_bearer
from authgate.app.services.credential_issuer import CredentialIssuer
from authgate.app.services.password_hasher import IPasswordHasher
from authgate.app.services.unit_of_work import UnitOfWork
from authgate.app.use_cases.auth import (
    Identity,
    LoginResponse,
    LoginUseCase,
    LogoutUseCase,
    RefreshTokenUseCase,
    SessionLifecycle,
    TokenPair,
    VerifyEmailResponse,
    VerifyEmailUseCase,
)
from authgate.depends import (
    get_credential_issuer,
    get_current_identity,
    get_password_hasher,
    get_session_lifecycle,
    get_settings,
    get_unit_of_work,
)
from authgate.settings import AuthSettings

router = APIRouter(prefix="/auth", tags=["Authentication"])

REFRESH_COOKIE = "refresh_token"


def set_refresh_cookie(response: Response, token: str, settings: AuthSettings) -> None:
    response.set_cookie(
        REFRESH_COOKIE,
        token,
        max_age=int(settings.refresh_ttl.total_seconds()),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Validates incoming login request.
    """

    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=1, description="Account password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
    password_hasher: IPasswordHasher = Depends(get_password_hasher),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
    settings: AuthSettings = Depends(get_settings),
):
    """
    Login

    Returns an access token and the account; the refresh token is returned
    in the body and also set as an HttpOnly cookie.

    Raises:
        - 401 Unauthorized: Invalid credentials
        - 403 Forbidden: Account disabled
        - 409 Conflict: Concurrent login lost every retry
        - 503 Service Unavailable: Session store unavailable
    """
    use_case = LoginUseCase(uow, lifecycle, password_hasher, issuer)
    result = await use_case.execute(request.email, request.password)

    if result.is_err():
        raise to_http_error(result.error)

    set_refresh_cookie(response, result.value.refresh_token, settings)
    return result.value


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload

    The token may come in the body or in the refresh_token cookie.
    """

    refresh_token: Optional[str] = Field(default=None, description="Refresh token")


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=TokenPair)
async def refresh(
    response: Response,
    request: Optional[RefreshRequest] = Body(default=None),
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
    settings: AuthSettings = Depends(get_settings),
):
    """
    Refresh Tokens

    Exchanges a refresh token for a new access/refresh pair (rotation).

    Raises:
        - 401 Unauthorized: Invalid, expired, revoked or reused refresh token
        - 409 Conflict: Concurrent rotation lost every retry
        - 503 Service Unavailable: Session store unavailable
    """
    token = (request.refresh_token if request else None) or refresh_cookie

    use_case = RefreshTokenUseCase(lifecycle)
    result = await use_case.execute(token)

    if result.is_err():
        raise to_http_error(result.error)

    set_refresh_cookie(response, result.value.refresh_token, settings)
    return result.value


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    request: Optional[RefreshRequest] = Body(default=None),
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    authorization: Optional[str] = Header(default=None),
    lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
    settings: AuthSettings = Depends(get_settings),
):
    """
    Logout

    Revokes the session behind the refresh token from the body, the cookie
    or the Authorization header. Always 204 for unknown tokens.

    Raises:
        - 503 Service Unavailable: Session store unavailable
    """
    token = (
        (request.refresh_token if request else None)
        or refresh_cookie
        or extract_bearer(authorization)
    )

    use_case = LogoutUseCase(lifecycle)
    result = await use_case.execute(token)

    if result.is_err():
        raise to_http_error(result.error)

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(
        REFRESH_COOKIE, httponly=True, secure=settings.cookie_secure, samesite="lax"
    )
    return response


class VerifyEmailRequest(BaseModel):
    """
    Verify email HTTP request payload
    """

    token: str = Field(..., min_length=1, description="Email verification token")


@router.post("/verify-email", status_code=status.HTTP_200_OK, response_model=VerifyEmailResponse)
async def verify_email(request: VerifyEmailRequest, uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    Email Verification

    Activates a pending account.

    Raises:
        - 400 Bad Request: Invalid token
        - 410 Gone: Expired token
    """
    use_case = VerifyEmailUseCase(uow)
    result = await use_case.execute(request.token)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.get("/me", status_code=status.HTTP_200_OK, response_model=Identity)
async def me(identity: Identity = Depends(get_current_identity)):
    """Identity resolved from the bearer access token"""
    return identity

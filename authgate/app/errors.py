"""
Error taxonomy for the authentication core.

Every failure leaves a use case as ``Error(code, message, status)`` where
``status`` is the HTTP-style hint the API layer renders with.
"""

from enum import Enum

from fastapi import status

from authgate.libs.result import Error


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"
    EXPIRED_OR_INVALID_SIGNATURE = "EXPIRED_OR_INVALID_SIGNATURE"
    SESSION_INVALID = "SESSION_INVALID"
    SECRET_MISMATCH = "SECRET_MISMATCH"
    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    ACCOUNT_MISSING = "ACCOUNT_MISSING"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    FORBIDDEN = "FORBIDDEN"
    EMAIL_ALREADY_EXISTS = "EMAIL_ALREADY_EXISTS"
    CONFLICT = "CONFLICT"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INFRASTRUCTURE_ERROR = "INFRASTRUCTURE_ERROR"


SESSION_INVALID_MESSAGE = "Invalid or expired session"

# Codes that must look identical to SESSION_INVALID from the outside
MASKED_AS_SESSION_INVALID = frozenset(
    {ErrorCode.SECRET_MISMATCH.value, ErrorCode.MALFORMED_TOKEN.value}
)


def validation_error(message: str) -> Error:
    return Error(ErrorCode.VALIDATION_ERROR.value, message, status.HTTP_400_BAD_REQUEST)


def invalid_credentials() -> Error:
    return Error(
        ErrorCode.INVALID_CREDENTIALS.value,
        "Invalid email or password",
        status.HTTP_401_UNAUTHORIZED,
    )


def account_disabled() -> Error:
    return Error(
        ErrorCode.ACCOUNT_DISABLED.value,
        "Account is disabled",
        status.HTTP_403_FORBIDDEN,
    )


def expired_or_invalid_signature() -> Error:
    return Error(
        ErrorCode.EXPIRED_OR_INVALID_SIGNATURE.value,
        "Invalid or expired access token",
        status.HTTP_401_UNAUTHORIZED,
    )


def session_invalid(reason: str = SESSION_INVALID_MESSAGE) -> Error:
    return Error(ErrorCode.SESSION_INVALID.value, reason, status.HTTP_401_UNAUTHORIZED)


def secret_mismatch() -> Error:
    return Error(
        ErrorCode.SECRET_MISMATCH.value,
        "Refresh secret does not match session",
        status.HTTP_401_UNAUTHORIZED,
    )


def malformed_token() -> Error:
    return Error(
        ErrorCode.MALFORMED_TOKEN.value,
        "Refresh token could not be decoded",
        status.HTTP_401_UNAUTHORIZED,
    )


def account_missing() -> Error:
    return Error(
        ErrorCode.ACCOUNT_MISSING.value,
        "Account not found",
        status.HTTP_401_UNAUTHORIZED,
    )


def authentication_required() -> Error:
    return Error(
        ErrorCode.AUTHENTICATION_REQUIRED.value,
        "Authentication required",
        status.HTTP_401_UNAUTHORIZED,
    )


def forbidden(message: str = "Insufficient role") -> Error:
    return Error(ErrorCode.FORBIDDEN.value, message, status.HTTP_403_FORBIDDEN)


def email_already_exists() -> Error:
    return Error(
        ErrorCode.EMAIL_ALREADY_EXISTS.value,
        "Email already in use",
        status.HTTP_409_CONFLICT,
    )


def conflict() -> Error:
    return Error(
        ErrorCode.CONFLICT.value,
        "Session was modified concurrently, please retry",
        status.HTTP_409_CONFLICT,
    )


def infrastructure_error() -> Error:
    return Error(
        ErrorCode.INFRASTRUCTURE_ERROR.value,
        "Service temporarily unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )

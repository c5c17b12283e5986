"""
Authentication Use Cases

All authentication-related business logic.
"""

from .session_lifecycle import SessionLifecycle
from .login_use_case import LoginUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .logout_use_case import LogoutUseCase
from .verify_email_use_case import VerifyEmailUseCase
from .dtos import (
    AccountInfo,
    Identity,
    IssuedSession,
    LoginResponse,
    TokenPair,
    VerifyEmailResponse,
)

__all__ = [
    # State machine
    "SessionLifecycle",
    # Use Cases
    "LoginUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "VerifyEmailUseCase",
    # DTOs - Responses
    "LoginResponse",
    "TokenPair",
    "VerifyEmailResponse",
    # DTOs - Nested Models
    "AccountInfo",
    "Identity",
    "IssuedSession",
]

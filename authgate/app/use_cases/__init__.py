"""
Use Cases

Organized into domain folders:
- auth/: Login, token refresh, logout and email verification
- accounts/: Account creation

Import from subdirectories for better organization.
"""

from .auth import (
    LoginUseCase,
    LogoutUseCase,
    RefreshTokenUseCase,
    SessionLifecycle,
    VerifyEmailUseCase,
)
from .accounts import (
    RegisterAccountCommand,
    RegisterAccountUseCase,
)

__all__ = [
    # Auth
    "SessionLifecycle",
    "LoginUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "VerifyEmailUseCase",
    # Accounts
    "RegisterAccountUseCase",
    "RegisterAccountCommand",
]

"""
Authgate Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AccountRole,
    AccountStatus,
    SessionState,
)

# Export all entities
from .account import Account, normalize_email
from .session import Session

__all__ = [
    # Enums
    "AccountRole",
    "AccountStatus",
    "SessionState",
    # Entities
    "Account",
    "Session",
    # Helpers
    "normalize_email",
]

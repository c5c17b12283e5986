"""
Authgate Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class AccountRole(str, Enum):
    """Account role"""

    admin = "admin"
    user = "user"


class AccountStatus(str, Enum):
    """Account status"""

    pending = "pending"
    active = "active"
    disabled = "disabled"


class SessionState(str, Enum):
    """Derived lifecycle state of a session row (never persisted)"""

    active = "active"
    expired = "expired"
    revoked = "revoked"

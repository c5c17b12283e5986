"""
Account Use Case DTOs
"""

from typing import Optional

from pydantic import BaseModel

from authgate.domain.entities import AccountRole


class RegisterAccountCommand(BaseModel):
    """Validated intent to create an account"""

    email: str
    password: str
    role: Optional[AccountRole] = None
    first_name: str = ""
    last_name: str = ""

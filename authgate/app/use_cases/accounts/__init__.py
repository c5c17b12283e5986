"""
Account Use Cases
"""

from .register_account_use_case import RegisterAccountUseCase
from .dtos import RegisterAccountCommand

__all__ = [
    "RegisterAccountUseCase",
    "RegisterAccountCommand",
]

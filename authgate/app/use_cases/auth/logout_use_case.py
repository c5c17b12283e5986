"""
Logout Use Case

Revokes the session behind a refresh token.
"""

from authgate.libs.result import Result
from .session_lifecycle import SessionLifecycle


class LogoutUseCase:
    """
    Use case for logout.

    Business Rules:
    - Idempotent: unknown, malformed or already revoked tokens succeed
    - Response never reveals whether the token was valid
    - Revocation is terminal for the session lineage
    """

    def __init__(self, lifecycle: SessionLifecycle):
        self.lifecycle = lifecycle

    async def execute(self, refresh_token: object) -> Result[None]:
        return await self.lifecycle.revoke(refresh_token)

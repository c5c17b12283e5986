"""
Refresh Token Use Case

Exchanges a refresh token for a new access/refresh pair.
"""

from authgate.libs.result import Result
from .dtos import TokenPair
from .session_lifecycle import SessionLifecycle


class RefreshTokenUseCase:
    """
    Use case for refreshing access tokens.

    Business Rules:
    - Refresh token rotation: old token invalidated, new token issued
    - Session must be active (not revoked, not expired)
    - Expiry slides to now + refresh TTL
    """

    def __init__(self, lifecycle: SessionLifecycle):
        self.lifecycle = lifecycle

    async def execute(self, refresh_token: object) -> Result[TokenPair]:
        return await self.lifecycle.rotate(refresh_token)

"""
Access Gate

App-wide dependency that authenticates every request outside the public
allow-list and attaches the resolved identity to ``request.state``.
"""

from typing import FrozenSet, Optional

from fastapi import Depends, Request

from authgate.api.error import ClientError, to_http_error
from authgate.app import errors
from authgate.app.use_cases.auth import Identity, SessionLifecycle
from authgate.depends import get_session_lifecycle

PUBLIC_PATHS: FrozenSet[str] = frozenset(
    {
        "/health",
        "/auth/login",
        "/auth/refresh",
        "/auth/logout",
        "/auth/verify-email",
        "/docs",
        "/docs/oauth2-redirect",
        "/redoc",
        "/openapi.json",
    }
)


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Token from an Authorization header; a bare token without scheme is accepted"""
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer":
        token = credentials.strip()
    else:
        token = authorization.strip()
    return token or None


class AccessGate:
    """
    Pure delegation layer: owns no state.

    - Public paths pass through with no identity
    - Otherwise a non-empty bearer credential is required
    - Verification failures propagate as authentication errors
    """

    def __init__(self, public_paths: FrozenSet[str] = PUBLIC_PATHS):
        self.public_paths = public_paths

    def is_public(self, path: str) -> bool:
        return path.rstrip("/") in self.public_paths or path in self.public_paths

    async def __call__(
        self,
        request: Request,
        lifecycle: SessionLifecycle = Depends(get_session_lifecycle),
    ) -> Optional[Identity]:
        if self.is_public(request.url.path):
            return None

        token = extract_bearer(request.headers.get("authorization"))
        if token is None:
            error = errors.authentication_required()
            raise ClientError(error, status_code=error.status)

        result = await lifecycle.verify(token)
        if result.is_err():
            raise to_http_error(result.error)

        request.state.identity = result.value
        return result.value


access_gate = AccessGate()

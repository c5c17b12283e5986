from datetime import UTC, datetime
from typing import NamedTuple, Optional

from jose import JWTError, jwt

from authgate.settings import AuthSettings
from .secret_codec import SecretCodec


class AccessClaims(NamedTuple):
    account_id: int
    session_id: int


class CredentialIssuer:
    """
    Mints access and refresh credentials.

    Access credentials are HS256 JWTs binding account id and session id with
    a short absolute expiry. They carry no revocation state; callers must
    still check the session they point at.
    """

    def __init__(self, settings: AuthSettings, codec: SecretCodec):
        self.settings = settings
        self.codec = codec

    def issue_access_credential(self, account_id: int, session_id: int) -> str:
        """
        Generate JWT access token

        Args:
            account_id: Account ID
            session_id: Session ID the token is bound to

        Returns:
            JWT token string (expires after the configured access TTL)
        """
        now = datetime.now(UTC)
        payload = {
            "account_id": account_id,
            "session_id": session_id,
            "exp": now + self.settings.access_ttl,
            "iat": now,
        }
        return jwt.encode(
            payload, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm
        )

    def decode_access_credential(self, token: str) -> Optional[AccessClaims]:
        """
        Verify signature and expiry, then extract the claims

        Returns:
            AccessClaims or None if the token is invalid, expired or malformed
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
                options={"require_exp": True},
            )
        except JWTError:
            return None

        account_id = payload.get("account_id")
        session_id = payload.get("session_id")
        if not isinstance(account_id, int) or not isinstance(session_id, int):
            return None
        return AccessClaims(account_id=account_id, session_id=session_id)

    def issue_refresh_token(self, session_id: int, raw_secret: str) -> str:
        return self.codec.encode_refresh_token(session_id, raw_secret)

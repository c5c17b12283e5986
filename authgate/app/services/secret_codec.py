"""
Refresh secret generation, hashing and the refresh-token micro-format.

A refresh token is ``"<session_id>.<secret>"`` where the session id is a
decimal integer and the secret is lower-case hex, so ``"."`` never occurs in
either part.
"""

import re
import secrets
from typing import NamedTuple, Optional

import bcrypt

DELIMITER = "."

_SESSION_ID_RE = re.compile(r"[0-9]+")
_SECRET_RE = re.compile(r"[0-9a-f]+")


class RefreshTokenParts(NamedTuple):
    session_id: int
    secret: str


class SecretCodec:
    """
    Generates, hashes and verifies refresh secrets.

    Business Rules:
    - Secrets come from the OS CSPRNG; failure is fatal, never retried
    - Only the bcrypt hash of a secret is stored
    - Verification never raises on mismatch or on a corrupt hash
    """

    def __init__(self, bcrypt_rounds: int = 12):
        self.bcrypt_rounds = bcrypt_rounds

    def generate_secret(self, byte_length: int = 32) -> str:
        return secrets.token_hex(byte_length)

    def hash_secret(self, raw_secret: str) -> str:
        return bcrypt.hashpw(
            raw_secret.encode(), bcrypt.gensalt(self.bcrypt_rounds)
        ).decode()

    def verify_secret(self, raw_secret: str, secret_hash: str) -> bool:
        try:
            return bcrypt.checkpw(raw_secret.encode(), secret_hash.encode())
        except (ValueError, TypeError, AttributeError):
            # Corrupt hash or oversized input is a mismatch, not a crash
            return False

    @staticmethod
    def encode_refresh_token(session_id: int, raw_secret: str) -> str:
        return f"{session_id}{DELIMITER}{raw_secret}"

    @staticmethod
    def decode_refresh_token(token: object) -> Optional[RefreshTokenParts]:
        """Split a refresh token; None for anything that is not exactly id.secret"""
        if not isinstance(token, str) or token.count(DELIMITER) != 1:
            return None

        session_part, secret = token.split(DELIMITER)
        if not _SESSION_ID_RE.fullmatch(session_part):
            return None
        if not _SECRET_RE.fullmatch(secret):
            return None

        return RefreshTokenParts(session_id=int(session_part), secret=secret)

from typing import Optional

import bcrypt

from authgate.app.services.password_hasher import IPasswordHasher


class BcryptPasswordHasher(IPasswordHasher):
    """bcrypt implementation of the password hasher"""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._dummy_hash: Optional[str] = None

    def hash(self, plain: str) -> str:
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(self.rounds)).decode(
            "utf-8"
        )

    def compare(self, plain: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), password_hash.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False

    def burn(self, plain: str) -> None:
        # Same cost factor as real hashes so the unknown-email path is not faster
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("dummy_password")
        self.compare(plain, self._dummy_hash)

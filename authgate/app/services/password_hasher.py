from abc import ABC, abstractmethod


class IPasswordHasher(ABC):
    """Slow, salted password hashing - application layer"""

    @abstractmethod
    def hash(self, plain: str) -> str:
        pass

    @abstractmethod
    def compare(self, plain: str, password_hash: str) -> bool:
        """Constant-time check; False on mismatch, never raises"""
        pass

    @abstractmethod
    def burn(self, plain: str) -> None:
        """Spend the time of one comparison when there is nothing to compare against"""
        pass

from abc import ABC, abstractmethod


class IEmailSender(ABC):
    """Outbound email - application layer"""

    @abstractmethod
    async def send_verification_email(self, to_email: str, link: str) -> bool:
        """Send the verification link. Returns False if delivery failed."""
        pass

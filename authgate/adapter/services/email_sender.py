import logging

from authgate.app.services.email_sender import IEmailSender

logger = logging.getLogger(__name__)


class LoggingEmailSender(IEmailSender):
    """Writes verification links to the log instead of delivering mail"""

    async def send_verification_email(self, to_email: str, link: str) -> bool:
        logger.info(f"Verification email for {to_email}: {link}")
        return True

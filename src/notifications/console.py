"""Console sender for development: the message is logged instead of sent."""

from src.utils.logger import get_logger

from .base import NotificationSender

logger = get_logger(__name__)


class ConsoleSender(NotificationSender):
    """Logs outgoing messages so OTPs can be read from the server output."""

    def send(self, to_phone_number: str, body: str) -> bool:
        logger.info("[SMS][Console] To: %s", to_phone_number)
        logger.info("[SMS][Console] Body: %s", body)
        return True

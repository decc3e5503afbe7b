"""Notification sender factory - returns the sender selected in configuration."""

from src.utils.config import NotificationConfig
from src.utils.logger import get_logger

from .base import NotificationSender
from .console import ConsoleSender
from .twilio_sms import TwilioSmsSender

logger = get_logger(__name__)


def build_sender(config: NotificationConfig) -> NotificationSender:
    """Create the configured sender.

    ``auto`` picks Twilio when its credentials are all present. Falls back
    to the console sender when Twilio is selected but any of its
    credentials is missing, so a half-configured deployment still issues
    codes that an operator can read from the log.

    Args:
        config: Notifications section of the application configuration.

    Returns:
        A ready-to-use sender.
    """
    credentials = (
        config.twilio_account_sid,
        config.twilio_auth_token,
        config.twilio_from_number,
    )
    if config.backend != "console" and all(credentials):
        return TwilioSmsSender(
            account_sid=config.twilio_account_sid,
            auth_token=config.twilio_auth_token,
            from_number=config.twilio_from_number,
            country_code=config.country_code,
        )
    if config.backend == "twilio":
        logger.warning("Twilio selected but not fully configured; using console")
    return ConsoleSender()

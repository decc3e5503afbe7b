"""Twilio SMS sender."""

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from src.utils.logger import get_logger

from .base import NotificationSender

logger = get_logger(__name__)


class TwilioSmsSender(NotificationSender):
    """Sends messages through the Twilio Messages API.

    Args:
        account_sid: Twilio account SID.
        auth_token: Twilio auth token.
        from_number: Twilio number messages are sent from (E.164).
        country_code: Prefix turning a local 10-digit number into E.164.
        client: Pre-built Twilio client; created from the credentials if omitted.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        country_code: str = "+91",
        client: Client | None = None,
    ) -> None:
        self.client = client or Client(account_sid, auth_token)
        self.from_number = from_number
        self.country_code = country_code

    def to_e164(self, phone_number: str) -> str:
        if phone_number.startswith("+"):
            return phone_number
        return f"{self.country_code}{phone_number}"

    def send(self, to_phone_number: str, body: str) -> bool:
        try:
            message = self.client.messages.create(
                body=body,
                from_=self.from_number,
                to=self.to_e164(to_phone_number),
            )
        except TwilioException as exc:
            logger.warning("[SMS] Twilio send to %s failed: %s", to_phone_number, exc)
            return False
        logger.info("[SMS] Sent message %s to %s", message.sid, to_phone_number)
        return True

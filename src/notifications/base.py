"""Base notification sender interface."""

from abc import ABC, abstractmethod


class NotificationSender(ABC):
    """Delivers a short text message to a phone number."""

    @abstractmethod
    def send(self, to_phone_number: str, body: str) -> bool:
        """Send ``body`` to a 10-digit local phone number.

        Returns:
            True if the provider accepted the message, False otherwise.
            Implementations report failure through the return value rather
            than raising.
        """

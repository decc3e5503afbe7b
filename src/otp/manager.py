"""One-time passcode issuance and verification.

Per phone number a passcode moves ``NONE -> ISSUED -> VERIFIED`` or lapses
to ``EXPIRED``. Issuing replaces whatever was active for the number, so at
most one code is authoritative at a time. Delivery is out of band and best
effort: a failed SMS is logged and the code stays valid.
"""

import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from src.notifications.base import NotificationSender
from src.storage.records import OneTimePasscodeRecord, utcnow
from src.storage.repositories import OtpRepository
from src.utils.config import OTPConfig
from src.utils.errors import StorageError
from src.utils.logger import get_logger

logger = get_logger(__name__)

MESSAGE_TEMPLATE = (
    "Your DB Skills Portal verification code is: {code}. "
    "Valid for {minutes} minutes."
)


@dataclass(frozen=True)
class OtpResult:
    """Outcome of an OTP operation, safe to return to the end user."""

    success: bool
    message: str


ISSUED = OtpResult(True, "OTP sent successfully")
ISSUE_FAILED = OtpResult(False, "Failed to send OTP")
VERIFIED = OtpResult(True, "OTP verified successfully")
INVALID_OR_EXPIRED = OtpResult(False, "Invalid or expired OTP")
VERIFY_FAILED = OtpResult(False, "Failed to verify OTP")


class OtpManager:
    """Issues and verifies 4-digit passcodes bound to phone numbers.

    Callers validate phone numbers and code lengths before calling in.

    Args:
        repository: Where passcode records are kept.
        sender: Out-of-band delivery channel.
        expiry_minutes: Lifetime of an issued code.
        code_min: Smallest code, inclusive.
        code_max: Largest code, inclusive.
        clock: Returns the current UTC time; replaceable for tests.
    """

    def __init__(
        self,
        repository: OtpRepository,
        sender: NotificationSender,
        expiry_minutes: int = 5,
        code_min: int = 1000,
        code_max: int = 9999,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.sender = sender
        self.expiry_minutes = expiry_minutes
        self.code_min = code_min
        self.code_max = code_max
        self.clock = clock

    @classmethod
    def from_config(
        cls,
        config: OTPConfig,
        repository: OtpRepository,
        sender: NotificationSender,
    ) -> "OtpManager":
        return cls(
            repository,
            sender,
            expiry_minutes=config.expiry_minutes,
            code_min=config.code_min,
            code_max=config.code_max,
        )

    def generate_code(self) -> str:
        """Uniformly random code in ``[code_min, code_max]``."""
        return str(self.code_min + secrets.randbelow(self.code_max - self.code_min + 1))

    def issue(self, phone_number: str) -> OtpResult:
        """Issue a fresh code for ``phone_number`` and send it.

        The result never contains the code. Success depends only on the
        record being stored; delivery failures are logged.
        """
        code = self.generate_code()
        record = OneTimePasscodeRecord.issue(
            phone_number, code, self.clock(), self.expiry_minutes
        )
        try:
            self.repository.replace_active(record)
        except StorageError as exc:
            logger.error("Error storing OTP for %s: %s", phone_number, exc)
            return ISSUE_FAILED

        logger.info(
            "OTP issued for %s, valid for %d minutes", phone_number, self.expiry_minutes
        )
        self._dispatch(phone_number, code)
        return ISSUED

    def _dispatch(self, phone_number: str, code: str) -> None:
        body = MESSAGE_TEMPLATE.format(code=code, minutes=self.expiry_minutes)
        try:
            delivered = self.sender.send(phone_number, body)
        except Exception as exc:
            logger.warning("OTP delivery to %s raised: %s", phone_number, exc)
            return
        if not delivered:
            logger.warning("OTP delivery to %s failed; code remains valid", phone_number)

    def verify(self, phone_number: str, code: str) -> OtpResult:
        """Consume the active code for ``phone_number`` if ``code`` matches.

        A wrong code, an already used code and an expired code all produce
        the same failure. A code verifies at most once.
        """
        try:
            record = self.repository.consume_active(phone_number, code, self.clock())
        except StorageError as exc:
            logger.error("Error verifying OTP for %s: %s", phone_number, exc)
            return VERIFY_FAILED

        if record is None:
            logger.info("OTP verification failed for %s", phone_number)
            return INVALID_OR_EXPIRED
        logger.info("OTP verified for %s", phone_number)
        return VERIFIED

"""Tests for OTP issuance and verification."""

from unittest.mock import MagicMock

import pytest

from conftest import FakeClock
from src.notifications.base import NotificationSender
from src.otp.manager import (
    INVALID_OR_EXPIRED,
    ISSUE_FAILED,
    ISSUED,
    MESSAGE_TEMPLATE,
    VERIFIED,
    VERIFY_FAILED,
    OtpManager,
)
from src.storage.memory import InMemoryOtpRepository
from src.utils.config import OTPConfig
from src.utils.errors import StorageError

PHONE = "9876543210"


def _sent_code(sender: MagicMock) -> str:
    """Pull the code out of the last message handed to the sender."""
    body = sender.send.call_args.args[1]
    return body.split("code is: ")[1].split(".")[0]


class TestIssue:
    """Tests for OtpManager.issue."""

    def setup_method(self) -> None:
        self.repository = InMemoryOtpRepository()
        self.sender = MagicMock(spec=NotificationSender)
        self.sender.send.return_value = True

    def _manager(self, clock: FakeClock) -> OtpManager:
        return OtpManager(self.repository, self.sender, clock=clock)

    def test_issue_stores_one_active_record(self, clock: FakeClock) -> None:
        result = self._manager(clock).issue(PHONE)

        assert result == ISSUED
        records = self.repository.all_for(PHONE)
        assert len(records) == 1
        assert records[0].is_active(clock())

    def test_result_never_contains_code(self, clock: FakeClock) -> None:
        result = self._manager(clock).issue(PHONE)
        code = _sent_code(self.sender)

        assert code not in result.message

    def test_code_is_four_digits(self, clock: FakeClock) -> None:
        self._manager(clock).issue(PHONE)
        code = self.repository.all_for(PHONE)[0].code

        assert len(code) == 4
        assert 1000 <= int(code) <= 9999

    def test_expiry_set_from_issue_time(self, clock: FakeClock) -> None:
        self._manager(clock).issue(PHONE)
        record = self.repository.all_for(PHONE)[0]

        assert (record.expires_at - clock()).total_seconds() == 300

    def test_second_issue_replaces_first(self, clock: FakeClock) -> None:
        manager = self._manager(clock)
        manager.issue(PHONE)
        first_code = _sent_code(self.sender)
        manager.issue(PHONE)
        second_code = _sent_code(self.sender)

        records = self.repository.all_for(PHONE)
        assert len(records) == 1
        assert records[0].code == second_code
        if first_code != second_code:
            assert manager.verify(PHONE, first_code) == INVALID_OR_EXPIRED
        assert manager.verify(PHONE, second_code) == VERIFIED

    def test_other_numbers_untouched(self, clock: FakeClock) -> None:
        manager = self._manager(clock)
        manager.issue(PHONE)
        manager.issue("9123456789")

        assert len(self.repository.all_for(PHONE)) == 1
        assert len(self.repository.all_for("9123456789")) == 1

    def test_message_body(self, clock: FakeClock) -> None:
        self._manager(clock).issue(PHONE)
        to_number, body = self.sender.send.call_args.args

        assert to_number == PHONE
        assert body == MESSAGE_TEMPLATE.format(code=_sent_code(self.sender), minutes=5)

    def test_delivery_failure_still_succeeds(self, clock: FakeClock) -> None:
        self.sender.send.return_value = False
        manager = self._manager(clock)

        assert manager.issue(PHONE) == ISSUED
        assert manager.verify(PHONE, _sent_code(self.sender)) == VERIFIED

    def test_delivery_exception_still_succeeds(self, clock: FakeClock) -> None:
        self.sender.send.side_effect = RuntimeError("gateway down")

        assert self._manager(clock).issue(PHONE) == ISSUED
        assert len(self.repository.all_for(PHONE)) == 1

    def test_storage_failure(self, clock: FakeClock) -> None:
        repository = MagicMock()
        repository.replace_active.side_effect = StorageError("db down")
        manager = OtpManager(repository, self.sender, clock=clock)

        assert manager.issue(PHONE) == ISSUE_FAILED
        self.sender.send.assert_not_called()

    def test_from_config(self, clock: FakeClock) -> None:
        config = OTPConfig(expiry_minutes=10, code_min=5000, code_max=5000)
        manager = OtpManager.from_config(config, self.repository, self.sender)

        assert manager.expiry_minutes == 10
        assert manager.generate_code() == "5000"


class TestGenerateCode:
    """Tests for code generation."""

    def test_codes_within_range(self) -> None:
        manager = OtpManager(InMemoryOtpRepository(), MagicMock())
        codes = {manager.generate_code() for _ in range(500)}

        assert all(1000 <= int(code) <= 9999 for code in codes)
        assert len(codes) > 1


class TestVerify:
    """Tests for OtpManager.verify."""

    def setup_method(self) -> None:
        self.repository = InMemoryOtpRepository()
        self.sender = MagicMock(spec=NotificationSender)
        self.sender.send.return_value = True

    def _issued(self, clock: FakeClock) -> tuple[OtpManager, str]:
        manager = OtpManager(self.repository, self.sender, clock=clock)
        manager.issue(PHONE)
        return manager, _sent_code(self.sender)

    def test_correct_code_verifies_once(self, clock: FakeClock) -> None:
        manager, code = self._issued(clock)

        assert manager.verify(PHONE, code) == VERIFIED
        assert manager.verify(PHONE, code) == INVALID_OR_EXPIRED

    def test_verified_record_is_consumed(self, clock: FakeClock) -> None:
        manager, code = self._issued(clock)
        manager.verify(PHONE, code)

        assert self.repository.all_for(PHONE)[0].consumed is True

    def test_wrong_code(self, clock: FakeClock) -> None:
        manager, code = self._issued(clock)
        wrong = "1000" if code != "1000" else "1001"

        assert manager.verify(PHONE, wrong) == INVALID_OR_EXPIRED
        assert manager.verify(PHONE, code) == VERIFIED

    def test_wrong_phone(self, clock: FakeClock) -> None:
        manager, code = self._issued(clock)

        assert manager.verify("9123456789", code) == INVALID_OR_EXPIRED

    def test_never_issued(self, clock: FakeClock) -> None:
        manager = OtpManager(self.repository, self.sender, clock=clock)

        assert manager.verify(PHONE, "1234") == INVALID_OR_EXPIRED

    def test_valid_just_before_expiry(self, clock: FakeClock) -> None:
        manager, code = self._issued(clock)
        clock.advance(minutes=4, seconds=59)

        assert manager.verify(PHONE, code) == VERIFIED

    def test_expired_after_lifetime(self, clock: FakeClock) -> None:
        manager, code = self._issued(clock)
        clock.advance(minutes=6)

        assert manager.verify(PHONE, code) == INVALID_OR_EXPIRED

    def test_expired_at_exact_boundary(self, clock: FakeClock) -> None:
        manager, code = self._issued(clock)
        clock.advance(minutes=5)

        assert manager.verify(PHONE, code) == INVALID_OR_EXPIRED

    def test_storage_failure(self, clock: FakeClock) -> None:
        repository = MagicMock()
        repository.consume_active.side_effect = StorageError("db down")
        manager = OtpManager(repository, self.sender, clock=clock)

        assert manager.verify(PHONE, "1234") == VERIFY_FAILED

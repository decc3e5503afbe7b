"""Narrow repository interfaces for OTP and candidate persistence.

The OTP manager and the enrollment service depend only on these two
interfaces, never on a storage driver. Implementations raise
:class:`~src.utils.errors.StorageError` when the backing store fails.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .records import CandidateRecord, CandidateStatus, OneTimePasscodeRecord


class OtpRepository(ABC):
    """Storage for one-time passcode records keyed by phone number."""

    @abstractmethod
    def delete_all(self, phone_number: str) -> int:
        """Delete every record for a phone number and return how many went."""

    @abstractmethod
    def insert(self, record: OneTimePasscodeRecord) -> OneTimePasscodeRecord:
        """Store a new record and return it with its ``id`` set."""

    @abstractmethod
    def find_active(
        self, phone_number: str, code: str, now: datetime
    ) -> OneTimePasscodeRecord | None:
        """Find an unconsumed record for this number and code expiring after ``now``."""

    @abstractmethod
    def update(self, record: OneTimePasscodeRecord) -> None:
        """Persist changes to an existing record."""

    def replace_active(self, record: OneTimePasscodeRecord) -> OneTimePasscodeRecord:
        """Make ``record`` the only record for its phone number.

        Backends with an atomic upsert override this. The default runs as
        delete-then-insert with no cross-call locking: two concurrent
        issues for the same number may both land, and the later insert is the
        one a user will have received last. A failure between the two steps
        leaves the number with no active code.
        """
        self.delete_all(record.phone_number)
        return self.insert(record)

    def consume_active(
        self, phone_number: str, code: str, now: datetime
    ) -> OneTimePasscodeRecord | None:
        """Mark the matching active record consumed and return it.

        Returns ``None`` when no active record matches. Both shipped backends
        override this with a single atomic step. The default is a read
        followed by a write, so two concurrent calls with the same code may
        both succeed.
        """
        record = self.find_active(phone_number, code, now)
        if record is None:
            return None
        record.consumed = True
        self.update(record)
        return record


class CandidateRepository(ABC):
    """Storage for enrolled candidates.

    ``candidate_id``, ``id_number`` and ``mobile`` are each unique; inserting
    a clash raises :class:`~src.utils.errors.DuplicateCandidateError`.
    """

    @abstractmethod
    def find_by_id_or_mobile(
        self, id_number: str | None, mobile: str | None
    ) -> CandidateRecord | None:
        """Find a candidate matching either the ID number or the mobile."""

    @abstractmethod
    def find_one(
        self,
        id_number: str | None = None,
        mobile: str | None = None,
        candidate_id: str | None = None,
    ) -> CandidateRecord | None:
        """Find a candidate matching every given criterion."""

    @abstractmethod
    def insert(self, record: CandidateRecord) -> CandidateRecord:
        """Store a new candidate."""

    @abstractmethod
    def list(
        self, page: int = 1, limit: int = 10, status: CandidateStatus | None = None
    ) -> list[CandidateRecord]:
        """Return one page of candidates, newest first."""

    @abstractmethod
    def count(self, status: CandidateStatus | None = None) -> int:
        """Count candidates, optionally only those with ``status``."""

    @abstractmethod
    def update_status(
        self, candidate_id: str, status: CandidateStatus, now: datetime
    ) -> CandidateRecord:
        """Set a candidate's status, stamping the completion date on completion.

        Raises:
            CandidateNotFoundError: If no candidate has ``candidate_id``.
        """

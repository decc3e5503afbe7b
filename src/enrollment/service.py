"""Candidate enrollment: duplicate check, registration and lookups."""

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime

from src.storage.records import (
    CandidateRecord,
    CandidateStatus,
    TrainingCategory,
    utcnow,
)
from src.storage.repositories import CandidateRepository
from src.utils.errors import DuplicateCandidateError
from src.utils.logger import get_logger

logger = get_logger(__name__)

CANDIDATE_ID_PREFIX = "DB"


def make_candidate_id(now: datetime) -> str:
    """``DB`` followed by the last six digits of the epoch time in milliseconds."""
    millis = str(int(now.timestamp() * 1000))
    return f"{CANDIDATE_ID_PREFIX}{millis[-6:]}"


@dataclass
class CandidatePage:
    """One page of a candidate listing."""

    candidates: list[CandidateRecord]
    total: int
    total_pages: int
    current_page: int


class EnrollmentService:
    """Registers trainees and answers status lookups.

    Args:
        repository: Candidate storage.
        clock: Returns the current UTC time; replaceable for tests.
    """

    def __init__(
        self,
        repository: CandidateRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.clock = clock

    def check_record(
        self, id_number: str | None, mobile: str | None
    ) -> CandidateRecord | None:
        """Return the existing candidate with this ID number or mobile, if any."""
        return self.repository.find_by_id_or_mobile(id_number, mobile)

    def register(
        self,
        *,
        name: str,
        date_of_birth: date,
        id_number: str,
        mobile: str,
        address: str,
        program: str,
        category: TrainingCategory,
        center: str,
        trainer: str,
        duration: str,
    ) -> CandidateRecord:
        """Enroll a new candidate.

        Raises:
            DuplicateCandidateError: If the ID number or mobile is already
                enrolled.
        """
        if self.repository.find_by_id_or_mobile(id_number, mobile) is not None:
            raise DuplicateCandidateError(
                "Candidate with this Aadhar or mobile number already exists"
            )

        now = self.clock()
        record = CandidateRecord(
            candidate_id=make_candidate_id(now),
            name=name.strip(),
            date_of_birth=date_of_birth,
            id_number=id_number,
            mobile=mobile,
            address=address,
            program=program,
            category=category,
            center=center,
            trainer=trainer,
            duration=duration,
            enrollment_date=now,
            created_at=now,
            updated_at=now,
        )
        self.repository.insert(record)
        logger.info("Registered candidate %s", record.candidate_id)
        return record

    def search(
        self,
        id_number: str | None = None,
        mobile: str | None = None,
        candidate_id: str | None = None,
    ) -> CandidateRecord | None:
        """Find the candidate matching all of the given identifiers."""
        return self.repository.find_one(
            id_number=id_number, mobile=mobile, candidate_id=candidate_id
        )

    def list_candidates(
        self, page: int = 1, limit: int = 10, status: CandidateStatus | None = None
    ) -> CandidatePage:
        """List candidates newest first, one page at a time."""
        total = self.repository.count(status)
        return CandidatePage(
            candidates=self.repository.list(page, limit, status),
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
            current_page=page,
        )

    def update_status(
        self, candidate_id: str, status: CandidateStatus
    ) -> CandidateRecord:
        """Move a candidate to ``status``.

        Raises:
            CandidateNotFoundError: If the candidate does not exist.
        """
        record = self.repository.update_status(candidate_id, status, self.clock())
        logger.info("Candidate %s status set to %s", candidate_id, status)
        return record

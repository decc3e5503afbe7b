"""Persistent record types for OTPs and enrolled candidates."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import StrEnum


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class CandidateStatus(StrEnum):
    """Progress of a candidate through a training program."""

    ENROLLED = "Enrolled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    DROPPED = "Dropped"


class TrainingCategory(StrEnum):
    """Skill tier of a training program."""

    BASIC = "Category 1 - Basic Skills"
    INTERMEDIATE = "Category 2 - Intermediate Skills"
    ADVANCED = "Category 3 - Advanced Skills"
    SPECIALIZED = "Category 4 - Specialized Skills"


@dataclass
class OneTimePasscodeRecord:
    """A passcode issued to a phone number.

    A record is active while it is unconsumed and ``expires_at`` lies in the
    future. The store drops it on its own once it has expired.
    """

    phone_number: str
    code: str
    expires_at: datetime
    consumed: bool = False
    created_at: datetime = field(default_factory=utcnow)
    id: str | None = None

    @classmethod
    def issue(
        cls, phone_number: str, code: str, now: datetime, expiry_minutes: int = 5
    ) -> "OneTimePasscodeRecord":
        """Build a fresh unconsumed record expiring ``expiry_minutes`` after ``now``."""
        return cls(
            phone_number=phone_number,
            code=code,
            expires_at=now + timedelta(minutes=expiry_minutes),
            created_at=now,
        )

    def is_active(self, now: datetime) -> bool:
        return not self.consumed and self.expires_at > now


@dataclass
class CandidateRecord:
    """An enrolled trainee."""

    candidate_id: str
    name: str
    date_of_birth: date
    id_number: str
    mobile: str
    address: str
    program: str
    category: TrainingCategory
    center: str
    trainer: str
    duration: str
    status: CandidateStatus = CandidateStatus.ENROLLED
    is_verified: bool = False
    verification_date: datetime | None = None
    enrollment_date: datetime = field(default_factory=utcnow)
    completion_date: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


def status_update_fields(status: CandidateStatus, now: datetime) -> dict[str, object]:
    """Field changes for moving a candidate to ``status`` at ``now``."""
    changes: dict[str, object] = {"status": status, "updated_at": now}
    if status == CandidateStatus.COMPLETED:
        changes["completion_date"] = now
    return changes

"""In-process repositories for local development and tests.

Data lives in plain dicts guarded by a lock so the threaded server can use
them; nothing survives a restart. Expired OTPs are dropped lazily on access,
standing in for the TTL index a document store would provide.
"""

import dataclasses
import threading
import uuid
from datetime import datetime

from src.utils.errors import CandidateNotFoundError, DuplicateCandidateError
from src.utils.logger import get_logger

from .records import (
    CandidateRecord,
    CandidateStatus,
    OneTimePasscodeRecord,
    status_update_fields,
)
from .repositories import CandidateRepository, OtpRepository

logger = get_logger(__name__)


class InMemoryOtpRepository(OtpRepository):
    """Dict-backed :class:`OtpRepository`."""

    def __init__(self) -> None:
        self._records: dict[str, OneTimePasscodeRecord] = {}
        self._lock = threading.Lock()

    def _purge_expired(self, now: datetime) -> None:
        expired = [key for key, r in self._records.items() if r.expires_at <= now]
        for key in expired:
            del self._records[key]

    def delete_all(self, phone_number: str) -> int:
        with self._lock:
            keys = [k for k, r in self._records.items() if r.phone_number == phone_number]
            for key in keys:
                del self._records[key]
        return len(keys)

    def insert(self, record: OneTimePasscodeRecord) -> OneTimePasscodeRecord:
        stored = dataclasses.replace(record, id=record.id or uuid.uuid4().hex)
        with self._lock:
            self._records[stored.id] = stored
        return dataclasses.replace(stored)

    def find_active(
        self, phone_number: str, code: str, now: datetime
    ) -> OneTimePasscodeRecord | None:
        with self._lock:
            self._purge_expired(now)
            for record in self._records.values():
                if (
                    record.phone_number == phone_number
                    and record.code == code
                    and record.is_active(now)
                ):
                    return dataclasses.replace(record)
        return None

    def update(self, record: OneTimePasscodeRecord) -> None:
        with self._lock:
            if record.id in self._records:
                self._records[record.id] = dataclasses.replace(record)

    def consume_active(
        self, phone_number: str, code: str, now: datetime
    ) -> OneTimePasscodeRecord | None:
        with self._lock:
            self._purge_expired(now)
            for record in self._records.values():
                if (
                    record.phone_number == phone_number
                    and record.code == code
                    and record.is_active(now)
                ):
                    record.consumed = True
                    return dataclasses.replace(record)
        return None

    def all_for(self, phone_number: str) -> list[OneTimePasscodeRecord]:
        """Every stored record for a number, consumed ones included."""
        with self._lock:
            return [
                dataclasses.replace(r)
                for r in self._records.values()
                if r.phone_number == phone_number
            ]


class InMemoryCandidateRepository(CandidateRepository):
    """Dict-backed :class:`CandidateRepository` keyed by ``candidate_id``."""

    def __init__(self) -> None:
        self._records: dict[str, CandidateRecord] = {}
        self._lock = threading.Lock()

    def find_by_id_or_mobile(
        self, id_number: str | None, mobile: str | None
    ) -> CandidateRecord | None:
        with self._lock:
            for record in self._records.values():
                if (id_number and record.id_number == id_number) or (
                    mobile and record.mobile == mobile
                ):
                    return dataclasses.replace(record)
        return None

    def find_one(
        self,
        id_number: str | None = None,
        mobile: str | None = None,
        candidate_id: str | None = None,
    ) -> CandidateRecord | None:
        criteria = {
            "id_number": id_number,
            "mobile": mobile,
            "candidate_id": candidate_id,
        }
        criteria = {k: v for k, v in criteria.items() if v is not None}
        if not criteria:
            return None
        with self._lock:
            for record in self._records.values():
                if all(getattr(record, k) == v for k, v in criteria.items()):
                    return dataclasses.replace(record)
        return None

    def insert(self, record: CandidateRecord) -> CandidateRecord:
        with self._lock:
            for existing in self._records.values():
                if (
                    existing.candidate_id == record.candidate_id
                    or existing.id_number == record.id_number
                    or existing.mobile == record.mobile
                ):
                    raise DuplicateCandidateError(
                        f"Candidate clashes with {existing.candidate_id}"
                    )
            self._records[record.candidate_id] = dataclasses.replace(record)
        logger.debug("Stored candidate %s", record.candidate_id)
        return record

    def _matching(self, status: CandidateStatus | None) -> list[CandidateRecord]:
        return [
            r for r in self._records.values() if status is None or r.status == status
        ]

    def list(
        self, page: int = 1, limit: int = 10, status: CandidateStatus | None = None
    ) -> list[CandidateRecord]:
        with self._lock:
            records = sorted(
                self._matching(status), key=lambda r: r.created_at, reverse=True
            )
        start = (page - 1) * limit
        return [dataclasses.replace(r) for r in records[start : start + limit]]

    def count(self, status: CandidateStatus | None = None) -> int:
        with self._lock:
            return len(self._matching(status))

    def update_status(
        self, candidate_id: str, status: CandidateStatus, now: datetime
    ) -> CandidateRecord:
        with self._lock:
            record = self._records.get(candidate_id)
            if record is None:
                raise CandidateNotFoundError(candidate_id)
            updated = dataclasses.replace(record, **status_update_fields(status, now))
            self._records[candidate_id] = updated
        return dataclasses.replace(updated)

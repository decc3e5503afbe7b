"""MongoDB repositories built on ``pymongo``.

OTP records carry a TTL index on ``expires_at`` so the server removes them
once they lapse. Datetimes are written as naive UTC, which is what BSON
stores, and read back as timezone-aware UTC.
"""

from datetime import date, datetime, time, timezone
from typing import Any

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from src.utils.errors import (
    CandidateNotFoundError,
    DuplicateCandidateError,
    StorageError,
)
from src.utils.logger import get_logger

from .records import (
    CandidateRecord,
    CandidateStatus,
    OneTimePasscodeRecord,
    TrainingCategory,
    status_update_fields,
)
from .repositories import CandidateRepository, OtpRepository

logger = get_logger(__name__)

OTP_COLLECTION = "otps"
CANDIDATE_COLLECTION = "candidates"


def _to_bson_time(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_bson_time(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MongoOtpRepository(OtpRepository):
    """:class:`OtpRepository` over a MongoDB collection.

    Args:
        database: Database handle; the ``otps`` collection is used.
    """

    def __init__(self, database: Database) -> None:
        self.collection: Collection = database[OTP_COLLECTION]

    def ensure_indexes(self) -> None:
        """Create the lookup index and the TTL index that expires records."""
        try:
            self.collection.create_index([("phone_number", ASCENDING)])
            self.collection.create_index("expires_at", expireAfterSeconds=0)
        except PyMongoError as exc:
            raise StorageError(f"Could not create OTP indexes: {exc}") from exc

    @staticmethod
    def _to_document(record: OneTimePasscodeRecord) -> dict[str, Any]:
        return {
            "phone_number": record.phone_number,
            "code": record.code,
            "expires_at": _to_bson_time(record.expires_at),
            "consumed": record.consumed,
            "created_at": _to_bson_time(record.created_at),
        }

    @staticmethod
    def _from_document(doc: dict[str, Any]) -> OneTimePasscodeRecord:
        return OneTimePasscodeRecord(
            id=str(doc["_id"]),
            phone_number=doc["phone_number"],
            code=doc["code"],
            expires_at=_from_bson_time(doc["expires_at"]),
            consumed=doc.get("consumed", False),
            created_at=_from_bson_time(doc.get("created_at")),
        )

    def delete_all(self, phone_number: str) -> int:
        try:
            result = self.collection.delete_many({"phone_number": phone_number})
        except PyMongoError as exc:
            raise StorageError(f"OTP delete failed: {exc}") from exc
        return result.deleted_count

    def insert(self, record: OneTimePasscodeRecord) -> OneTimePasscodeRecord:
        try:
            result = self.collection.insert_one(self._to_document(record))
        except PyMongoError as exc:
            raise StorageError(f"OTP insert failed: {exc}") from exc
        record.id = str(result.inserted_id)
        return record

    def replace_active(self, record: OneTimePasscodeRecord) -> OneTimePasscodeRecord:
        """Swap in ``record`` with one atomic upsert on the phone number.

        Leftover records for the number (only possible after direct
        :meth:`insert` calls) are removed afterwards.
        """
        try:
            doc = self.collection.find_one_and_replace(
                {"phone_number": record.phone_number},
                self._to_document(record),
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
            self.collection.delete_many(
                {"phone_number": record.phone_number, "_id": {"$ne": doc["_id"]}}
            )
        except PyMongoError as exc:
            raise StorageError(f"OTP replace failed: {exc}") from exc
        record.id = str(doc["_id"])
        return record

    def find_active(
        self, phone_number: str, code: str, now: datetime
    ) -> OneTimePasscodeRecord | None:
        query = {
            "phone_number": phone_number,
            "code": code,
            "consumed": False,
            "expires_at": {"$gt": _to_bson_time(now)},
        }
        try:
            doc = self.collection.find_one(query)
        except PyMongoError as exc:
            raise StorageError(f"OTP lookup failed: {exc}") from exc
        return self._from_document(doc) if doc else None

    def consume_active(
        self, phone_number: str, code: str, now: datetime
    ) -> OneTimePasscodeRecord | None:
        """Flip ``consumed`` with one ``find_one_and_update`` so a code verifies once."""
        query = {
            "phone_number": phone_number,
            "code": code,
            "consumed": False,
            "expires_at": {"$gt": _to_bson_time(now)},
        }
        try:
            doc = self.collection.find_one_and_update(
                query,
                {"$set": {"consumed": True}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise StorageError(f"OTP consume failed: {exc}") from exc
        return self._from_document(doc) if doc else None

    def update(self, record: OneTimePasscodeRecord) -> None:
        if record.id is None:
            raise StorageError("Cannot update an OTP record that was never stored")
        try:
            self.collection.update_one(
                {"_id": ObjectId(record.id)}, {"$set": self._to_document(record)}
            )
        except PyMongoError as exc:
            raise StorageError(f"OTP update failed: {exc}") from exc


class MongoCandidateRepository(CandidateRepository):
    """:class:`CandidateRepository` over a MongoDB collection.

    Args:
        database: Database handle; the ``candidates`` collection is used.
    """

    def __init__(self, database: Database) -> None:
        self.collection: Collection = database[CANDIDATE_COLLECTION]

    def ensure_indexes(self) -> None:
        """Create the unique indexes that back duplicate detection."""
        try:
            for key in ("candidate_id", "id_number", "mobile"):
                self.collection.create_index(key, unique=True)
            self.collection.create_index([("created_at", DESCENDING)])
        except PyMongoError as exc:
            raise StorageError(f"Could not create candidate indexes: {exc}") from exc

    @staticmethod
    def _to_document(record: CandidateRecord) -> dict[str, Any]:
        return {
            "candidate_id": record.candidate_id,
            "name": record.name,
            "date_of_birth": datetime.combine(record.date_of_birth, time.min),
            "id_number": record.id_number,
            "mobile": record.mobile,
            "address": record.address,
            "program": record.program,
            "category": str(record.category),
            "center": record.center,
            "trainer": record.trainer,
            "duration": record.duration,
            "status": str(record.status),
            "is_verified": record.is_verified,
            "verification_date": _to_bson_time(record.verification_date),
            "enrollment_date": _to_bson_time(record.enrollment_date),
            "completion_date": _to_bson_time(record.completion_date),
            "created_at": _to_bson_time(record.created_at),
            "updated_at": _to_bson_time(record.updated_at),
        }

    @staticmethod
    def _from_document(doc: dict[str, Any]) -> CandidateRecord:
        dob = doc["date_of_birth"]
        return CandidateRecord(
            candidate_id=doc["candidate_id"],
            name=doc["name"],
            date_of_birth=dob.date() if isinstance(dob, datetime) else date.fromisoformat(dob),
            id_number=doc["id_number"],
            mobile=doc["mobile"],
            address=doc["address"],
            program=doc["program"],
            category=TrainingCategory(doc["category"]),
            center=doc["center"],
            trainer=doc["trainer"],
            duration=doc["duration"],
            status=CandidateStatus(doc.get("status", CandidateStatus.ENROLLED)),
            is_verified=doc.get("is_verified", False),
            verification_date=_from_bson_time(doc.get("verification_date")),
            enrollment_date=_from_bson_time(doc.get("enrollment_date")),
            completion_date=_from_bson_time(doc.get("completion_date")),
            created_at=_from_bson_time(doc.get("created_at")),
            updated_at=_from_bson_time(doc.get("updated_at")),
        )

    def _find(self, query: dict[str, Any]) -> CandidateRecord | None:
        try:
            doc = self.collection.find_one(query)
        except PyMongoError as exc:
            raise StorageError(f"Candidate lookup failed: {exc}") from exc
        return self._from_document(doc) if doc else None

    def find_by_id_or_mobile(
        self, id_number: str | None, mobile: str | None
    ) -> CandidateRecord | None:
        clauses = []
        if id_number:
            clauses.append({"id_number": id_number})
        if mobile:
            clauses.append({"mobile": mobile})
        if not clauses:
            return None
        return self._find({"$or": clauses})

    def find_one(
        self,
        id_number: str | None = None,
        mobile: str | None = None,
        candidate_id: str | None = None,
    ) -> CandidateRecord | None:
        query = {
            key: value
            for key, value in (
                ("id_number", id_number),
                ("mobile", mobile),
                ("candidate_id", candidate_id),
            )
            if value is not None
        }
        if not query:
            return None
        return self._find(query)

    def insert(self, record: CandidateRecord) -> CandidateRecord:
        try:
            self.collection.insert_one(self._to_document(record))
        except DuplicateKeyError as exc:
            raise DuplicateCandidateError(str(exc)) from exc
        except PyMongoError as exc:
            raise StorageError(f"Candidate insert failed: {exc}") from exc
        logger.debug("Stored candidate %s", record.candidate_id)
        return record

    @staticmethod
    def _status_filter(status: CandidateStatus | None) -> dict[str, Any]:
        return {"status": str(status)} if status is not None else {}

    def list(
        self, page: int = 1, limit: int = 10, status: CandidateStatus | None = None
    ) -> list[CandidateRecord]:
        try:
            cursor = (
                self.collection.find(self._status_filter(status))
                .sort("created_at", DESCENDING)
                .skip((page - 1) * limit)
                .limit(limit)
            )
            return [self._from_document(doc) for doc in cursor]
        except PyMongoError as exc:
            raise StorageError(f"Candidate listing failed: {exc}") from exc

    def count(self, status: CandidateStatus | None = None) -> int:
        try:
            return self.collection.count_documents(self._status_filter(status))
        except PyMongoError as exc:
            raise StorageError(f"Candidate count failed: {exc}") from exc

    def update_status(
        self, candidate_id: str, status: CandidateStatus, now: datetime
    ) -> CandidateRecord:
        changes = {
            key: str(value) if key == "status" else _to_bson_time(value)
            for key, value in status_update_fields(status, now).items()
        }
        try:
            doc = self.collection.find_one_and_update(
                {"candidate_id": candidate_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise StorageError(f"Candidate status update failed: {exc}") from exc
        if doc is None:
            raise CandidateNotFoundError(candidate_id)
        return self._from_document(doc)

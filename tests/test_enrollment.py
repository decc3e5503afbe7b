"""Tests for the enrollment service."""

from datetime import date, datetime, timezone

import pytest

from conftest import FakeClock
from src.enrollment.service import EnrollmentService, make_candidate_id
from src.storage.memory import InMemoryCandidateRepository
from src.storage.records import CandidateStatus, TrainingCategory
from src.utils.errors import CandidateNotFoundError, DuplicateCandidateError


def registration(**overrides: object) -> dict[str, object]:
    fields: dict[str, object] = {
        "name": "Rajesh Kumar",
        "date_of_birth": date(1992, 3, 15),
        "id_number": "1234-5678-9012",
        "mobile": "9876543210",
        "address": "12 MG Road, Pune",
        "program": "Electrician",
        "category": TrainingCategory.BASIC,
        "center": "Pune Central",
        "trainer": "S. Patil",
        "duration": "3 months",
    }
    fields.update(overrides)
    return fields


class TestMakeCandidateId:
    """Tests for candidate ID generation."""

    def test_prefix_and_suffix(self) -> None:
        now = datetime(2024, 6, 1, 10, 0, 7, tzinfo=timezone.utc)
        assert make_candidate_id(now) == "DB007000"

    def test_length(self) -> None:
        now = datetime(2024, 6, 1, 10, 0, 0, 987000, tzinfo=timezone.utc)
        candidate_id = make_candidate_id(now)
        assert candidate_id.startswith("DB")
        assert len(candidate_id) == 8
        assert candidate_id[2:].isdigit()


class TestEnrollmentService:
    """Tests for registration, lookup and status changes."""

    def setup_method(self) -> None:
        self.repository = InMemoryCandidateRepository()

    def _service(self, clock: FakeClock) -> EnrollmentService:
        return EnrollmentService(self.repository, clock=clock)

    def test_register(self, clock: FakeClock) -> None:
        record = self._service(clock).register(**registration(name="  Rajesh Kumar "))

        assert record.name == "Rajesh Kumar"
        assert record.status == CandidateStatus.ENROLLED
        assert record.is_verified is False
        assert record.enrollment_date == clock()
        assert record.candidate_id == make_candidate_id(clock())
        assert self.repository.find_one(candidate_id=record.candidate_id) == record

    @pytest.mark.parametrize(
        "overrides",
        [{"mobile": "9000000000"}, {"id_number": "1111-2222-3333"}],
    )
    def test_register_duplicate(self, clock: FakeClock, overrides: dict) -> None:
        service = self._service(clock)
        service.register(**registration())
        clock.advance(seconds=1)

        with pytest.raises(DuplicateCandidateError, match="already exists"):
            service.register(**registration(**overrides))

    def test_check_record(self, clock: FakeClock) -> None:
        service = self._service(clock)
        assert service.check_record("1234-5678-9012", "9876543210") is None

        service.register(**registration())

        assert service.check_record("1234-5678-9012", None) is not None
        assert service.check_record(None, "9876543210") is not None
        assert service.check_record("0000-0000-0000", "9000000000") is None

    def test_search(self, clock: FakeClock) -> None:
        service = self._service(clock)
        record = service.register(**registration())

        assert service.search(candidate_id=record.candidate_id) == record
        assert service.search(mobile="9876543210") == record
        assert service.search(id_number="1234-5678-9012", mobile="9000000000") is None

    def test_list_candidates(self, clock: FakeClock) -> None:
        service = self._service(clock)
        for i in range(3):
            service.register(
                **registration(id_number=f"1234-5678-000{i}", mobile=f"987654321{i}")
            )
            clock.advance(seconds=1)

        page = service.list_candidates(page=1, limit=2)

        assert page.total == 3
        assert page.total_pages == 2
        assert page.current_page == 1
        assert [c.mobile for c in page.candidates] == ["9876543212", "9876543211"]

    def test_list_empty(self, clock: FakeClock) -> None:
        page = self._service(clock).list_candidates()
        assert page.total == 0
        assert page.total_pages == 0
        assert page.candidates == []

    def test_update_status(self, clock: FakeClock) -> None:
        service = self._service(clock)
        record = service.register(**registration())
        clock.advance(days=90)

        updated = service.update_status(record.candidate_id, CandidateStatus.COMPLETED)

        assert updated.status == CandidateStatus.COMPLETED
        assert updated.completion_date == clock()

    def test_update_status_unknown(self, clock: FakeClock) -> None:
        with pytest.raises(CandidateNotFoundError):
            self._service(clock).update_status("DB000000", CandidateStatus.DROPPED)

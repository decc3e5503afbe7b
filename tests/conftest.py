"""Shared test fixtures for the enrollment portal test suite."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pytest

from src.storage.memory import InMemoryCandidateRepository, InMemoryOtpRepository

AADHAAR_TEXT = (
    "GOVERNMENT OF INDIA Name: Rajesh Kumar DOB: 15-03-1992 "
    "1234 5678 9012 Male"
)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def otp_repository() -> InMemoryOtpRepository:
    return InMemoryOtpRepository()


@pytest.fixture
def candidate_repository() -> InMemoryCandidateRepository:
    return InMemoryCandidateRepository()


@pytest.fixture
def sample_image() -> np.ndarray:
    """Small synthetic RGB card: light background with a dark text band."""
    image = np.full((120, 200, 3), 230, dtype=np.uint8)
    image[40:60, 20:180] = (30, 30, 30)
    return image


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"

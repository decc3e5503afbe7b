"""Repository factory - returns the backend selected in configuration."""

from pymongo import MongoClient

from src.utils.config import StorageConfig
from src.utils.logger import get_logger

from .memory import InMemoryCandidateRepository, InMemoryOtpRepository
from .mongo import MongoCandidateRepository, MongoOtpRepository
from .repositories import CandidateRepository, OtpRepository

logger = get_logger(__name__)


def build_repositories(
    config: StorageConfig,
) -> tuple[OtpRepository, CandidateRepository]:
    """Create the OTP and candidate repositories for a storage backend.

    Args:
        config: Storage section of the application configuration.

    Returns:
        Tuple of (otp_repository, candidate_repository).
    """
    if config.backend == "mongo":
        client: MongoClient = MongoClient(config.mongodb_uri)
        database = client[config.database]
        otp_repo = MongoOtpRepository(database)
        candidate_repo = MongoCandidateRepository(database)
        otp_repo.ensure_indexes()
        candidate_repo.ensure_indexes()
        logger.info("Using MongoDB storage (database %s)", config.database)
        return otp_repo, candidate_repo

    logger.warning("Using in-memory storage; records are lost on restart")
    return InMemoryOtpRepository(), InMemoryCandidateRepository()

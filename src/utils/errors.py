"""Domain exceptions shared across the portal.

Handlers catch these at the API and CLI boundaries and turn them into a
short user-facing message; the exception text itself is only logged.
"""


class PortalError(Exception):
    """Base class for all portal errors."""


class RecognitionError(PortalError):
    """Raised when text recognition fails for an uploaded document."""


class StorageError(PortalError):
    """Raised when a repository cannot complete a read or write."""


class DuplicateCandidateError(PortalError):
    """Raised when a candidate with the same ID number or mobile exists."""


class CandidateNotFoundError(PortalError):
    """Raised when a candidate lookup or update targets a missing record."""

    def __init__(self, candidate_id: str) -> None:
        super().__init__(f"Candidate not found: {candidate_id}")
        self.candidate_id = candidate_id

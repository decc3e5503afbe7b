"""Pydantic request/response schemas for the portal API.

Wire names follow the web form (``mobile``, ``otp``, ``aadharNumber``,
``candidateId``, ``dob``); Python attributes are snake_case.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from src.storage.records import CandidateRecord, CandidateStatus, TrainingCategory


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SendOtpRequest(_WireModel):
    """Body of ``POST /send-otp``."""

    mobile: str | None = None


class VerifyOtpRequest(_WireModel):
    """Body of ``POST /verify-otp``."""

    mobile: str | None = None
    otp: str | None = None


class OtpResponse(BaseModel):
    """Outcome of an OTP issue or verify call."""

    success: bool
    message: str


class CheckRecordRequest(_WireModel):
    """Body of ``POST /check-record``; either identifier may be omitted."""

    aadhar_number: str | None = Field(default=None, alias="aadharNumber")
    mobile: str | None = None


class RegisterRequest(_WireModel):
    """Body of ``POST /register``."""

    name: str = Field(min_length=1)
    dob: date
    aadhar_number: str = Field(alias="aadharNumber", pattern=r"^\d{4}-\d{4}-\d{4}$")
    mobile: str = Field(pattern=r"^\d{10}$")
    address: str = Field(min_length=1)
    program: str = Field(min_length=1)
    category: TrainingCategory
    center: str = Field(min_length=1)
    trainer: str = Field(min_length=1)
    duration: str = Field(min_length=1)


class StatusUpdateRequest(BaseModel):
    """Body of ``PATCH /{candidate_id}/status``."""

    status: CandidateStatus


class CandidateSummary(_WireModel):
    """Short candidate view returned after registration and duplicate checks."""

    candidate_id: str = Field(alias="candidateId")
    name: str
    status: CandidateStatus

    @classmethod
    def from_record(cls, record: CandidateRecord) -> "CandidateSummary":
        return cls(
            candidate_id=record.candidate_id, name=record.name, status=record.status
        )


class CandidateResponse(_WireModel):
    """Full candidate view."""

    candidate_id: str = Field(alias="candidateId")
    name: str
    dob: date
    aadhar_number: str = Field(alias="aadharNumber")
    mobile: str
    address: str
    program: str
    category: TrainingCategory
    center: str
    trainer: str
    duration: str
    status: CandidateStatus
    is_verified: bool = Field(alias="isVerified")
    verification_date: datetime | None = Field(default=None, alias="verificationDate")
    enrollment_date: datetime = Field(alias="enrollmentDate")
    completion_date: datetime | None = Field(default=None, alias="completionDate")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_record(cls, record: CandidateRecord) -> "CandidateResponse":
        return cls(
            candidate_id=record.candidate_id,
            name=record.name,
            dob=record.date_of_birth,
            aadhar_number=record.id_number,
            mobile=record.mobile,
            address=record.address,
            program=record.program,
            category=record.category,
            center=record.center,
            trainer=record.trainer,
            duration=record.duration,
            status=record.status,
            is_verified=record.is_verified,
            verification_date=record.verification_date,
            enrollment_date=record.enrollment_date,
            completion_date=record.completion_date,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class CheckRecordResponse(BaseModel):
    """Whether a candidate is already enrolled."""

    success: bool = True
    exists: bool
    message: str
    candidate: CandidateSummary | None = None


class RegisterResponse(BaseModel):
    """Result of a successful registration."""

    success: bool = True
    message: str
    candidate: CandidateSummary


class SearchResponse(BaseModel):
    """A single candidate found by search."""

    success: bool = True
    candidate: CandidateResponse


class CandidateListResponse(_WireModel):
    """One page of candidates."""

    success: bool = True
    candidates: list[CandidateResponse]
    total_pages: int = Field(alias="totalPages")
    current_page: int = Field(alias="currentPage")
    total: int


class StatusUpdateResponse(BaseModel):
    """Candidate after a status change."""

    success: bool = True
    message: str
    candidate: CandidateResponse


class IdentityData(BaseModel):
    """Identity fields pre-filled into the registration form."""

    name: str
    dob: str
    aadhar: str


class ExtractionResponse(BaseModel):
    """Result of reading an uploaded identity document."""

    success: bool = True
    data: IdentityData
    raw_text: str
    confidence: float
    page_count: int = 1


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    success: bool
    message: str
    timestamp: datetime
    tesseract_available: bool


class ErrorResponse(BaseModel):
    """Body of every error response."""

    success: bool = False
    message: str

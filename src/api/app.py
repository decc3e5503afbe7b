"""FastAPI application for the candidate enrollment portal.

Provides REST endpoints for OTP verification, identity-document OCR,
candidate registration, lookup and status management, plus a health check.
Every error body is ``{"success": false, "message": ...}``; exception
details are logged and never returned.
"""

import shutil
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.enrollment.service import EnrollmentService
from src.extraction.identity_parser import IdentityParser
from src.notifications.factory import build_sender
from src.ocr.document_processor import DocumentProcessor
from src.otp.manager import OtpManager
from src.storage.factory import build_repositories
from src.storage.records import CandidateStatus, utcnow
from src.utils.config import load_config
from src.utils.errors import (
    CandidateNotFoundError,
    DuplicateCandidateError,
    RecognitionError,
    StorageError,
)
from src.utils.logger import get_logger

from .schemas import (
    CandidateListResponse,
    CandidateResponse,
    CandidateSummary,
    CheckRecordRequest,
    CheckRecordResponse,
    ErrorResponse,
    ExtractionResponse,
    HealthResponse,
    IdentityData,
    OtpResponse,
    RegisterRequest,
    RegisterResponse,
    SearchResponse,
    SendOtpRequest,
    StatusUpdateRequest,
    StatusUpdateResponse,
    VerifyOtpRequest,
)

logger = get_logger(__name__)

app = FastAPI(
    title="DB Skills Portal API",
    description="Candidate enrollment with OTP verification and ID-card OCR",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@dataclass
class Portal:
    """Long-lived service objects shared by all requests."""

    otp_manager: OtpManager
    enrollment: EnrollmentService
    document_processor: DocumentProcessor
    identity_parser: IdentityParser


@lru_cache(maxsize=1)
def _get_components() -> Portal:
    """Build the portal services once from configuration."""
    config = load_config()
    otp_repository, candidate_repository = build_repositories(config.storage)
    return Portal(
        otp_manager=OtpManager.from_config(
            config.otp, otp_repository, build_sender(config.notifications)
        ),
        enrollment=EnrollmentService(candidate_repository),
        document_processor=DocumentProcessor(config),
        identity_parser=IdentityParser(),
    )


_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "image/webp",
    "application/pdf",
    "application/octet-stream",
}


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    message = "Invalid or missing fields: " + ", ".join(fields) if fields else "Invalid request"
    return JSONResponse(
        status_code=400, content=ErrorResponse(message=message).model_dump()
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(message="Internal server error").model_dump(),
    )


def _is_digits(value: str | None, length: int) -> bool:
    return value is not None and len(value) == length and value.isdigit()


@app.get("/api/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return service health status."""
    return HealthResponse(
        success=True,
        message="DB Skills Portal API is running",
        timestamp=utcnow(),
        tesseract_available=shutil.which("tesseract") is not None,
    )


@app.post("/api/candidates/send-otp", response_model=OtpResponse)
def send_otp(body: SendOtpRequest) -> OtpResponse:
    """Issue a passcode to a 10-digit mobile number."""
    if not _is_digits(body.mobile, 10):
        raise HTTPException(
            status_code=400, detail="Valid 10-digit mobile number is required"
        )
    result = _get_components().otp_manager.issue(body.mobile)
    return OtpResponse(success=result.success, message=result.message)


@app.post("/api/candidates/verify-otp", response_model=OtpResponse)
def verify_otp(body: VerifyOtpRequest) -> OtpResponse:
    """Check a passcode for a mobile number."""
    if not body.mobile or not body.otp:
        raise HTTPException(
            status_code=400, detail="Mobile number and OTP are required"
        )
    if not _is_digits(body.mobile, 10) or not _is_digits(body.otp, 4):
        raise HTTPException(
            status_code=400,
            detail="Mobile number must be 10 digits and OTP must be 4 digits",
        )
    result = _get_components().otp_manager.verify(body.mobile, body.otp)
    return OtpResponse(success=result.success, message=result.message)


@app.post("/api/candidates/check-record", response_model=CheckRecordResponse)
def check_record(body: CheckRecordRequest) -> CheckRecordResponse:
    """Tell the form whether this ID number or mobile is already enrolled."""
    try:
        existing = _get_components().enrollment.check_record(
            body.aadhar_number, body.mobile
        )
    except StorageError as exc:
        logger.error("Check record failed: %s", exc)
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    if existing is None:
        return CheckRecordResponse(
            exists=False, message="New candidate - proceed to registration"
        )
    return CheckRecordResponse(
        exists=True,
        message="Candidate already exists",
        candidate=CandidateSummary.from_record(existing),
    )


@app.post(
    "/api/candidates/register", response_model=RegisterResponse, status_code=201
)
def register_candidate(body: RegisterRequest) -> RegisterResponse:
    """Enroll a new candidate after a duplicate check."""
    try:
        record = _get_components().enrollment.register(
            name=body.name,
            date_of_birth=body.dob,
            id_number=body.aadhar_number,
            mobile=body.mobile,
            address=body.address,
            program=body.program,
            category=body.category,
            center=body.center,
            trainer=body.trainer,
            duration=body.duration,
        )
    except DuplicateCandidateError as exc:
        logger.info("Registration rejected: %s", exc)
        raise HTTPException(
            status_code=400,
            detail="Candidate with this Aadhar or mobile number already exists",
        ) from exc
    except StorageError as exc:
        logger.error("Registration error: %s", exc)
        raise HTTPException(status_code=500, detail="Registration failed") from exc

    return RegisterResponse(
        message="Candidate registered successfully",
        candidate=CandidateSummary.from_record(record),
    )


@app.get("/api/candidates/search", response_model=SearchResponse)
def search_candidate(
    aadhar: Annotated[str | None, Query()] = None,
    mobile: Annotated[str | None, Query()] = None,
    candidate_id: Annotated[str | None, Query(alias="candidateId")] = None,
) -> SearchResponse:
    """Look a candidate up by ID number, mobile or candidate ID."""
    if not (aadhar or mobile or candidate_id):
        raise HTTPException(status_code=400, detail="Search parameter is required")
    try:
        record = _get_components().enrollment.search(
            id_number=aadhar, mobile=mobile, candidate_id=candidate_id
        )
    except StorageError as exc:
        logger.error("Search error: %s", exc)
        raise HTTPException(status_code=500, detail="Search failed") from exc

    if record is None:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return SearchResponse(candidate=CandidateResponse.from_record(record))


@app.get("/api/candidates/all", response_model=CandidateListResponse)
def list_candidates(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    status: Annotated[CandidateStatus | None, Query()] = None,
) -> CandidateListResponse:
    """Paginated candidate listing for administrators."""
    try:
        result = _get_components().enrollment.list_candidates(page, limit, status)
    except StorageError as exc:
        logger.error("Get candidates error: %s", exc)
        raise HTTPException(
            status_code=500, detail="Failed to fetch candidates"
        ) from exc

    return CandidateListResponse(
        candidates=[CandidateResponse.from_record(r) for r in result.candidates],
        total_pages=result.total_pages,
        current_page=result.current_page,
        total=result.total,
    )


@app.patch(
    "/api/candidates/{candidate_id}/status", response_model=StatusUpdateResponse
)
def update_candidate_status(
    candidate_id: str, body: StatusUpdateRequest
) -> StatusUpdateResponse:
    """Change a candidate's training status."""
    try:
        record = _get_components().enrollment.update_status(candidate_id, body.status)
    except CandidateNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Candidate not found") from exc
    except StorageError as exc:
        logger.error("Update status error: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to update status") from exc

    return StatusUpdateResponse(
        message="Status updated successfully",
        candidate=CandidateResponse.from_record(record),
    )


@app.post("/api/ocr/extract", response_model=ExtractionResponse)
async def extract_identity(
    file: Annotated[UploadFile, File(...)],
) -> ExtractionResponse:
    """Read name, date of birth and ID number from an identity-card upload.

    Fields the parser cannot find come back empty so the form can ask for
    manual entry.
    """
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )

    components = _get_components()
    content = await file.read()
    try:
        document = components.document_processor.process(
            content, file.filename or "document"
        )
    except RecognitionError as exc:
        logger.error("OCR error: %s", exc)
        raise HTTPException(
            status_code=500, detail="Failed to extract data from the image"
        ) from exc

    identity = components.identity_parser.parse(document.combined_text)
    return ExtractionResponse(
        data=IdentityData(
            name=identity.name,
            dob=identity.date_of_birth,
            aadhar=identity.id_number,
        ),
        raw_text=document.combined_text,
        confidence=document.confidence,
        page_count=document.page_count,
    )

from __future__ import annotations

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse


class CareerCoachError(Exception):
    """Base for every per-request failure the API reports to the caller.

    Subclasses fix the HTTP status and a stable machine-readable ``code``.
    ``details`` is a human-readable explanation or a small JSON-able payload.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    error: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, *, details: Any = None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidRequest(CareerCoachError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_request"
    error = "Invalid request"


class NotAuthenticated(CareerCoachError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "not_authenticated"
    error = "Unauthorized"


class InvalidIdentifier(CareerCoachError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_identifier"
    error = "Invalid resume ID format"


class StorageQueryFailed(CareerCoachError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "storage_query_failed"
    error = "Database query error"


class RecordNotFound(CareerCoachError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "record_not_found"
    error = "Resume not found in database"


class DuplicateRecord(CareerCoachError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "duplicate_record"
    error = "Multiple resumes found with the same ID"


class NotAuthorized(CareerCoachError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_authorized"
    error = "Not authorized to access this resume"


class FileUnresolvable(CareerCoachError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "file_unresolvable"
    error = "Failed to download resume file"

    def __init__(self, attempted_methods: list[str], errors: list[str]):
        self.attempted_methods = list(attempted_methods)
        self.errors = list(errors)
        super().__init__(
            details={"attemptedMethods": self.attempted_methods, "errors": self.errors},
        )


class UnsupportedFileType(CareerCoachError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "unsupported_file_type"
    error = "Unsupported file type"


class ExtractionFailed(CareerCoachError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "extraction_failed"
    error = "Failed to parse resume file"


class AnalysisFailed(CareerCoachError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "analysis_failed"
    error = "Failed to analyze content"


class AlreadyExists(CareerCoachError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_exists"
    error = "Resource already exists"


class JobNotFound(CareerCoachError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "job_not_found"
    error = "Job not found"


async def career_coach_error_handler(request: Request, exc: CareerCoachError) -> JSONResponse:
    _ = request
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

"""
Error envelope shared by every PSW backend route.

The voice UI only looks at ``success`` and ``error``; ``error_code`` and
``request_id`` are there for logs and support. Upstream client failures are
typed so routes can choose between a fallback body and an HTTP error.
"""

import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes, grouped by prefix."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_MISSING_FIELD = "VALIDATION_MISSING_FIELD"
    VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Ollama / Whisper / XTTS
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    SERVICE_TIMEOUT = "SERVICE_TIMEOUT"
    SERVICE_UPSTREAM_ERROR = "SERVICE_UPSTREAM_ERROR"

    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.VALIDATION_MISSING_FIELD: 400,
    ErrorCode.VALIDATION_INVALID_FORMAT: 400,
    ErrorCode.PAYLOAD_TOO_LARGE: 413,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
    ErrorCode.SERVICE_TIMEOUT: 504,
    ErrorCode.SERVICE_UPSTREAM_ERROR: 502,
    ErrorCode.INTERNAL_ERROR: 500,
}


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def get_status_code(error_code: ErrorCode | str) -> int:
    """HTTP status for an error code; unknown codes map to 500."""
    try:
        return ERROR_STATUS_CODES[ErrorCode(error_code)]
    except ValueError:
        return 500


class APIError(BaseModel):
    """Structured error carried by ``APIException``.

    Example:
        >>> APIError(error_code=ErrorCode.VALIDATION_MISSING_FIELD, message="audioData is required")
    """

    error_code: ErrorCode
    message: str = Field(..., examples=["text is required and cannot be empty"])
    details: dict[str, Any] | None = Field(default=None, examples=[{"field": "text"}])
    request_id: str = Field(default_factory=new_request_id)
    service: str = "psw-backend"


class APIException(Exception):
    """Raised from routes and middleware; rendered by the handler in ``pswdocs.main``.

    Args:
        error_code: ErrorCode (or its string value).
        message: Text shown to the user as ``error``.
        details: Optional structured context.
        status_code: Overrides the status derived from ``error_code``.
        service: Component that raised the error.
        extra: Extra top-level fields merged into the body.
    """

    def __init__(
        self,
        error_code: ErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        service: str = "psw-backend",
        extra: dict[str, Any] | None = None,
    ):
        self.error = APIError(error_code=error_code, message=message, details=details, service=service)
        self.status_code = status_code or get_status_code(self.error.error_code)
        self.extra = extra or {}
        super().__init__(message)

    def to_response(self, request_id: str | None = None) -> dict[str, Any]:
        """``{"success": false, "error", "error_code", "request_id", ...}``

        ``request_id`` replaces the generated id so the body matches the
        ``X-Request-ID`` header and the request log line.
        """
        body: dict[str, Any] = {
            "success": False,
            "error": self.error.message,
            "error_code": self.error.error_code.value,
            "request_id": request_id or self.error.request_id,
        }
        if self.error.details:
            body["details"] = self.error.details
        body.update(self.extra)
        return body


class UpstreamServiceError(Exception):
    """Failure talking to Ollama, Whisper or XTTS.

    Attributes:
        service: ``ollama``, ``whisper`` or ``xtts``.
        error_code: Failure class; SERVICE_UNAVAILABLE and SERVICE_TIMEOUT
            mean the server could not be reached at all.
    """

    def __init__(self, service: str, message: str, error_code: ErrorCode = ErrorCode.SERVICE_UPSTREAM_ERROR):
        self.service = service
        self.error_code = error_code
        super().__init__(message)


class LLMServiceError(UpstreamServiceError):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.SERVICE_UPSTREAM_ERROR):
        super().__init__("ollama", message, error_code)


class SpeechServiceError(UpstreamServiceError):
    """Whisper or XTTS failure."""


def missing_field(field: str, message: str | None = None, **extra: Any) -> APIException:
    """400 for an absent required request field (``"<field> is required"``)."""
    return APIException(
        error_code=ErrorCode.VALIDATION_MISSING_FIELD,
        message=message or f"{field} is required",
        details={"field": field},
        extra=extra,
    )

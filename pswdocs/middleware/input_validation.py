"""
Input Validation Middleware
Rejects oversized bodies and path traversal in query strings before routing
"""

import logging
import re

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.errors import APIException, ErrorCode

logger = logging.getLogger(__name__)

PATH_TRAVERSAL_PATTERNS = [
    r"\.\./",
    r"%2e%2e/",
    r"\.\.\\",
]


class InputValidationMiddleware(BaseHTTPMiddleware):
    """Validate request size and query parameters"""

    def __init__(self, app, max_query_length: int = 10000, max_body_size: int = 10485760):
        """
        Initialize input validation middleware

        Args:
            app: FastAPI application
            max_query_length: Maximum length of a single query parameter
            max_body_size: Maximum request body size (10MB default)
        """
        super().__init__(app)
        self.max_query_length = max_query_length
        self.max_body_size = max_body_size
        self.path_patterns = [re.compile(p, re.IGNORECASE) for p in PATH_TRAVERSAL_PATTERNS]

    def _check_path_traversal(self, value: str) -> bool:
        return any(pattern.search(value) for pattern in self.path_patterns)

    def _reject(self, request: Request, error_code: ErrorCode, message: str) -> JSONResponse:
        exc = APIException(error_code=error_code, message=message)
        request_id = getattr(request.state, "request_id", None)
        return JSONResponse(status_code=exc.status_code, content=exc.to_response(request_id))

    async def dispatch(self, request: Request, call_next):
        """Validate request inputs"""
        if request.url.path in ("/health", "/"):
            return await call_next(request)

        content_length = request.headers.get("content-length")
        if content_length:
            try:
                size = int(content_length)
            except ValueError:
                return self._reject(request, ErrorCode.VALIDATION_INVALID_FORMAT, "Invalid Content-Length header")
            if size > self.max_body_size:
                logger.warning(
                    "[SECURITY] Rejected %d byte body (limit %d)",
                    size,
                    self.max_body_size,
                    extra={"path": request.url.path},
                )
                return self._reject(
                    request,
                    ErrorCode.PAYLOAD_TOO_LARGE,
                    f"Request body too large (max {self.max_body_size // (1024 * 1024)}MB)",
                )

        for key, value in request.query_params.items():
            if len(value) > self.max_query_length:
                return self._reject(
                    request,
                    ErrorCode.VALIDATION_ERROR,
                    f"Parameter '{key}' too long (max {self.max_query_length} characters)",
                )
            if self._check_path_traversal(value):
                logger.warning("[SECURITY] Blocked path traversal attempt in '%s': %s", key, value[:100])
                return self._reject(
                    request,
                    ErrorCode.VALIDATION_ERROR,
                    "Invalid input detected. Request blocked for security reasons.",
                )

        return await call_next(request)

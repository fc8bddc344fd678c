"""
Security Headers Middleware
Adds security-related HTTP headers to all responses
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# JSON API only; nothing is rendered from this origin
CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'none'",
        "frame-ancestors 'none'",
        "base-uri 'none'",
        "form-action 'none'",
    ]
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses"""

    def __init__(self, app, enable_hsts: bool = False):
        """
        Initialize security headers middleware

        Args:
            app: FastAPI application
            enable_hsts: Enable HSTS header (only for HTTPS)
        """
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # The voice UI records audio in the browser, not through this API
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        # Clinical notes must not be cached by intermediaries
        response.headers.setdefault("Cache-Control", "no-store")

        if self.enable_hsts and (
            request.url.scheme == "https" or request.headers.get("x-forwarded-proto") == "https"
        ):
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response

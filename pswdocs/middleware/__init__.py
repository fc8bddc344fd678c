from .input_validation import InputValidationMiddleware
from .rate_limiter import RateLimiter, RateLimitMiddleware, get_rate_limiter
from .request_logging import RequestLoggingMiddleware
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "InputValidationMiddleware",
    "RateLimiter",
    "RateLimitMiddleware",
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "get_rate_limiter",
]

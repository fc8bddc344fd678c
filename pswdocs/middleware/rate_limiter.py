"""
Rate Limiting Middleware
Sliding-window request budgets per client IP. Routes that occupy a model
server (Ollama, Whisper, XTTS) share a tighter budget than the rest of the API.
"""

import logging
import threading
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, NamedTuple, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.errors import APIException, ErrorCode

logger = logging.getLogger(__name__)

AI_ROUTE_PREFIXES = (
    "/api/generate-ai-report",
    "/api/process-conversation-ai",
    "/api/translate-report",
    "/api/transcribe-whisper",
    "/api/synthesize-xtts",
    "/api/text-to-speech",
    "/api/ollama/",
    "/api/whisper/",
    "/api/xtts/",
)

EXEMPT_PATHS = {"/", "/health", "/api/health"}

# Allowed requests between sweeps of idle clients
PRUNE_EVERY = 500


class Rule(NamedTuple):
    name: str
    limit: int
    window_seconds: int


class RateDecision(NamedTuple):
    allowed: bool
    rule: Rule
    count: int
    retry_after: int = 0

    @property
    def remaining(self) -> int:
        return max(self.rule.limit - self.count, 0)


class RateLimiter:
    """
    Sliding window limiter keyed on (client, rule)

    Args:
        ai_limit: Requests per window on AI routes
        default_limit: Requests per window everywhere else
        window_seconds: Window length
        clock: Monotonic time source
    """

    def __init__(
        self,
        ai_limit: int = 20,
        default_limit: int = 100,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ai_rule = Rule("ai", ai_limit, window_seconds)
        self.default_rule = Rule("default", default_limit, window_seconds)
        self.window_seconds = window_seconds
        self._hits: Dict[Tuple[str, str], Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._clock = clock
        self._allowed = 0

    def rule_for(self, path: str) -> Rule:
        return self.ai_rule if path.startswith(AI_ROUTE_PREFIXES) else self.default_rule

    def check(self, client_id: str, path: str) -> RateDecision:
        """Count one request from ``client_id`` unless its budget is spent"""
        rule = self.rule_for(path)

        with self._lock:
            now = self._clock()
            hits = self._hits[(client_id, rule.name)]
            cutoff = now - rule.window_seconds
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= rule.limit:
                retry_after = int(hits[0] + rule.window_seconds - now) + 1
                return RateDecision(False, rule, len(hits), retry_after)

            hits.append(now)
            self._allowed += 1
            if self._allowed % PRUNE_EVERY == 0:
                self._prune(now)
            return RateDecision(True, rule, len(hits))

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._hits)

    def _prune(self, now: float) -> None:
        cutoff = now - self.window_seconds
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
            del self._hits[key]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """429 with ``Retry-After`` once a client exceeds its budget"""

    def __init__(self, app, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        decision = self.limiter.check(client_ip, request.url.path)
        headers = {
            "X-RateLimit-Limit": str(decision.rule.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
            "X-RateLimit-Window": str(decision.rule.window_seconds),
        }

        if not decision.allowed:
            logger.warning(
                "[RATE_LIMITER] %s exceeded %s limit",
                client_ip,
                decision.rule.name,
                extra={"client_ip": client_ip, "path": request.url.path},
            )
            exc = APIException(
                error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
                message=f"Rate limit exceeded. Try again in {decision.retry_after} seconds.",
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response(getattr(request.state, "request_id", None)),
                headers={**headers, "Retry-After": str(decision.retry_after)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response


_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get or create the process-wide limiter from settings"""
    global _rate_limiter
    if _rate_limiter is None:
        from pswdocs.config import get_settings

        settings = get_settings()
        _rate_limiter = RateLimiter(
            ai_limit=settings.RATE_LIMIT_AI,
            default_limit=settings.RATE_LIMIT_DEFAULT,
            window_seconds=settings.RATE_LIMIT_WINDOW_SEC,
        )
    return _rate_limiter

"""
Resilient HTTP access to the local model servers.

Ollama, Whisper and XTTS run on the same machine or LAN and are slow to start:
a model may still be loading (503) or a container restarting (connection
refused). ``BaseServiceClient`` retries those transient failures with
exponential backoff and trips a circuit breaker when a server stays down, so
routes fall back quickly instead of stacking up blocked requests.
"""

import asyncio
import logging
import time
from enum import Enum

import httpx

logger = logging.getLogger(__name__)

# Upstream statuses worth retrying (model loading, proxy restarts)
RETRYABLE_STATUS_CODES = frozenset({502, 503, 504})


class CircuitOpenError(RuntimeError):
    """Raised when a request is rejected by an open circuit breaker."""


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Per-upstream circuit breaker.

    - CLOSED: requests flow; consecutive failures are counted
    - OPEN: requests are rejected until ``recovery_timeout`` elapses
    - HALF_OPEN: a single trial request decides between CLOSED and OPEN
    """

    def __init__(self, failure_threshold: int = 5, recovery_timeout: float = 30.0):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = CircuitState.CLOSED
        self._opened_at = 0.0
        self._trial_in_flight = False

    def record_success(self) -> None:
        if self.state != CircuitState.CLOSED:
            logger.info("Circuit breaker CLOSED after successful trial request")
        self.failure_count = 0
        self.state = CircuitState.CLOSED
        self._trial_in_flight = False

    def record_failure(self) -> None:
        self.failure_count += 1
        self._trial_in_flight = False
        if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state != CircuitState.OPEN:
                logger.warning("Circuit breaker OPEN after %d failures", self.failure_count)
            self.state = CircuitState.OPEN
            self._opened_at = time.monotonic()

    def release_trial(self) -> None:
        """Free the half-open slot when a trial ends without an outcome."""
        self._trial_in_flight = False

    def should_allow_request(self) -> bool:
        if self.state == CircuitState.CLOSED:
            return True

        if self.state == CircuitState.OPEN:
            if time.monotonic() - self._opened_at < self.recovery_timeout:
                return False
            self.state = CircuitState.HALF_OPEN
            logger.info("Circuit breaker HALF_OPEN, testing recovery")

        if self._trial_in_flight:
            return False
        self._trial_in_flight = True
        return True


class BaseServiceClient:
    """
    Shared transport for the model server clients.

    Args:
        base_url: Server root, e.g. ``http://localhost:11434``
        service_name: Label used in logs and errors
        timeout: Per-request timeout in seconds
        max_retries: Attempts per request, including the first
        retry_delay: Initial backoff in seconds (doubled per attempt)
        transport: Optional httpx transport (``httpx.MockTransport`` in tests)
        headers: Headers sent with every request
    """

    def __init__(
        self,
        base_url: str,
        service_name: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_name = service_name
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.transport = transport
        self.default_headers = dict(headers or {})
        self.circuit_breaker = CircuitBreaker()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
                headers=self.default_headers,
            )
        return self._client

    async def _backoff(self, attempt: int, reason: object) -> None:
        delay = self.retry_delay * (2**attempt)
        logger.warning(
            "%s request failed (attempt %d/%d): %s. Retrying in %.1fs",
            self.service_name,
            attempt + 1,
            self.max_retries,
            reason,
            delay,
        )
        await asyncio.sleep(delay)

    async def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """
        Send a request with retry and circuit breaking.

        Connection errors, timeouts and 502/503/504 replies are retried. Other
        responses, including 4xx and 500, are returned to the caller as-is.

        Raises:
            CircuitOpenError: The breaker is open for this upstream
            httpx.HTTPError: The last transport error once retries run out
        """
        if not self.circuit_breaker.should_allow_request():
            raise CircuitOpenError(f"Circuit breaker OPEN for {self.service_name}")

        last_error: httpx.HTTPError | None = None
        response: httpx.Response | None = None

        try:
            client = await self._get_client()
            for attempt in range(self.max_retries):
                try:
                    response = await client.request(method, path, **kwargs)
                except httpx.HTTPError as e:
                    last_error, response = e, None
                    reason: object = e
                else:
                    if response.status_code not in RETRYABLE_STATUS_CODES:
                        self.circuit_breaker.record_success()
                        return response
                    reason = f"HTTP {response.status_code}"

                if attempt < self.max_retries - 1:
                    await self._backoff(attempt, reason)
        except BaseException:
            # Cancelled or failed outside httpx
            self.circuit_breaker.release_trial()
            raise

        self.circuit_breaker.record_failure()
        logger.error("%s request failed after %d attempts: %s", self.service_name, self.max_retries, reason)
        if response is not None:
            return response
        raise last_error

    async def get(self, path: str, **kwargs) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def ping(self, path: str, timeout: float = 3.0) -> bool:
        """Single-shot liveness check; bypasses retries and the breaker."""
        try:
            client = await self._get_client()
            response = await client.get(path, timeout=timeout)
        except httpx.HTTPError as e:
            logger.warning("[%s] Availability check failed: %s", self.service_name, e)
            return False
        return response.status_code < 400

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

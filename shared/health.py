"""
Component health for the PSW backend.

The AI services are optional: when Ollama, Whisper or XTTS is down the routes
fall back (deterministic DAR, browser speech APIs) and the service reports
``degraded``. A failing critical component such as report storage makes the
service ``unhealthy``.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, Field

CheckFn = Callable[[], Awaitable[Any]]


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Result of one component check.

    Attributes:
        name: Component identifier (ollama, whisper, xtts, report_storage).
        status: ``healthy`` or ``unhealthy``.
        critical: Whether a failure takes the whole service down.
        fallback: What the API does instead while the component is down.
        message: Check detail or error text.
        latency_ms: Check duration.
    """

    name: str
    status: HealthStatus
    critical: bool = False
    fallback: str | None = None
    message: str | None = None
    latency_ms: float | None = None


class HealthResponse(BaseModel):
    status: HealthStatus
    service: str
    version: str = "1.0.0"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    components: list[ComponentHealth] = Field(default_factory=list)
    uptime_seconds: float = 0.0

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "degraded",
                "service": "psw-backend",
                "version": "1.0.0",
                "timestamp": "2025-03-14T12:00:00Z",
                "components": [
                    {"name": "ollama", "status": "healthy", "critical": False, "latency_ms": 5.2},
                    {
                        "name": "xtts",
                        "status": "unhealthy",
                        "critical": False,
                        "fallback": "browser",
                        "message": "check failed",
                        "latency_ms": 3.1,
                    },
                    {"name": "report_storage", "status": "healthy", "critical": True, "latency_ms": 0.4},
                ],
                "uptime_seconds": 3600.0,
            }
        }
    }


@dataclass
class ComponentCheck:
    check_fn: CheckFn
    critical: bool = False
    fallback: str | None = None


class HealthChecker:
    """Runs registered component checks concurrently.

    Args:
        service_name: Reported service name.
        version: Reported version string.
        timeout: Seconds each check may take before it counts as failed.
    """

    def __init__(self, service_name: str, version: str = "1.0.0", timeout: float = 5.0):
        self.service_name = service_name
        self.version = version
        self.timeout = timeout
        self.start_time = datetime.now(UTC)
        self._checks: dict[str, ComponentCheck] = {}

    def register_check(
        self,
        name: str,
        check_fn: CheckFn,
        critical: bool = False,
        fallback: str | None = None,
    ) -> None:
        """Register a check returning a bool or ``(bool, message)``."""
        self._checks[name] = ComponentCheck(check_fn=check_fn, critical=critical, fallback=fallback)

    async def _run_check(self, name: str, check: ComponentCheck) -> ComponentHealth:
        loop = asyncio.get_running_loop()
        start = loop.time()
        message: str | None = None
        try:
            result = await asyncio.wait_for(check.check_fn(), timeout=self.timeout)
            ok, message = result if isinstance(result, tuple) else (bool(result), None)
        except TimeoutError:
            ok, message = False, f"check timed out after {self.timeout:g}s"
        except Exception as e:
            ok, message = False, str(e) or type(e).__name__

        return ComponentHealth(
            name=name,
            status=HealthStatus.HEALTHY if ok else HealthStatus.UNHEALTHY,
            critical=check.critical,
            fallback=None if ok else check.fallback,
            message=message,
            latency_ms=round((loop.time() - start) * 1000, 2),
        )

    @staticmethod
    def overall_status(components: list[ComponentHealth]) -> HealthStatus:
        failed = [c for c in components if c.status != HealthStatus.HEALTHY]
        if any(c.critical for c in failed):
            return HealthStatus.UNHEALTHY
        if failed:
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY

    async def check_health(self) -> HealthResponse:
        components = list(await asyncio.gather(*(self._run_check(name, check) for name, check in self._checks.items())))
        return HealthResponse(
            status=self.overall_status(components),
            service=self.service_name,
            version=self.version,
            components=components,
            uptime_seconds=round((datetime.now(UTC) - self.start_time).total_seconds(), 2),
        )

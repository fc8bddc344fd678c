"""
Health API Routes

Endpoints:
- GET / - Service banner
- GET /health - Aggregated component health
- GET /api/health - Same, under the API prefix
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Response

from shared.clients.ollama import OllamaClient
from shared.clients.whisper import WhisperClient
from shared.clients.xtts import XTTSClient
from shared.health import HealthChecker, HealthResponse, HealthStatus

from pswdocs import __version__
from pswdocs.storage.report_store import ReportStore

logger = logging.getLogger(__name__)

SERVICE_NAME = "psw-backend"

router = APIRouter(tags=["health"])

# Checker instance (initialized by main app)
_checker: Optional[HealthChecker] = None


def initialize_checker(
    ollama: OllamaClient,
    whisper: WhisperClient,
    xtts: XTTSClient,
    store: ReportStore,
) -> HealthChecker:
    """
    Register component checks for the local AI services and report storage

    Returns:
        Initialized HealthChecker
    """
    global _checker
    _checker = HealthChecker(service_name=SERVICE_NAME, version=__version__)
    _checker.register_check("ollama", ollama.is_available, fallback="deterministic_dar")
    _checker.register_check("whisper", whisper.is_available, fallback="browser")
    _checker.register_check("xtts", xtts.is_available, fallback="browser")

    async def storage_check() -> bool:
        return await asyncio.to_thread(store.is_writable)

    _checker.register_check("report_storage", storage_check, critical=True)
    return _checker


def get_checker() -> HealthChecker:
    """Get health checker instance"""
    if _checker is None:
        raise RuntimeError("Health checker not initialized")
    return _checker


@router.get("/")
def root() -> Dict[str, Any]:
    return {
        "name": "PSW Backend Server",
        "version": __version__,
        "description": "Local AI services for PSW voice documentation",
        "endpoints": {"health": "/health", "api": "/api/*"},
    }


@router.get("/health", response_model=HealthResponse)
@router.get("/api/health", response_model=HealthResponse)
async def health(response: Response) -> HealthResponse:
    """
    Aggregated health

    An AI service that fails its check marks the service ``degraded`` and the
    API keeps serving with fallbacks. A critical component failure answers 503.
    """
    result = await get_checker().check_health()
    if result.status != HealthStatus.HEALTHY:
        failed = [c.name for c in result.components if c.status != HealthStatus.HEALTHY]
        logger.warning("[HEALTH] %s: %s", result.status.value, ", ".join(failed))
    if result.status == HealthStatus.UNHEALTHY:
        response.status_code = 503
    return result

"""
PSW Backend Server

FastAPI application for local AI shift documentation: conversational
capture, DAR report generation and the Ollama / Whisper / XTTS proxies.
Everything runs against services on the local network so no client data
leaves the machine.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.clients.ollama import OllamaClient
from shared.clients.whisper import WhisperClient
from shared.clients.xtts import XTTSClient
from shared.errors import APIException, ErrorCode
from shared.logging import setup_logging

from pswdocs import __version__
from pswdocs.config import Settings, get_settings
from pswdocs.middleware import (
    InputValidationMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    get_rate_limiter,
)
from pswdocs.routers import health as health_routes
from pswdocs.services.conversation import routes as conversation_routes
from pswdocs.services.llm import routes as llm_routes
from pswdocs.services.reports import routes as report_routes
from pswdocs.services.speech import routes as speech_routes
from pswdocs.storage.report_store import ReportStore

settings = get_settings()
logger = setup_logging("psw-backend", structured=settings.STRUCTURED_LOGGING, level=settings.LOG_LEVEL)


# -----------------------------------------------------------------------------
# Service Initialization
# -----------------------------------------------------------------------------

def initialize_all_services(config: Settings) -> dict:
    """
    Build the upstream clients and report store and hand them to the routers

    Returns:
        The created clients keyed by name (closed on shutdown)
    """
    ollama = OllamaClient(
        base_url=config.OLLAMA_HOST,
        fast_model=config.OLLAMA_FAST_MODEL,
        balanced_model=config.OLLAMA_BALANCED_MODEL,
        primary_model=config.OLLAMA_PRIMARY_MODEL,
        timeout=config.OLLAMA_TIMEOUT_SECONDS,
    )
    whisper = WhisperClient(
        base_url=config.LOCAL_WHISPER_URL,
        model=config.WHISPER_MODEL,
        language=config.WHISPER_LANGUAGE,
        timeout=config.WHISPER_TIMEOUT_SECONDS,
    )
    xtts = XTTSClient(
        base_url=config.LOCAL_TTS_URL,
        sample_rate=config.XTTS_SAMPLE_RATE,
        timeout=config.XTTS_TIMEOUT_SECONDS,
    )
    store = ReportStore(config.reports_path)
    local_mode = config.local_mode

    report_routes.initialize_service(llm=ollama, store=store, local_mode=local_mode)
    conversation_routes.initialize_service(llm=ollama, local_mode=local_mode)
    speech_routes.initialize_service(whisper=whisper, xtts=xtts, local_mode=local_mode)
    llm_routes.initialize_service(ollama)
    health_routes.initialize_checker(ollama=ollama, whisper=whisper, xtts=xtts, store=store)

    logger.info(
        "[INIT] Services ready (local_mode=%s, ollama=%s, whisper=%s, xtts=%s, reports=%s)",
        local_mode,
        config.OLLAMA_HOST,
        config.LOCAL_WHISPER_URL,
        config.LOCAL_TTS_URL,
        store.base_dir,
    )
    return {"ollama": ollama, "whisper": whisper, "xtts": xtts}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown"""
    clients = initialize_all_services(settings)
    yield
    logger.info("[SHUTDOWN] Closing upstream clients")
    for name, client in clients.items():
        try:
            await client.close()
        except Exception as e:
            logger.warning("[SHUTDOWN] Error closing %s client: %s", name, e)


# -----------------------------------------------------------------------------
# FastAPI Application
# -----------------------------------------------------------------------------

app = FastAPI(
    title="PSW Backend Server",
    version=__version__,
    description="Local AI services for PSW voice documentation",
    lifespan=lifespan,
)

# Starlette runs the last-added middleware first; CORS is outermost.
app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.FORCE_HSTS)
app.add_middleware(InputValidationMiddleware, max_body_size=settings.max_body_bytes)

if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(RateLimitMiddleware, limiter=get_rate_limiter())
    logger.info("[SECURITY] Rate limiting enabled")

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------------------------------------------------------
# Error Handling
# -----------------------------------------------------------------------------

def request_id_of(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_response(request_id_of(request)))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        error = APIException(
            error_code=ErrorCode.RESOURCE_NOT_FOUND,
            message="Endpoint not found",
            extra={"path": request.url.path},
        )
    else:
        error = APIException(
            error_code=ErrorCode.VALIDATION_ERROR if exc.status_code < 500 else ErrorCode.INTERNAL_ERROR,
            message=str(exc.detail),
            status_code=exc.status_code,
        )
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_response(request_id_of(request)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    error = APIException(
        error_code=ErrorCode.VALIDATION_ERROR,
        message="Invalid request body",
        details={"errors": errors},
    )
    return JSONResponse(status_code=error.status_code, content=error.to_response(request_id_of(request)))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "[ERROR] Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    error = APIException(
        error_code=ErrorCode.INTERNAL_ERROR,
        message=str(exc) if settings.is_development else "Internal server error",
    )
    return JSONResponse(status_code=500, content=error.to_response(request_id_of(request)))


# -----------------------------------------------------------------------------
# Routers
# -----------------------------------------------------------------------------

app.include_router(health_routes.router)
app.include_router(report_routes.router)
app.include_router(conversation_routes.router)
for speech_router in speech_routes.get_routers():
    app.include_router(speech_router)
app.include_router(llm_routes.router)


def run() -> None:
    uvicorn.run(
        "pswdocs.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()

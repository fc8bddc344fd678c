"""
Ollama LLM API Routes

Direct access to the local Ollama host for clients that build their own
prompts.

Endpoints:
- POST /api/ollama/chat - Chat completion with conversation history
- POST /api/ollama/generate - Single-prompt completion
- GET /api/ollama/models - Installed and configured models
- GET /api/ollama/health - Ollama availability
"""

import logging
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict

from shared.clients.ollama import OllamaClient
from shared.errors import APIException, ErrorCode, UpstreamServiceError, missing_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ollama", tags=["ollama"])

# Client instance (initialized by main app)
_client: Optional[OllamaClient] = None


def initialize_service(client: OllamaClient) -> OllamaClient:
    """Register the Ollama client used by the proxy routes"""
    global _client
    _client = client
    return _client


def get_service() -> OllamaClient:
    """Get Ollama client instance"""
    if _client is None:
        raise RuntimeError("Ollama client not initialized")
    return _client


class ChatRequest(BaseModel):
    """Request model for chat completion"""
    model_config = ConfigDict(extra="allow")

    messages: Any = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    quality: Optional[str] = None


class GenerateRequest(BaseModel):
    """Request model for single-prompt generation"""
    prompt: Optional[str] = None
    system: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    quality: Optional[str] = None


def _upstream_failure(e: UpstreamServiceError) -> APIException:
    if e.error_code == ErrorCode.VALIDATION_ERROR:
        return APIException(error_code=e.error_code, message=str(e), service="ollama")
    return APIException(
        error_code=ErrorCode.INTERNAL_ERROR,
        message=str(e),
        details={"upstream_error": e.error_code.value},
        status_code=500,
        service="ollama",
    )


@router.post("/chat")
async def ollama_chat(payload: ChatRequest) -> Dict[str, Any]:
    """
    Chat completion

    Returns:
        {"success", "message": {"role", "content"}, "model", "duration",
        "tokensPerSecond", "totalTokens", "timestamp"}
    """
    client = get_service()

    if not isinstance(payload.messages, list):
        raise missing_field("messages", "messages array is required")

    try:
        return await client.chat(
            payload.messages,
            temperature=payload.temperature or 0.7,
            max_tokens=payload.max_tokens or 2048,
            quality=payload.quality or "speed",
        )
    except UpstreamServiceError as e:
        logger.error("[OLLAMA] Chat failed: %s", e)
        raise _upstream_failure(e) from e


@router.post("/generate")
async def ollama_generate(payload: GenerateRequest) -> Dict[str, Any]:
    """Single-prompt completion"""
    client = get_service()

    if not payload.prompt:
        raise missing_field("prompt")

    try:
        return await client.generate(
            payload.prompt,
            system=payload.system,
            temperature=payload.temperature or 0.7,
            max_tokens=payload.max_tokens or 2048,
            quality=payload.quality or "speed",
        )
    except UpstreamServiceError as e:
        logger.error("[OLLAMA] Generate failed: %s", e)
        raise _upstream_failure(e) from e


@router.get("/models")
async def ollama_models() -> Dict[str, Any]:
    client = get_service()

    try:
        models: List[Dict[str, Any]] = await client.list_models()
    except UpstreamServiceError as e:
        logger.error("[OLLAMA] Model listing failed: %s", e)
        raise _upstream_failure(e) from e

    return {"success": True, "models": models, "configured": client.get_model_info()}


@router.get("/health")
async def ollama_health() -> Dict[str, Any]:
    client = get_service()
    available = await client.is_available()
    return {
        "status": "healthy" if available else "unavailable",
        "service": "Ollama LLM",
        "available": available,
        "model": client.get_model_info(),
        "timestamp": datetime.now(UTC).isoformat(),
    }

"""
Ollama client for the local LLM.

Three model tiers are configured; callers pick one with ``quality``:
``speed`` for conversational turns, ``balanced`` for final reports and
``quality`` (alias ``max``) for the largest model.
"""

import logging
import time
from datetime import UTC, datetime
from typing import Any

import httpx

from shared.errors import ErrorCode, LLMServiceError

from .base import BaseServiceClient, CircuitOpenError

logger = logging.getLogger(__name__)

DEFAULT_FAST_MODEL = "qwen2.5:14b-instruct-q4_K_M"
DEFAULT_BALANCED_MODEL = "qwen2.5:30b-instruct-q4_K_M"
DEFAULT_PRIMARY_MODEL = "llama3.3:70b"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _tokens_per_second(result: dict[str, Any]) -> int:
    eval_duration = result.get("eval_duration") or 0
    if not eval_duration:
        return 0
    return round((result.get("eval_count") or 0) / (eval_duration / 1e9))


class OllamaClient(BaseServiceClient):
    """Async client for the Ollama REST API (``/api/chat``, ``/api/generate``, ``/api/tags``)."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        fast_model: str = DEFAULT_FAST_MODEL,
        balanced_model: str = DEFAULT_BALANCED_MODEL,
        primary_model: str = DEFAULT_PRIMARY_MODEL,
        timeout: float = 120.0,
        **kwargs,
    ):
        super().__init__(base_url, "ollama", timeout=timeout, **kwargs)
        self.fast_model = fast_model
        self.balanced_model = balanced_model
        self.primary_model = primary_model

    def select_model(self, quality: str | None) -> str:
        if quality in ("quality", "max"):
            return self.primary_model
        if quality == "balanced":
            return self.balanced_model
        return self.fast_model

    async def _post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST to Ollama and decode the JSON reply, mapping failures to LLMServiceError."""
        try:
            response = await self.post(path, json=payload)
        except CircuitOpenError as e:
            raise LLMServiceError(str(e), ErrorCode.SERVICE_UNAVAILABLE) from e
        except httpx.TimeoutException as e:
            raise LLMServiceError(
                f"Ollama request timeout after {self.timeout:.0f}s. Is Ollama running?",
                ErrorCode.SERVICE_TIMEOUT,
            ) from e
        except httpx.HTTPError as e:
            raise LLMServiceError(
                f"Ollama connection failed: {e}. Verify Ollama is running at {self.base_url}",
                ErrorCode.SERVICE_UNAVAILABLE,
            ) from e

        if response.status_code >= 400:
            raise LLMServiceError(f"Ollama API error: {response.status_code} {response.reason_phrase}")

        try:
            result = response.json()
        except ValueError as e:
            raise LLMServiceError("Ollama returned a non-JSON response") from e
        if not isinstance(result, dict):
            raise LLMServiceError("Ollama returned an unexpected response shape")
        return result

    async def chat(
        self,
        messages: list[dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: int = 2048,
        quality: str = "speed",
        model: str | None = None,
    ) -> dict[str, Any]:
        """
        Chat completion with conversation history.

        Args:
            messages: ``[{"role": ..., "content": ...}]`` turns, system prompt first.
            temperature: Sampling temperature.
            max_tokens: Forwarded as ``options.num_predict``.
            quality: Model tier (speed, balanced, quality).
            model: Explicit model name, overrides ``quality``.

        Returns:
            dict: ``success``, ``message``, ``model``, ``duration`` and token stats.

        Raises:
            LLMServiceError: Empty history, connection failure, timeout, non-2xx
                status or a reply without a message.
        """
        if not messages:
            raise LLMServiceError("messages array cannot be empty", ErrorCode.VALIDATION_ERROR)

        chosen = model or self.select_model(quality)
        payload = {
            "model": chosen,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": temperature,
                "top_p": 0.9,
                "top_k": 40,
                "num_predict": max_tokens,
            },
        }

        start = time.monotonic()
        result = await self._post_json("/api/chat", payload)
        message = result.get("message")
        if not isinstance(message, dict):
            raise LLMServiceError("Ollama chat response missing message")

        duration = result["total_duration"] / 1e9 if result.get("total_duration") else time.monotonic() - start
        logger.info(
            "[Ollama] chat completed in %.2fs",
            duration,
            extra={"model": chosen, "upstream": "ollama"},
        )
        return {
            "success": True,
            "message": {"role": message.get("role", "assistant"), "content": message.get("content") or ""},
            "model": chosen,
            "duration": duration,
            "tokensPerSecond": _tokens_per_second(result),
            "totalTokens": result.get("eval_count") or 0,
            "timestamp": _now_iso(),
        }

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        quality: str = "speed",
        model: str | None = None,
    ) -> dict[str, Any]:
        """Single-prompt completion via ``/api/generate``."""
        chosen = model or self.select_model(quality)
        payload: dict[str, Any] = {
            "model": chosen,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "top_p": 0.9,
                "top_k": 40,
                "num_predict": max_tokens,
            },
        }
        if system:
            payload["system"] = system

        start = time.monotonic()
        result = await self._post_json("/api/generate", payload)
        duration = result["total_duration"] / 1e9 if result.get("total_duration") else time.monotonic() - start
        return {
            "success": True,
            "response": result.get("response") or "",
            "model": chosen,
            "duration": duration,
            "tokensPerSecond": _tokens_per_second(result),
            "totalTokens": result.get("eval_count") or 0,
            "timestamp": _now_iso(),
        }

    async def list_models(self) -> list[dict[str, Any]]:
        """Models installed on the Ollama host."""
        try:
            response = await self.get("/api/tags")
        except (CircuitOpenError, httpx.HTTPError) as e:
            raise LLMServiceError(f"Failed to list models: {e}", ErrorCode.SERVICE_UNAVAILABLE) from e
        if response.status_code >= 400:
            raise LLMServiceError(f"Failed to list models: {response.status_code} {response.reason_phrase}")
        return response.json().get("models") or []

    async def is_available(self) -> bool:
        """Ping ``/api/version`` without retries."""
        return await self.ping("/api/version", timeout=5.0)

    def get_model_info(self) -> dict[str, Any]:
        return {
            "speed": {"name": self.fast_model, "useCase": "Conversational turns"},
            "balanced": {"name": self.balanced_model, "useCase": "Final DAR reports"},
            "quality": {"name": self.primary_model, "useCase": "Maximum quality and translation"},
            "host": self.base_url,
        }

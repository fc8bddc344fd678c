"""
Whisper speech-to-text client.

Talks to a local Whisper ASR web service
(``POST /asr?task=transcribe&language=..&output=json``, multipart field
``audio_file``) and turns its verbose JSON into the transcript payload the
voice UI consumes.
"""

import logging
import time
from datetime import UTC, datetime
from typing import Any

import httpx

from shared.errors import ErrorCode, SpeechServiceError

from .base import BaseServiceClient, CircuitOpenError

logger = logging.getLogger(__name__)

MODEL_SIZES: dict[str, dict[str, str]] = {
    "tiny": {"params": "39M", "size": "72MB", "speed": "150x"},
    "base": {"params": "74M", "size": "139MB", "speed": "100x"},
    "small": {"params": "244M", "size": "461MB", "speed": "50x"},
    "medium": {"params": "769M", "size": "1.5GB", "speed": "25x"},
    "large": {"params": "1550M", "size": "2.9GB", "speed": "12x"},
    "large-v3": {"params": "1550M", "size": "2.9GB", "speed": "12x"},
}

_CONTENT_TYPES = {
    "wav": "audio/wav",
    "webm": "audio/webm",
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
    "m4a": "audio/mp4",
}


def calculate_confidence(segments: list[dict[str, Any]] | None) -> float:
    """Map mean segment ``avg_logprob`` (roughly -1..0) onto 0..1, rounded to 3 places."""
    if not segments:
        return 0.0
    avg_logprob = sum(segment.get("avg_logprob") or 0 for segment in segments) / len(segments)
    return round(max(0.0, min(1.0, 1 + avg_logprob)), 3)


class WhisperClient(BaseServiceClient):
    def __init__(
        self,
        base_url: str = "http://localhost:9000",
        model: str = "small",
        language: str = "en",
        timeout: float = 30.0,
        **kwargs,
    ):
        super().__init__(base_url, "whisper", timeout=timeout, **kwargs)
        self.model = model
        self.language = language

    async def transcribe(self, audio: bytes, language: str | None = None, audio_format: str = "wav") -> dict[str, Any]:
        """
        Transcribe an audio clip.

        Args:
            audio: Raw audio bytes.
            language: Spoken language code; defaults to the configured one.
            audio_format: Container format hint (wav, webm, mp3, ...).

        Returns:
            dict: ``success``, ``transcript``, ``segments``, ``language``,
            ``confidence``, ``duration``, ``model``, ``timestamp``.

        Raises:
            SpeechServiceError: Upstream unreachable, timed out or returned an error.
        """
        if not audio:
            raise SpeechServiceError("whisper", "Audio payload is empty", ErrorCode.VALIDATION_ERROR)

        lang = language or self.language
        fmt = (audio_format or "wav").lower()
        files = {"audio_file": (f"audio.{fmt}", audio, _CONTENT_TYPES.get(fmt, "application/octet-stream"))}
        params = {"task": "transcribe", "language": lang, "output": "json"}

        start = time.monotonic()
        try:
            response = await self.post("/asr", params=params, files=files)
        except CircuitOpenError as e:
            raise SpeechServiceError("whisper", str(e), ErrorCode.SERVICE_UNAVAILABLE) from e
        except httpx.TimeoutException as e:
            raise SpeechServiceError(
                "whisper",
                f"Whisper request timeout after {self.timeout:.0f}s. Is Whisper running?",
                ErrorCode.SERVICE_TIMEOUT,
            ) from e
        except httpx.HTTPError as e:
            raise SpeechServiceError(
                "whisper",
                f"Whisper connection failed: {e}. Verify Whisper is running at {self.base_url}",
                ErrorCode.SERVICE_UNAVAILABLE,
            ) from e

        if response.status_code >= 400:
            raise SpeechServiceError("whisper", f"Whisper API error: {response.status_code} {response.reason_phrase}")

        try:
            result = response.json()
        except ValueError as e:
            raise SpeechServiceError("whisper", "Whisper returned a non-JSON response") from e

        segments = result.get("segments") or []
        duration = time.monotonic() - start
        logger.info(
            "[Whisper] Transcribed %d bytes in %.2fs",
            len(audio),
            duration,
            extra={"model": self.model, "upstream": "whisper"},
        )
        return {
            "success": True,
            "transcript": (result.get("text") or "").strip(),
            "segments": segments,
            "language": result.get("language") or lang,
            "confidence": calculate_confidence(segments),
            "duration": duration,
            "model": f"whisper-{self.model}",
            "timestamp": datetime.now(UTC).isoformat(),
        }

    async def is_available(self) -> bool:
        return await self.ping("/docs")

    def get_model_info(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "language": self.language,
            "host": self.base_url,
            **MODEL_SIZES.get(self.model, {}),
            "optimizedFor": "PSW conversational speech",
        }

"""
XTTS v2 text-to-speech client.

Targets an xtts-api-server instance (``POST /tts_to_audio/`` returning a WAV
body). Voice profiles map the assistant's tone onto a speaker sample and a
default speaking rate.
"""

import base64
import io
import logging
import time
import wave
from datetime import UTC, datetime
from typing import Any

import httpx

from shared.errors import ErrorCode, SpeechServiceError

from .base import BaseServiceClient, CircuitOpenError

logger = logging.getLogger(__name__)

XTTS_MODEL = "tts_models/multilingual/multi-dataset/xtts_v2"

VOICE_PROFILES: dict[str, dict[str, Any]] = {
    "supportive": {
        "speaker": "supportive",
        "emotion": "calm",
        "speed": 1.0,
        "description": "Warm, calm voice for guiding PSWs through documentation",
    },
    "encouraging": {
        "speaker": "encouraging",
        "emotion": "happy",
        "speed": 1.05,
        "description": "Upbeat voice for positive feedback to PSWs",
    },
    "clarifying": {
        "speaker": "clarifying",
        "emotion": "neutral",
        "speed": 0.95,
        "description": "Slower, neutral voice for follow-up questions to PSWs",
    },
}

# code -> (display name, flag, XTTS language code)
# XTTS v2 has no Filipino or Tibetan model; those fall back to English phonetics.
SUPPORTED_LANGUAGES: dict[str, tuple[str, str, str]] = {
    "en": ("English (Canadian)", "🇨🇦", "en"),
    "fil": ("Filipino (Tagalog)", "🇵🇭", "en"),
    "es": ("Spanish", "🇪🇸", "es"),
    "pt": ("Portuguese", "🇧🇷", "pt"),
    "hi": ("Hindi", "🇮🇳", "hi"),
    "bo": ("Tibetan", "🏔️", "en"),
}

WAV_HEADER_BYTES = 44


def wav_duration(audio: bytes, sample_rate: int = 24000) -> float:
    """Duration in seconds read from the WAV header.

    Falls back to 16-bit mono at ``sample_rate`` when the header cannot be parsed.
    """
    try:
        with wave.open(io.BytesIO(audio), "rb") as wav:
            frames = wav.getnframes()
            rate = wav.getframerate()
            return frames / rate if rate else 0.0
    except (wave.Error, EOFError):
        payload = max(len(audio) - WAV_HEADER_BYTES, 0)
        return payload / (sample_rate * 2)


class XTTSClient(BaseServiceClient):
    def __init__(
        self,
        base_url: str = "http://localhost:8020",
        sample_rate: int = 24000,
        timeout: float = 45.0,
        **kwargs,
    ):
        super().__init__(base_url, "xtts", timeout=timeout, **kwargs)
        self.sample_rate = sample_rate

    async def synthesize_bytes(
        self,
        text: str,
        voice: str = "supportive",
        language: str = "en",
        speed: float | None = None,
    ) -> bytes:
        """Render ``text`` to WAV bytes.

        Unknown voices fall back to ``supportive``; unknown languages to English.

        Raises:
            SpeechServiceError: Empty text or upstream failure.
        """
        if not text or not text.strip():
            raise SpeechServiceError("xtts", "text is required and cannot be empty", ErrorCode.VALIDATION_ERROR)

        profile = VOICE_PROFILES.get(voice, VOICE_PROFILES["supportive"])
        xtts_language = SUPPORTED_LANGUAGES.get(language, SUPPORTED_LANGUAGES["en"])[2]
        payload = {
            "text": text,
            "speaker_wav": profile["speaker"],
            "language": xtts_language,
            "speed": speed or profile["speed"],
        }

        try:
            response = await self.post("/tts_to_audio/", json=payload)
        except CircuitOpenError as e:
            raise SpeechServiceError("xtts", str(e), ErrorCode.SERVICE_UNAVAILABLE) from e
        except httpx.TimeoutException as e:
            raise SpeechServiceError(
                "xtts",
                f"TTS request timeout after {self.timeout:.0f}s. Is XTTS running?",
                ErrorCode.SERVICE_TIMEOUT,
            ) from e
        except httpx.HTTPError as e:
            raise SpeechServiceError(
                "xtts",
                f"TTS connection failed: {e}. Verify XTTS is running at {self.base_url}",
                ErrorCode.SERVICE_UNAVAILABLE,
            ) from e

        if response.status_code >= 400:
            raise SpeechServiceError("xtts", f"TTS API error: {response.status_code} {response.reason_phrase}")
        if not response.content:
            raise SpeechServiceError("xtts", "XTTS returned an empty audio body")
        return response.content

    async def synthesize(
        self,
        text: str,
        voice: str = "supportive",
        language: str = "en",
        speed: float | None = None,
    ) -> dict[str, Any]:
        """Render ``text`` and return base64 WAV plus timing metadata."""
        start = time.monotonic()
        audio = await self.synthesize_bytes(text, voice=voice, language=language, speed=speed)
        synthesis_time = time.monotonic() - start
        voice_name = voice if voice in VOICE_PROFILES else "supportive"

        logger.info(
            "[XTTS] Synthesized %d chars in %.2fs",
            len(text),
            synthesis_time,
            extra={"upstream": "xtts"},
        )
        return {
            "success": True,
            "audioData": base64.b64encode(audio).decode("ascii"),
            "format": "wav",
            "sampleRate": self.sample_rate,
            "duration": wav_duration(audio, self.sample_rate),
            "synthesisTime": synthesis_time,
            "voice": voice_name,
            "text": text,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    async def is_available(self) -> bool:
        return await self.ping("/speakers_list")

    def get_voice_profiles(self) -> list[dict[str, Any]]:
        return [{"name": name, **profile} for name, profile in VOICE_PROFILES.items()]

    def get_supported_languages(self) -> list[dict[str, str]]:
        return [
            {"code": code, "name": name, "flag": flag, "xttsCode": xtts_code}
            for code, (name, flag, xtts_code) in SUPPORTED_LANGUAGES.items()
        ]

    def get_model_info(self) -> dict[str, Any]:
        return {
            "model": XTTS_MODEL,
            "sampleRate": self.sample_rate,
            "size": "1.8GB",
            "languages": len(SUPPORTED_LANGUAGES),
            "voices": len(VOICE_PROFILES),
            "host": self.base_url,
            "optimizedFor": "PHIPA-compliant local PSW voice output",
        }

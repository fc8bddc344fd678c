"""
Speech Service

Thin orchestration over the local Whisper (speech-to-text) and XTTS
(text-to-speech) servers. When either server is down the browser's own speech
APIs are the fallback, which callers signal with ``fallback: "browser"``.
"""

import base64
import binascii
import logging
from datetime import UTC, datetime
from typing import Any, Dict, Optional

from shared.clients.whisper import WhisperClient
from shared.clients.xtts import XTTSClient
from shared.errors import ErrorCode, SpeechServiceError

logger = logging.getLogger(__name__)

MAX_TTS_CHARS = 1000


def decode_audio(audio_data: str) -> bytes:
    """
    Decode base64 audio from a request body

    Raises:
        SpeechServiceError: VALIDATION_ERROR when the payload is not base64
    """
    try:
        return base64.b64decode(audio_data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SpeechServiceError(
            "whisper", "audioData must be base64 encoded", ErrorCode.VALIDATION_INVALID_FORMAT
        ) from e


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class SpeechService:
    """Speech-to-text and text-to-speech for the voice interface"""

    def __init__(self, whisper: WhisperClient, xtts: XTTSClient, local_mode: bool = False):
        self.whisper = whisper
        self.xtts = xtts
        self.local_mode = local_mode

    # ------------------------------------------------------------------ STT

    async def transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        audio_format: Optional[str] = None,
        check_availability: bool = True,
    ) -> Dict[str, Any]:
        """
        Transcribe one audio clip

        Returns:
            Whisper result, or a browser-fallback notice when Whisper is down
            and local mode is off
        """
        if check_availability and not self.local_mode and not await self.whisper.is_available():
            logger.warning("[SPEECH] Whisper unavailable, directing client to browser STT")
            return {
                "success": False,
                "error": "Whisper not available",
                "fallback": "browser",
                "message": "Please use browser Web Speech API",
            }

        result = await self.whisper.transcribe(audio, language=language or "en", audio_format=audio_format or "wav")
        return {
            "success": result["success"],
            "transcript": result.get("transcript") or "",
            "segments": result.get("segments") or [],
            "confidence": result.get("confidence") or 0,
            "language": result.get("language") or language or "en",
            "duration": result.get("duration") or 0,
            "model": result.get("model") or "whisper-small",
            "timestamp": result.get("timestamp"),
        }

    async def whisper_status(self) -> Dict[str, Any]:
        available = await self.whisper.is_available()
        return {
            "status": "healthy" if available else "unavailable",
            "service": "Whisper STT",
            "available": available,
            "model": self.whisper.get_model_info(),
            "timestamp": _now_iso(),
        }

    # ------------------------------------------------------------------ TTS

    async def synthesize(
        self,
        text: str,
        voice: Optional[str] = None,
        language: Optional[str] = None,
        speed: Optional[float] = None,
        check_availability: bool = True,
    ) -> Dict[str, Any]:
        """
        Synthesize speech as base64 WAV

        Returns:
            XTTS result, or a browser-fallback notice when XTTS is down and
            local mode is off
        """
        if check_availability and not self.local_mode and not await self.xtts.is_available():
            logger.warning("[SPEECH] XTTS unavailable, directing client to browser TTS")
            return {
                "success": False,
                "error": "XTTS not available",
                "fallback": "browser",
                "message": "Please use browser Speech Synthesis API",
            }

        return await self.xtts.synthesize(
            text,
            voice=voice or "supportive",
            language=language or "en",
            speed=speed or 1.0,
        )

    async def synthesize_wav(
        self,
        text: str,
        voice: Optional[str] = None,
        language: Optional[str] = None,
        speed: Optional[float] = None,
    ) -> bytes:
        return await self.xtts.synthesize_bytes(
            text,
            voice=voice or "supportive",
            language=language or "en",
            speed=speed or 1.0,
        )

    async def xtts_status(self, detailed: bool = False) -> Dict[str, Any]:
        """XTTS health; ``detailed`` adds the voice and language listing"""
        available = await self.xtts.is_available()
        status: Dict[str, Any] = {
            "status": "healthy" if available else "unavailable",
            "service": "XTTS TTS",
            "available": available,
            "model": self.xtts.get_model_info(),
        }
        if detailed:
            voices = self.xtts.get_voice_profiles()
            languages = self.xtts.get_supported_languages()
            status.update(
                {
                    "voices": len(voices),
                    "languages": len(languages),
                    "supportedVoices": [voice["name"] for voice in voices],
                    "supportedLanguages": [{"code": lang["code"], "name": lang["name"]} for lang in languages],
                }
            )
        status["timestamp"] = _now_iso()
        return status

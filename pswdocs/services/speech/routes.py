"""
Speech API Routes

Endpoints:
- POST /api/transcribe-whisper - Speech-to-text (browser fallback when Whisper is down)
- GET /api/transcribe-whisper - Whisper health
- POST /api/synthesize-xtts - Text-to-speech as base64 WAV
- GET /api/synthesize-xtts - XTTS health with voice and language listing
- POST /api/text-to-speech - Text-to-speech as a raw audio/wav body
- POST /api/whisper/transcribe, GET /api/whisper/health
- POST /api/xtts/synthesize, GET /api/xtts/voices, GET /api/xtts/languages, GET /api/xtts/health
"""

import logging
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from shared.clients.whisper import WhisperClient
from shared.clients.xtts import XTTSClient
from shared.errors import APIException, ErrorCode, SpeechServiceError, missing_field

from .service import MAX_TTS_CHARS, SpeechService, decode_audio

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["speech"])
whisper_router = APIRouter(prefix="/api/whisper", tags=["whisper"])
xtts_router = APIRouter(prefix="/api/xtts", tags=["xtts"])

# Service instance (initialized by main app)
_service: Optional[SpeechService] = None


def initialize_service(whisper: WhisperClient, xtts: XTTSClient, local_mode: bool = False) -> SpeechService:
    """
    Initialize speech service

    Args:
        whisper: Whisper ASR client
        xtts: XTTS client
        local_mode: Skip availability checks before calling the servers

    Returns:
        Initialized SpeechService
    """
    global _service
    _service = SpeechService(whisper=whisper, xtts=xtts, local_mode=local_mode)
    return _service


def get_service() -> SpeechService:
    """Get speech service instance"""
    if _service is None:
        raise RuntimeError("Speech service not initialized")
    return _service


# -------------------------------------------------------------------------
# Pydantic Models
# -------------------------------------------------------------------------

class TranscribeRequest(BaseModel):
    """Base64 audio clip to transcribe"""
    audioData: Optional[str] = None
    format: Optional[str] = None
    language: Optional[str] = None
    duration: Optional[float] = None


class SynthesizeRequest(BaseModel):
    """Text to speak with one of the PSW voice profiles"""
    text: Optional[str] = None
    voice: Optional[str] = None
    language: Optional[str] = None
    speed: Optional[float] = None


class TextToSpeechRequest(BaseModel):
    text: str = ""
    language: str = "en"
    voice: str = "default"
    speed: float = 1.0


def _speech_failure(error: Exception, default_message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": str(error) or default_message,
            "fallback": "browser",
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


def _audio_from(payload: TranscribeRequest) -> bytes:
    if not payload.audioData:
        raise missing_field("audioData")
    try:
        return decode_audio(payload.audioData)
    except SpeechServiceError as e:
        raise APIException(error_code=e.error_code, message=str(e)) from e


def _validate_text(text: Optional[str]) -> str:
    if not text or not text.strip():
        raise missing_field("text", "text is required and cannot be empty")
    if len(text) > MAX_TTS_CHARS:
        raise APIException(
            error_code=ErrorCode.VALIDATION_ERROR,
            message=f"Text too long (max {MAX_TTS_CHARS} characters)",
        )
    return text


# -------------------------------------------------------------------------
# Speech-to-text
# -------------------------------------------------------------------------

@router.post("/transcribe-whisper")
async def transcribe_whisper(payload: TranscribeRequest):
    """
    Transcribe base64 audio

    Returns:
        {"success", "transcript", "segments", "confidence", "language",
        "duration", "model", "timestamp"}
    """
    service = get_service()
    audio = _audio_from(payload)
    logger.info(
        "[SPEECH] Transcribing %d bytes format=%s language=%s",
        len(audio),
        payload.format or "unknown",
        payload.language or "auto",
    )

    try:
        return await service.transcribe(audio, language=payload.language, audio_format=payload.format)
    except Exception as e:
        logger.error("[SPEECH] Transcription failed: %s", e)
        return _speech_failure(e, "Transcription failed")


@router.get("/transcribe-whisper")
async def transcribe_whisper_health() -> Dict[str, Any]:
    status = await get_service().whisper_status()
    status.pop("available")
    return status


@whisper_router.post("/transcribe")
async def whisper_transcribe(payload: TranscribeRequest):
    """Direct Whisper transcription without the availability pre-check"""
    service = get_service()
    audio = _audio_from(payload)

    try:
        return await service.transcribe(
            audio,
            language=payload.language,
            audio_format=payload.format,
            check_availability=False,
        )
    except Exception as e:
        logger.error("[SPEECH] Whisper transcribe failed: %s", e)
        return _speech_failure(e, "Transcription failed")


@whisper_router.get("/health")
async def whisper_health() -> Dict[str, Any]:
    return await get_service().whisper_status()


# -------------------------------------------------------------------------
# Text-to-speech
# -------------------------------------------------------------------------

@router.post("/synthesize-xtts")
async def synthesize_xtts(payload: SynthesizeRequest):
    """
    Synthesize speech

    Returns:
        {"success", "audioData" (base64 WAV), "format", "sampleRate",
        "duration", "synthesisTime", "voice", "text", "timestamp"}
    """
    service = get_service()
    text = _validate_text(payload.text)
    logger.info(
        "[SPEECH] Synthesizing %d chars voice=%s language=%s",
        len(text),
        payload.voice or "supportive",
        payload.language or "en",
    )

    try:
        return await service.synthesize(text, voice=payload.voice, language=payload.language, speed=payload.speed)
    except Exception as e:
        logger.error("[SPEECH] Synthesis failed: %s", e)
        return _speech_failure(e, "Synthesis failed")


@router.get("/synthesize-xtts")
async def synthesize_xtts_health() -> Dict[str, Any]:
    status = await get_service().xtts_status(detailed=True)
    status.pop("available")
    return status


@router.post("/text-to-speech")
async def text_to_speech(payload: TextToSpeechRequest):
    """Raw WAV audio for ``text``"""
    service = get_service()

    try:
        audio = await service.synthesize_wav(
            payload.text,
            voice=payload.voice,
            language=payload.language,
            speed=payload.speed,
        )
    except Exception as e:
        logger.error("[SPEECH] TTS generation failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={
                "error": "TTS generation failed",
                "message": str(e),
                "suggestion": "Ensure XTTS server is running on localhost:8020",
            },
        )

    return Response(content=audio, media_type="audio/wav", headers={"Cache-Control": "no-cache"})


@xtts_router.post("/synthesize")
async def xtts_synthesize(payload: SynthesizeRequest):
    """Direct XTTS synthesis without the availability pre-check"""
    service = get_service()
    text = _validate_text(payload.text)

    try:
        return await service.synthesize(
            text,
            voice=payload.voice,
            language=payload.language,
            speed=payload.speed,
            check_availability=False,
        )
    except Exception as e:
        logger.error("[SPEECH] XTTS synthesize failed: %s", e)
        return _speech_failure(e, "Synthesis failed")


@xtts_router.get("/voices")
def xtts_voices() -> Dict[str, Any]:
    return {"success": True, "voices": get_service().xtts.get_voice_profiles()}


@xtts_router.get("/languages")
def xtts_languages() -> Dict[str, Any]:
    return {"success": True, "languages": get_service().xtts.get_supported_languages()}


@xtts_router.get("/health")
async def xtts_health() -> Dict[str, Any]:
    return await get_service().xtts_status()


def get_routers() -> List[APIRouter]:
    """Get all speech-related routers"""
    return [router, whisper_router, xtts_router]

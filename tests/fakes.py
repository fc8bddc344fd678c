"""
Fake Ollama, Whisper and XTTS servers for ``httpx.MockTransport``.
"""
import io
import json
import wave
from typing import Any, Callable, Dict, List

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


def make_wav(frames: int = 2400, sample_rate: int = 24000) -> bytes:
    """Silent 16-bit mono WAV"""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(b"\x00\x00" * frames)
    return buffer.getvalue()


def ollama_chat_handler(content: str, calls: List[Dict[str, Any]] | None = None) -> Handler:
    """Ollama stand-in answering /api/chat with ``content``."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/chat":
            if calls is not None:
                calls.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={
                    "model": "test-model",
                    "message": {"role": "assistant", "content": content},
                    "total_duration": 2_000_000_000,
                    "eval_count": 40,
                    "eval_duration": 1_000_000_000,
                },
            )
        if request.url.path == "/api/version":
            return httpx.Response(200, json={"version": "0.5.0"})
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": [{"name": "test-model"}]})
        return httpx.Response(404)

    return handler


def whisper_handler(transcript: str = "Client ate most of her lunch.") -> Handler:
    """Whisper ASR stand-in; ``/docs`` doubles as the liveness check."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/docs":
            return httpx.Response(200, text="<html></html>")
        if request.url.path == "/asr":
            return httpx.Response(
                200,
                json={"text": transcript, "segments": [{"avg_logprob": -0.05}], "language": "en"},
            )
        return httpx.Response(404)

    return handler


def xtts_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/speakers_list":
        return httpx.Response(200, json=["supportive", "encouraging", "clarifying"])
    if request.url.path == "/tts_to_audio/":
        return httpx.Response(200, content=make_wav(), headers={"content-type": "audio/wav"})
    return httpx.Response(404)


def unreachable_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)

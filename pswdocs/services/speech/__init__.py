"""Whisper speech-to-text and XTTS text-to-speech."""

from .service import SpeechService, decode_audio

__all__ = ["SpeechService", "decode_audio"]

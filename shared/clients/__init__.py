"""
Shared clients for the local AI services.

Centralized HTTP clients with retry/circuit breaker for Ollama, Whisper and XTTS.
"""

from .base import BaseServiceClient, CircuitBreaker, CircuitOpenError
from .ollama import OllamaClient
from .whisper import WhisperClient
from .xtts import XTTSClient

__all__ = [
    "BaseServiceClient",
    "CircuitBreaker",
    "CircuitOpenError",
    "OllamaClient",
    "WhisperClient",
    "XTTSClient",
]

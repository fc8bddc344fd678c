"""
Centralized Configuration Settings.

All environment variables are defined here using Pydantic Settings, loaded
from the process environment and an optional ``.env`` file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable loading.

    All settings have sensible defaults for a single-machine deployment with
    Ollama, Whisper and XTTS running locally.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    ENVIRONMENT: str = "development"
    STRUCTURED_LOGGING: bool = True
    LOG_LEVEL: str = "INFO"

    # =========================================================================
    # Local AI Services
    # =========================================================================
    OLLAMA_HOST: str = "http://localhost:11434"
    OLLAMA_PRIMARY_MODEL: str = "llama3.3:70b"
    OLLAMA_FAST_MODEL: str = "qwen2.5:14b-instruct-q4_K_M"
    OLLAMA_BALANCED_MODEL: str = "qwen2.5:30b-instruct-q4_K_M"
    OLLAMA_TIMEOUT_SECONDS: float = 120.0

    LOCAL_WHISPER_URL: str = "http://localhost:9000"
    WHISPER_MODEL: str = "small"
    WHISPER_LANGUAGE: str = "en"
    WHISPER_TIMEOUT_SECONDS: float = 30.0

    LOCAL_TTS_URL: str = "http://localhost:8020"
    XTTS_SAMPLE_RATE: int = 24000
    XTTS_TIMEOUT_SECONDS: float = 45.0

    # =========================================================================
    # Feature Flags
    # =========================================================================
    LOCAL_MODE: bool = False
    USE_MOCK_DATA: bool = False

    @property
    def local_mode(self) -> bool:
        """Serve mock AI responses instead of calling Ollama."""
        return self.LOCAL_MODE or self.USE_MOCK_DATA or self.ENVIRONMENT == "local"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT in ("development", "local")

    # =========================================================================
    # Report Storage
    # =========================================================================
    REPORTS_DIR: str = "./data/reports"

    @property
    def reports_path(self) -> Path:
        return Path(self.REPORTS_DIR)

    # =========================================================================
    # CORS & Origins
    # =========================================================================
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse ALLOWED_ORIGINS into list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    # =========================================================================
    # Request Limits
    # =========================================================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SEC: int = 60
    RATE_LIMIT_DEFAULT: int = 100
    RATE_LIMIT_AI: int = 20
    MAX_BODY_MB: int = 10
    FORCE_HSTS: bool = False

    @property
    def max_body_bytes(self) -> int:
        return self.MAX_BODY_MB * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings (cached).
    """
    return Settings()

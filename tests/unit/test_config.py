"""
Test environment-driven settings.
"""
from pathlib import Path

import pytest

from pswdocs.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("LOCAL_MODE", "USE_MOCK_DATA", "ENVIRONMENT", "ALLOWED_ORIGINS", "MAX_BODY_MB", "REPORTS_DIR"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Settings defaults and derived properties."""

    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.PORT == 4000
        assert settings.OLLAMA_HOST == "http://localhost:11434"
        assert settings.local_mode is False
        assert settings.max_body_bytes == 10 * 1024 * 1024
        assert settings.reports_path == Path("./data/reports")

    @pytest.mark.parametrize(
        "name, value",
        [("LOCAL_MODE", "true"), ("USE_MOCK_DATA", "1"), ("ENVIRONMENT", "local")],
    )
    def test_local_mode_switches(self, clean_env, name, value):
        clean_env.setenv(name, value)
        assert Settings(_env_file=None).local_mode is True

    def test_origins_parsed(self, clean_env):
        clean_env.setenv("ALLOWED_ORIGINS", "http://localhost:3000, http://10.0.0.5:3000 ,")
        settings = Settings(_env_file=None)
        assert settings.allowed_origins_list == ["http://localhost:3000", "http://10.0.0.5:3000"]

    def test_production_is_not_development(self, clean_env):
        clean_env.setenv("ENVIRONMENT", "production")
        assert Settings(_env_file=None).is_development is False

"""
PSW Backend Test Fixtures
Shared fixtures for all test modules.

Upstream AI services (Ollama, Whisper, XTTS) are replaced by
``httpx.MockTransport`` handlers so no test touches the network.
"""
import json
import os
from typing import Any, Callable, Dict

import httpx
import pytest

# Must be set before pswdocs.main is imported (settings are cached)
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("STRUCTURED_LOGGING", "false")
os.environ.setdefault("LOCAL_MODE", "false")
os.environ.setdefault("ENVIRONMENT", "development")

from shared.clients.ollama import OllamaClient
from shared.clients.whisper import WhisperClient
from shared.clients.xtts import XTTSClient
from pswdocs.storage.report_store import ReportStore
from tests.fakes import Handler, make_wav, ollama_chat_handler, unreachable_handler


# ============================================================
# Sample data
# ============================================================

@pytest.fixture
def valid_dar() -> Dict[str, Any]:
    """A DAR document that satisfies the schema."""
    return {
        "client_name": "Margaret",
        "date_time": "2025-03-14T10:30:00.000Z",
        "language": "en",
        "DAR": {
            "Data": "Client said \"I slept well\". BP 120/80.",
            "Action": "Assisted with shower and dressing.",
            "Response": "Client thanked PSW and rested.",
        },
        "adls": {
            "personal_care": "Shower with standby assist",
            "mobility": "Walker",
            "nutrition": {"meal": "breakfast", "intake": "most", "items": ["oatmeal", "tea"]},
            "continence": "Continent",
            "mood": "Cheerful",
            "social": "Chatted about family",
            "safety_environment": "Clear walkways",
        },
        "observations": {
            "vital_signs": {"bp": "120/80", "hr": "72"},
            "medications": [{"name": "Metformin", "dose": "500mg", "time": "09:00", "source": "observed"}],
            "pain": {"scale_0_10": 2, "location": "left knee"},
        },
        "follow_up": {"notify_supervisor_RN": False, "reason": ""},
        "psw_id": "Sam",
        "errors_or_gaps": [],
    }


@pytest.fixture
def shift_data() -> Dict[str, Any]:
    return {
        "client_name": "Margaret",
        "psw_name": "Sam",
        "observations": ["Client alert and oriented", "Skin intact"],
        "care_activities": ["Assisted with shower"],
        "client_responses": ["Client was cooperative"],
        "communications": [],
        "languages_used": ["en"],
    }


@pytest.fixture
def llm_reply(valid_dar) -> str:
    """Typical model output: a paragraph followed by the DAR JSON."""
    return "Margaret was alert and cooperative during the morning visit.\n\n" + json.dumps(valid_dar, indent=2)


# ============================================================
# Fake upstream services
# ============================================================

@pytest.fixture
def make_ollama() -> Callable[[Handler], OllamaClient]:
    def factory(handler: Handler) -> OllamaClient:
        return OllamaClient(
            base_url="http://ollama.test",
            fast_model="fast-model",
            balanced_model="balanced-model",
            primary_model="primary-model",
            transport=httpx.MockTransport(handler),
            max_retries=1,
            retry_delay=0,
        )

    return factory


@pytest.fixture
def make_whisper() -> Callable[[Handler], WhisperClient]:
    def factory(handler: Handler) -> WhisperClient:
        return WhisperClient(
            base_url="http://whisper.test",
            transport=httpx.MockTransport(handler),
            max_retries=1,
            retry_delay=0,
        )

    return factory


@pytest.fixture
def make_xtts() -> Callable[[Handler], XTTSClient]:
    def factory(handler: Handler) -> XTTSClient:
        return XTTSClient(
            base_url="http://xtts.test",
            transport=httpx.MockTransport(handler),
            max_retries=1,
            retry_delay=0,
        )

    return factory


@pytest.fixture
def report_store(tmp_path) -> ReportStore:
    return ReportStore(tmp_path / "reports")


# ============================================================
# Markers for test categorization
# ============================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external deps)")
    config.addinivalue_line("markers", "integration: Route tests against faked upstream services")


@pytest.fixture
def chat_handler() -> Callable[..., Handler]:
    return ollama_chat_handler


@pytest.fixture
def wav_bytes() -> bytes:
    return make_wav()


@pytest.fixture
def unreachable() -> Handler:
    return unreachable_handler

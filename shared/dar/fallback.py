"""
Deterministic DAR documents used when the model output cannot be trusted.

All builders return fresh dictionaries, so callers may append to
``errors_or_gaps`` without affecting later documents.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Mapping

# errors_or_gaps tags
JSON_PARSE_FAILED = "json_parse_failed"
USING_FALLBACK_DATA = "using_fallback_data"
SCHEMA_VALIDATION_FAILED = "schema_validation_failed"
MODEL_RETURNED_NO_VALID_JSON = "model_returned_no_valid_json"
API_ERROR = "api_error"


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = now or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _joined(shift_data: Mapping[str, Any], key: str) -> str:
    values = shift_data.get(key) or []
    return ". ".join(str(value) for value in values if value)


def _empty_adls() -> dict[str, Any]:
    return {
        "personal_care": "",
        "mobility": "",
        "nutrition": {"meal": "unknown", "intake": "unknown", "items": []},
        "continence": "",
        "mood": "",
        "social": "",
        "safety_environment": "",
    }


def _empty_observations() -> dict[str, Any]:
    return {"vital_signs": {}, "medications": [], "pain": {}}


def build_fallback_dar(shift_data: Mapping[str, Any] | None, now: datetime | None = None) -> dict[str, Any]:
    """Synthesize a DAR document from the raw shift data.

    Used by report generation when the model produced no usable JSON or the
    upstream call failed.
    """
    shift_data = shift_data or {}
    languages = shift_data.get("languages_used") or []
    return {
        "client_name": shift_data.get("client_name") or "unknown",
        "date_time": utc_timestamp(now),
        "language": languages[0] if languages else "en",
        "DAR": {
            "Data": _joined(shift_data, "observations"),
            "Action": _joined(shift_data, "care_activities"),
            "Response": _joined(shift_data, "client_responses"),
        },
        "adls": _empty_adls(),
        "observations": _empty_observations(),
        "follow_up": {"notify_supervisor_RN": False, "reason": ""},
        "psw_id": shift_data.get("psw_name") or "",
        "errors_or_gaps": [JSON_PARSE_FAILED, USING_FALLBACK_DATA],
    }


def skeleton_dar(now: datetime | None = None) -> dict[str, Any]:
    """Empty DAR document returned alongside conversational replies."""
    return {
        "client_name": "unknown",
        "date_time": utc_timestamp(now),
        "language": "unknown",
        "DAR": {"Data": "", "Action": "", "Response": ""},
        "adls": _empty_adls(),
        "observations": _empty_observations(),
        "follow_up": {"notify_supervisor_RN": False, "reason": ""},
        "errors_or_gaps": [JSON_PARSE_FAILED],
    }


def local_mode_dar(shift_data: Mapping[str, Any] | None, now: datetime | None = None) -> dict[str, Any]:
    """Demonstration document served when no LLM is configured."""
    shift_data = shift_data or {}
    return {
        "client_name": shift_data.get("client_name") or "Test Client",
        "date_time": utc_timestamp(now),
        "language": "en",
        "DAR": {
            "Data": _joined(shift_data, "observations") or "Client observed during shift.",
            "Action": _joined(shift_data, "care_activities") or "Provided standard care.",
            "Response": _joined(shift_data, "client_responses") or "Client responded well.",
        },
        "adls": {
            "personal_care": "Assisted with hygiene needs",
            "mobility": "Ambulatory with assistance",
            "nutrition": {"meal": "lunch", "intake": "most", "items": ["sandwich", "water"]},
            "continence": "No issues reported",
            "mood": "Pleasant and cooperative",
            "social": "Engaged in conversation",
            "safety_environment": "Safe environment maintained",
        },
        "observations": _empty_observations(),
        "follow_up": {"notify_supervisor_RN": False, "reason": ""},
        "psw_id": shift_data.get("psw_name") or "Test PSW",
        "errors_or_gaps": [],
    }

"""
Test JSON log formatting.
"""
import json
import logging
import sys

from shared.logging import JSONFormatter


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="pswdocs.requests",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="%s %s %d",
        args=("POST", "/api/generate-ai-report", 200),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_core_fields():
    payload = json.loads(JSONFormatter("psw-backend").format(make_record()))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "pswdocs.requests"
    assert payload["message"] == "POST /api/generate-ai-report 200"
    assert payload["service"] == "psw-backend"


def test_copies_known_extra_fields_only():
    record = make_record(request_id="req_1", duration_ms=12.5, patient_note="secret")
    payload = json.loads(JSONFormatter().format(record))

    assert payload["request_id"] == "req_1"
    assert payload["duration_ms"] == 12.5
    assert "patient_note" not in payload
    assert "service" not in payload


def test_includes_exception_text():
    try:
        raise ValueError("bad dar")
    except ValueError:
        record = make_record()
        record.exc_info = sys.exc_info()

    payload = json.loads(JSONFormatter().format(record))
    assert "ValueError: bad dar" in payload["exception"]

"""
Mock AI responses for local development.

Local mode lets the UI be exercised end to end without an Ollama host: the
conversation flow walks through canned prompts chosen by keyword, and report
generation fills a plain-text template from the shift data.
"""

from __future__ import annotations

import random
import re
from datetime import UTC, date, datetime
from typing import Any, Mapping

CONVERSATION_RESPONSES: dict[str, list[str]] = {
    "greeting": [
        "Hello! I'm ready to help you document your PSW shift. Let's start with the client's information. Who are you caring for today?",
        "Hi there! Ready to record your shift. Can you tell me the client's name?",
        "Good day! Let's document your care visit. What's the client's name?",
    ],
    "clientInfo": [
        "Thank you. What time did you arrive at the client's home?",
        "Got it. When did your shift start?",
        "Noted. What time did you begin care today?",
    ],
    "activities": [
        "That's helpful. What activities or care tasks did you complete during this visit?",
        "Thank you. Can you describe the care you provided?",
        "I see. What specific care activities did you perform?",
    ],
    "observations": [
        "Good. Did you notice anything unusual about the client's condition, mood, or behavior?",
        "Thank you. Were there any changes in the client's health or wellbeing?",
        "Noted. Any observations about the client's physical or emotional state?",
    ],
    "vitals": [
        "Would you like to record any vital signs? Blood pressure, temperature, pulse?",
        "Did you measure any vital signs during this visit?",
        "Should we record any health measurements?",
    ],
    "meals": [
        "What about meals? Did you help prepare or serve any food?",
        "Can you tell me about any meals or nutrition support provided?",
        "Did the client eat during your visit? What did they have?",
    ],
    "summary": [
        "Let me summarize what you've told me. Does this sound correct?",
        "Here's what I've documented. Is this accurate?",
        "I'll read back your report. Please confirm if everything is correct.",
    ],
}

NOT_HEARD_RESPONSE = "I'm sorry, I didn't catch that. Could you please repeat?"

# Checked in order; the first stage with a matching keyword wins
_STAGE_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("greeting", ("hello", "hi", "start")),
    ("clientInfo", ("name", "client")),
    ("activities", ("activity", "care", "help")),
    ("observations", ("observe", "notice", "mood")),
    ("vitals", ("vital", "blood pressure", "temperature")),
    ("meals", ("meal", "food", "eat")),
    ("summary", ("summary", "done", "finish")),
]

_TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})\s*(am|pm)?", re.IGNORECASE)
_NAME_PATTERN = re.compile(r"(?:named?|called)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)")
_BP_PATTERN = re.compile(r"(\d{2,3})/(\d{2,3})")

DEFAULT_VITALS = "Blood Pressure: 120/80 mmHg\nPulse: 72 bpm\nTemperature: 36.8°C"


def detect_stage(text: str) -> str:
    lowered = text.lower()
    for stage, keywords in _STAGE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return stage
    return "clientInfo"


def extract_data(text: str) -> dict[str, str]:
    """Pull time, client name and blood pressure out of free speech."""
    data: dict[str, str] = {}

    time_match = _TIME_PATTERN.search(text)
    if time_match:
        data["time"] = time_match.group(0)

    name_match = _NAME_PATTERN.search(text)
    if name_match:
        data["name"] = name_match.group(1)

    bp_match = _BP_PATTERN.search(text)
    if bp_match:
        data["bloodPressure"] = bp_match.group(0)

    return data


def mock_process_conversation(text: Any, language: str = "en", rng: random.Random | None = None) -> dict[str, Any]:
    """Canned conversational reply for one PSW utterance."""
    if not text or not isinstance(text, str):
        return {
            "response": NOT_HEARD_RESPONSE,
            "extractedData": {},
            "emotion": "supportive",
            "language": language or "en",
            "confidence": 0.5,
        }

    stage = detect_stage(text)
    chooser = rng or random
    return {
        "response": chooser.choice(CONVERSATION_RESPONSES[stage]),
        "extractedData": extract_data(text),
        "emotion": "supportive",
        "language": language or "en",
        "confidence": 0.95,
        "stage": stage,
    }


def _joined_lines(shift_data: Mapping[str, Any], key: str) -> str:
    return "\n".join(str(item) for item in shift_data.get(key) or [] if item)


def _standard_report(data: Mapping[str, Any], today: date) -> str:
    psw = data.get("psw_name") or "Test PSW"
    return f"""
PERSONAL SUPPORT WORKER SHIFT REPORT

Date: {data.get('date') or today.isoformat()}
PSW Name: {psw}
Client Name: {data.get('client_name') or 'Test Client'}
Shift Time: {data.get('start_time') or '09:00'} - {data.get('end_time') or '17:00'}

CARE PROVIDED:
{_joined_lines(data, 'care_activities') or 'Personal care, meal preparation, and companionship provided as per care plan.'}

OBSERVATIONS:
{_joined_lines(data, 'observations') or 'Client was alert and oriented. Mood was stable. No concerns noted.'}

VITAL SIGNS:
{data.get('vitals') or DEFAULT_VITALS}

MEALS AND NUTRITION:
{data.get('meals') or 'Breakfast and lunch prepared and consumed without difficulty. Adequate fluid intake maintained.'}

ADDITIONAL NOTES:
{_joined_lines(data, 'communications') or 'No incidents or concerns to report. All care activities completed as planned.'}

SIGNATURE: {psw}
"""


def _clinical_report(data: Mapping[str, Any], today: date) -> str:
    return f"""
CLINICAL DOCUMENTATION - PSW VISIT

CLIENT INFORMATION:
Name: {data.get('client_name') or 'Test Client'}
Date of Visit: {data.get('date') or today.isoformat()}
Time: {data.get('start_time') or '09:00'} - {data.get('end_time') or '17:00'}

PHYSICAL ASSESSMENT:
{_joined_lines(data, 'observations') or 'Client ambulating independently. No visible signs of distress. Skin integrity intact.'}

ACTIVITIES OF DAILY LIVING:
{_joined_lines(data, 'care_activities') or 'Minimal assistance required with bathing and dressing.'}

SAFETY CONCERNS:
{data.get('safety') or 'None identified. Environment safe and accessible.'}

FOLLOW-UP REQUIRED:
{data.get('follow_up') or 'Continue with current care plan. No immediate concerns.'}

Documented by: {data.get('psw_name') or 'Test PSW'}
"""


REPORT_TEMPLATES = {
    "standard": _standard_report,
    "clinical": _clinical_report,
}


def mock_generate_report(shift_data: Mapping[str, Any], today: date | None = None) -> dict[str, Any]:
    """Plain-text shift report filled from ``shift_data``."""
    template = REPORT_TEMPLATES.get(shift_data.get("reportType") or "standard", _standard_report)
    return {
        "report": template(shift_data, today or date.today()),
        "generatedAt": datetime.now(UTC).isoformat(),
        "format": "text/plain",
    }

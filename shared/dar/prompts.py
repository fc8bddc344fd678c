"""
Prompt templates for DAR documentation.

Two flows use the LLM: one-shot report generation from collected shift data,
and the turn-by-turn conversation that gathers that data in the first place.
Both ask for a short paragraph note followed by a DAR JSON object.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping

DAR_JSON_TEMPLATE = """{
  "client_name": "<if stated or 'unknown'>",
  "date_time": "<ISO8601 or 'unknown'>",
  "language": "<detected>",
  "DAR": {
    "Data": "Objective facts + client quotes",
    "Action": "What the PSW did",
    "Response": "How the client responded"
  },
  "adls": {
    "personal_care": "...",
    "mobility": "...",
    "nutrition": {"meal": "breakfast/lunch/dinner/unknown", "intake": "all/most/some/little/none", "items": []},
    "continence": "...",
    "mood": "...",
    "social": "...",
    "safety_environment": "..."
  },
  "observations": {
    "vital_signs": {"bp": "...", "hr": "...", "temp": "...", "spo2": "..."},
    "medications": [{"name": "...", "dose": "...", "time": "...", "source": "observed/reported"}],
    "pain": {"scale_0_10": "...", "location": "..."}
  },
  "follow_up": {"notify_supervisor_RN": true/false, "reason": "..."},
  "psw_id": "<if provided>",
  "errors_or_gaps": ["missing client name", "time unclear"]
}"""

_SCOPE_RULES = """- Ontario PSW scope: PSWs document observations and care completed; they do NOT diagnose or write clinical "assessments" or "plans". If a clinical issue is mentioned, record it as an observation and set "follow_up.notify_supervisor_RN" to true with a short reason.
- Style: plain language, objective, short sentences. No medical jargon or advice.
- Include client quotes when helpful. Capture exact numbers (e.g. "120/80").
- Medications, vitals and symptoms are recorded as "observed/reported" only."""

REPORT_SYSTEM_PROMPT = f"""You convert a PSW's casual speech into a concise, non-clinical progress note and a DAR JSON summary.

Rules (must follow):
{_SCOPE_RULES}
- Output both: (A) a brief paragraph note; (B) valid JSON (UTF-8, no code fences) using this schema:

{DAR_JSON_TEMPLATE}

When unsure, write "unknown" instead of guessing. Output the paragraph first, then the JSON."""

CONVERSATION_SYSTEM_PROMPT = f"""You are a helpful assistant helping a PSW (Personal Support Worker) in Ontario, Canada document their shift. Hold a natural, warm conversation that gathers complete information.

CONVERSATION FLOW:
1. Ask who they cared for today.
2. Ask about shift start time and length.
3. Ask what care tasks they completed.
4. Ask how the client seemed: mood, behaviour, anything unusual.
5. Ask about meals and appetite.
6. Ask about mobility, transfers and walking assistance.
7. Ask whether any vital signs were taken.
8. Ask about social contact and emotional state.
9. Ask about safety concerns or incidents.
10. When they say they are done, ask if there is anything else, then summarize.

CONVERSATION RULES:
- Be warm and supportive, like a colleague. Ask ONE question at a time.
- Use their words; only rephrase when they are unclear.
- If something concerning comes up, ask whether to note it for supervisor follow-up.

OUTPUT RULES:
{_SCOPE_RULES}
- While the PSW is still sharing, reply with a short acknowledgement or follow-up question.
- Once the information is complete, output (A) a 2-5 sentence paragraph note in English, then (B) a VALID JSON object (UTF-8, no code fences) using this schema:

{DAR_JSON_TEMPLATE}

When unsure, write "unknown" instead of guessing."""

NONE_RECORDED = "None recorded"


def _lines(values: Iterable[Any] | None) -> str:
    entries = [str(value) for value in values or [] if value]
    return "\n".join(entries) if entries else NONE_RECORDED


def _role(message: Mapping[str, Any]) -> str:
    return str(message.get("role", ""))


def format_transcript(conversation: Iterable[Mapping[str, Any]] | None, assistant_label: str = "System") -> str:
    """Render chat turns as ``PSW: ...`` / ``<assistant_label>: ...`` lines."""
    rendered = []
    for message in conversation or []:
        speaker = "PSW" if _role(message) == "user" else assistant_label
        rendered.append(f"{speaker}: {message.get('content', '')}")
    return "\n".join(rendered)


def build_report_prompt(
    shift_data: Mapping[str, Any],
    conversation: Iterable[Mapping[str, Any]] | None = None,
    today: date | None = None,
) -> str:
    """User prompt for one-shot DAR report generation."""
    shift_date = (today or date.today()).isoformat()
    return f"""Convert this PSW shift documentation into a concise paragraph note and DAR JSON:

PSW: {shift_data.get('psw_name') or 'unknown'}
Client: {shift_data.get('client_name') or 'unknown'}
Shift Date: {shift_date}

CONVERSATION TRANSCRIPT:
{format_transcript(conversation)}

OBSERVATIONS:
{_lines(shift_data.get('observations'))}

CARE PROVIDED:
{_lines(shift_data.get('care_activities'))}

CLIENT RESPONSES:
{_lines(shift_data.get('client_responses'))}

COMMUNICATIONS:
{_lines(shift_data.get('communications'))}

Remember: Output (A) brief paragraph first, then (B) valid JSON. Use plain language, no medical jargon."""


def _gathered(shift_data: Mapping[str, Any], key: str) -> str:
    return "Yes" if shift_data.get(key) else "None yet"


def build_conversation_system_prompt(
    shift_data: Mapping[str, Any],
    conversation: list[Mapping[str, Any]] | None = None,
    language: str = "en",
    history_turns: int = 5,
) -> str:
    """System prompt for one conversation turn, with recent history and shift context."""
    sections = [CONVERSATION_SYSTEM_PROMPT]

    if conversation:
        history = format_transcript(conversation[-history_turns:], assistant_label="AI")
        sections.append(f"CONVERSATION HISTORY:\n{history}")

    sections.append(
        "SHIFT CONTEXT:\n"
        f"- Client: {shift_data.get('client_name') or 'unknown'}\n"
        f"- PSW: {shift_data.get('psw_name') or 'unknown'}\n"
        f"- Detected Language: {language}\n"
        "- Information gathered so far:\n"
        f"  - Observations: {_gathered(shift_data, 'observations')}\n"
        f"  - Care Activities: {_gathered(shift_data, 'care_activities')}\n"
        f"  - Client Responses: {_gathered(shift_data, 'client_responses')}"
    )
    return "\n\n".join(sections)


TRANSLATION_SYSTEM_PROMPT = (
    "You are a professional translator for healthcare documentation. Translate the "
    "following report to English, maintaining all formatting and professional terminology."
)

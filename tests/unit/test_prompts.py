from datetime import date

from shared.dar.prompts import (
    CONVERSATION_SYSTEM_PROMPT,
    DAR_JSON_TEMPLATE,
    NONE_RECORDED,
    REPORT_SYSTEM_PROMPT,
    build_conversation_system_prompt,
    build_report_prompt,
    format_transcript,
)


def test_system_prompts_embed_schema_and_scope():
    for prompt in (REPORT_SYSTEM_PROMPT, CONVERSATION_SYSTEM_PROMPT):
        assert DAR_JSON_TEMPLATE in prompt
        assert "notify_supervisor_RN" in prompt
        assert "Ontario PSW scope" in prompt


def test_format_transcript_labels_speakers():
    conversation = [
        {"role": "user", "content": "I helped Margaret shower."},
        {"role": "assistant", "content": "How did she respond?"},
    ]
    assert format_transcript(conversation) == "PSW: I helped Margaret shower.\nSystem: How did she respond?"
    assert format_transcript(conversation, assistant_label="AI").endswith("AI: How did she respond?")
    assert format_transcript(None) == ""


def test_report_prompt_lists_shift_sections(shift_data):
    prompt = build_report_prompt(shift_data, [{"role": "user", "content": "All good"}], today=date(2025, 3, 14))

    assert "PSW: Sam" in prompt
    assert "Client: Margaret" in prompt
    assert "Shift Date: 2025-03-14" in prompt
    assert "PSW: All good" in prompt
    assert "OBSERVATIONS:\nClient alert and oriented\nSkin intact" in prompt
    assert "CARE PROVIDED:\nAssisted with shower" in prompt
    assert f"COMMUNICATIONS:\n{NONE_RECORDED}" in prompt
    assert prompt.rstrip().endswith("no medical jargon.")


def test_report_prompt_defaults_unknown_names():
    prompt = build_report_prompt({}, today=date(2025, 1, 1))
    assert "PSW: unknown" in prompt
    assert "Client: unknown" in prompt


def test_conversation_prompt_includes_recent_history_only():
    conversation = [{"role": "user", "content": f"turn {i}"} for i in range(8)]
    prompt = build_conversation_system_prompt({}, conversation, language="es")

    assert prompt.startswith(CONVERSATION_SYSTEM_PROMPT)
    assert "CONVERSATION HISTORY:" in prompt
    assert "PSW: turn 2" not in prompt
    assert "PSW: turn 3" in prompt
    assert "PSW: turn 7" in prompt
    assert "- Detected Language: es" in prompt


def test_conversation_prompt_reports_gathered_information(shift_data):
    shift_data["client_responses"] = []
    prompt = build_conversation_system_prompt(shift_data)

    assert "CONVERSATION HISTORY:" not in prompt
    assert "- Client: Margaret" in prompt
    assert "  - Observations: Yes" in prompt
    assert "  - Care Activities: Yes" in prompt
    assert "  - Client Responses: None yet" in prompt

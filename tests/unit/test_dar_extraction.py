"""
Locating the DAR JSON object in model output.
"""
import json

from shared.dar.extraction import extract_last_json, split_note_text


class TestExtractLastJson:
    """Complete objects embedded in prose."""

    def test_extracts_object_after_paragraph(self, llm_reply, valid_dar):
        assert extract_last_json(llm_reply) == valid_dar

    def test_returns_none_without_json(self):
        assert extract_last_json("Client slept well. No concerns.") is None
        assert extract_last_json("") is None
        assert extract_last_json(None) is None

    def test_nested_object_is_not_returned_instead_of_enclosing_one(self):
        text = 'Note.\n{"client_name": "A", "DAR": {"Data": "x", "Action": "y", "Response": "z"}}'
        result = extract_last_json(text)
        assert result["client_name"] == "A"
        assert result["DAR"] == {"Data": "x", "Action": "y", "Response": "z"}

    def test_last_of_several_objects_wins(self):
        text = 'First draft {"client_name": "old"} then corrected {"client_name": "new"} done.'
        assert extract_last_json(text) == {"client_name": "new"}

    def test_braces_inside_strings_are_ignored(self):
        text = 'Paragraph.\n{"DAR": {"Data": "Client drew a {smiley} face", "Action": "}", "Response": "ok"}}'
        result = extract_last_json(text)
        assert result["DAR"]["Data"] == "Client drew a {smiley} face"
        assert result["DAR"]["Action"] == "}"

    def test_code_fenced_json_is_found(self, valid_dar):
        text = "Summary below.\n```json\n" + json.dumps(valid_dar) + "\n```\nLet me know if anything is missing."
        assert extract_last_json(text) == valid_dar

    def test_non_object_json_is_ignored(self):
        assert extract_last_json("[1, 2, 3]") is None


class TestTruncatedOutput:
    """Objects cut off by the token limit."""

    def test_truncated_object_is_repaired(self):
        text = 'Paragraph.\n{"client_name": "Margaret", "DAR": {"Data": "Ate lunch", "Action": "Served me'
        result = extract_last_json(text)
        assert result == {"client_name": "Margaret", "DAR": {"Data": "Ate lunch", "Action": "Served me"}}

    def test_truncated_after_comma_is_repaired(self):
        text = '{"client_name": "Margaret", "items": ["tea", "toast",'
        assert extract_last_json(text) == {"client_name": "Margaret", "items": ["tea", "toast"]}

    def test_repairable_truncated_object_replaces_earlier_one(self):
        text = '{"client_name": "first"} and then {"client_name": "sec'
        assert extract_last_json(text) == {"client_name": "sec"}

    def test_truncated_mid_key_falls_back_to_earlier_object(self):
        text = '{"client_name": "first"} then {"client_name": "second", "DAR": {"Da'
        assert extract_last_json(text) == {"client_name": "first"}

    def test_stray_brace_after_complete_object_is_ignored(self, valid_dar):
        """A lone "{" in a closing remark must not discard the DAR."""
        text = "Note.\n" + json.dumps(valid_dar) + "\nLet me know if you need anything else {"
        assert extract_last_json(text) == valid_dar

    def test_lone_brace_without_earlier_object(self):
        assert extract_last_json("Working on it {") == {}


class TestSplitNoteText:
    def test_returns_text_before_first_brace(self, llm_reply):
        assert split_note_text(llm_reply) == "Margaret was alert and cooperative during the morning visit."

    def test_without_json_returns_everything(self):
        assert split_note_text("  Just a reply.  ") == "Just a reply."
        assert split_note_text(None) == ""

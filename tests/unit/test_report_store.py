"""
Finalized report storage and exports.
"""
import json
from datetime import datetime, timezone

from pswdocs.storage.report_store import ReportStore, redact_for_export, to_html, to_markdown

NOW = datetime(2025, 3, 14, 9, 0, tzinfo=timezone.utc)


class TestReportStore:
    """On-disk layout and read-back."""

    def test_write_report_creates_dated_session_directory(self, report_store, valid_dar):
        paths = report_store.write_report("session-1", "Margaret Smith rested.", valid_dar, now=NOW)

        base = report_store.base_dir / "2025-03-14" / "session-1"
        assert paths["base"] == str(base)
        assert set(paths) == {"base", "note", "json", "md", "html"}
        assert (base / "note.txt").read_text(encoding="utf-8") == "Margaret Smith rested."
        assert json.loads((base / "report.dar.json").read_text(encoding="utf-8")) == valid_dar

    def test_session_ids_are_sanitized(self, report_store, valid_dar):
        paths = report_store.write_report("../../etc/passwd", "note", valid_dar, now=NOW)
        base = report_store.base_dir / "2025-03-14"
        assert paths["base"].startswith(str(base))
        assert ".._.._etc_passwd" in paths["base"]

    def test_dot_session_ids_do_not_escape_base(self, report_store, valid_dar):
        paths = report_store.write_report("..", "note", valid_dar, now=NOW)
        assert paths["base"].endswith("__")

    def test_blank_session_goes_to_unknown_bucket(self, report_store, valid_dar):
        paths = report_store.write_report("  ", "note", valid_dar, now=NOW)
        assert paths["base"].endswith("unknown")

    def test_read_report_returns_most_recent(self, report_store, valid_dar):
        report_store.write_report("s1", "older", valid_dar, now=datetime(2025, 3, 13, tzinfo=timezone.utc))
        report_store.write_report("s1", "newer", valid_dar, now=NOW)

        report = report_store.read_report("s1")
        assert report["noteText"] == "newer"
        assert report["date"] == "2025-03-14"
        assert report["dar"] == valid_dar

    def test_read_missing_report_returns_none(self, report_store):
        assert report_store.read_report("nope") is None

    def test_store_is_writable(self, tmp_path):
        store = ReportStore(tmp_path / "nested" / "reports")
        assert store.base_dir.exists()
        assert store.is_writable()


class TestExports:
    """Markdown and HTML renditions."""

    def test_markdown_export_redacts_names_and_phones(self, valid_dar):
        md = to_markdown("Margaret Smith called 416-555-0199 about her visit.", valid_dar)

        assert "[REDACTED_NAME]" in md
        assert "[REDACTED_PHONE]" in md
        assert "Margaret Smith" not in md.split("## DAR JSON")[0]
        assert "**PSW:** Sam" in md
        assert "```json" in md

    def test_html_export_escapes_markup(self, valid_dar):
        page = to_html("<script>alert(1)</script>", valid_dar)
        assert "<script>" not in page
        assert "&lt;script&gt;" in page
        assert page.startswith("<html>")

    def test_redact_leaves_single_words_alone(self):
        assert redact_for_export("Client ate lunch") == "Client ate lunch"

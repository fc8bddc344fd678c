"""Filesystem storage for finalized shift reports."""

from __future__ import annotations

import html
import json
import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_SAFE_SESSION_PATTERN = re.compile(r"[^a-zA-Z0-9_.-]")
_DATE_DIR_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_NAME_PATTERN = re.compile(r"\b([A-Z][a-z]+ [A-Z][a-z]+)\b")
_PHONE_PATTERN = re.compile(r"\+?\d[\d\-\s]{6,}\b")

NOTE_FILE = "note.txt"
JSON_FILE = "report.dar.json"
MD_FILE = "report.md"
HTML_FILE = "report.html"


def redact_for_export(text: str) -> str:
    """Strip simple identifiers (two-word names, phone-like numbers) from exported narrative."""
    text = _NAME_PATTERN.sub("[REDACTED_NAME]", text)
    return _PHONE_PATTERN.sub("[REDACTED_PHONE]", text)


def to_markdown(note_text: str, dar: Dict[str, Any]) -> str:
    return "\n".join(
        [
            "# Shift Report (DAR)",
            "",
            f"**Date/Time:** {dar.get('date_time') or ''}",
            f"**PSW:** {dar.get('psw_id') or ''}",
            f"**Client:** {dar.get('client_name') or dar.get('client_id') or ''}",
            "",
            "## Narrative (Paragraph)",
            "",
            redact_for_export(note_text or ""),
            "",
            "## DAR JSON (key fields)",
            "",
            "```json",
            json.dumps(dar, indent=2, ensure_ascii=False),
            "```",
        ]
    )


def to_html(note_text: str, dar: Dict[str, Any]) -> str:
    body = html.escape(to_markdown(note_text, dar), quote=False)
    return (
        '<html><head><meta charset="utf-8"><title>Shift Report</title></head>'
        f"<body><pre>{body}</pre></body></html>"
    )


class ReportStore:
    """Writes one directory per finalized session under a dated folder."""

    def __init__(self, base_dir: Path, unknown_bucket: str = "unknown") -> None:
        self.base_dir = Path(base_dir)
        self.unknown_bucket = unknown_bucket
        self._lock = Lock()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------ public
    def write_report(
        self,
        session_id: str,
        note_text: str,
        dar: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> Dict[str, str]:
        """Persist note and DAR; returns the written file paths."""
        session_key = self._session_key(session_id)
        day = (now or datetime.now(UTC)).strftime("%Y-%m-%d")
        base = self.base_dir / day / session_key
        paths = {
            "base": base,
            "note": base / NOTE_FILE,
            "json": base / JSON_FILE,
            "md": base / MD_FILE,
            "html": base / HTML_FILE,
        }

        with self._lock:
            base.mkdir(parents=True, exist_ok=True)
            paths["note"].write_text(note_text, encoding="utf-8")
            paths["json"].write_text(json.dumps(dar, indent=2, ensure_ascii=False), encoding="utf-8")
            paths["md"].write_text(to_markdown(note_text, dar), encoding="utf-8")
            paths["html"].write_text(to_html(note_text, dar), encoding="utf-8")

        logger.info("[REPORTS] Stored report for session %s", session_key, extra={"session_id": session_key})
        return {name: str(path) for name, path in paths.items()}

    def read_report(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Return the most recently stored note and DAR for a session, if any."""
        session_key = self._session_key(session_id)
        with self._lock:
            for day_dir in self._date_dirs():
                base = day_dir / session_key
                json_path = base / JSON_FILE
                if not json_path.exists():
                    continue
                try:
                    dar = json.loads(json_path.read_text(encoding="utf-8"))
                except (OSError, ValueError) as exc:
                    logger.warning("[REPORTS] Failed to read %s: %s", json_path, exc)
                    continue
                note_path = base / NOTE_FILE
                note_text = note_path.read_text(encoding="utf-8") if note_path.exists() else ""
                return {
                    "sessionId": session_key,
                    "date": day_dir.name,
                    "noteText": note_text,
                    "dar": dar,
                }
        return None

    def is_writable(self) -> bool:
        marker = self.base_dir / ".write_test"
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            marker.write_text("ok", encoding="utf-8")
            marker.unlink()
            return True
        except OSError as exc:
            logger.warning("[REPORTS] Storage not writable at %s: %s", self.base_dir, exc)
            return False

    # -------------------------------------------------------------- utilities
    def _session_key(self, session_id: Optional[str]) -> str:
        raw = (session_id or "").strip()
        if not raw:
            return self.unknown_bucket
        sanitized = _SAFE_SESSION_PATTERN.sub("_", raw)
        # "." and ".." survive the character filter but are not usable directory names
        if set(sanitized) == {"."}:
            sanitized = sanitized.replace(".", "_")
        return sanitized[:128] or self.unknown_bucket

    def _date_dirs(self) -> list[Path]:
        if not self.base_dir.exists():
            return []
        dirs = [p for p in self.base_dir.iterdir() if p.is_dir() and _DATE_DIR_PATTERN.match(p.name)]
        return sorted(dirs, key=lambda p: p.name, reverse=True)

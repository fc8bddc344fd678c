"""
Locate the DAR JSON object inside free-form LLM output.

Models are prompted to write a short paragraph and then a JSON object, but in
practice they wrap it in code fences, add a closing remark, or run out of
tokens half-way through. The scanner below walks the text once per candidate,
matching braces while skipping over string literals, and keeps the last
top-level object that parses.
"""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

_CLOSERS = {"{": "}", "[": "]"}


def _scan_balanced(text: str, start: int) -> tuple[int | None, list[str], bool]:
    """Brace-count from ``text[start] == "{"``.

    Returns:
        (end, stack, in_string): ``end`` is the index of the matching closing
        brace, or None when the text ends first. In that case ``stack`` holds
        the still-open ``{``/``[`` characters and ``in_string`` tells whether
        the text stopped inside a string literal.
    """
    stack: list[str] = []
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in ("}", "]"):
            if stack and _CLOSERS[stack[-1]] == ch:
                stack.pop()
            if not stack:
                return idx, stack, False
    return None, stack, in_string


def _repair_truncated(fragment: str, stack: list[str], in_string: bool) -> str:
    """Close whatever a truncated fragment left open."""
    repaired = fragment
    if in_string:
        repaired += '"'
    repaired = repaired.rstrip()
    while repaired and repaired[-1] in ",:":
        repaired = repaired[:-1].rstrip()
    return repaired + "".join(_CLOSERS[opener] for opener in reversed(stack))


def _loads_object(candidate: str) -> dict[str, Any] | None:
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


def extract_last_json(text: str | None) -> dict[str, Any] | None:
    """Return the last top-level JSON object embedded in ``text``.

    Nested objects are never returned in place of the object that encloses
    them. A final object cut off by the token limit is closed and parsed when
    possible; an empty repair never replaces an earlier complete object.
    Returns None when nothing parses.
    """
    if not text:
        return None

    found: dict[str, Any] | None = None
    pos = text.find("{")
    while pos != -1:
        end, stack, in_string = _scan_balanced(text, pos)
        if end is None:
            repaired = _repair_truncated(text[pos:], stack, in_string)
            payload = _loads_object(repaired)
            # A stray "{" in trailing prose repairs to {}; keep the complete object
            if payload is not None and (payload or found is None):
                logger.info("[DAR] Recovered truncated JSON object (%d unclosed)", len(stack))
                return payload
            # Every later brace sits inside this unterminated candidate
            if found is not None:
                break
            pos = text.find("{", pos + 1)
            continue

        payload = _loads_object(text[pos : end + 1])
        if payload is None:
            pos = text.find("{", pos + 1)
            continue
        found = payload
        pos = text.find("{", end + 1)

    return found


def split_note_text(text: str | None) -> str:
    """Paragraph note written before the JSON object."""
    if not text:
        return ""
    first_brace = text.find("{")
    if first_brace == -1:
        return text.strip()
    return text[:first_brace].strip()

"""
LLM text -> validated DAR document.

Combines extraction, schema validation and the deterministic fallback into the
single step every report-producing route needs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .extraction import extract_last_json, split_note_text
from .fallback import SCHEMA_VALIDATION_FAILED
from .schema import validate_dar

logger = logging.getLogger(__name__)


@dataclass
class DARResult:
    """Outcome of processing one LLM reply."""

    note_text: str
    dar: dict[str, Any]
    parsed: bool
    valid: bool
    validation_errors: list[str] = field(default_factory=list)


def _append_gap(document: dict[str, Any], tag: str) -> None:
    gaps = document.get("errors_or_gaps")
    if not isinstance(gaps, list):
        gaps = []
        document["errors_or_gaps"] = gaps
    if tag not in gaps:
        gaps.append(tag)


def process_llm_output(
    text: str | None,
    fallback_factory: Callable[[], dict[str, Any]],
    extra_gap: str | None = None,
) -> DARResult:
    """Extract, validate and, when needed, replace the DAR document in ``text``.

    Args:
        text: Raw model reply.
        fallback_factory: Called to build the replacement document when no
            JSON object can be recovered.
        extra_gap: Optional tag added to the fallback document's
            ``errors_or_gaps`` (e.g. ``model_returned_no_valid_json``).

    Returns:
        DARResult: ``dar`` always carries an ``errors_or_gaps`` list.
    """
    note_text = split_note_text(text)
    document = extract_last_json(text)

    if document is None:
        logger.warning("[DAR] No JSON object found in model output; using fallback document")
        fallback = fallback_factory()
        if extra_gap:
            _append_gap(fallback, extra_gap)
        fallback.setdefault("errors_or_gaps", [])
        return DARResult(note_text=note_text, dar=fallback, parsed=False, valid=False)

    errors = validate_dar(document)
    if errors:
        logger.warning("[DAR] Schema validation failed with %d error(s)", len(errors))
        _append_gap(document, SCHEMA_VALIDATION_FAILED)
    elif not isinstance(document.get("errors_or_gaps"), list):
        document["errors_or_gaps"] = []

    return DARResult(
        note_text=note_text,
        dar=document,
        parsed=True,
        valid=not errors,
        validation_errors=errors,
    )

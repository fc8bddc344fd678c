"""
DAR (Data-Action-Response) documentation pipeline.

Locates the JSON object in LLM output, validates it against the DAR schema
and substitutes a deterministic document when either step fails.
"""

from .extraction import extract_last_json, split_note_text
from .fallback import (
    API_ERROR,
    JSON_PARSE_FAILED,
    MODEL_RETURNED_NO_VALID_JSON,
    SCHEMA_VALIDATION_FAILED,
    USING_FALLBACK_DATA,
    build_fallback_dar,
    local_mode_dar,
    skeleton_dar,
    utc_timestamp,
)
from .pipeline import DARResult, process_llm_output
from .schema import DARDocument, is_valid_dar, validate_dar

__all__ = [
    "API_ERROR",
    "JSON_PARSE_FAILED",
    "MODEL_RETURNED_NO_VALID_JSON",
    "SCHEMA_VALIDATION_FAILED",
    "USING_FALLBACK_DATA",
    "DARDocument",
    "DARResult",
    "build_fallback_dar",
    "extract_last_json",
    "is_valid_dar",
    "local_mode_dar",
    "process_llm_output",
    "skeleton_dar",
    "split_note_text",
    "utc_timestamp",
    "validate_dar",
]

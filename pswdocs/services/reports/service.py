"""
DAR Report Service

Turns collected shift data into a paragraph note plus DAR JSON, finalizes
reviewed reports to storage and translates reports dictated in other
languages into English.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from shared.clients.ollama import OllamaClient
from shared.dar import (
    API_ERROR,
    build_fallback_dar,
    local_mode_dar,
    process_llm_output,
    utc_timestamp,
    validate_dar,
)
from shared.dar.prompts import REPORT_SYSTEM_PROMPT, TRANSLATION_SYSTEM_PROMPT, build_report_prompt

from pswdocs.services.mock_ai import mock_generate_report
from pswdocs.storage.report_store import ReportStore

logger = logging.getLogger(__name__)

REPORT_TEMPERATURE = 0.3
REPORT_MAX_TOKENS = 2500
REPORT_QUALITY = "balanced"
OLLAMA_SUGGESTION = "Ensure Ollama is running on localhost:11434"


class ReportService:
    """
    DAR report generation and persistence

    In local mode no LLM call is made; a demonstration DAR is returned instead.
    """

    def __init__(self, llm: Optional[OllamaClient], store: ReportStore, local_mode: bool = False):
        self.llm = llm
        self.store = store
        self.local_mode = local_mode

    async def generate_report(
        self,
        shift_data: Dict[str, Any],
        conversation: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        Generate a DAR report for one shift

        Args:
            shift_data: Gathered shift information
            conversation: Chat transcript ({role, content} turns)

        Returns:
            {"success": True, "noteText": str, "dar": dict, ...}

        Raises:
            UpstreamServiceError: When the LLM call fails
        """
        if self.local_mode or self.llm is None:
            logger.info("[REPORTS] Local mode: returning demonstration DAR")
            mock_report = mock_generate_report(shift_data)
            client = shift_data.get("client_name") or "Client"
            return {
                "success": True,
                "noteText": f"{client} was observed during the shift. {mock_report['report'][:200]}...",
                "dar": local_mode_dar(shift_data),
                "localMode": True,
            }

        messages = [
            {"role": "system", "content": REPORT_SYSTEM_PROMPT},
            {"role": "user", "content": build_report_prompt(shift_data, conversation)},
        ]
        completion = await self.llm.chat(
            messages,
            temperature=REPORT_TEMPERATURE,
            max_tokens=REPORT_MAX_TOKENS,
            quality=REPORT_QUALITY,
        )
        raw = completion["message"]["content"]

        result = process_llm_output(raw, lambda: build_fallback_dar(shift_data))
        if not result.parsed:
            logger.warning("[REPORTS] Model returned no parseable DAR JSON; using fallback")
        elif not result.valid:
            logger.warning("[REPORTS] DAR failed validation: %s", "; ".join(result.validation_errors))

        response: Dict[str, Any] = {
            "success": True,
            "noteText": result.note_text,
            "dar": result.dar,
            "model": completion.get("model"),
        }
        if result.validation_errors:
            response["validationErrors"] = result.validation_errors
        return response

    def error_payload(self, shift_data: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
        """Body returned with HTTP 500 when generation fails"""
        dar = build_fallback_dar(shift_data)
        dar["errors_or_gaps"].append(API_ERROR)
        client = shift_data.get("client_name") or "unknown"
        shift_date = (today or date.today()).isoformat()
        return {
            "success": False,
            "error": "Failed to generate DAR report",
            "noteText": f"Documentation for {client} on {shift_date}. Error occurred during report generation.",
            "dar": dar,
        }

    def finalize_report(self, session_id: str, note_text: str, dar: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate, stamp and store a reviewed report

        Validation problems do not block storage; they are recorded in
        ``errors_or_gaps`` so the reviewer sees them in the saved document.
        """
        dar = dict(dar)
        errors = validate_dar(dar)
        if errors:
            existing = dar.get("errors_or_gaps")
            existing = existing if isinstance(existing, list) else []
            # dict.fromkeys keeps first-seen order
            dar["errors_or_gaps"] = list(dict.fromkeys([*existing, *errors]))
            logger.info("[REPORTS] Finalizing session %s with %d validation issue(s)", session_id, len(errors))

        if not dar.get("date_time"):
            dar["date_time"] = utc_timestamp()

        paths = self.store.write_report(session_id, note_text, dar)
        return {"ok": True, "paths": paths}

    def get_report(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self.store.read_report(session_id)

    async def translate_report(self, report: str, source_lang: str) -> Dict[str, Any]:
        """
        Translate a report to English

        English reports are returned untouched. Failures return the original
        text with an explanation rather than an HTTP error.
        """
        if source_lang == "en":
            return {"translatedReport": report}

        try:
            completion = await self.llm.chat(
                [
                    {"role": "system", "content": TRANSLATION_SYSTEM_PROMPT},
                    {"role": "user", "content": report},
                ],
                temperature=REPORT_TEMPERATURE,
                quality="quality",
            )
        except Exception as e:
            logger.error("[REPORTS] Translation failed: %s", e)
            return {
                "translatedReport": report,
                "error": "Translation failed",
                "message": str(e),
                "suggestion": OLLAMA_SUGGESTION,
            }

        return {"translatedReport": completion["message"]["content"]}

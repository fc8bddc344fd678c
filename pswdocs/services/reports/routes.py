"""
DAR Report API Routes

Endpoints:
- POST /api/generate-ai-report - Paragraph note + DAR JSON for a shift
- POST /api/finalize-report - Validate and store a reviewed report
- POST /api/translate-report - Translate a report to English
- GET /api/reports/{session_id} - Fetch a stored report
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from shared.clients.ollama import OllamaClient
from shared.dar.models import (
    FinalizeReportRequest,
    GenerateReportRequest,
    ShiftData,
    TranslateReportRequest,
)
from shared.errors import APIException, ErrorCode

from pswdocs.storage.report_store import ReportStore

from .service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["reports"])

# Service instance (initialized by main app)
_service: Optional[ReportService] = None


def initialize_service(
    llm: Optional[OllamaClient],
    store: ReportStore,
    local_mode: bool = False,
) -> ReportService:
    """
    Initialize report service

    Args:
        llm: Ollama client (None forces local mode)
        store: Storage for finalized reports
        local_mode: Answer with demonstration data instead of calling the LLM

    Returns:
        Initialized ReportService
    """
    global _service
    _service = ReportService(llm=llm, store=store, local_mode=local_mode)
    return _service


def get_service() -> ReportService:
    """Get report service instance"""
    if _service is None:
        raise RuntimeError("Report service not initialized")
    return _service


@router.post("/generate-ai-report")
async def generate_ai_report(payload: GenerateReportRequest):
    """
    Generate the paragraph note and DAR JSON for a shift

    Returns:
        {"success": True, "noteText": str, "dar": dict}; HTTP 500 with a
        fallback DAR when the LLM call fails
    """
    service = get_service()
    shift_data = (payload.shiftData or ShiftData.default()).as_dict()
    conversation = [message.model_dump() for message in payload.conversation]

    try:
        return await service.generate_report(shift_data, conversation)
    except Exception as e:
        logger.error("[REPORTS] DAR generation failed: %s", e, exc_info=True)
        return JSONResponse(status_code=500, content=service.error_payload(shift_data))


@router.post("/finalize-report")
def finalize_report(payload: FinalizeReportRequest) -> Dict[str, Any]:
    """
    Store a reviewed report

    Returns:
        {"ok": True, "paths": {"base", "note", "json", "md", "html"}}
    """
    service = get_service()

    if not payload.noteText or not payload.dar or not payload.sessionId:
        raise APIException(
            error_code=ErrorCode.VALIDATION_MISSING_FIELD,
            message="missing noteText|dar|sessionId",
        )

    try:
        return service.finalize_report(payload.sessionId, payload.noteText, payload.dar)
    except OSError as e:
        logger.error("[REPORTS] Finalize failed for session %s: %s", payload.sessionId, e)
        raise APIException(
            error_code=ErrorCode.INTERNAL_ERROR,
            message="finalize failed",
            details={"reason": str(e)},
        )


@router.post("/translate-report")
async def translate_report(payload: TranslateReportRequest) -> Dict[str, Any]:
    """Translate a report to English (English reports are returned as-is)"""
    service = get_service()
    return await service.translate_report(payload.report, payload.sourceLang)


@router.get("/reports/{session_id}")
def get_report(session_id: str) -> Dict[str, Any]:
    """
    Fetch the most recently stored report for a session

    Raises:
        APIException: 404 if no report was stored
    """
    service = get_service()

    report = service.get_report(session_id)
    if report is None:
        raise APIException(
            error_code=ErrorCode.RESOURCE_NOT_FOUND,
            message="Report not found",
            details={"sessionId": session_id},
        )
    return report

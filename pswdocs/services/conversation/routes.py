"""
Conversation API Routes

Endpoints:
- POST /api/process-conversation-ai - One turn of conversational documentation
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter

from shared.clients.ollama import OllamaClient
from shared.dar.models import ConversationRequest

from .service import ConversationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["conversation"])

# Service instance (initialized by main app)
_service: Optional[ConversationService] = None


def initialize_service(llm: Optional[OllamaClient], local_mode: bool = False) -> ConversationService:
    """
    Initialize conversation service

    Args:
        llm: Ollama client (None forces local mode)
        local_mode: Answer with canned replies instead of calling the LLM

    Returns:
        Initialized ConversationService
    """
    global _service
    _service = ConversationService(llm=llm, local_mode=local_mode)
    return _service


def get_service() -> ConversationService:
    """Get conversation service instance"""
    if _service is None:
        raise RuntimeError("Conversation service not initialized")
    return _service


@router.post("/process-conversation-ai")
async def process_conversation(payload: ConversationRequest) -> Dict[str, Any]:
    """
    Process one PSW utterance

    Returns:
        Reply text, updated shift data, paragraph note and DAR JSON. Voice
        commands return ``goBack`` or ``isSummary`` responses instead.
    """
    service = get_service()
    return await service.process_turn(
        user_input=payload.input,
        shift_data=payload.shiftData.as_dict(),
        conversation=[message.model_dump() for message in payload.conversation],
        context=payload.context,
        language=payload.language or "en",
    )

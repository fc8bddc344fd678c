"""Conversational shift documentation."""

from .service import ConversationService, detect_voice_command, merge_dar_into_shift

__all__ = ["ConversationService", "detect_voice_command", "merge_dar_into_shift"]

"""
Conversation Service

One turn of the conversational documentation flow: voice commands, the LLM
reply with its DAR JSON, and folding the DAR back into the running shift data.
"""

import logging
from typing import Any, Dict, List, Optional

from shared.clients.ollama import OllamaClient
from shared.dar import MODEL_RETURNED_NO_VALID_JSON, process_llm_output, skeleton_dar
from shared.dar.prompts import build_conversation_system_prompt

from pswdocs.services.mock_ai import mock_process_conversation

logger = logging.getLogger(__name__)

CONVERSATION_TEMPERATURE = 0.3
CONVERSATION_MAX_TOKENS = 800
CONVERSATION_QUALITY = "speed"

FOLLOW_UP_REPLY = "I understand. Can you tell me more about that?"

# Per language: [go back, summarize, what have i told you, skip]
VOICE_COMMANDS: Dict[str, List[str]] = {
    "en": ["go back", "summarize", "what have i told you", "skip"],
    "es": ["regresar", "resumir", "qué te he dicho", "saltar"],
    "fil": ["bumalik", "ibuod", "ano ang sinabi ko", "laktawan"],
    "pt": ["voltar", "resumir", "o que eu disse", "pular"],
    "hi": ["वापस जाओ", "सारांश", "मैंने क्या बताया", "छोड़ें"],
    "bo": ["ཕྱིར་ལོག", "བསྡུས་དོན", "ངས་ཁྱོད་ལ་ཅི་ཞིག་བཤད་པ་རེད", "མཆོང་བ"],
}

GO_BACK_REPLIES: Dict[str, str] = {
    "en": "Of course, let me go back to the previous question.",
    "es": "Por supuesto, volvamos a la pregunta anterior.",
    "fil": "Sige, balik tayo sa nakaraang tanong.",
    "pt": "Claro, vamos voltar à pergunta anterior.",
    "hi": "ज़रूर, चलिए पिछले सवाल पर वापस चलते हैं।",
    "bo": "ལགས་སོ། སྔོན་གྱི་དྲི་བ་དེར་ཕྱིར་ལོག་གི་ཡིན།",
}

VITAL_SIGN_KEYS = ("bp", "hr", "temp", "spo2")


def _items(shift_data: Dict[str, Any], key: str, marker: str, empty: str) -> str:
    values = shift_data.get(key) or []
    if not values:
        return empty
    return "\n".join(f"{marker} {value}" for value in values)


def _first_observation(shift_data: Dict[str, Any], empty: str) -> str:
    observations = shift_data.get("observations") or []
    return observations[0] if observations else empty


def _summary_en(shift_data: Dict[str, Any]) -> str:
    return f"""Here's what you've documented so far:

📋 CLIENT INFORMATION
- Name: {shift_data.get('client_name') or 'Not recorded'}
- Current Status: {_first_observation(shift_data, 'Not assessed')}

🤲 CARE PROVIDED
{_items(shift_data, 'care_activities', '✓', 'No care activities recorded yet')}

👀 OBSERVATIONS
{_items(shift_data, 'observations', '•', 'No observations recorded yet')}

💬 CLIENT RESPONSES
{_items(shift_data, 'client_responses', '•', 'No client responses recorded yet')}

📞 COMMUNICATIONS
{_items(shift_data, 'communications', '•', 'No communications recorded yet')}

Would you like to continue or make any corrections?"""


def _summary_es(shift_data: Dict[str, Any]) -> str:
    return f"""Esto es lo que has documentado hasta ahora:

📋 INFORMACIÓN DEL CLIENTE
- Nombre: {shift_data.get('client_name') or 'No registrado'}
- Estado actual: {_first_observation(shift_data, 'No evaluado')}

🤲 CUIDADOS PROPORCIONADOS
{_items(shift_data, 'care_activities', '✓', 'Aún no se han registrado actividades de cuidado')}

¿Deseas continuar o hacer alguna corrección?"""


def _summary_fil(shift_data: Dict[str, Any]) -> str:
    return f"""Narito ang iyong naidokumento hanggang ngayon:

📋 IMPORMASYON NG KLIYENTE
- Pangalan: {shift_data.get('client_name') or 'Hindi naitala'}
- Kasalukuyang Kalagayan: {_first_observation(shift_data, 'Hindi pa nasusuri')}

🤲 PANGANGALAGANG IBINIGAY
{_items(shift_data, 'care_activities', '✓', 'Wala pang naitala na gawain')}

Gusto mo bang magpatuloy o may gustong iwasto?"""


SUMMARY_BUILDERS = {
    "en": _summary_en,
    "es": _summary_es,
    "fil": _summary_fil,
}


def detect_voice_command(text: Optional[str]) -> Optional[tuple]:
    """
    Find a go-back or summarize command in an utterance

    Languages are checked in declaration order; the first language with any
    matching phrase decides.

    Returns:
        ("go_back" | "summarize", language) or None
    """
    lowered = (text or "").lower()
    if not lowered:
        return None

    for language, commands in VOICE_COMMANDS.items():
        if not any(command in lowered for command in commands):
            continue
        if commands[0] in lowered:
            return "go_back", language
        if commands[1] in lowered:
            return "summarize", language
    return None


def build_summary(shift_data: Dict[str, Any], language: str = "en") -> str:
    builder = SUMMARY_BUILDERS.get(language, _summary_en)
    return builder(shift_data)


def format_vitals(vital_signs: Any) -> str:
    """'BP: 120/80, HR: 72' from a DAR vital_signs object (empty when none recorded)"""
    if not isinstance(vital_signs, dict):
        return ""
    return ", ".join(
        f"{key.upper()}: {vital_signs[key]}" for key in VITAL_SIGN_KEYS if vital_signs.get(key)
    )


def merge_dar_into_shift(shift_data: Dict[str, Any], dar: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fold one DAR document into the running shift data

    The detected language is recorded once; DAR Data and vitals extend
    observations, Action extends care_activities and Response extends
    client_responses. Empty entries are dropped.
    """
    updated = dict(shift_data)

    languages = list(updated.get("languages_used") or [])
    language = dar.get("language")
    if language and language not in languages:
        languages.append(language)
    updated["languages_used"] = languages

    narrative = dar.get("DAR") if isinstance(dar.get("DAR"), dict) else {}
    observations = dar.get("observations") if isinstance(dar.get("observations"), dict) else {}

    new_observations = [narrative.get("Data")]
    vitals = format_vitals(observations.get("vital_signs"))
    if vitals:
        new_observations.append(f"Vitals: {vitals}")

    updated["observations"] = [
        item for item in [*(updated.get("observations") or []), *new_observations] if item
    ]
    updated["care_activities"] = [
        item for item in [*(updated.get("care_activities") or []), narrative.get("Action")] if item
    ]
    updated["client_responses"] = [
        item for item in [*(updated.get("client_responses") or []), narrative.get("Response")] if item
    ]
    return updated


def merge_extracted_data(shift_data: Dict[str, Any], extracted: Dict[str, Any]) -> Dict[str, Any]:
    """List-valued shift fields are appended to; anything else is replaced"""
    updated = dict(shift_data)
    for key, value in extracted.items():
        if isinstance(updated.get(key), list):
            updated[key] = [*updated[key], value]
        else:
            updated[key] = value
    return updated


class ConversationService:
    """
    Conversational shift documentation

    In local mode replies come from the canned mock conversation.
    """

    def __init__(self, llm: Optional[OllamaClient], local_mode: bool = False):
        self.llm = llm
        self.local_mode = local_mode

    async def process_turn(
        self,
        user_input: Optional[str],
        shift_data: Dict[str, Any],
        conversation: Optional[List[Dict[str, Any]]] = None,
        context: Any = None,
        language: str = "en",
    ) -> Dict[str, Any]:
        """
        Process one PSW utterance

        Never raises; failures produce a gentle follow-up question with the
        shift data unchanged.
        """
        try:
            if self.local_mode or self.llm is None:
                return self._local_turn(user_input, shift_data, context, language)

            command = detect_voice_command(user_input)
            if command is not None:
                return self._command_reply(command, shift_data)

            return await self._llm_turn(user_input, shift_data, conversation, context, language)
        except Exception as e:
            logger.error("[CONVERSATION] Processing failed: %s", e, exc_info=True)
            return {
                "response": FOLLOW_UP_REPLY,
                "updatedShiftData": shift_data,
                "nextContext": context,
                "noteText": "",
                "dar": skeleton_dar(),
            }

    def _local_turn(
        self,
        user_input: Optional[str],
        shift_data: Dict[str, Any],
        context: Any,
        language: str,
    ) -> Dict[str, Any]:
        mock = mock_process_conversation(user_input, language)
        return {
            "response": mock["response"],
            "updatedShiftData": merge_extracted_data(shift_data, mock.get("extractedData") or {}),
            "detectedLanguage": mock["language"],
            "emotionalTone": mock["emotion"],
            "nextContext": context,
            "localMode": True,
            "noteText": mock["response"],
            "dar": skeleton_dar(),
        }

    def _command_reply(self, command: tuple, shift_data: Dict[str, Any]) -> Dict[str, Any]:
        action, language = command
        logger.info("[CONVERSATION] Voice command %s (%s)", action, language)

        if action == "go_back":
            return {
                "response": GO_BACK_REPLIES.get(language, GO_BACK_REPLIES["en"]),
                "updatedShiftData": shift_data,
                "goBack": True,
                "noteText": "",
                "dar": skeleton_dar(),
            }

        return {
            "response": build_summary(shift_data, language),
            "updatedShiftData": shift_data,
            "isSummary": True,
        }

    async def _llm_turn(
        self,
        user_input: Optional[str],
        shift_data: Dict[str, Any],
        conversation: Optional[List[Dict[str, Any]]],
        context: Any,
        language: str,
    ) -> Dict[str, Any]:
        system_prompt = build_conversation_system_prompt(shift_data, conversation, language)
        completion = await self.llm.chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": str(user_input or "")},
            ],
            temperature=CONVERSATION_TEMPERATURE,
            max_tokens=CONVERSATION_MAX_TOKENS,
            quality=CONVERSATION_QUALITY,
        )

        raw = (completion.get("message") or {}).get("content") or ""
        result = process_llm_output(raw, skeleton_dar, extra_gap=MODEL_RETURNED_NO_VALID_JSON)
        dar = result.dar

        return {
            "response": result.note_text,
            "noteText": result.note_text,
            "dar": dar,
            "updatedShiftData": merge_dar_into_shift(shift_data, dar),
            "detectedLanguage": dar.get("language") or "unknown",
            "emotionalTone": "empathetic",
            "nextContext": context,
        }

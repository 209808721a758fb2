from __future__ import annotations

import logging
from typing import Any, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from agent.core.parsing import parse_agent_response
from agent.core.prompt import build_prompt
from agent.core.safety import check_safety, is_emergency
from agent.schemas import AgentInternal, AgentResult, ChatRequest
from config.settings import Settings, get_settings


logger = logging.getLogger("besty")

EMERGENCY_REPLY = (
    "I understand this is urgent. Please call emergency services (911) immediately "
    "if needed. I'm also notifying our staff right away to assist you."
)
HANDOFF_REPLY = (
    "Thank you for reaching out. I'm connecting you with our staff who will assist "
    "you personally. They'll respond shortly."
)
FALLBACK_REASON = "Agent error - failed to process request"


def build_llm(settings: Optional[Settings] = None) -> ChatGoogleGenerativeAI:
    settings = settings or get_settings()
    if not settings.gemini_api_key:
        raise RuntimeError(
            "GEMINI_API_KEY not set. Please configure it in environment or .env"
        )

    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.gemini_api_key,
        temperature=settings.temperature,
        top_k=settings.top_k,
        top_p=settings.top_p,
        max_output_tokens=settings.max_output_tokens,
    )


def build_agent(settings: Optional[Settings] = None) -> Optional["HospitalityAgent"]:
    settings = settings or get_settings()
    if not settings.configured:
        logger.error("GEMINI_API_KEY not found in environment variables")
        return None
    return HospitalityAgent(build_llm(settings), model_name=settings.gemini_model)


def _message_text(message: Any) -> str:
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    parts: List[str] = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class HospitalityAgent:
    """Turns a guest message into an AgentResult.

    The safety pre-filter runs first and, on a match, answers without calling
    the model. Otherwise the model is called once; any failure there (network,
    missing or malformed JSON) yields the fixed fallback result, which always
    escalates.
    """

    def __init__(self, llm: BaseChatModel, model_name: str = "") -> None:
        self.llm = llm
        self.model_name = model_name

    async def process(self, request: ChatRequest, history: List[str]) -> AgentResult:
        safety = check_safety(request.message)
        if safety.should_escalate:
            return self.escalation_result(request, safety.reason or "Safety concern")

        messages: List[BaseMessage] = [HumanMessage(content=build_prompt(request, history))]
        try:
            response = await self.llm.ainvoke(messages)
            return parse_agent_response(_message_text(response))
        except Exception as exc:
            logger.exception("Agent error for session %s: %s", request.session_id, exc)
            return self.fallback_result(request)

    @staticmethod
    def escalation_result(request: ChatRequest, reason: str) -> AgentResult:
        return AgentResult(
            reply=EMERGENCY_REPLY if is_emergency(request.message) else HANDOFF_REPLY,
            language=request.guest.language_hint or "en",
            confidence=1.0,
            escalate=True,
            escalation_reason=reason,
            upsell=None,
            delay_seconds=1,
            internal=AgentInternal(
                detected_intent="escalation_required",
                sentiment="urgent",
                missing_info=[],
            ),
        )

    @staticmethod
    def fallback_result(request: ChatRequest) -> AgentResult:
        return AgentResult(
            reply=(
                f"Thank you for your message, {request.guest.name}. I want to make sure "
                "I give you accurate information. Let me connect you with our team who "
                "can help you right away."
            ),
            language=request.guest.language_hint or "en",
            confidence=0.3,
            escalate=True,
            escalation_reason=FALLBACK_REASON,
            upsell=None,
            delay_seconds=2,
            internal=AgentInternal(
                detected_intent="error",
                sentiment="neutral",
                missing_info=[],
            ),
        )

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List

from pydantic import ValidationError

from agent.schemas import AgentInternal, AgentResult, AgentUpsell


JSON_SPAN = re.compile(r"\{.*\}", re.DOTALL)

DEFAULT_REPLY = "I'm here to help! Could you please rephrase your question?"
DEFAULT_LANGUAGE = "en"
DEFAULT_CONFIDENCE = 0.7
DEFAULT_DELAY_SECONDS = 3
DEFAULT_INTENT = "general_inquiry"
DEFAULT_SENTIMENT = "neutral"
MAX_DELAY_SECONDS = 120


class AgentResponseError(ValueError):
    """Raised when model output holds no usable JSON object."""


def _reject_constant(name: str) -> Any:
    raise AgentResponseError(f"Non-finite number in response: {name}")


def _strip_code_fences(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped[3:]
        if stripped.startswith("json"):
            stripped = stripped[len("json"):].lstrip()
        stripped = stripped.rstrip()
        if stripped.endswith("```"):
            stripped = stripped[:-3]
    return stripped.strip()


def extract_json(text: str) -> Dict[str, Any]:
    match = JSON_SPAN.search(_strip_code_fences(text or ""))
    if not match:
        raise AgentResponseError("No JSON found in response")
    try:
        parsed = json.loads(match.group(0), parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise AgentResponseError(f"Invalid JSON in response: {exc}") from exc
    if not isinstance(parsed, dict):
        raise AgentResponseError("Response JSON is not an object")
    return parsed


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _upsell(value: Any):
    if not isinstance(value, dict):
        return None
    try:
        return AgentUpsell.model_validate(value)
    except ValidationError:
        return None


def _missing_info(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def coerce_agent_result(data: Dict[str, Any]) -> AgentResult:
    """Build an AgentResult from parsed model JSON.

    Every field falls back to a default when it is missing or has the wrong
    type, so partial output never fails validation. Confidence is clamped to
    [0, 1] and delaySeconds to [0, 120].
    """
    confidence = data.get("confidence")
    if not _is_number(confidence):
        confidence = DEFAULT_CONFIDENCE

    delay = data.get("delaySeconds")
    if not _is_number(delay):
        delay = DEFAULT_DELAY_SECONDS

    escalate = data.get("escalate")
    reason = data.get("escalationReason")
    internal = data.get("internal")
    if not isinstance(internal, dict):
        internal = {}

    return AgentResult(
        reply=_text(data.get("reply"), DEFAULT_REPLY),
        language=_text(data.get("language"), DEFAULT_LANGUAGE),
        confidence=clamp(float(confidence), 0.0, 1.0),
        escalate=escalate if isinstance(escalate, bool) else False,
        escalation_reason=reason if isinstance(reason, str) and reason else None,
        upsell=_upsell(data.get("upsell")),
        delay_seconds=clamp(delay, 0, MAX_DELAY_SECONDS),
        internal=AgentInternal(
            detected_intent=_text(internal.get("detectedIntent"), DEFAULT_INTENT),
            sentiment=_text(internal.get("sentiment"), DEFAULT_SENTIMENT),
            missing_info=_missing_info(internal.get("missingInfo")),
        ),
    )


def parse_agent_response(text: str) -> AgentResult:
    return coerce_agent_result(extract_json(text))

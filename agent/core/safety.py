from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional


logger = logging.getLogger("besty")


# Ordered: the first keyword found in the message wins. There is no
# combination logic, and a match always bypasses the model.
SENSITIVE_KEYWORDS = (
    "fire",
    "police",
    "emergency",
    "assault",
    "threatened",
    "refund dispute",
    "chargeback",
    "discrimination",
    "harassment",
    "lockout",
    "locked out",
    "medical emergency",
    "ambulance",
    "danger",
    "unsafe",
    "illegal",
)

EMERGENCY_TERMS = ("emergency", "fire", "medical")


@dataclass(frozen=True)
class SafetyCheck:
    should_escalate: bool
    keyword: Optional[str] = None
    reason: Optional[str] = None


def check_safety(message: str) -> SafetyCheck:
    lower = message.lower()
    for keyword in SENSITIVE_KEYWORDS:
        if keyword in lower:
            logger.info("Sensitive keyword detected: '%s'", keyword)
            return SafetyCheck(
                should_escalate=True,
                keyword=keyword,
                reason=f"Sensitive topic detected: {keyword}",
            )
    return SafetyCheck(should_escalate=False)


def is_emergency(message: str) -> bool:
    lower = message.lower()
    return any(term in lower for term in EMERGENCY_TERMS)

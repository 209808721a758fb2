"""
Console demo — sends the sample guest messages through the agent.

Uses the same sample property, business policy, guest and stay that the
browser client pre-fills. With --offline a scripted chat model replaces
Gemini, so no API key or network is needed.

Usage:
    python console_demo.py
    python console_demo.py --offline
    python console_demo.py --message "Can I check in early?"
"""

import argparse
import asyncio
import json
import random
import string
import sys
import time
from datetime import date, timedelta
from typing import List, Optional

from langchain_core.language_models.fake_chat_models import FakeListChatModel

from agent.agent import HospitalityAgent, build_agent
from agent.core.memory import SessionStore
from agent.schemas import AgentResult, ChatRequest, Turn

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEFAULT_PROPERTY = {
    "name": "Sunset Beach Villa",
    "timezone": "America/Los_Angeles",
    "houseRules": "No smoking, no pets, no parties. Quiet hours 10pm-8am.",
    "checkInInstructions": (
        "Check-in is at 3:00 PM. Use keyless entry code sent via SMS. Park in spot #12."
    ),
    "checkOutInstructions": "Check-out is at 11:00 AM. Please leave keys on kitchen counter.",
    "amenities": (
        "Free WiFi (network: SunsetVilla, password: Beach2024), heated pool, hot tub, "
        "BBQ grill, beach access, smart TV, full kitchen"
    ),
    "faq": "\n".join(
        [
            'WiFi: Network "SunsetVilla", password "Beach2024"',
            "Parking: Space #12",
            "Beach: 2-minute walk, access path through gate",
            "Trash: Bins in garage, pickup Tuesdays",
            "AC/Heat: Nest thermostat in hallway",
            "Checkout: 11 AM, leave keys on counter",
        ]
    ),
}

DEFAULT_BUSINESS = {
    "brandVoice": (
        "Friendly, helpful, and professional. Use a warm, welcoming tone. "
        "Be concise but thorough."
    ),
    "allowedUpsells": [
        {
            "id": "early_checkin",
            "title": "Early Check-in",
            "price": 35,
            "currency": "USD",
            "notes": "Subject to availability",
        },
        {
            "id": "late_checkout",
            "title": "Late Checkout",
            "price": 45,
            "currency": "USD",
            "notes": "Subject to availability",
        },
        {"id": "parking", "title": "Additional Parking Pass", "price": 20, "currency": "USD", "notes": ""},
    ],
    "upsellPolicy": (
        "Offer upsells when relevant to guest request. Never upsell during complaints "
        "or emergencies. Present value clearly."
    ),
    "escalationPolicy": (
        "Escalate for: refunds, safety issues, emergencies, lockouts, payment disputes, "
        "low confidence, anything sensitive."
    ),
}

DEFAULT_GUEST = {"name": "Sarah Johnson", "languageHint": "en"}

TEST_MESSAGES = [
    "What's the Wi-Fi password?",
    "Can I check in early?",
    "The AC is broken and it's really hot.",
    "I want a refund. This place is unacceptable.",
    "Is there parking available?",
]

# Canned model output for --offline runs, returned in order and cycled.
SCRIPTED_REPLIES = [
    json.dumps(
        {
            "reply": 'The Wi-Fi network is "SunsetVilla" and the password is "Beach2024". Enjoy your stay!',
            "language": "en",
            "confidence": 0.95,
            "escalate": False,
            "escalationReason": None,
            "upsell": None,
            "delaySeconds": 2,
            "internal": {"detectedIntent": "wifi_info", "sentiment": "neutral", "missingInfo": []},
        }
    ),
    "Sure! Here is my answer:\n```json\n"
    + json.dumps(
        {
            "reply": "Check-in is at 3:00 PM, but early check-in is available for 35 USD, subject to availability.",
            "language": "en",
            "confidence": 0.9,
            "escalate": False,
            "upsell": {
                "id": "early_checkin",
                "title": "Early Check-in",
                "price": 35,
                "currency": "USD",
                "pitch": "Start relaxing by the pool sooner.",
            },
            "delaySeconds": 4,
            "internal": {"detectedIntent": "early_checkin_request", "sentiment": "positive"},
        }
    )
    + "\n```",
    json.dumps(
        {
            "reply": "I'm sorry about the AC. The Nest thermostat is in the hallway; I've also alerted our team.",
            "confidence": 0.6,
            "escalate": True,
            "escalationReason": "Maintenance issue",
            "delaySeconds": 300,
            "internal": {"detectedIntent": "maintenance_issue", "sentiment": "negative", "missingInfo": ["unit_model"]},
        }
    ),
    "I cannot answer that in JSON right now.",
]


def generate_session_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def default_request(session_id: str, message: str, today: Optional[date] = None) -> ChatRequest:
    today = today or date.today()
    return ChatRequest.model_validate(
        {
            "sessionId": session_id,
            "message": message,
            "guest": DEFAULT_GUEST,
            "stay": {
                "checkInDate": (today + timedelta(days=1)).isoformat(),
                "checkOutDate": (today + timedelta(days=3)).isoformat(),
                "nGuests": 2,
            },
            "property": DEFAULT_PROPERTY,
            "business": DEFAULT_BUSINESS,
        }
    )


class ConsoleSession:
    """Runs guest messages through the agent, keeping history the way the server does."""

    def __init__(self, agent: HospitalityAgent) -> None:
        self.agent = agent
        self.store = SessionStore()
        self.session_id = generate_session_id()

    async def send(self, message: str) -> AgentResult:
        request = default_request(self.session_id, message)
        history = self.store.history_as_lines(self.session_id)
        self.store.set_context(self.session_id, request.context())
        self.store.append(self.session_id, Turn(role="guest", text=message, ts=int(time.time() * 1000)))
        result = await self.agent.process(request, history)
        self.store.append(self.session_id, Turn(role="agent", text=result.reply, ts=int(time.time() * 1000)))
        return result

    def show(self, message: str, result: AgentResult) -> None:
        print(f"\n{BLUE}[Guest] {RESET}{message}")
        color = RED if result.escalate else GREEN
        print(f"{color}{BOLD}[Agent]{RESET} {color}{result.reply}{RESET}")
        print(
            f"{DIM}  >> confidence={result.confidence:.2f} escalate={result.escalate} "
            f"delay={result.delay_seconds}s intent={result.internal.detected_intent}{RESET}"
        )
        if result.escalation_reason:
            print(f"{DIM}  >> escalation: {result.escalation_reason}{RESET}")
        if result.upsell:
            print(
                f"{YELLOW}  >> upsell: {result.upsell.title} "
                f"{result.upsell.price} {result.upsell.currency} - {result.upsell.pitch}{RESET}"
            )

    async def run(self, messages: List[str]) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  BESTY AI - {DEFAULT_PROPERTY['name']}{RESET}")
        print(f"{DIM}  Session: {self.session_id}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        for message in messages:
            self.show(message, await self.send(message))
        print(f"\n{DIM}  Turns stored: {len(self.store.turns(self.session_id))}{RESET}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Besty AI console demo")
    parser.add_argument("--offline", action="store_true", help="use a scripted model instead of Gemini")
    parser.add_argument("--message", help="send a single message instead of the sample set")
    args = parser.parse_args(argv)

    if args.offline:
        agent = HospitalityAgent(FakeListChatModel(responses=SCRIPTED_REPLIES), model_name="scripted")
    else:
        agent = build_agent()
        if agent is None:
            print(f"{RED}GEMINI_API_KEY is not set. Use --offline to run without it.{RESET}")
            return 1

    messages = [args.message] if args.message else TEST_MESSAGES
    asyncio.run(ConsoleSession(agent).run(messages))
    return 0


if __name__ == "__main__":
    sys.exit(main())

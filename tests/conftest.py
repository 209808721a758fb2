"""Shared test fixtures and helpers."""

import json
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage

from agent.agent import HospitalityAgent
from agent.core.memory import SessionStore
from agent.schemas import ChatRequest
from app.main import app


class FailingChatModel:
    """Chat model stand-in whose every call raises."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error or ConnectionError("upstream unavailable")
        self.calls = 0

    async def ainvoke(self, messages: Any, **kwargs: Any) -> Any:
        self.calls += 1
        raise self.error


class RecordingChatModel:
    """Scripted model that remembers the prompts it received."""

    def __init__(self, *responses: str) -> None:
        self.responses = list(responses)
        self.prompts: list = []

    async def ainvoke(self, messages: Any, **kwargs: Any) -> AIMessage:
        self.prompts.append(messages[0].content)
        return AIMessage(content=self.responses[(len(self.prompts) - 1) % len(self.responses)])


def model_reply(**overrides: Any) -> str:
    """JSON text shaped like a well-behaved model answer."""
    payload = {
        "reply": "The Wi-Fi password is Beach2024.",
        "language": "en",
        "confidence": 0.9,
        "escalate": False,
        "escalationReason": None,
        "upsell": None,
        "delaySeconds": 2,
        "internal": {"detectedIntent": "wifi_info", "sentiment": "neutral", "missingInfo": []},
    }
    payload.update(overrides)
    return json.dumps(payload)


def make_payload(
    message: str = "What's the Wi-Fi password?",
    session_id: str = "session_test_1",
    **overrides: Any,
) -> dict:
    payload = {
        "sessionId": session_id,
        "message": message,
        "guest": {"name": "Sarah Johnson", "languageHint": "en"},
        "stay": {"checkInDate": "2025-06-01", "checkOutDate": "2025-06-04", "nGuests": 2},
        "property": {
            "name": "Sunset Beach Villa",
            "timezone": "America/Los_Angeles",
            "houseRules": "No smoking, no pets, no parties.",
            "checkInInstructions": "Check-in is at 3:00 PM.",
            "checkOutInstructions": "Check-out is at 11:00 AM.",
            "amenities": "Free WiFi, heated pool, hot tub",
            "faq": 'WiFi: Network "SunsetVilla", password "Beach2024"',
        },
        "business": {
            "brandVoice": "Friendly and professional.",
            "allowedUpsells": [
                {
                    "id": "early_checkin",
                    "title": "Early Check-in",
                    "price": 35,
                    "currency": "USD",
                    "notes": "Subject to availability",
                },
                {"id": "parking", "title": "Additional Parking Pass", "price": 20, "currency": "USD"},
            ],
            "upsellPolicy": "Offer upsells when relevant.",
            "escalationPolicy": "Escalate for refunds and emergencies.",
        },
    }
    payload.update(overrides)
    return payload


def make_request(message: str = "What's the Wi-Fi password?", **overrides: Any) -> ChatRequest:
    return ChatRequest.model_validate(make_payload(message, **overrides))


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def scripted_agent():
    def _build(*responses: str) -> HospitalityAgent:
        return HospitalityAgent(FakeListChatModel(responses=list(responses)), model_name="scripted")

    return _build


@pytest.fixture
def client(store):
    """TestClient with a fresh session store and no agent configured."""
    original_agent = app.state.agent
    original_sessions = app.state.sessions
    app.state.agent = None
    app.state.sessions = store
    with TestClient(app) as test_client:
        yield test_client
    app.state.agent = original_agent
    app.state.sessions = original_sessions

"""Tests for the hospitality agent client."""

import asyncio

import pytest

from agent.agent import (
    EMERGENCY_REPLY,
    FALLBACK_REASON,
    HANDOFF_REPLY,
    HospitalityAgent,
    _message_text,
    build_agent,
)
from agent.core.safety import SENSITIVE_KEYWORDS
from config.settings import Settings
from tests.conftest import FailingChatModel, RecordingChatModel, make_request, model_reply


def run(coro):
    return asyncio.run(coro)


class TestSafetyShortCircuit:
    @pytest.mark.parametrize("keyword", SENSITIVE_KEYWORDS)
    def test_keyword_bypasses_model(self, keyword):
        llm = FailingChatModel()
        agent = HospitalityAgent(llm)
        result = run(agent.process(make_request(f"Help, {keyword.upper()}!"), []))
        assert result.escalate is True
        assert llm.calls == 0

    def test_emergency_reply(self):
        result = run(HospitalityAgent(FailingChatModel()).process(make_request("There's a fire!"), []))
        assert result.reply == EMERGENCY_REPLY
        assert result.confidence == 1.0
        assert result.delay_seconds == 1
        assert result.escalation_reason == "Sensitive topic detected: fire"
        assert result.internal.detected_intent == "escalation_required"
        assert result.internal.sentiment == "urgent"
        assert result.upsell is None

    def test_non_emergency_reply(self):
        result = run(HospitalityAgent(FailingChatModel()).process(make_request("I'm locked out"), []))
        assert result.reply == HANDOFF_REPLY
        assert result.escalate is True

    def test_language_from_hint(self):
        request = make_request("Hay peligro, llamé a la police", guest={"name": "Ana", "languageHint": "es"})
        assert run(HospitalityAgent(FailingChatModel()).process(request, [])).language == "es"


class TestModelPath:
    def test_successful_reply(self, scripted_agent):
        agent = scripted_agent("Here you go: " + model_reply())
        result = run(agent.process(make_request(), []))
        assert result.reply == "The Wi-Fi password is Beach2024."
        assert result.escalate is False

    def test_out_of_range_values_clamped(self, scripted_agent):
        agent = scripted_agent(model_reply(confidence=4, delaySeconds=-30))
        result = run(agent.process(make_request(), []))
        assert result.confidence == 1.0
        assert result.delay_seconds == 0

    def test_prompt_contains_history_and_message(self):
        llm = RecordingChatModel(model_reply())
        history = ["GUEST: hi", "AGENT: hello"]
        run(HospitalityAgent(llm).process(make_request("Is there parking?"), history))
        prompt = llm.prompts[0]
        assert prompt.startswith("You are an AI guest messaging agent for Sunset Beach Villa")
        assert "GUEST: hi\nAGENT: hello" in prompt
        assert 'GUEST MESSAGE: "Is there parking?"' in prompt


class TestFallback:
    def assert_fallback(self, result, name="Sarah Johnson"):
        assert result.escalate is True
        assert result.confidence == 0.3
        assert result.delay_seconds == 2
        assert result.escalation_reason == FALLBACK_REASON
        assert result.internal.detected_intent == "error"
        assert name in result.reply

    def test_upstream_exception(self):
        llm = FailingChatModel()
        result = run(HospitalityAgent(llm).process(make_request(), []))
        assert llm.calls == 1
        self.assert_fallback(result)

    def test_no_json_in_output(self, scripted_agent):
        result = run(scripted_agent("Sorry, I can't do that.").process(make_request(), []))
        self.assert_fallback(result)

    def test_malformed_json(self, scripted_agent):
        result = run(scripted_agent('{"reply": "oops"').process(make_request(), []))
        self.assert_fallback(result)

    def test_non_finite_numbers(self, scripted_agent):
        agent = scripted_agent('{"reply": "hi", "confidence": NaN, "delaySeconds": NaN}')
        self.assert_fallback(run(agent.process(make_request(), [])))

    def test_guest_name_in_reply(self, scripted_agent):
        request = make_request(guest={"name": "Marco"})
        self.assert_fallback(run(scripted_agent("nothing").process(request, [])), name="Marco")


class TestMessageText:
    def test_string_content(self):
        class Msg:
            content = "hello"

        assert _message_text(Msg()) == "hello"

    def test_content_parts(self):
        class Msg:
            content = [{"type": "text", "text": "{\"a\": "}, "1}"]

        assert _message_text(Msg()) == '{"a": 1}'


class TestBuildAgent:
    def test_no_key_returns_none(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        assert build_agent(Settings()) is None

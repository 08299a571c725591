import json

import httpx

from campus_wellness.schemas.chat import BiometricReadings, BiometricSnapshot, ChatTurn
from campus_wellness.services.chat_service import (
    APOLOGY_MESSAGE,
    ChatOrchestrator,
    GenericResponder,
    LLMResponder,
    RuleBasedResponder,
)

API_URL = "https://llm.example.test/v1/chat/completions"


def _llm(handler, api_key: str | None = "test-key", history_limit: int = 10) -> LLMResponder:
    return LLMResponder(
        api_key=api_key,
        api_url=API_URL,
        model="test-model",
        history_limit=history_limit,
        transport=httpx.MockTransport(handler),
    )


def _completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def test_llm_reply_is_used_when_provider_succeeds():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return _completion("  Let's take a deep breath together.  ")

    orchestrator = ChatOrchestrator([_llm(handler), RuleBasedResponder(), GenericResponder()])

    reply = orchestrator.respond("I feel tense", [], None)

    assert reply.responder == "llm"
    assert reply.text == "Let's take a deep breath together."
    assert captured["auth"] == "Bearer test-key"
    assert captured["body"]["model"] == "test-model"
    assert captured["body"]["max_completion_tokens"] == 1000
    assert captured["body"]["messages"][0]["role"] == "system"
    assert captured["body"]["messages"][-1] == {"role": "user", "content": "I feel tense"}


def test_prompt_keeps_only_recent_history_and_annotates_biometrics():
    responder = _llm(lambda request: _completion("ok"), history_limit=3)
    history = [ChatTurn(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}") for i in range(8)]
    biometrics = BiometricSnapshot(
        heart_rate=88,
        oxygen_level=97,
        stress_level=64,
        sleep_quality=71,
        step_count=4200,
        temperature=98.4,
    )

    messages = responder.build_messages("How am I doing?", history, biometrics)

    assert [m["content"] for m in messages[1:-1]] == ["turn 5", "turn 6", "turn 7"]
    user_turn = messages[-1]["content"]
    assert user_turn.startswith("How am I doing?")
    assert "Heart Rate: 88 BPM" in user_turn
    assert "Stress Level: 64%" in user_turn
    assert "Steps Today: 4200" in user_turn


def test_missing_api_key_skips_provider_call():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("provider must not be called without a key")

    orchestrator = ChatOrchestrator([_llm(handler, api_key=None), RuleBasedResponder(), GenericResponder()])

    reply = orchestrator.respond("My exam is tomorrow")

    assert reply.responder == "rules"


def test_non_2xx_response_falls_back_to_rules():
    orchestrator = ChatOrchestrator(
        [_llm(lambda request: httpx.Response(503, text="overloaded")), RuleBasedResponder(), GenericResponder()]
    )

    reply = orchestrator.respond("I want to end my life")

    assert reply.responder == "rules"
    assert "988" in reply.text


def test_transport_error_falls_back_to_generic_reply():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    orchestrator = ChatOrchestrator([_llm(handler), RuleBasedResponder(), GenericResponder()])

    reply = orchestrator.respond("Hello there")

    assert reply.responder == "generic"
    assert reply.text


def test_malformed_provider_body_falls_back():
    orchestrator = ChatOrchestrator(
        [_llm(lambda request: httpx.Response(200, json={"unexpected": True})), GenericResponder()]
    )

    assert orchestrator.respond("Hello").responder == "generic"


class _ExplodingResponder:
    name = "exploding"

    def reply(self, message, history, biometrics):
        raise RuntimeError("boom")


def test_failing_responder_is_skipped_and_empty_chain_apologizes():
    assert ChatOrchestrator([_ExplodingResponder(), GenericResponder()]).respond("Hi").responder == "generic"

    reply = ChatOrchestrator([_ExplodingResponder()]).respond("Hi")
    assert reply.responder == "apology"
    assert reply.text == APOLOGY_MESSAGE


def test_prompt_marks_missing_readings_as_not_reported():
    responder = _llm(lambda request: _completion("ok"))
    biometrics = BiometricReadings.model_validate({"stressLevel": 85, "steps": 1200})

    user_turn = responder.build_messages("I'm okay", [], biometrics)[-1]["content"]

    assert "Stress Level: 85%" in user_turn
    assert "Steps Today: 1200" in user_turn
    assert "Heart Rate: not reported" in user_turn
    assert "Body Temperature: not reported" in user_turn


def test_blank_message_skips_provider_and_gets_canned_reply():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("provider must not be called for a blank message")

    orchestrator = ChatOrchestrator([_llm(handler), RuleBasedResponder(), GenericResponder()])

    reply = orchestrator.respond("   ")

    assert reply.responder == "generic"
    assert reply.text

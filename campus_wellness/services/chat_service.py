"""Chat orchestration for the wellness assistant.

Replies come from an ordered chain of responders; the first one that returns
text wins. The LLM responder is tried first and steps aside when it is not
configured or the provider call fails, then the keyword/threshold rules run,
and a canned supportive reply closes the chain.
"""

import logging
import random
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

import httpx

from campus_wellness.core.config import settings
from campus_wellness.core.metrics import CHAT_RESPONSES
from campus_wellness.schemas.chat import BiometricReadings, ChatTurn
from campus_wellness.services.wellness_service import ELEVATED_HEART_RATE, HIGH_STRESS_LEVEL

logger = logging.getLogger(__name__)

POOR_SLEEP_QUALITY = 60
LOW_STEP_COUNT = 3000

APOLOGY_MESSAGE = (
    "I apologize, but I'm having trouble connecting right now. Please try again in a moment. "
    "If you're in crisis, please contact emergency services or a crisis helpline immediately."
)

SLOW_DOWN_MESSAGE = (
    "You're sending messages faster than I can keep up with. Take a slow breath, and try again in a "
    "minute. If you're in crisis, please call or text 988, or call 911 right away."
)

SYSTEM_PROMPT = """You are a compassionate wellness assistant designed for university students' mental health support. Your role is to:

CORE RESPONSIBILITIES:
1. Analyze smartwatch/biometric data for signs of stress, anxiety, or fatigue
2. Suggest safe, non-medical interventions like breathing exercises, meditation, movement, hydration, sleep hygiene
3. Provide emotional support in a friendly, non-judgmental way
4. Encourage professional help if data or responses suggest severe distress or crisis
5. NEVER prescribe medicines - only suggest lifestyle and wellness practices

WELLNESS INTERVENTIONS YOU CAN SUGGEST:
- Breathing exercises (4-7-8 technique, box breathing)
- Grounding techniques (5-4-3-2-1 sensory method)
- Short meditation or relaxation breaks
- Gentle movement, stretching, or walking
- Hydration and nutrition reminders
- Sleep hygiene tips
- CBT-style reflection questions
- Journaling prompts

CRISIS DETECTION:
If responses suggest severe mental health crisis, suicidal ideation, or serious health risks, immediately encourage seeking professional help, crisis hotlines (988, text HOME to 741741) or emergency services (911).

COMMUNICATION STYLE:
Warm, empathetic, non-judgmental and student-friendly. Give practical, actionable advice and acknowledge the stressors of student life (exams, deadlines, social pressures).

Remember: you provide supportive guidance but are NOT a replacement for professional mental health care."""


def _reported(value, unit: str = "") -> str:
    if value is None:
        return "not reported"
    return f"{value:g}{unit}" if isinstance(value, float) else f"{value}{unit}"


def describe_biometrics(biometrics: BiometricReadings) -> str:
    timestamp = biometrics.timestamp.isoformat() if biometrics.timestamp else "unknown"
    return (
        "[BIOMETRIC DATA FROM SMARTWATCH]:\n"
        f"- Heart Rate: {_reported(biometrics.heart_rate, ' BPM')}\n"
        f"- Blood Oxygen: {_reported(biometrics.oxygen_level, '%')}\n"
        f"- Stress Level: {_reported(biometrics.stress_level, '%')}\n"
        f"- Sleep Quality: {_reported(biometrics.sleep_quality, '%')}\n"
        f"- Steps Today: {_reported(biometrics.step_count)}\n"
        f"- Body Temperature: {_reported(biometrics.temperature, '°F')}\n"
        f"- Timestamp: {timestamp}\n\n"
        "Please analyze this biometric data and provide personalized wellness recommendations."
    )


class Responder(Protocol):
    name: str

    def reply(
        self,
        message: str,
        history: Sequence[ChatTurn],
        biometrics: BiometricReadings | None,
    ) -> str | None: ...


class LLMResponder:
    name = "llm"

    def __init__(
        self,
        api_key: str | None,
        api_url: str,
        model: str,
        timeout: float = 20.0,
        history_limit: int = 10,
        max_completion_tokens: int = 1000,
        presence_penalty: float = 0.6,
        frequency_penalty: float = 0.3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = (api_key or "").strip() or None
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.history_limit = history_limit
        self.max_completion_tokens = max_completion_tokens
        self.presence_penalty = presence_penalty
        self.frequency_penalty = frequency_penalty
        self.transport = transport

    def build_messages(
        self,
        message: str,
        history: Sequence[ChatTurn],
        biometrics: BiometricReadings | None,
    ) -> list[dict[str, str]]:
        user_content = message
        if biometrics is not None:
            user_content = f"{message}\n\n{describe_biometrics(biometrics)}"

        recent = list(history)[-self.history_limit :] if self.history_limit > 0 else []
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            *({"role": turn.role, "content": turn.content} for turn in recent),
            {"role": "user", "content": user_content},
        ]

    def reply(
        self,
        message: str,
        history: Sequence[ChatTurn],
        biometrics: BiometricReadings | None,
    ) -> str | None:
        if not self.api_key:
            logger.info("llm_skipped reason=no_api_key")
            return None
        if not message.strip():
            logger.info("llm_skipped reason=blank_message")
            return None

        body = {
            "model": self.model,
            "messages": self.build_messages(message, history, biometrics),
            "max_completion_tokens": self.max_completion_tokens,
            "presence_penalty": self.presence_penalty,
            "frequency_penalty": self.frequency_penalty,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.api_url, json=body, headers=headers)
                response.raise_for_status()
                content = response.json()["choices"][0]["message"]["content"]
        except httpx.HTTPStatusError as exc:
            logger.warning("llm_failed status=%s", exc.response.status_code)
            return None
        except httpx.HTTPError as exc:
            logger.warning("llm_failed error=%s", exc.__class__.__name__)
            return None
        except (KeyError, IndexError, TypeError, ValueError):
            logger.warning("llm_failed reason=malformed_response")
            return None

        if not isinstance(content, str) or not content.strip():
            return None
        return content.strip()


Predicate = Callable[[str, BiometricReadings | None], bool]


@dataclass(frozen=True)
class ResponseRule:
    name: str
    matches: Predicate
    render: Callable[[BiometricReadings | None], str]


def keywords(*phrases: str) -> Predicate:
    """Match whole words or phrases; a trailing ``*`` matches any word starting with the stem."""
    alternatives = [
        re.escape(phrase[:-1]) + r"\w*" if phrase.endswith("*") else re.escape(phrase) for phrase in phrases
    ]
    pattern = re.compile(r"\b(?:" + "|".join(alternatives) + r")\b", re.IGNORECASE)

    def predicate(message: str, _: BiometricReadings | None) -> bool:
        return pattern.search(message) is not None

    return predicate


def reading(field: str, check: Callable[[float], bool]) -> Predicate:
    def predicate(_: str, biometrics: BiometricReadings | None) -> bool:
        value = getattr(biometrics, field, None)
        return value is not None and check(value)

    return predicate


def _crisis_reply(_: BiometricReadings | None) -> str:
    return (
        "I'm really glad you told me, and I'm taking what you said seriously. You deserve support right now, "
        "and you don't have to go through this alone.\n\n"
        "Please reach out to someone immediately:\n"
        "- National Suicide Prevention Lifeline: call or text 988 (24/7)\n"
        "- Crisis Text Line: text HOME to 741741\n"
        "- Emergency Services: call 911 if you are in immediate danger\n\n"
        "If you can, let a friend, family member or someone at your campus counseling center know how you're "
        "feeling right now. Would you like to stay and talk with me while you reach out?"
    )


def _high_stress_reply(biometrics: BiometricReadings | None) -> str:
    level = f" ({biometrics.stress_level:.0f}%)" if biometrics and biometrics.stress_level is not None else ""
    return (
        f"I notice from your smartwatch data that your stress level is quite elevated right now{level}. "
        "This is your body's way of telling you it needs some care.\n\n"
        "Let's try the 4-7-8 breathing technique together:\n"
        "1. Breathe in quietly through your nose for 4 counts\n"
        "2. Hold your breath for 7 counts\n"
        "3. Exhale slowly through your mouth for 8 counts\n\n"
        "Repeat the breathing cycle four times. It helps activate your body's relaxation response. "
        "How do you feel after trying it?"
    )


def _heart_rate_reply(biometrics: BiometricReadings | None) -> str:
    rate = f" ({biometrics.heart_rate:.0f} BPM)" if biometrics and biometrics.heart_rate is not None else ""
    return (
        f"Your heart rate seems elevated based on your smartwatch data{rate}. This could be related to stress, "
        "caffeine, or physical activity.\n\n"
        "Let's try a grounding exercise, the 5-4-3-2-1 method: name 5 things you can see, 4 things you can "
        "touch, 3 things you can hear, 2 things you can smell and 1 thing you can taste.\n\n"
        "Take your time with each step. It can help bring your nervous system back to a calmer state."
    )


def _anxiety_reply(_: BiometricReadings | None) -> str:
    return (
        "It sounds like you're feeling anxious, and that can be really exhausting. Anxiety is a common "
        "experience for students, and your feelings are valid.\n\n"
        "A few things that can help right now:\n"
        "- Try box breathing: in for 4, hold for 4, out for 4, hold for 4\n"
        "- Write down the specific worry, then ask yourself what is actually within your control\n"
        "- Take a short walk or stretch to release some of the physical tension\n\n"
        "If the anxiety keeps coming back, talking with a counselor can really help. Would you like to tell "
        "me more about what's been on your mind?"
    )


def _depression_reply(_: BiometricReadings | None) -> str:
    return (
        "I'm sorry you're feeling this way. Feeling low or depressed can make everything seem heavier, and "
        "reaching out like this takes courage.\n\n"
        "Some small steps that might help today:\n"
        "- Do one small thing you usually enjoy, even for five minutes\n"
        "- Reach out to a friend or someone you trust\n"
        "- Get some daylight and gentle movement if you can\n\n"
        "If these feelings have lasted for a while, booking a session with one of our consultants could give "
        "you ongoing support. I'm here to listen whenever you want to talk."
    )


def _exam_reply(_: BiometricReadings | None) -> str:
    return (
        "Exam season can be incredibly stressful, and it's completely normal to feel the pressure.\n\n"
        "Here are some strategies that help many students:\n"
        "- Break your study time into focused 25-minute blocks with 5-minute breaks\n"
        "- Prioritize sleep; memory consolidation happens while you rest\n"
        "- Keep water and healthy snacks nearby\n"
        "- Remind yourself that one exam does not define your worth\n\n"
        "Which exam or deadline is weighing on you the most right now?"
    )


def _stress_reply(_: BiometricReadings | None) -> str:
    return (
        "It sounds like you're carrying a lot right now. University life can be overwhelming with academic "
        "pressures, social expectations and personal growth all happening at once.\n\n"
        "Let's take it one step at a time:\n"
        "- Pause for a few slow, deep breaths\n"
        "- List what's on your plate and pick just one thing to focus on next\n"
        "- Schedule a short break to recharge, even ten minutes helps\n\n"
        "What feels most overwhelming at the moment?"
    )


def _sleep_reply(biometrics: BiometricReadings | None) -> str:
    quality = ""
    if biometrics and biometrics.sleep_quality is not None:
        quality = f" (sleep quality {biometrics.sleep_quality:.0f}%)"
    return (
        f"I see from your sleep data that you haven't been getting the best quality rest lately{quality}. "
        "Poor sleep can really affect mood and stress levels.\n\n"
        "Some sleep hygiene tips:\n"
        "- Put devices away an hour before bed\n"
        "- Keep a consistent sleep and wake schedule, even on weekends\n"
        "- Avoid caffeine in the late afternoon\n\n"
        "Have you noticed any patterns in your sleep routine?"
    )


def _activity_reply(biometrics: BiometricReadings | None) -> str:
    steps = f" ({biometrics.step_count} steps so far)" if biometrics and biometrics.step_count is not None else ""
    return (
        f"Your activity has been a bit low today{steps}. Gentle movement is one of the simplest ways to lift "
        "your mood and reduce stress.\n\n"
        "Could you fit in a 10-minute walk, some stretching between study sessions, or take the stairs on "
        "your next trip across campus?\n\n"
        "How has your energy been feeling today?"
    )


DEFAULT_RULES: tuple[ResponseRule, ...] = (
    ResponseRule(
        "crisis",
        keywords(
            "suicid*",
            "kill myself",
            "end my life",
            "want to die",
            "self-harm*",
            "self harm*",
            "hurt myself",
            "no reason to live",
        ),
        _crisis_reply,
    ),
    ResponseRule("high_stress", reading("stress_level", lambda value: value > HIGH_STRESS_LEVEL), _high_stress_reply),
    ResponseRule(
        "elevated_heart_rate",
        reading("heart_rate", lambda value: value > ELEVATED_HEART_RATE),
        _heart_rate_reply,
    ),
    ResponseRule("anxiety", keywords("anxi*", "panic*", "nervous*", "worri*", "worry*"), _anxiety_reply),
    ResponseRule("depression", keywords("depress*", "hopeless*", "empty", "sad", "sadness"), _depression_reply),
    ResponseRule("exams", keywords("exam*", "test", "tests", "finals", "midterm*"), _exam_reply),
    ResponseRule("stress", keywords("stress*", "overwhelm*", "pressure*"), _stress_reply),
    ResponseRule("poor_sleep", reading("sleep_quality", lambda value: value < POOR_SLEEP_QUALITY), _sleep_reply),
    ResponseRule("low_activity", reading("step_count", lambda value: value < LOW_STEP_COUNT), _activity_reply),
)


class RuleBasedResponder:
    name = "rules"

    def __init__(self, rules: Sequence[ResponseRule] = DEFAULT_RULES) -> None:
        self.rules = tuple(rules)

    def match(self, message: str, biometrics: BiometricReadings | None) -> ResponseRule | None:
        return next((rule for rule in self.rules if rule.matches(message, biometrics)), None)

    def reply(
        self,
        message: str,
        history: Sequence[ChatTurn],
        biometrics: BiometricReadings | None,
    ) -> str | None:
        rule = self.match(message, biometrics)
        if rule is None:
            return None
        logger.info("chat_rule_matched rule=%s", rule.name)
        return rule.render(biometrics)


SUPPORTIVE_REPLIES: tuple[str, ...] = (
    "I understand you're reaching out, and I'm here to support you. It's completely normal to have ups and "
    "downs, especially as a university student.\n\nCan you tell me more about what's been on your mind lately?",
    "Thank you for sharing that with me. Remember that seeking support is a sign of strength, not weakness."
    "\n\nHave you tried any relaxation techniques recently?",
    "I hear you, and your feelings are completely valid. University life can be a lot to juggle."
    "\n\nLet's focus on some practical steps you can take right now. What would help you most today?",
    "It's great that you're being mindful of your mental health.\n\nWould you be interested in trying a brief "
    "breathing exercise together, or would you rather talk through what's happening?",
    "I appreciate you opening up. Many students experience similar challenges, and you're not alone in "
    "feeling this way.\n\nLet's explore some coping strategies that might work well for your situation.",
)


class GenericResponder:
    name = "generic"

    def __init__(self, replies: Sequence[str] = SUPPORTIVE_REPLIES, rng: random.Random | None = None) -> None:
        self.replies = tuple(replies)
        self.rng = rng or random.Random()

    def reply(
        self,
        message: str,
        history: Sequence[ChatTurn],
        biometrics: BiometricReadings | None,
    ) -> str | None:
        return self.rng.choice(self.replies)


@dataclass(frozen=True)
class ChatReply:
    text: str
    responder: str


class ChatOrchestrator:
    def __init__(self, responders: Sequence[Responder]) -> None:
        self.responders = tuple(responders)

    def respond(
        self,
        message: str,
        history: Sequence[ChatTurn] = (),
        biometrics: BiometricReadings | None = None,
    ) -> ChatReply:
        logger.info("chat_request history=%s has_biometrics=%s", len(history), biometrics is not None)
        for responder in self.responders:
            try:
                text = responder.reply(message, history, biometrics)
            except Exception:
                logger.exception("chat_responder_failed responder=%s", responder.name)
                continue
            if text:
                CHAT_RESPONSES.labels(responder=responder.name).inc()
                return ChatReply(text=text, responder=responder.name)
        CHAT_RESPONSES.labels(responder="apology").inc()
        return ChatReply(text=APOLOGY_MESSAGE, responder="apology")


def build_chat_orchestrator(transport: httpx.BaseTransport | None = None) -> ChatOrchestrator:
    return ChatOrchestrator(
        responders=[
            LLMResponder(
                api_key=settings.openai_api_key,
                api_url=settings.openai_api_url,
                model=settings.openai_model,
                timeout=settings.openai_timeout_seconds,
                history_limit=settings.chat_history_limit,
                max_completion_tokens=settings.chat_max_completion_tokens,
                presence_penalty=settings.chat_presence_penalty,
                frequency_penalty=settings.chat_frequency_penalty,
                transport=transport,
            ),
            RuleBasedResponder(),
            GenericResponder(),
        ]
    )

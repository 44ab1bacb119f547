"""
BingeBreaker — AI Craving Coach.

Stateless request/response calls to the configured LLM: a persona
instruction, at most the last N prior turns, and the latest user message.
Any failure is logged and replaced by a static reassurance message — the
coach never surfaces an error to the user. No timeout, no retry.

CoachService wraps the client with the persisted chat history.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING, Sequence

from src.core.llm import complete
from src.data.models import ROLE_ASSISTANT, ROLE_USER, ChatMessage

if TYPE_CHECKING:
    from src.data.db import ChatHistoryDB, SettingsDB
    from src.data.models import UserSettings

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 10

SYSTEM_INSTRUCTION = """\
You are a distraction-focused diet coach. The user is trying to stop binge-eating snacks at night.
Rule 1: BE EXTREMELY CONCISE. Two or three sentences at most.
Rule 2: If the user feels an urge, distract them IMMEDIATELY.

Modes:
- COACHING: short, practical advice.
- TRIVIA: when asked for trivia or a game, ask ONE general-knowledge question and wait for the guess. \
Cheer a right answer, gently give the answer to a wrong one, then ask the next question in the same reply. \
Keep going until the user says stop.
- BREATHING: guide one 4-7-8 cycle (inhale 4s, hold 7s, exhale 8s).
- JOKE: tell one clean, funny joke.
- VISION: vividly describe the user at their goal weight, happy, energetic and fitting their clothes.
- NEWS: share one positive or quirky news story from this week and end with a Google Search link \
for it (https://www.google.com/search?q=topic).
- QUOTE: give one inspiring quote about health, discipline or self-improvement, with the author if known.

When not in a mode, pick one at random: 5-4-3-2-1 grounding, "this or that" questions, or a quick mental-math challenge.
"""

GREETING = (
    "Hi! I'm your accountability coach. I know you want to stop snacking "
    "before and after dinner. If you feel an urge right now, tell me. "
    "I'm here to help you ride the wave."
)

FALLBACK_REPLY = (
    "I'm having trouble connecting to my brain right now, but remember: "
    "urges are like waves. They rise and then fall. Ride it out."
)

SOS_PROMPT = "I am feeling the urge to snack!"

MOTIVATION_PROMPT = (
    "Generate a short, powerful, one-sentence motivation quote specifically "
    "for someone avoiding night-time snacking."
)
DEFAULT_MOTIVATION = "You are stronger than your cravings."
MOTIVATION_FALLBACK = "Every healthy choice is a victory."


def coach_instruction(settings: UserSettings) -> str:
    """Persona instruction plus the user's own plan."""
    return (
        f"{SYSTEM_INSTRUCTION}\n"
        f"The user's plan started on {settings.start_date}: from {settings.start_weight:g} kg "
        f"to {settings.goal_weight:g} kg, losing about {settings.monthly_loss_target:g} kg a month."
    )


async def get_coach_response(
    user_message: str,
    history: Sequence[ChatMessage],
    system: str = SYSTEM_INSTRUCTION,
    window: int = HISTORY_WINDOW,
) -> str:
    """Ask the coach for a reply. Returns FALLBACK_REPLY on any failure."""
    recent = list(history)[-window:] if window > 0 else []
    turns = [(m.role, m.text) for m in recent]
    try:
        reply = await complete(
            system=system,
            user_message=user_message,
            max_tokens=400,
            history=turns,
        )
    except Exception as exc:
        logger.error("Coach LLM error: %s", exc)
        return FALLBACK_REPLY

    if not reply or not reply.strip():
        logger.warning("Coach LLM returned an empty reply")
        return FALLBACK_REPLY
    return reply.strip()


async def get_motivation() -> str:
    """One-sentence anti-snacking motivation. Never raises."""
    try:
        text = await complete(
            system="You write short motivational quotes.",
            user_message=MOTIVATION_PROMPT,
            max_tokens=80,
        )
    except Exception as exc:
        logger.error("Motivation LLM error: %s", exc)
        return MOTIVATION_FALLBACK
    return text.strip() if text and text.strip() else DEFAULT_MOTIVATION


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_message(role: str, text: str) -> ChatMessage:
    return ChatMessage(id=uuid.uuid4().hex, role=role, text=text, timestamp=_now_ms())


class CoachService:
    """Chat with the coach, persisting every turn to the chat history store."""

    def __init__(
        self,
        chat_db: ChatHistoryDB,
        settings_db: SettingsDB | None = None,
        window: int = HISTORY_WINDOW,
    ) -> None:
        self._chat_db = chat_db
        self._settings_db = settings_db
        self._window = window

    def load_history(self) -> list[ChatMessage]:
        """Return the stored conversation, seeding the greeting if it is empty."""
        history = self._chat_db.get()
        if not history:
            history = self._chat_db.append(_new_message(ROLE_ASSISTANT, GREETING))
        return history

    async def send(self, text: str) -> ChatMessage | None:
        """Append the user's turn, ask the coach, append and return the reply.

        Blank input is ignored (returns None, nothing persisted).
        """
        text = text.strip()
        if not text:
            return None

        prior = self.load_history()
        self._chat_db.append(_new_message(ROLE_USER, text))

        system = SYSTEM_INSTRUCTION
        if self._settings_db is not None:
            system = coach_instruction(self._settings_db.get())

        reply_text = await get_coach_response(text, prior, system=system, window=self._window)
        reply = _new_message(ROLE_ASSISTANT, reply_text)
        history = self._chat_db.append(reply)
        logger.info("Coach turn stored (%d messages)", len(history))
        return reply

    async def sos(self) -> ChatMessage | None:
        """Send the canned "urge right now" message."""
        return await self.send(SOS_PROMPT)

    def reset(self) -> list[ChatMessage]:
        """Drop the conversation and start over with the greeting."""
        self._chat_db.clear()
        return self.load_history()

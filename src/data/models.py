"""
BingeBreaker — Data Models.

Plain records for the four persisted collections: daily snack logs, weight
measurements, the singleton user settings and the coach chat history.
Dates are ISO strings (YYYY-MM-DD) in the user's local timezone.
"""

from __future__ import annotations

from dataclasses import dataclass

# Mood label → display emoji. An empty mood means "not recorded".
MOODS: dict[str, str] = {
    "Happy": "😊",
    "Neutral": "😐",
    "Sad": "😔",
    "Angry": "😠",
    "Anxious": "😰",
    "Tired": "😴",
    "Stressed": "😤",
}

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


@dataclass
class DailyEntry:
    """One logged day. The date is the natural key."""

    date: str                         # ISO date YYYY-MM-DD
    snacked: bool                     # True = lapse occurred
    mood: str = ""                    # one of MOODS, or ""
    notes: str = ""
    snack_details: str | None = None  # only meaningful when snacked


@dataclass
class WeightEntry:
    """One body-weight measurement (kg). The date is the natural key."""

    date: str
    weight: float


@dataclass
class UserSettings:
    """The singleton settings record, defaults included."""

    start_date: str = "2026-01-01"
    start_weight: float = 62.0
    goal_weight: float = 53.0
    monthly_loss_target: float = 1.5  # kg per 30-day month
    name: str = "User"
    streak_goal: int = 7              # target number of consecutive clean days


@dataclass
class ChatMessage:
    """A single coach conversation turn."""

    id: str
    role: str        # ROLE_USER | ROLE_ASSISTANT
    text: str
    timestamp: int   # epoch millis

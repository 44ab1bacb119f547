"""
BingeBreaker — Persisted record shapes.

The JSON contract shared by the stores and by backup files. Field names are
camelCase on the wire, the layout the browser version of the app wrote to
local storage, so its backups load unchanged. The dataclasses in
src.data.models are what the rest of the code works with.
"""

from __future__ import annotations

from datetime import date as _date
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from src.data.models import (
    MOODS,
    ROLE_ASSISTANT,
    ROLE_USER,
    ChatMessage,
    DailyEntry,
    UserSettings,
    WeightEntry,
)

_DEFAULTS = UserSettings()


def _check_iso_date(v: str) -> str:
    """Accept only fixed-width YYYY-MM-DD strings naming a real date."""
    if not isinstance(v, str) or len(v) != 10:
        raise ValueError(f"Expected YYYY-MM-DD, got {v!r}")
    _date.fromisoformat(v)
    return v


IsoDate = Annotated[str, AfterValidator(_check_iso_date)]


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class DailyEntryRecord(_Record):
    """Wire shape of a DailyEntry.

    JSON example:
    {"date": "2026-01-05", "snacked": true, "snackDetails": "chips",
     "mood": "Tired", "notes": "late shift"}
    """

    date: IsoDate
    snacked: bool
    snack_details: str | None = Field(default=None, alias="snackDetails")
    mood: str = ""
    notes: str = ""

    @field_validator("mood", mode="before")
    @classmethod
    def known_mood(cls, v: object) -> str:
        # Unknown labels are dropped rather than failing the whole entry
        return v if isinstance(v, str) and v in MOODS else ""

    @field_validator("notes", mode="before")
    @classmethod
    def none_notes(cls, v: object) -> object:
        return "" if v is None else v

    def to_model(self) -> DailyEntry:
        return DailyEntry(
            date=self.date,
            snacked=self.snacked,
            mood=self.mood,
            notes=self.notes,
            snack_details=self.snack_details if self.snacked else None,
        )

    @classmethod
    def from_model(cls, entry: DailyEntry) -> "DailyEntryRecord":
        return cls(
            date=entry.date,
            snacked=entry.snacked,
            snack_details=entry.snack_details if entry.snacked else None,
            mood=entry.mood,
            notes=entry.notes,
        )

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class WeightEntryRecord(_Record):
    """Wire shape of a WeightEntry: {"date": "2026-01-05", "weight": 61.4}"""

    date: IsoDate
    weight: float = Field(gt=0)

    def to_model(self) -> WeightEntry:
        return WeightEntry(date=self.date, weight=self.weight)

    @classmethod
    def from_model(cls, entry: WeightEntry) -> "WeightEntryRecord":
        return cls(date=entry.date, weight=entry.weight)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True)


class UserSettingsRecord(_Record):
    """Wire shape of UserSettings. Missing fields fall back to the defaults."""

    start_date: IsoDate = Field(default=_DEFAULTS.start_date, alias="startDate")
    start_weight: float = Field(default=_DEFAULTS.start_weight, alias="startWeight")
    goal_weight: float = Field(default=_DEFAULTS.goal_weight, alias="goalWeight")
    monthly_loss_target: float = Field(
        default=_DEFAULTS.monthly_loss_target, alias="monthlyLossTarget",
    )
    name: str = _DEFAULTS.name
    streak_goal: int = Field(default=_DEFAULTS.streak_goal, alias="streakGoal")

    def to_model(self) -> UserSettings:
        return UserSettings(
            start_date=self.start_date,
            start_weight=self.start_weight,
            goal_weight=self.goal_weight,
            monthly_loss_target=self.monthly_loss_target,
            name=self.name,
            streak_goal=self.streak_goal,
        )

    @classmethod
    def from_model(cls, s: UserSettings) -> "UserSettingsRecord":
        return cls(
            start_date=s.start_date,
            start_weight=s.start_weight,
            goal_weight=s.goal_weight,
            monthly_loss_target=s.monthly_loss_target,
            name=s.name,
            streak_goal=s.streak_goal,
        )

    def dump(self) -> dict:
        return self.model_dump(by_alias=True)


class ChatMessageRecord(_Record):
    """Wire shape of a ChatMessage.

    Backups from the browser version store assistant turns with role
    "model"; those are read back as "assistant".
    """

    id: str
    role: str
    text: str
    timestamp: int

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: object) -> str:
        if v == "model":
            return ROLE_ASSISTANT
        if v not in (ROLE_USER, ROLE_ASSISTANT):
            raise ValueError(f"Unknown chat role: {v!r}")
        return v

    def to_model(self) -> ChatMessage:
        return ChatMessage(id=self.id, role=self.role, text=self.text, timestamp=self.timestamp)

    @classmethod
    def from_model(cls, msg: ChatMessage) -> "ChatMessageRecord":
        return cls(id=msg.id, role=msg.role, text=msg.text, timestamp=msg.timestamp)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True)

"""Derived progress metrics — pure business logic.

Streak, linear target-weight projection, on-track status, 7-day rolling
weight averages, and the small summaries the dashboard renders.

No I/O: this module only transforms data. Every function accepts empty
collections and returns a "no data" value (0 or None) instead of raising,
because the UI calls these before anything has been logged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from src.data.models import DailyEntry, UserSettings, WeightEntry

WINDOW_DAYS = 7
DAYS_PER_MONTH = 30

# Chart: one target point every ~2 weeks for 7 months
CHART_STEP_DAYS = 15
CHART_POINTS = 15


DateLike = date | str


def _to_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


# ---------------------------------------------------------------------------
# Streak
# ---------------------------------------------------------------------------


def calculate_streak(entries: Iterable[DailyEntry]) -> int:
    """Count consecutive clean days, walking back from the most recent entry.

    Only entries that exist are walked: a date with no entry neither breaks
    nor extends the streak. Stops at the first day with snacked=True.
    """
    streak = 0
    for entry in sorted(entries, key=lambda e: e.date, reverse=True):
        if entry.snacked:
            break
        streak += 1
    return streak


@dataclass
class StreakProgress:
    streak: int
    goal: int
    percent: float      # 0..100, capped
    goal_met: bool


def streak_progress(streak: int, goal: int) -> StreakProgress:
    """Progress of the current streak toward the configured streak goal."""
    if goal > 0:
        percent = min(100.0, streak / goal * 100)
    else:
        percent = 0.0
    return StreakProgress(
        streak=streak,
        goal=goal,
        percent=percent,
        goal_met=goal > 0 and streak >= goal,
    )


# ---------------------------------------------------------------------------
# Target-weight projection
# ---------------------------------------------------------------------------


def target_weight_for_date(
    start_date: DateLike,
    start_weight: float,
    goal_weight: float,
    monthly_rate: float,
    as_of: DateLike,
) -> float | None:
    """Expected weight on as_of under a straight-line decline, floored at goal.

    daily rate = monthly_rate / 30. Returns None for dates before start_date.
    """
    days_elapsed = (_to_date(as_of) - _to_date(start_date)).days
    if days_elapsed < 0:
        return None
    expected_loss = days_elapsed * monthly_rate / DAYS_PER_MONTH
    return max(goal_weight, start_weight - expected_loss)


def target_for_settings(settings: UserSettings, as_of: DateLike) -> float | None:
    return target_weight_for_date(
        settings.start_date,
        settings.start_weight,
        settings.goal_weight,
        settings.monthly_loss_target,
        as_of,
    )


@dataclass
class WeightStatus:
    target: float
    current: float
    diff: float         # current - target; negative means ahead of plan
    on_track: bool


def weight_status(
    settings: UserSettings,
    weights: list[WeightEntry],
    today: DateLike,
) -> WeightStatus | None:
    """Compare the latest measurement against today's target.

    With no measurements the start weight stands in. Equal to target counts
    as on track. None before the plan's start date.
    """
    target = target_for_settings(settings, today)
    if target is None:
        return None

    if weights:
        current = max(weights, key=lambda e: e.date).weight
    else:
        current = settings.start_weight

    diff = current - target
    return WeightStatus(target=target, current=current, diff=diff, on_track=diff <= 0)


# ---------------------------------------------------------------------------
# 7-day rolling averages
# ---------------------------------------------------------------------------


def window_average(weights: Iterable[WeightEntry], start: str, end: str) -> float | None:
    """Mean weight of entries with start <= date <= end, or None if none.

    Plain string comparison is safe because dates are fixed-width YYYY-MM-DD.
    """
    values = [e.weight for e in weights if start <= e.date <= end]
    if not values:
        return None
    return sum(values) / len(values)


@dataclass
class WeeklyTrend:
    current_avg: float | None    # 7 days ending today
    previous_avg: float | None   # the 7 days before that
    delta: float | None          # current - previous, only when both exist


def weekly_trend(weights: list[WeightEntry], today: DateLike) -> WeeklyTrend:
    """Rolling 7-day average for this week and last, plus the change."""
    end = _to_date(today)
    current_start = end - timedelta(days=WINDOW_DAYS - 1)
    previous_end = current_start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=WINDOW_DAYS - 1)

    current_avg = window_average(weights, current_start.isoformat(), end.isoformat())
    previous_avg = window_average(
        weights, previous_start.isoformat(), previous_end.isoformat(),
    )

    delta = None
    if current_avg is not None and previous_avg is not None:
        delta = current_avg - previous_avg
    return WeeklyTrend(current_avg=current_avg, previous_avg=previous_avg, delta=delta)


# ---------------------------------------------------------------------------
# Dashboard helpers
# ---------------------------------------------------------------------------

STATUS_CLEAN = "clean"
STATUS_SNACKED = "snacked"
STATUS_EMPTY = "empty"


@dataclass
class DayStatus:
    date: str
    status: str         # STATUS_CLEAN | STATUS_SNACKED | STATUS_EMPTY


def week_preview(entries: Iterable[DailyEntry], today: DateLike) -> list[DayStatus]:
    """Status of each of the 7 days ending today, oldest first."""
    by_date = {e.date: e for e in entries}
    end = _to_date(today)
    days = []
    for offset in range(WINDOW_DAYS - 1, -1, -1):
        d = (end - timedelta(days=offset)).isoformat()
        entry = by_date.get(d)
        if entry is None:
            status = STATUS_EMPTY
        elif entry.snacked:
            status = STATUS_SNACKED
        else:
            status = STATUS_CLEAN
        days.append(DayStatus(date=d, status=status))
    return days


@dataclass
class ChartPoint:
    date: str
    target: float | None
    actual: float | None
    is_target: bool     # True for the fixed plan points


def chart_series(settings: UserSettings, weights: list[WeightEntry]) -> list[ChartPoint]:
    """Plan points every 15 days from the start date, merged with measurements.

    A measurement that falls on a plan date fills that point's actual value;
    any other measurement becomes its own point carrying the target for its
    date (None before the start). Sorted by date.
    """
    start = _to_date(settings.start_date)
    points: dict[str, ChartPoint] = {}

    for i in range(CHART_POINTS):
        d = start + timedelta(days=i * CHART_STEP_DAYS)
        target = target_for_settings(settings, d)
        points[d.isoformat()] = ChartPoint(
            date=d.isoformat(),
            target=round(target, 2) if target is not None else None,
            actual=None,
            is_target=True,
        )

    for entry in weights:
        existing = points.get(entry.date)
        if existing is not None:
            existing.actual = entry.weight
            continue
        target = target_for_settings(settings, entry.date)
        points[entry.date] = ChartPoint(
            date=entry.date,
            target=round(target, 2) if target is not None else None,
            actual=entry.weight,
            is_target=False,
        )

    return [points[d] for d in sorted(points)]

"""
Readiness factors.

Each multiplier used by the spot scorer and the piece aggregator is a
standalone pure function so it can be tested in isolation. No I/O, no clock
reads: anything time-dependent takes ``now`` explicitly.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from spotwise.domain import constants as C
from spotwise.domain.practice.models import as_utc

SECONDS_PER_DAY = 86400.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (not banker's rounding)."""
    return int(math.floor(value + 0.5)) if value >= 0 else -int(math.floor(-value + 0.5))


def whole_days(delta: timedelta) -> int:
    """Whole days in ``delta``, truncated toward zero."""
    return int(delta.total_seconds() / SECONDS_PER_DAY)


def whole_hours(delta: timedelta) -> int:
    """Whole hours in ``delta``, truncated toward zero."""
    return int(delta.total_seconds() / 3600.0)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


# ---------- Spot factors ----------


def success_ratio(outcomes: list[bool]) -> float:
    if not outcomes:
        return 0.0
    return sum(1 for o in outcomes if o) / len(outcomes)


def consistency_multiplier(
    outcomes: list[bool],
    min_attempts: int = C.CONSISTENCY_MIN_ATTEMPTS,
    window: int = C.CONSISTENCY_WINDOW,
) -> float:
    """
    Reward steady results: ``max(0.8, 1 - 0.3 * variance)``.

    Variance is the population variance of the latest ``window`` binary
    outcomes (success=1, fail=0), given newest first.
    """
    if len(outcomes) < min_attempts:
        return 1.0
    recent = [1.0 if o else 0.0 for o in outcomes[:window]]
    mean = sum(recent) / len(recent)
    variance = sum((x - mean) ** 2 for x in recent) / len(recent)
    return max(C.CONSISTENCY_FLOOR, 1.0 - C.CONSISTENCY_PENALTY * variance)


def overdue_multiplier(next_due: datetime | None, now: datetime) -> float:
    """``max(0.5, 1 - 0.01 * hours overdue)``; 1.0 when not overdue."""
    if next_due is None:
        return 1.0
    next_due, now = as_utc(next_due), as_utc(now)
    if now <= next_due:
        return 1.0
    hours = whole_hours(now - next_due)
    return max(C.OVERDUE_FLOOR, 1.0 - hours * C.OVERDUE_PENALTY_PER_HOUR)


def difficulty_multiplier(difficulty: int) -> float:
    return C.DIFFICULTY_MULTIPLIERS.get(difficulty, 1.0)


# ---------- Piece factors ----------


def practice_time_multiplier(
    total_minutes: float,
    saturation_hours: float = C.PRACTICE_SATURATION_HOURS,
    bonus: float = C.PRACTICE_BONUS,
) -> float:
    """Up to +30% for practice time, saturating around 6.7 hours."""
    hours = total_minutes / 60.0
    return 1.0 + min(1.0, hours / saturation_hours) * bonus


def tempo_multiplier(
    target_tempo: float | None,
    current_tempo: float | None,
    bonus: float = C.TEMPO_BONUS,
    floor_ratio: float = C.TEMPO_FLOOR_RATIO,
) -> float:
    """
    Tempo progress towards the target.

    ratio >= 1.0   -> ``bonus`` (1.2)
    ratio in [0.8, 1.0) -> linear from 1.0 up to ``bonus``
    ratio < 0.8    -> ``0.8 + 0.25 * ratio``
    """
    if target_tempo is None or current_tempo is None:
        return 1.0
    ratio = current_tempo / target_tempo
    if ratio >= 1.0:
        return bonus
    if ratio >= floor_ratio:
        return 1.0 + (bonus - 1.0) * (ratio - floor_ratio) / (1.0 - floor_ratio)
    return C.TEMPO_PENALTY_BASE + C.TEMPO_PENALTY_SLOPE * ratio


def recent_practice_multiplier(
    timestamps: Iterable[datetime],
    now: datetime,
    days: int = C.RECENT_PRACTICE_DAYS,
) -> float:
    """
    ``0.7 + 0.6 * frequency`` where frequency is the share of the last
    ``days`` calendar days (today included) with at least one attempt.
    """
    now = as_utc(now)
    today = now.date()
    window: set[date] = {today - timedelta(days=i) for i in range(days)}
    practiced = {ts.date() for ts in map(as_utc, timestamps) if ts <= now} & window
    frequency = len(practiced) / days
    return C.RECENT_PRACTICE_BASE + C.RECENT_PRACTICE_SPAN * frequency


def days_until(target: datetime | None, now: datetime) -> int | None:
    if target is None:
        return None
    return whole_days(as_utc(target) - as_utc(now))


def concert_pressure_multiplier(
    days_until_concert: int | None,
    urgent_days: int = C.CONCERT_URGENT_DAYS,
    near_days: int = C.CONCERT_NEAR_DAYS,
) -> float:
    """Stricter standards as the concert approaches; 0.5 once it has passed."""
    if days_until_concert is None:
        return 1.0
    if days_until_concert <= 0:
        return C.PRESSURE_OVERDUE
    if days_until_concert <= urgent_days:
        return C.PRESSURE_URGENT
    if days_until_concert <= near_days:
        return C.PRESSURE_NEAR
    return 1.0

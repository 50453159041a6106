"""
Readiness scorer for a single spot.

This is a pure computation module with no I/O. The clock is injected.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from spotwise.domain import constants as C
from spotwise.domain.practice.models import PracticeSpot, ReadinessLevel, as_utc

from . import factors


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SpotReadiness:
    """
    Spot readiness with every factor that produced it.
    """

    spot_id: str
    rated_attempts: int
    success_rate: float | None  # None when nothing has been rated
    base: float
    consistency: float
    overdue: float
    difficulty: float
    score: float

    @property
    def level(self) -> ReadinessLevel:
        return ReadinessLevel.from_score(self.score)


class SpotReadinessScorer:
    """
    Computes a 0-100 readiness score from a spot's history and due state.

    Stateless and side-effect free: the same spot, history and clock
    reading always give the same score.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or utc_now

    def score(self, spot: PracticeSpot, now: datetime | None = None) -> float:
        return self.breakdown(spot, now).score

    def breakdown(self, spot: PracticeSpot, now: datetime | None = None) -> SpotReadiness:
        """
        Score a spot and keep the intermediate factors.

        base = 100 * success rate over rated attempts, blended 60/40 with
        the latest five once three are rated; then scaled by consistency,
        overdue and difficulty multipliers and clamped to [0, 100].
        """
        now = as_utc(now or self._clock())
        outcomes = [a.successful for a in spot.rated_attempts]  # newest first

        if not outcomes:
            return SpotReadiness(
                spot_id=spot.id,
                rated_attempts=0,
                success_rate=None,
                base=0.0,
                consistency=1.0,
                overdue=1.0,
                difficulty=1.0,
                score=0.0,
            )

        success_rate = factors.success_ratio(outcomes)
        base = 100.0 * success_rate

        if len(outcomes) >= C.RECENCY_MIN_ATTEMPTS:
            recent_rate = factors.success_ratio(outcomes[: C.RECENT_ATTEMPTS_WINDOW])
            base = (1.0 - C.RECENCY_WEIGHT) * base + C.RECENCY_WEIGHT * 100.0 * recent_rate

        consistency = factors.consistency_multiplier(outcomes)
        next_due = spot.srs.next_due if spot.srs else None
        overdue = factors.overdue_multiplier(next_due, now)
        difficulty = factors.difficulty_multiplier(spot.effective_difficulty)

        return SpotReadiness(
            spot_id=spot.id,
            rated_attempts=len(outcomes),
            success_rate=success_rate,
            base=base,
            consistency=consistency,
            overdue=overdue,
            difficulty=difficulty,
            score=factors.clamp(base * consistency * overdue * difficulty),
        )

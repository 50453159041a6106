"""
SM-2 style scheduler for practice spots.

Takes a spot's current SRS state plus one new attempt and returns the
updated state. Nothing is mutated: the caller hands the result to the
storage collaborator.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from spotwise.domain import constants as C
from spotwise.domain.errors import InvalidInput
from spotwise.domain.practice.models import (
    PracticeAttempt,
    PracticeSpot,
    SpotPhase,
    SrsState,
    as_utc,
)

from .factors import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleResult:
    """Outcome of scheduling one attempt."""

    spot_id: str
    attempt: PracticeAttempt
    srs: SrsState | None  # None only for an unrated attempt on a never-scheduled spot
    repeat_count: int
    readiness: int
    successful: bool | None  # None for unrated attempts

    def apply_to(self, spot: PracticeSpot) -> PracticeSpot:
        """Return ``spot`` with this result and the attempt recorded."""
        if spot.id != self.spot_id:
            raise InvalidInput(f"result for {self.spot_id} applied to {spot.id}")
        return replace(
            spot,
            srs=self.srs,
            repeat_count=self.repeat_count,
            readiness=self.readiness,
            attempts=(self.attempt, *spot.attempts),
        )


def ease_adjustment(quality: int) -> float:
    """Classic SM-2 ease delta: ``0.1 - (5-q) * (0.08 + (5-q) * 0.02)``."""
    miss = C.MAX_QUALITY - quality
    return 0.1 - miss * (0.08 + miss * 0.02)


class SpotScheduler:
    """
    Computes next-due timestamps and SM-2 parameters after an attempt.

    Stateless and side-effect free.
    """

    def schedule(self, spot: PracticeSpot, attempt: PracticeAttempt) -> ScheduleResult:
        """
        Apply one attempt to a spot's SRS state.

        Args:
            spot: The spot being practiced, with its current state.
            attempt: The new attempt. Quality and duration were validated
                when the attempt was built.

        Returns:
            ScheduleResult with the new state, counters and cached readiness.

        Raises:
            InvalidInput: The attempt belongs to another spot, or the spot
                has been deleted.
        """
        if attempt.spot_id != spot.id:
            raise InvalidInput(f"attempt for spot {attempt.spot_id} scheduled on {spot.id}")
        if not spot.is_active:
            raise InvalidInput(f"spot {spot.id} is deleted")

        repeat_count = spot.repeat_count + 1

        if attempt.quality is None:
            logger.debug(f"Unrated attempt on {spot.id}; SRS state unchanged")
            return ScheduleResult(
                spot_id=spot.id,
                attempt=attempt,
                srs=spot.srs,
                repeat_count=repeat_count,
                readiness=spot.readiness,
                successful=None,
            )

        state = spot.srs or SrsState.initial()
        quality = attempt.quality
        successful = quality >= C.PASSING_QUALITY

        if successful:
            ease = max(C.MIN_EASE_FACTOR, state.ease_factor + ease_adjustment(quality))
            repetitions = state.repetitions + 1
            if repetitions == 1:
                interval = C.FIRST_INTERVAL_DAYS
            elif repetitions == 2:
                interval = C.SECOND_INTERVAL_DAYS
            else:
                interval = max(1, round_half_up(state.interval_days * ease))
        else:
            # Failure restarts the cycle; ease is left alone
            ease = state.ease_factor
            repetitions = 0
            interval = C.FIRST_INTERVAL_DAYS

        new_state = SrsState(
            ease_factor=ease,
            interval_days=interval,
            repetitions=repetitions,
            next_due=attempt.timestamp + timedelta(days=interval),
        )
        readiness = max(0, min(100, spot.readiness + C.QUALITY_READINESS_DELTA[quality]))

        logger.info(
            f"Scheduled {spot.id}: q={quality} reps={repetitions} "
            f"interval={interval}d ease={ease:.2f} next_due={new_state.next_due.isoformat()}"
        )

        return ScheduleResult(
            spot_id=spot.id,
            attempt=attempt,
            srs=new_state,
            repeat_count=repeat_count,
            readiness=readiness,
            successful=successful,
        )


def spot_phase(spot: PracticeSpot, now: datetime) -> SpotPhase:
    """Place a spot in the Fresh -> Scheduled -> Due cycle."""
    if spot.srs is None or spot.srs.next_due is None:
        return SpotPhase.FRESH
    if as_utc(now) >= spot.srs.next_due:
        return SpotPhase.DUE
    return SpotPhase.SCHEDULED


def due_spots(spots: list[PracticeSpot], now: datetime) -> list[PracticeSpot]:
    """
    Active spots that should be practiced now.

    Fresh spots come first, then due spots from the longest overdue.
    """
    fresh = [s for s in spots if s.is_active and spot_phase(s, now) is SpotPhase.FRESH]
    due = [s for s in spots if s.is_active and spot_phase(s, now) is SpotPhase.DUE]
    due.sort(key=lambda s: (s.srs.next_due, s.id))
    return fresh + due

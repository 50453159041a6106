"""
Practice priority for "what should I practice now" sessions.

Ranks pieces by inverted readiness, deadline pressure, tag focus and
neglect, and picks spots for a time-boxed session by urgency. Read-only:
nothing here mutates a spot or a piece.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from spotwise.application.config import EngineConfig
from spotwise.domain import constants as C
from spotwise.domain.practice.models import Piece, PracticeSpot, SpotColor, as_utc

from . import factors
from .piece_aggregator import PieceReadinessAggregator
from .spot_scorer import utc_now

logger = logging.getLogger(__name__)


@dataclass
class RankedPiece:
    """A piece with its practice priority (higher = practice sooner)."""

    piece_id: str
    title: str
    priority: float
    readiness: float
    days_since_practice: int


@dataclass
class SessionPlan:
    """Spots picked for one practice session."""

    spots: list[PracticeSpot]
    urgencies: dict[str, float]
    total_minutes: int


class PracticePriorityRanker:
    """
    Ranks pieces and spots for session planning.
    """

    def __init__(
        self,
        aggregator: PieceReadinessAggregator | None = None,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._clock = clock or utc_now
        self._aggregator = aggregator or PieceReadinessAggregator(config=config, clock=self._clock)
        self._config = config or self._aggregator.config

    # ---------- Pieces ----------

    def priority(
        self,
        piece: Piece,
        concert_date: datetime | None = None,
        focus_tags: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> float:
        now = as_utc(now or self._clock())
        return self._rank(piece, concert_date, set(focus_tags or ()), now).priority

    def rank_pieces(
        self,
        pieces: list[Piece],
        concert_date: datetime | None = None,
        focus_tags: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> list[RankedPiece]:
        """
        Order pieces by descending priority; ties broken by piece id.
        """
        now = as_utc(now or self._clock())
        tags = set(focus_tags or ())
        ranked = [self._rank(p, concert_date, tags, now) for p in pieces]
        ranked.sort(key=lambda r: (-r.priority, r.piece_id))
        return ranked

    def days_since_practice(self, piece: Piece, now: datetime) -> int:
        last = piece.last_practiced
        if last is None:
            return self._config.never_practiced_days
        return factors.whole_days(as_utc(now) - last)

    def _rank(
        self,
        piece: Piece,
        concert_date: datetime | None,
        focus_tags: set[str],
        now: datetime,
    ) -> RankedPiece:
        cfg = self._config
        readiness = self._aggregator.score(piece, concert_date=concert_date, now=now)
        priority = 100.0 - readiness

        days_left = factors.days_until(concert_date, now)
        if days_left is not None:
            if days_left <= cfg.concert_urgent_days:
                priority *= C.PRIORITY_URGENT_BOOST
            elif days_left <= cfg.concert_near_days:
                priority *= C.PRIORITY_NEAR_BOOST

        if focus_tags and piece.tags & focus_tags:
            priority *= C.FOCUS_TAG_BOOST

        idle_days = self.days_since_practice(piece, now)
        if idle_days > cfg.stale_practice_days:
            priority *= 1.0 + C.STALE_PRACTICE_STEP * idle_days

        return RankedPiece(
            piece_id=piece.id,
            title=piece.title,
            priority=priority,
            readiness=readiness,
            days_since_practice=idle_days,
        )

    # ---------- Spots ----------

    def spot_urgency(
        self,
        spot: PracticeSpot,
        concert_date: datetime | None = None,
        now: datetime | None = None,
    ) -> float:
        """
        Urgency in [0, 1] for picking spots within a session.

        Color weight, plus bonuses for being overdue, an approaching
        concert, difficulty and a struggling success rate.
        """
        now = as_utc(now or self._clock())
        urgency = C.URGENCY_COLOR_WEIGHTS[spot.color.value]

        next_due = spot.srs.next_due if spot.srs else None
        if next_due is not None and now > next_due:
            hours = factors.whole_hours(now - next_due)
            urgency += min(C.URGENCY_OVERDUE_CAP, hours * C.OVERDUE_PENALTY_PER_HOUR)

        days_left = factors.days_until(concert_date, now)
        if days_left is not None and 0 < days_left <= self._config.concert_near_days:
            urgency += (1.0 - days_left / self._config.concert_near_days) * C.URGENCY_CONCERT_BONUS

        urgency += spot.effective_difficulty / 5.0 * C.URGENCY_DIFFICULTY_BONUS

        success_rate = spot.success_rate
        if success_rate < C.URGENCY_STRUGGLE_THRESHOLD:
            urgency += (C.URGENCY_STRUGGLE_THRESHOLD - success_rate) * C.URGENCY_STRUGGLE_BONUS

        return min(1.0, urgency)

    def select_session(
        self,
        spots: list[PracticeSpot],
        target_minutes: int = C.DEFAULT_SESSION_MINUTES,
        max_spots: int = C.DEFAULT_SESSION_MAX_SPOTS,
        concert_date: datetime | None = None,
        now: datetime | None = None,
    ) -> SessionPlan:
        """
        Pick the most urgent active spots that fit in ``target_minutes``.

        The first spot is always taken even if it alone exceeds the budget.
        """
        now = as_utc(now or self._clock())
        urgencies = {
            s.id: self.spot_urgency(s, concert_date=concert_date, now=now)
            for s in spots
            if s.is_active
        }
        candidates = sorted(
            (s for s in spots if s.id in urgencies),
            key=lambda s: (-urgencies[s.id], s.id),
        )

        selected: list[PracticeSpot] = []
        total = 0
        for spot in candidates:
            if len(selected) >= max_spots:
                break
            minutes = recommended_minutes(spot)
            if selected and total + minutes > target_minutes:
                break
            selected.append(spot)
            total += minutes

        logger.debug(f"Session: {len(selected)} spots, {total} min of {target_minutes}")
        return SessionPlan(
            spots=selected,
            urgencies={s.id: urgencies[s.id] for s in selected},
            total_minutes=total,
        )


def recommended_minutes(spot: PracticeSpot) -> int:
    """Suggested practice time: ``3 + difficulty`` plus a color bonus."""
    return 3 + spot.effective_difficulty + C.PRACTICE_MINUTES_COLOR_BONUS[spot.color.value]


def suggest_color(spot: PracticeSpot) -> SpotColor:
    """
    Promote or demote a spot's color from its latest five rated attempts.

    Needs at least three rated attempts; otherwise the color is kept.
    """
    rated = spot.rated_attempts
    if len(rated) < 3:
        return spot.color

    recent = rated[: C.RECENT_ATTEMPTS_WINDOW]
    failures = sum(1 for a in recent if not a.successful)
    success_rate = (len(recent) - failures) / len(recent)

    if success_rate >= 0.8 and failures == 0:
        return {
            SpotColor.RED: SpotColor.YELLOW,
            SpotColor.YELLOW: SpotColor.GREEN,
            SpotColor.GREEN: SpotColor.GREEN,
        }[spot.color]

    if success_rate <= 0.4 or failures >= 2:
        return {
            SpotColor.GREEN: SpotColor.YELLOW,
            SpotColor.YELLOW: SpotColor.RED,
            SpotColor.RED: SpotColor.RED,
        }[spot.color]

    return spot.color

"""
Project readiness planning.

Rolls several pieces into one report for a concert project, estimates the
practice time still needed and checks it against the daily goal.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from spotwise.application.config import EngineConfig
from spotwise.domain import constants as C
from spotwise.domain.practice.models import Piece, Project, ReadinessLevel, as_utc

from . import factors
from .piece_aggregator import PieceReadinessAggregator
from .spot_scorer import utc_now

logger = logging.getLogger(__name__)

EMPTY_PROJECT_RECOMMENDATION = "Add pieces to your project"


@dataclass
class PieceScore:
    piece_id: str
    title: str
    score: float
    level: ReadinessLevel
    minutes_needed: int


@dataclass
class ProjectReadinessReport:
    """Project-level readiness. Plain data for the dashboard."""

    project_id: str
    overall_score: float
    level: ReadinessLevel
    piece_scores: list[PieceScore] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    minutes_needed: int = 0
    minutes_available: float = 0.0
    feasible: bool = False
    days_until_concert: int | None = None


class ProjectReadinessPlanner:
    """
    Builds a ProjectReadinessReport from a project and its pieces.

    The caller resolves the project's piece references; every piece passed
    in is planned.
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

    def plan(
        self,
        project: Project,
        pieces: list[Piece],
        now: datetime | None = None,
    ) -> ProjectReadinessReport:
        now = as_utc(now or self._clock())
        days_left = factors.days_until(project.concert_date, now)

        if not pieces:
            return ProjectReadinessReport(
                project_id=project.id,
                overall_score=0.0,
                level=ReadinessLevel.NOT_READY,
                recommendations=[EMPTY_PROJECT_RECOMMENDATION],
                feasible=False,
                days_until_concert=days_left,
            )

        piece_scores = []
        for piece in pieces:
            score = self._aggregator.score(piece, concert_date=project.concert_date, now=now)
            piece_scores.append(
                PieceScore(
                    piece_id=piece.id,
                    title=piece.title,
                    score=score,
                    level=ReadinessLevel.from_score(score),
                    minutes_needed=self.minutes_to_target(piece, now=now),
                )
            )

        overall = sum(p.score for p in piece_scores) / len(piece_scores)
        minutes_needed = sum(p.minutes_needed for p in piece_scores)

        horizon = days_left if days_left is not None else self._config.planning_horizon_days
        available = project.daily_goal_minutes * max(0, horizon)
        feasible = minutes_needed <= available

        critical = sum(len(p.critical_spots) for p in pieces)
        recommendations = build_recommendations(
            overall,
            days_left,
            piece_scores,
            critical,
            urgent_days=self._config.concert_urgent_days,
            near_days=self._config.concert_near_days,
        )

        logger.info(
            f"Project {project.id}: {overall:.1f} over {len(pieces)} pieces, "
            f"{minutes_needed} min needed / {available:.0f} available"
        )

        return ProjectReadinessReport(
            project_id=project.id,
            overall_score=overall,
            level=ReadinessLevel.from_score(overall),
            piece_scores=piece_scores,
            recommendations=recommendations,
            minutes_needed=minutes_needed,
            minutes_available=available,
            feasible=feasible,
            days_until_concert=days_left,
        )

    def minutes_to_target(
        self,
        piece: Piece,
        target: float | None = None,
        now: datetime | None = None,
    ) -> int:
        """
        Practice minutes needed to lift a piece to ``target`` readiness.

        Uses concert-free readiness; the per-point rate comes from the
        piece's difficulty and grows above a score of 50.
        """
        target = self._config.target_readiness if target is None else target
        current = self._aggregator.score(piece, now=now or self._clock())
        if current >= target:
            return 0

        rate = C.MINUTES_PER_POINT[piece.difficulty]
        if current > C.HIGH_SCORE_THRESHOLD:
            rate *= self._config.high_score_time_multiplier
        return factors.round_half_up((target - current) * rate)


def build_recommendations(
    overall: float,
    days_until_concert: int | None,
    piece_scores: list[PieceScore],
    critical_spots: int,
    urgent_days: int = C.CONCERT_URGENT_DAYS,
    near_days: int = C.CONCERT_NEAR_DAYS,
) -> list[str]:
    """Deterministic advice strings, in a fixed order."""
    recs: list[str] = []

    if overall < 50:
        recs.append("Focus on fundamental practice - your pieces need significant work")
    elif overall < 75:
        recs.append("Good progress! Focus on consistency and tempo building")
    elif overall < 90:
        recs.append("Nearly ready! Polish dynamics and musical expression")
    else:
        recs.append("Performance ready! Keep pieces fresh with light maintenance practice")

    if days_until_concert is not None:
        if days_until_concert <= urgent_days and overall < 80:
            recs.append("URGENT: Concert is soon! Focus only on critical spots")
        elif days_until_concert <= near_days and overall < 70:
            recs.append("Concert approaching - increase practice intensity")

    low = [p.title for p in piece_scores if p.score < C.LOW_SCORE_PIECE_THRESHOLD]
    if low:
        recs.append(f"Pieces needing attention: {', '.join(low[: C.MAX_NAMED_LOW_PIECES])}")

    if critical_spots > C.CRITICAL_SPOT_LIMIT:
        recs.append(
            f"High number of critical spots ({critical_spots}) - consider reducing repertoire"
        )

    return recs

"""
Piece readiness aggregation.

Combines spot scores, practice time, tempo progress, recent practice
frequency and concert pressure into a single 0-100 score. Piece readiness
is never stored; it is recomputed from the spots on every read.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from spotwise.application.config import EngineConfig
from spotwise.domain import constants as C
from spotwise.domain.practice.models import Piece, ReadinessLevel, as_utc

from . import factors
from .spot_scorer import SpotReadinessScorer, utc_now

logger = logging.getLogger(__name__)


@dataclass
class PieceReadiness:
    """
    Piece readiness with every multiplier that produced it.
    """

    piece_id: str
    spot_scores: dict[str, float]
    weighted_mean: float
    practice_time: float
    tempo: float
    recent_practice: float
    concert_pressure: float
    score: float

    @property
    def level(self) -> ReadinessLevel:
        return ReadinessLevel.from_score(self.score)


class PieceReadinessAggregator:
    """
    Computes piece readiness from its spots.

    Each multiplier comes from ``factors`` so it can be tested on its own;
    this class only composes them with the configured tunables.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        spot_scorer: SpotReadinessScorer | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._config = config or EngineConfig()
        self._clock = clock or utc_now
        self._spots = spot_scorer or SpotReadinessScorer(clock=self._clock)

    @property
    def config(self) -> EngineConfig:
        return self._config

    def score(
        self,
        piece: Piece,
        concert_date: datetime | None = None,
        now: datetime | None = None,
    ) -> float:
        return self.breakdown(piece, concert_date=concert_date, now=now).score

    def breakdown(
        self,
        piece: Piece,
        concert_date: datetime | None = None,
        now: datetime | None = None,
    ) -> PieceReadiness:
        """
        Score a piece.

        Args:
            piece: The piece with its spots and histories.
            concert_date: Deadline that adds pressure; no pressure when None.
            now: Clock reading; defaults to the injected clock.
        """
        now = as_utc(now or self._clock())
        cfg = self._config
        spots = piece.active_spots

        if not spots:
            # No marked trouble areas: assume mostly fine once practiced a bit
            score = (
                C.EMPTY_PIECE_PRACTICED_SCORE
                if piece.total_practice_minutes > C.EMPTY_PIECE_PRACTICE_MINUTES
                else C.EMPTY_PIECE_UNPRACTICED_SCORE
            )
            return PieceReadiness(
                piece_id=piece.id,
                spot_scores={},
                weighted_mean=score,
                practice_time=1.0,
                tempo=1.0,
                recent_practice=1.0,
                concert_pressure=1.0,
                score=score,
            )

        spot_scores = {s.id: self._spots.score(s, now) for s in spots}
        weights = {s.id: cfg.color_weights[s.color.value] for s in spots}
        weighted_mean = sum(spot_scores[i] * weights[i] for i in spot_scores) / sum(
            weights.values()
        )

        practice_time = factors.practice_time_multiplier(
            piece.total_practice_minutes,
            saturation_hours=cfg.practice_saturation_hours,
            bonus=cfg.practice_bonus,
        )
        tempo = factors.tempo_multiplier(
            piece.target_tempo,
            piece.current_tempo,
            bonus=cfg.tempo_bonus,
            floor_ratio=cfg.tempo_floor_ratio,
        )
        recent = factors.recent_practice_multiplier(
            (a.timestamp for s in spots for a in s.attempts),
            now,
            days=cfg.recent_practice_days,
        )
        pressure = factors.concert_pressure_multiplier(
            factors.days_until(concert_date, now),
            urgent_days=cfg.concert_urgent_days,
            near_days=cfg.concert_near_days,
        )

        score = factors.clamp(weighted_mean * practice_time * tempo * recent * pressure)
        logger.debug(
            f"Piece {piece.id}: mean={weighted_mean:.1f} time={practice_time:.2f} "
            f"tempo={tempo:.2f} recent={recent:.2f} pressure={pressure:.2f} -> {score:.1f}"
        )

        return PieceReadiness(
            piece_id=piece.id,
            spot_scores=spot_scores,
            weighted_mean=weighted_mean,
            practice_time=practice_time,
            tempo=tempo,
            recent_practice=recent,
            concert_pressure=pressure,
            score=score,
        )

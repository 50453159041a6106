"""
Practice Service — Application layer orchestrator.

Coordinates loading records from the repository, running the engine and
handing updated spots back to the repository.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from spotwise.application.config import EngineConfig
from spotwise.application.id_service import generate_attempt_id
from spotwise.domain import constants as C
from spotwise.domain.errors import InvalidInput
from spotwise.domain.practice.models import Piece, PracticeAttempt, PracticeSpot
from spotwise.domain.practice.ports import PracticeRepository

from .piece_aggregator import PieceReadiness, PieceReadinessAggregator
from .planner import ProjectReadinessPlanner, ProjectReadinessReport
from .priority import PracticePriorityRanker, RankedPiece, SessionPlan
from .scheduler import ScheduleResult, SpotScheduler, due_spots
from .spot_scorer import SpotReadinessScorer, utc_now

logger = logging.getLogger(__name__)


class PracticeService:
    """
    Application service for recording attempts and reading readiness.

    Follows Dependency Inversion: depends on the PracticeRepository
    abstraction, not concrete adapter implementations.
    """

    def __init__(
        self,
        repo: PracticeRepository,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            repo: The repository (port) for loading and saving records.
            config: Engine tunables; resolved defaults if not provided.
            clock: Clock used when no explicit time is passed.
        """
        self._repo = repo
        self._clock = clock or utc_now
        self._config = config or EngineConfig()
        self.scheduler = SpotScheduler()
        self.spot_scorer = SpotReadinessScorer(clock=self._clock)
        self.aggregator = PieceReadinessAggregator(
            config=self._config, spot_scorer=self.spot_scorer, clock=self._clock
        )
        self.ranker = PracticePriorityRanker(
            aggregator=self.aggregator, config=self._config, clock=self._clock
        )
        self.planner = ProjectReadinessPlanner(
            aggregator=self.aggregator, config=self._config, clock=self._clock
        )

    async def record_attempt(
        self,
        spot_id: str,
        duration_minutes: float,
        quality: int | None = None,
        note: str | None = None,
        timestamp: datetime | None = None,
    ) -> ScheduleResult:
        """
        Log one attempt and reschedule the spot.

        Fails closed: when validation or scheduling raises, nothing is saved.

        Raises:
            InvalidInput: Unknown spot, bad quality/duration, deleted spot.
        """
        attempt = PracticeAttempt(
            id=generate_attempt_id(),
            spot_id=spot_id,
            timestamp=timestamp or self._clock(),
            duration_minutes=duration_minutes,
            quality=quality,
            note=note,
        )

        async with self._repo.lock_spot(spot_id):
            spot = await self._require_spot(spot_id)
            result = self.scheduler.schedule(spot, attempt)
            await self._repo.save_spot(result.apply_to(spot))

        return result

    async def spot_readiness(self, spot_id: str, now: datetime | None = None) -> float:
        spot = await self._require_spot(spot_id)
        return self.spot_scorer.score(spot, now)

    async def piece_readiness(
        self,
        piece_id: str,
        concert_date: datetime | None = None,
        now: datetime | None = None,
    ) -> float | None:
        """
        Piece score for the dashboard.

        Returns None (a degraded indicator) if scoring fails.
        """
        piece = await self._repo.get_piece(piece_id)
        if piece is None:
            raise InvalidInput(f"Unknown piece {piece_id}")
        try:
            return self.aggregator.score(piece, concert_date=concert_date, now=now)
        except (ValueError, ZeroDivisionError, KeyError) as e:
            logger.error(f"Readiness for piece {piece_id} failed: {e}", exc_info=True)
            return None

    async def rank_pieces(
        self,
        piece_ids: list[str] | None = None,
        concert_date: datetime | None = None,
        focus_tags: list[str] | None = None,
        now: datetime | None = None,
    ) -> list[RankedPiece]:
        pieces = await self._repo.list_pieces(piece_ids)
        return self.ranker.rank_pieces(
            pieces, concert_date=concert_date, focus_tags=focus_tags, now=now
        )

    async def plan_project(
        self, project_id: str, now: datetime | None = None
    ) -> ProjectReadinessReport:
        project = await self._repo.get_project(project_id)
        if project is None:
            raise InvalidInput(f"Unknown project {project_id}")
        pieces = await self._repo.list_pieces(list(project.piece_ids))
        return self.planner.plan(project, pieces, now=now)

    async def piece_breakdowns(
        self,
        piece_id: str | None = None,
        concert_date: datetime | None = None,
        now: datetime | None = None,
    ) -> list[tuple[Piece, PieceReadiness]]:
        """Every piece (or just one) with its full readiness breakdown."""
        pieces = await self._repo.list_pieces([piece_id] if piece_id else None)
        if piece_id and not pieces:
            raise InvalidInput(f"Unknown piece {piece_id}")
        return [
            (p, self.aggregator.breakdown(p, concert_date=concert_date, now=now))
            for p in pieces
        ]

    async def plan_session(
        self,
        piece_id: str,
        target_minutes: int = C.DEFAULT_SESSION_MINUTES,
        max_spots: int = C.DEFAULT_SESSION_MAX_SPOTS,
        concert_date: datetime | None = None,
        now: datetime | None = None,
    ) -> SessionPlan:
        piece = await self._repo.get_piece(piece_id)
        if piece is None:
            raise InvalidInput(f"Unknown piece {piece_id}")
        return self.ranker.select_session(
            list(piece.spots),
            target_minutes=target_minutes,
            max_spots=max_spots,
            concert_date=concert_date,
            now=now,
        )

    async def due_spots(
        self, piece_id: str, now: datetime | None = None
    ) -> list[PracticeSpot]:
        piece = await self._repo.get_piece(piece_id)
        if piece is None:
            raise InvalidInput(f"Unknown piece {piece_id}")
        return due_spots(list(piece.spots), now or self._clock())

    @property
    def config(self) -> EngineConfig:
        return self._config

    def now(self) -> datetime:
        return self._clock()

    async def _require_spot(self, spot_id: str) -> PracticeSpot:
        spot = await self._repo.get_spot(spot_id)
        if spot is None:
            raise InvalidInput(f"Unknown spot {spot_id}")
        return spot

"""
In-memory Practice Repository — Infrastructure adapter.

Implements PracticeRepository over plain dicts. Used by the CLI (after a
YAML snapshot is loaded) and by tests.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace

from spotwise.domain.errors import InvalidInput
from spotwise.domain.practice.models import Piece, PracticeSpot, Project
from spotwise.domain.practice.ports import PracticeRepository

logger = logging.getLogger(__name__)


class InMemoryPracticeRepository(PracticeRepository):
    """
    Dict-backed store.

    Spots live inside their pieces; a side index maps spot id to piece id.
    Saving a spot also adds the duration of newly logged attempts to the
    piece's practice time.
    """

    def __init__(self, pieces: list[Piece] | None = None, projects: list[Project] | None = None):
        self._pieces: dict[str, Piece] = {}
        self._projects: dict[str, Project] = {}
        self._spot_index: dict[str, str] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

        for piece in pieces or []:
            self.add_piece(piece)
        for project in projects or []:
            self.add_project(project)

    def add_piece(self, piece: Piece) -> None:
        for spot in piece.spots:
            owner = self._spot_index.get(spot.id)
            if owner is not None and owner != piece.id:
                raise InvalidInput(f"spot {spot.id} already belongs to piece {owner}")
            self._spot_index[spot.id] = piece.id
        self._pieces[piece.id] = piece

    def add_project(self, project: Project) -> None:
        self._projects[project.id] = project

    async def get_spot(self, spot_id: str) -> PracticeSpot | None:
        piece_id = self._spot_index.get(spot_id)
        if piece_id is None:
            return None
        return self._pieces[piece_id].get_spot(spot_id)

    async def save_spot(self, spot: PracticeSpot) -> None:
        piece_id = self._spot_index.get(spot.id)
        if piece_id is None:
            raise InvalidInput(f"Unknown spot {spot.id}")

        piece = self._pieces[piece_id]
        old = piece.get_spot(spot.id)
        known = {a.id for a in old.attempts} if old else set()
        added_minutes = sum(a.duration_minutes for a in spot.attempts if a.id not in known)

        spots = tuple(spot if s.id == spot.id else s for s in piece.spots)
        self._pieces[piece_id] = replace(
            piece,
            spots=spots,
            total_practice_minutes=piece.total_practice_minutes + added_minutes,
        )
        logger.debug(f"Saved spot {spot.id} (+{added_minutes} min on {piece_id})")

    async def get_piece(self, piece_id: str) -> Piece | None:
        return self._pieces.get(piece_id)

    async def list_pieces(self, piece_ids: list[str] | None = None) -> list[Piece]:
        if piece_ids is None:
            return list(self._pieces.values())
        return [self._pieces[pid] for pid in piece_ids if pid in self._pieces]

    async def get_project(self, project_id: str) -> Project | None:
        return self._projects.get(project_id)

    async def list_projects(self) -> list[Project]:
        return list(self._projects.values())

    @asynccontextmanager
    async def lock_spot(self, spot_id: str) -> AsyncIterator[None]:
        # only stored spots get a lock
        if spot_id not in self._spot_index:
            raise InvalidInput(f"Unknown spot {spot_id}")
        async with self._locks[spot_id]:
            yield

"""
YAML snapshot loader — Infrastructure adapter.

Reads a snapshot of pieces and projects exported by the storage
collaborator and turns it into an InMemoryPracticeRepository. Read-only:
nothing is ever written back to the file.

Snapshot layout::

    pieces:
      - id: p1
        title: Chaconne
        difficulty: 4
        total_practice_minutes: 90
        tags: [bach]
        spots:
          - id: s1
            page: 2
            bounds: {x: 0.1, y: 0.2, w: 0.3, h: 0.1}
            color: red
            srs: {ease_factor: 2.5, interval_days: 6, repetitions: 2, next_due: 2026-10-20T09:00:00Z}
            attempts:
              - {timestamp: 2026-10-14T09:00:00Z, duration_minutes: 10, quality: 4}
    projects:
      - id: recital
        name: Autumn recital
        piece_ids: [p1]
        concert_date: 2026-11-20
        daily_goal_minutes: 45
"""

import logging
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import BaseModel, BeforeValidator, Field, ValidationError

from spotwise.domain.errors import InvalidInput
from spotwise.domain.practice.models import (
    Piece,
    PracticeAttempt,
    PracticeSpot,
    Project,
    SpotBounds,
    SrsState,
)

from .memory_store import InMemoryPracticeRepository

logger = logging.getLogger(__name__)


def _to_datetime(v: Any) -> Any:
    # YAML turns bare dates into datetime.date
    if isinstance(v, date) and not isinstance(v, datetime):
        return datetime.combine(v, time(0, 0), tzinfo=timezone.utc)
    return v


UtcDatetime = Annotated[datetime, BeforeValidator(_to_datetime)]


class AttemptRecord(BaseModel):
    id: str | None = None
    timestamp: UtcDatetime
    duration_minutes: float
    quality: int | None = None
    note: str | None = None


class SrsRecord(BaseModel):
    ease_factor: float | None = None
    interval_days: float | None = None
    repetitions: int | None = None
    next_due: UtcDatetime | None = None


class BoundsRecord(BaseModel):
    x: float
    y: float
    w: float
    h: float


class SpotRecord(BaseModel):
    id: str
    page: int = 1
    bounds: BoundsRecord
    color: str = "yellow"
    priority: str = "medium"
    title: str | None = None
    difficulty: int | None = None
    repeat_count: int = 0
    readiness: int = 0
    is_active: bool = True
    srs: SrsRecord | None = None
    attempts: list[AttemptRecord] = Field(default_factory=list)


class PieceRecord(BaseModel):
    id: str
    title: str
    difficulty: int = 3
    total_practice_minutes: float = 0.0
    target_tempo: float | None = None
    current_tempo: float | None = None
    concert_date: UtcDatetime | None = None
    tags: list[str] = Field(default_factory=list)
    spots: list[SpotRecord] = Field(default_factory=list)


class ProjectRecord(BaseModel):
    id: str
    name: str
    piece_ids: list[str] = Field(default_factory=list)
    concert_date: UtcDatetime | None = None
    daily_goal_minutes: float = 30.0


class SnapshotRecord(BaseModel):
    pieces: list[PieceRecord] = Field(default_factory=list)
    projects: list[ProjectRecord] = Field(default_factory=list)


def _spot_from_record(rec: SpotRecord, piece_id: str) -> PracticeSpot:
    srs = None
    if rec.srs is not None:
        srs = SrsState.coerce(
            ease_factor=rec.srs.ease_factor,
            interval_days=rec.srs.interval_days,
            repetitions=rec.srs.repetitions,
            next_due=rec.srs.next_due,
        )
    attempts = tuple(
        PracticeAttempt(
            id=a.id or f"{rec.id}#{i}",
            spot_id=rec.id,
            timestamp=a.timestamp,
            duration_minutes=a.duration_minutes,
            quality=a.quality,
            note=a.note,
        )
        for i, a in enumerate(rec.attempts)
    )
    return PracticeSpot(
        id=rec.id,
        piece_id=piece_id,
        page=rec.page,
        bounds=SpotBounds(**rec.bounds.model_dump()),
        color=rec.color,
        priority=rec.priority,
        srs=srs,
        repeat_count=rec.repeat_count,
        readiness=rec.readiness,
        attempts=attempts,
        title=rec.title,
        difficulty=rec.difficulty,
        is_active=rec.is_active,
    )


def _piece_from_record(rec: PieceRecord) -> Piece:
    return Piece(
        id=rec.id,
        title=rec.title,
        spots=tuple(_spot_from_record(s, rec.id) for s in rec.spots),
        total_practice_minutes=rec.total_practice_minutes,
        target_tempo=rec.target_tempo,
        current_tempo=rec.current_tempo,
        concert_date=rec.concert_date,
        difficulty=rec.difficulty,
        tags=frozenset(rec.tags),
    )


def _project_from_record(rec: ProjectRecord) -> Project:
    return Project(
        id=rec.id,
        name=rec.name,
        piece_ids=tuple(rec.piece_ids),
        concert_date=rec.concert_date,
        daily_goal_minutes=rec.daily_goal_minutes,
    )


def parse_snapshot(text: str) -> InMemoryPracticeRepository:
    """
    Parse snapshot YAML into an in-memory repository.

    Raises:
        InvalidInput: Malformed YAML, missing fields or values that break
            a domain rule (bad bounds, quality, duplicate ids, ...).
    """
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise InvalidInput(f"Snapshot is not valid YAML: {e}") from e

    if not isinstance(raw, dict):
        raise InvalidInput("Snapshot must be a mapping with 'pieces' and 'projects'")

    try:
        snapshot = SnapshotRecord.model_validate(raw)
    except ValidationError as e:
        raise InvalidInput(f"Snapshot failed validation: {e}") from e

    pieces = [_piece_from_record(p) for p in snapshot.pieces]
    projects = [_project_from_record(p) for p in snapshot.projects]

    logger.debug(f"Loaded snapshot: {len(pieces)} pieces, {len(projects)} projects")
    return InMemoryPracticeRepository(pieces=pieces, projects=projects)


def load_snapshot(path: Path) -> InMemoryPracticeRepository:
    """Read a snapshot file from disk."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidInput(f"Cannot read snapshot {path}: {e}") from e
    return parse_snapshot(text)

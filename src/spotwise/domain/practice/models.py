"""
Domain models for practice spots, pieces and projects.

These are pure data structures with no I/O or external dependencies.
Every entity is frozen: updates produce new instances, so a rejected
operation can never leave a half-written record behind.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from spotwise.domain import constants as C
from spotwise.domain.errors import InconsistentState, InvalidInput

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SpotColor(str, Enum):
    """Difficulty tag painted on a spot."""

    RED = "red"  # critical
    YELLOW = "yellow"  # review
    GREEN = "green"  # maintenance

    @property
    def label(self) -> str:
        return {"red": "Critical", "yellow": "Review", "green": "Maintenance"}[self.value]


class SpotPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SpotPhase(str, Enum):
    """Where a spot sits relative to "due now"."""

    FRESH = "fresh"  # never scheduled
    SCHEDULED = "scheduled"  # next_due in the future
    DUE = "due"  # next_due reached


class ReadinessLevel(str, Enum):
    """Shared readiness vocabulary for spots, pieces and projects."""

    NOT_READY = "notReady"
    LEARNING = "learning"
    PRACTICING = "practicing"
    POLISHING = "polishing"
    PERFORMANCE_READY = "performanceReady"

    @classmethod
    def from_score(cls, score: float) -> "ReadinessLevel":
        if score >= 90:
            return cls.PERFORMANCE_READY
        if score >= 75:
            return cls.POLISHING
        if score >= 50:
            return cls.PRACTICING
        if score >= 25:
            return cls.LEARNING
        return cls.NOT_READY

    @property
    def label(self) -> str:
        return {
            "notReady": "Not Ready",
            "learning": "Learning",
            "practicing": "Practicing",
            "polishing": "Polishing",
            "performanceReady": "Performance Ready",
        }[self.value]


@dataclass(frozen=True)
class SrsState:
    """
    SM-2 scheduling state of a spot.

    Attributes:
        ease_factor: Interval growth factor, never below 1.3.
        interval_days: Days between reviews, always a positive integer.
        repetitions: Consecutive successful reviews.
        next_due: When the spot is next due; None means "due now".
    """

    ease_factor: float = C.DEFAULT_EASE_FACTOR
    interval_days: int = C.FIRST_INTERVAL_DAYS
    repetitions: int = 0
    next_due: datetime | None = None

    def __post_init__(self):
        if self.ease_factor < C.MIN_EASE_FACTOR:
            raise InconsistentState(
                f"ease_factor {self.ease_factor} below minimum {C.MIN_EASE_FACTOR}"
            )
        if isinstance(self.interval_days, bool) or not isinstance(self.interval_days, int):
            raise InconsistentState(f"interval_days must be an integer, got {self.interval_days!r}")
        if self.interval_days < 1:
            raise InconsistentState(f"interval_days {self.interval_days} must be >= 1")
        if self.repetitions < 0:
            raise InconsistentState(f"repetitions {self.repetitions} must be >= 0")
        if self.next_due is not None:
            object.__setattr__(self, "next_due", as_utc(self.next_due))

    @classmethod
    def initial(cls) -> "SrsState":
        return cls()

    @classmethod
    def coerce(
        cls,
        ease_factor: float | None = None,
        interval_days: float | None = None,
        repetitions: int | None = None,
        next_due: datetime | None = None,
    ) -> "SrsState":
        """
        Build a state from stored values, clamping anything out of bounds.

        Stored SRS fields are a scheduling aid, not a ledger of record, so
        drift is logged and repaired instead of propagated.
        """
        ease = C.DEFAULT_EASE_FACTOR if ease_factor is None else float(ease_factor)
        if ease < C.MIN_EASE_FACTOR:
            logger.warning(f"Clamping ease_factor {ease} to {C.MIN_EASE_FACTOR}")
            ease = C.MIN_EASE_FACTOR

        interval = C.FIRST_INTERVAL_DAYS if interval_days is None else interval_days
        if interval != int(interval) or interval < 1:
            fixed = max(1, int(round(interval)))
            logger.warning(f"Clamping interval_days {interval} to {fixed}")
            interval = fixed

        reps = 0 if repetitions is None else int(repetitions)
        if reps < 0:
            logger.warning(f"Clamping repetitions {reps} to 0")
            reps = 0

        return cls(
            ease_factor=ease,
            interval_days=int(interval),
            repetitions=reps,
            next_due=next_due,
        )


@dataclass(frozen=True)
class SpotBounds:
    """Normalized rectangle on a page; all values in [0, 1]."""

    x: float
    y: float
    w: float
    h: float

    def __post_init__(self):
        for name in ("x", "y", "w", "h"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidInput(f"bounds.{name}={value} outside [0, 1]")
        if self.w <= 0 or self.h <= 0:
            raise InvalidInput("bounds must have positive width and height")
        # small tolerance for float noise from the drawing layer
        if self.x + self.w > 1.0 + 1e-9 or self.y + self.h > 1.0 + 1e-9:
            raise InvalidInput("bounds extend past the page edge")


@dataclass(frozen=True)
class PracticeAttempt:
    """
    A single logged practice attempt. Append-only.

    Attributes:
        id: Attempt identifier.
        spot_id: The spot that was practiced.
        timestamp: When the attempt happened.
        duration_minutes: Time spent, strictly positive.
        quality: Self-rating 1-5, or None when the attempt was not rated.
        note: Free-text note; never affects scheduling.
    """

    id: str
    spot_id: str
    timestamp: datetime
    duration_minutes: float
    quality: int | None = None
    note: str | None = None

    def __post_init__(self):
        if self.quality is not None and (
            isinstance(self.quality, bool)
            or not isinstance(self.quality, int)
            or not C.MIN_QUALITY <= self.quality <= C.MAX_QUALITY
        ):
            raise InvalidInput(f"quality must be an integer 1-5, got {self.quality!r}")
        if self.duration_minutes <= 0:
            raise InvalidInput(f"duration must be positive, got {self.duration_minutes}")
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))

    @property
    def rated(self) -> bool:
        return self.quality is not None

    @property
    def successful(self) -> bool:
        return self.quality is not None and self.quality >= C.PASSING_QUALITY


@dataclass(frozen=True)
class PracticeSpot:
    """
    A user-marked region of a score that needs work.

    Attempts are kept newest first. ``readiness`` is only the cached value
    written back after scheduling; scores are always recomputed on read.
    """

    id: str
    piece_id: str
    page: int
    bounds: SpotBounds
    color: SpotColor = SpotColor.YELLOW
    priority: SpotPriority = SpotPriority.MEDIUM
    srs: SrsState | None = None
    repeat_count: int = 0
    readiness: int = 0
    attempts: tuple[PracticeAttempt, ...] = ()
    title: str | None = None
    difficulty: int | None = None  # declared 1-5; derived from history when None
    is_active: bool = True

    def __post_init__(self):
        if self.page < 1:
            raise InvalidInput(f"page must be >= 1, got {self.page}")
        if self.repeat_count < 0:
            raise InvalidInput("repeat_count must be >= 0")
        if not 0 <= self.readiness <= 100:
            raise InvalidInput(f"readiness {self.readiness} outside [0, 100]")
        if self.difficulty is not None and self.difficulty not in C.DIFFICULTY_MULTIPLIERS:
            raise InvalidInput(f"difficulty must be 1-5, got {self.difficulty}")
        try:
            object.__setattr__(self, "color", SpotColor(self.color))
            object.__setattr__(self, "priority", SpotPriority(self.priority))
        except ValueError as e:
            raise InvalidInput(str(e)) from e
        for attempt in self.attempts:
            if attempt.spot_id != self.id:
                raise InvalidInput(f"attempt {attempt.id} belongs to spot {attempt.spot_id}")
        object.__setattr__(
            self,
            "attempts",
            tuple(sorted(self.attempts, key=lambda a: a.timestamp, reverse=True)),
        )

    @property
    def rated_attempts(self) -> list[PracticeAttempt]:
        """Quality-rated attempts, newest first."""
        return [a for a in self.attempts if a.rated]

    @property
    def success_rate(self) -> float:
        rated = self.rated_attempts
        if not rated:
            return 0.0
        return sum(1 for a in rated if a.successful) / len(rated)

    @property
    def last_practiced(self) -> datetime | None:
        return self.attempts[0].timestamp if self.attempts else None

    @property
    def effective_difficulty(self) -> int:
        """Declared difficulty, or one derived from the failure rate."""
        if self.difficulty is not None:
            return self.difficulty
        rated = self.rated_attempts
        if not rated:
            return C.DEFAULT_DIFFICULTY
        failure_rate = 1.0 - self.success_rate
        if failure_rate > 0.7:
            return 5
        if failure_rate > 0.5:
            return 4
        if failure_rate > 0.3:
            return 3
        if failure_rate > 0.1:
            return 2
        return 1


@dataclass(frozen=True)
class Piece:
    """A score with its spots and practice aggregates."""

    id: str
    title: str
    spots: tuple[PracticeSpot, ...] = ()
    total_practice_minutes: float = 0.0
    target_tempo: float | None = None
    current_tempo: float | None = None
    concert_date: datetime | None = None
    difficulty: int = C.DEFAULT_DIFFICULTY
    tags: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        ids = [s.id for s in self.spots]
        if len(ids) != len(set(ids)):
            raise InvalidInput(f"piece {self.id} has duplicate spot ids")
        if self.total_practice_minutes < 0:
            raise InvalidInput("total_practice_minutes must be >= 0")
        for name in ("target_tempo", "current_tempo"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise InvalidInput(f"{name} must be positive, got {value}")
        if self.difficulty not in C.MINUTES_PER_POINT:
            raise InvalidInput(f"difficulty must be 1-5, got {self.difficulty}")
        if self.concert_date is not None:
            object.__setattr__(self, "concert_date", as_utc(self.concert_date))
        object.__setattr__(self, "spots", tuple(self.spots))
        object.__setattr__(self, "tags", frozenset(self.tags))

    @property
    def active_spots(self) -> list[PracticeSpot]:
        return [s for s in self.spots if s.is_active]

    @property
    def critical_spots(self) -> list[PracticeSpot]:
        return [s for s in self.active_spots if s.color is SpotColor.RED]

    @property
    def last_practiced(self) -> datetime | None:
        stamps = [s.last_practiced for s in self.active_spots if s.last_practiced]
        return max(stamps) if stamps else None

    def get_spot(self, spot_id: str) -> PracticeSpot | None:
        return next((s for s in self.spots if s.id == spot_id), None)


@dataclass(frozen=True)
class Project:
    """A named set of pieces prepared for one concert."""

    id: str
    name: str
    piece_ids: tuple[str, ...] = ()
    concert_date: datetime | None = None
    daily_goal_minutes: float = C.DEFAULT_DAILY_GOAL_MINUTES

    def __post_init__(self):
        if self.daily_goal_minutes < 0:
            raise InvalidInput("daily_goal_minutes must be >= 0")
        if self.concert_date is not None:
            object.__setattr__(self, "concert_date", as_utc(self.concert_date))
        object.__setattr__(self, "piece_ids", tuple(self.piece_ids))

# Domain Practice Package
from .models import (
    Piece,
    PracticeAttempt,
    PracticeSpot,
    Project,
    ReadinessLevel,
    SpotBounds,
    SpotColor,
    SpotPhase,
    SpotPriority,
    SrsState,
)
from .ports import PracticeRepository

__all__ = [
    "Piece",
    "PracticeAttempt",
    "PracticeSpot",
    "Project",
    "ReadinessLevel",
    "SpotBounds",
    "SpotColor",
    "SpotPhase",
    "SpotPriority",
    "SrsState",
    "PracticeRepository",
]

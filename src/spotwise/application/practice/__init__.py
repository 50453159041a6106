# Application Practice Package
from .piece_aggregator import PieceReadiness, PieceReadinessAggregator
from .planner import PieceScore, ProjectReadinessPlanner, ProjectReadinessReport
from .priority import PracticePriorityRanker, RankedPiece, SessionPlan, suggest_color
from .scheduler import ScheduleResult, SpotScheduler, due_spots, spot_phase
from .service import PracticeService
from .spot_scorer import SpotReadiness, SpotReadinessScorer

__all__ = [
    "SpotScheduler",
    "ScheduleResult",
    "spot_phase",
    "due_spots",
    "SpotReadinessScorer",
    "SpotReadiness",
    "PieceReadinessAggregator",
    "PieceReadiness",
    "PracticePriorityRanker",
    "RankedPiece",
    "SessionPlan",
    "suggest_color",
    "ProjectReadinessPlanner",
    "ProjectReadinessReport",
    "PieceScore",
    "PracticeService",
]

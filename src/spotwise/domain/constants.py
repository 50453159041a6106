"""Centralized constants for the spotwise engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- SRS (SM-2) ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
PASSING_QUALITY = 3
MIN_QUALITY = 1
MAX_QUALITY = 5

# Readiness cache delta per quality score (percentage points)
QUALITY_READINESS_DELTA = {5: 20, 4: 10, 3: 5, 2: -5, 1: -10}

# ---------- Spot readiness ----------
RECENT_ATTEMPTS_WINDOW = 5
RECENCY_MIN_ATTEMPTS = 3
RECENCY_WEIGHT = 0.4
CONSISTENCY_WINDOW = 10
CONSISTENCY_MIN_ATTEMPTS = 3
CONSISTENCY_PENALTY = 0.3
CONSISTENCY_FLOOR = 0.8
OVERDUE_PENALTY_PER_HOUR = 0.01
OVERDUE_FLOOR = 0.5
DIFFICULTY_MULTIPLIERS = {1: 1.2, 2: 1.1, 3: 1.0, 4: 0.9, 5: 0.8}
DEFAULT_DIFFICULTY = 3

# ---------- Piece readiness ----------
COLOR_WEIGHTS = {"red": 3.0, "yellow": 2.0, "green": 1.0}
EMPTY_PIECE_PRACTICED_SCORE = 85.0
EMPTY_PIECE_UNPRACTICED_SCORE = 45.0
EMPTY_PIECE_PRACTICE_MINUTES = 60.0
PRACTICE_SATURATION_HOURS = 6.7
PRACTICE_BONUS = 0.3
TEMPO_BONUS = 1.2
TEMPO_FLOOR_RATIO = 0.8
TEMPO_PENALTY_BASE = 0.8
TEMPO_PENALTY_SLOPE = 0.25
RECENT_PRACTICE_DAYS = 7
RECENT_PRACTICE_BASE = 0.7
RECENT_PRACTICE_SPAN = 0.6

# ---------- Concert pressure ----------
CONCERT_URGENT_DAYS = 7
CONCERT_NEAR_DAYS = 30
PRESSURE_OVERDUE = 0.5
PRESSURE_URGENT = 0.7
PRESSURE_NEAR = 0.85

# ---------- Priority ----------
PRIORITY_URGENT_BOOST = 1.5
PRIORITY_NEAR_BOOST = 1.2
FOCUS_TAG_BOOST = 1.3
STALE_PRACTICE_DAYS = 3
STALE_PRACTICE_STEP = 0.1
NEVER_PRACTICED_DAYS = 999

# Spot urgency (session selection)
URGENCY_COLOR_WEIGHTS = {"red": 1.0, "yellow": 0.7, "green": 0.4}
URGENCY_OVERDUE_CAP = 0.3
URGENCY_CONCERT_BONUS = 0.4
URGENCY_DIFFICULTY_BONUS = 0.2
URGENCY_STRUGGLE_THRESHOLD = 0.7
URGENCY_STRUGGLE_BONUS = 0.3
PRACTICE_MINUTES_COLOR_BONUS = {"red": 4, "yellow": 2, "green": 1}
DEFAULT_SESSION_MINUTES = 30
DEFAULT_SESSION_MAX_SPOTS = 20

# ---------- Project planning ----------
TARGET_READINESS = 85.0
PLANNING_HORIZON_DAYS = 365
MINUTES_PER_POINT = {1: 1.0, 2: 1.5, 3: 2.0, 4: 3.0, 5: 4.0}
HIGH_SCORE_THRESHOLD = 50.0
HIGH_SCORE_TIME_MULTIPLIER = 2.0
LOW_SCORE_PIECE_THRESHOLD = 60.0
MAX_NAMED_LOW_PIECES = 3
CRITICAL_SPOT_LIMIT = 10
DEFAULT_DAILY_GOAL_MINUTES = 30

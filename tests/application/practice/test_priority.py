from datetime import timedelta

import pytest

from conftest import NOW, make_attempt, make_piece, make_spot
from spotwise.application.config import EngineConfig
from spotwise.application.practice.priority import (
    PracticePriorityRanker,
    recommended_minutes,
    suggest_color,
)
from spotwise.domain.practice.models import PracticeSpot, SpotBounds, SpotColor, SrsState


class FixedAggregator:
    """Stand-in aggregator returning preset piece readiness."""

    def __init__(self, scores):
        self.scores = scores
        self.config = EngineConfig()

    def score(self, piece, concert_date=None, now=None):
        return self.scores[piece.id]


def _piece(piece_id, days_ago=0, **kwargs):
    spot = PracticeSpot(
        id=f"{piece_id}-s",
        piece_id=piece_id,
        page=1,
        bounds=SpotBounds(0.1, 0.1, 0.2, 0.2),
        attempts=(make_attempt(f"{piece_id}-s", 4, days_ago=days_ago),),
    )
    return make_piece(piece_id, spots=[spot], **kwargs)


@pytest.fixture
def ranker():
    return PracticePriorityRanker(
        aggregator=FixedAggregator({"a": 60.0, "b": 60.0, "c": 20.0}),
        clock=lambda: NOW,
    )


# --- Piece priority ---


def test_priority_is_inverted_readiness(ranker):
    assert ranker.priority(_piece("a")) == pytest.approx(40.0)


@pytest.mark.parametrize("days, expected", [(5, 60.0), (7, 60.0), (20, 48.0), (40, 40.0)])
def test_concert_boost(ranker, days, expected):
    concert = NOW + timedelta(days=days)
    assert ranker.priority(_piece("a"), concert_date=concert) == pytest.approx(expected)


def test_focus_tag_boost(ranker):
    piece = _piece("a", tags={"bach"})
    assert ranker.priority(piece, focus_tags=["bach"]) == pytest.approx(52.0)
    assert ranker.priority(piece, focus_tags=["chopin"]) == pytest.approx(40.0)


def test_stale_practice_boost(ranker):
    assert ranker.priority(_piece("a", days_ago=3)) == pytest.approx(40.0)
    assert ranker.priority(_piece("a", days_ago=5)) == pytest.approx(60.0)


def test_never_practiced_piece(ranker):
    piece = make_piece("a", spots=[make_spot("a-s")])
    assert ranker.days_since_practice(piece, NOW) == 999
    assert ranker.priority(piece) == pytest.approx(40.0 * (1 + 0.1 * 999))


def test_rank_pieces_orders_and_breaks_ties_by_id(ranker):
    ranked = ranker.rank_pieces([_piece("b"), _piece("c"), _piece("a")])
    assert [r.piece_id for r in ranked] == ["c", "a", "b"]
    assert ranked[0].priority == pytest.approx(80.0)
    assert ranked[0].days_since_practice == 0


# --- Spot urgency ---


def test_urgency_capped_at_one(ranker):
    spot = make_spot(color=SpotColor.RED, difficulty=3)
    assert ranker.spot_urgency(spot) == 1.0


def test_urgency_green_mastered(ranker):
    spot = make_spot(color=SpotColor.GREEN, qualities=(5, 5, 5), difficulty=1)
    assert ranker.spot_urgency(spot) == pytest.approx(0.44)


def test_urgency_overdue_bonus(ranker):
    base = dict(color=SpotColor.GREEN, qualities=(5, 5, 5), difficulty=1)
    slightly = make_spot(srs=SrsState(next_due=NOW - timedelta(hours=10)), **base)
    very = make_spot(srs=SrsState(next_due=NOW - timedelta(hours=100)), **base)
    assert ranker.spot_urgency(slightly) == pytest.approx(0.54)
    assert ranker.spot_urgency(very) == pytest.approx(0.74)


def test_urgency_concert_bonus(ranker):
    spot = make_spot(color=SpotColor.GREEN, qualities=(5, 5, 5), difficulty=1)
    concert = NOW + timedelta(days=15)
    assert ranker.spot_urgency(spot, concert_date=concert) == pytest.approx(0.64)


def test_urgency_struggle_bonus(ranker):
    # 1 of 3 successful, declared easy
    spot = make_spot(color=SpotColor.GREEN, qualities=(5, 1, 1), difficulty=1)
    assert ranker.spot_urgency(spot) == pytest.approx(0.44 + (0.7 - 1 / 3) * 0.3)


# --- Session selection ---


@pytest.fixture
def session_spots():
    return [
        make_spot("g", color=SpotColor.GREEN, qualities=(5, 5, 5), difficulty=1),
        make_spot("r", color=SpotColor.RED, difficulty=3),
        make_spot("y", color=SpotColor.YELLOW, qualities=(5, 5, 5), difficulty=3),
        make_spot("x", color=SpotColor.RED, difficulty=3, is_active=False),
    ]


def test_recommended_minutes(session_spots):
    g, r, y, _ = session_spots
    assert recommended_minutes(r) == 10
    assert recommended_minutes(y) == 8
    assert recommended_minutes(g) == 5


def test_select_session_fits_budget(ranker, session_spots):
    plan = ranker.select_session(session_spots, target_minutes=20)
    assert [s.id for s in plan.spots] == ["r", "y"]
    assert plan.total_minutes == 18
    assert set(plan.urgencies) == {"r", "y"}


def test_select_session_always_takes_first(ranker, session_spots):
    plan = ranker.select_session(session_spots, target_minutes=5)
    assert [s.id for s in plan.spots] == ["r"]
    assert plan.total_minutes == 10


def test_select_session_max_spots(ranker, session_spots):
    plan = ranker.select_session(session_spots, target_minutes=100, max_spots=2)
    assert [s.id for s in plan.spots] == ["r", "y"]


def test_select_session_skips_deleted(ranker, session_spots):
    plan = ranker.select_session(session_spots, target_minutes=100)
    assert "x" not in [s.id for s in plan.spots]
    assert len(plan.spots) == 3


def test_select_session_empty(ranker):
    plan = ranker.select_session([])
    assert plan.spots == []
    assert plan.total_minutes == 0


# --- Color suggestion ---


@pytest.mark.parametrize(
    "color, qualities, expected",
    [
        (SpotColor.RED, (5, 5), SpotColor.RED),  # too few ratings
        (SpotColor.RED, (5, 5, 5), SpotColor.YELLOW),
        (SpotColor.YELLOW, (5, 4, 3, 3), SpotColor.GREEN),
        (SpotColor.GREEN, (5, 5, 5, 5, 5), SpotColor.GREEN),
        (SpotColor.GREEN, (1, 1, 5), SpotColor.YELLOW),
        (SpotColor.YELLOW, (1, 5, 5, 1, 5), SpotColor.RED),  # two failures
        (SpotColor.RED, (1, 1, 1), SpotColor.RED),
        (SpotColor.YELLOW, (5, 5, 1, 5), SpotColor.YELLOW),
    ],
)
def test_suggest_color(color, qualities, expected):
    assert suggest_color(make_spot(color=color, qualities=qualities)) is expected


def test_suggest_color_uses_latest_five():
    # old failures fall out of the window
    spot = make_spot(color=SpotColor.YELLOW, qualities=(5, 5, 5, 5, 5, 1, 1, 1))
    assert suggest_color(spot) is SpotColor.GREEN


def test_naive_now_and_concert(ranker):
    naive_now = NOW.replace(tzinfo=None)
    concert = (NOW + timedelta(days=15)).replace(tzinfo=None)
    assert ranker.priority(_piece("a", days_ago=5), now=naive_now) == pytest.approx(60.0)

    spot = make_spot(color=SpotColor.GREEN, qualities=(5, 5, 5), difficulty=1)
    assert ranker.spot_urgency(spot, concert_date=concert, now=naive_now) == pytest.approx(0.64)
    plan = ranker.select_session([spot], concert_date=concert, now=naive_now)
    assert [s.id for s in plan.spots] == ["s1"]


def test_days_since_practice_with_naive_now(ranker):
    assert ranker.days_since_practice(_piece("a", days_ago=5), NOW.replace(tzinfo=None)) == 5

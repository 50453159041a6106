from datetime import timedelta

import pytest

from conftest import NOW, make_spot
from spotwise.application.practice.spot_scorer import SpotReadinessScorer
from spotwise.domain.practice.models import ReadinessLevel, SrsState


@pytest.fixture
def scorer():
    return SpotReadinessScorer(clock=lambda: NOW)


def test_no_attempts_scores_zero(scorer):
    assert scorer.score(make_spot()) == 0.0


def test_unrated_attempts_score_zero(scorer):
    spot = make_spot(qualities=(None, None, None))
    breakdown = scorer.breakdown(spot)
    assert breakdown.score == 0.0
    assert breakdown.success_rate is None
    assert breakdown.level is ReadinessLevel.NOT_READY


def test_steady_success_scores_full(scorer):
    spot = make_spot(qualities=(4, 5, 3, 4), difficulty=3)
    assert scorer.score(spot) == pytest.approx(100.0)


def test_recency_blend_and_consistency(scorer):
    # newest first: 2 successes then 4 failures
    spot = make_spot(qualities=(5, 5, 1, 1, 1, 1), difficulty=3)
    b = scorer.breakdown(spot)

    # 0.6 * 33.3 + 0.4 * 40
    assert b.base == pytest.approx(36.0)
    # variance of [1,1,0,0,0,0] = 2/9
    assert b.consistency == pytest.approx(1 - 0.3 * 2 / 9)
    assert b.score == pytest.approx(36.0 * (1 - 0.3 * 2 / 9))


def test_fewer_than_three_rated_has_no_blend(scorer):
    spot = make_spot(qualities=(5, 1), difficulty=3)
    b = scorer.breakdown(spot)
    assert b.base == pytest.approx(50.0)
    assert b.consistency == 1.0


def test_overdue_penalty_by_whole_hours(scorer):
    spot = make_spot(
        qualities=(5, 5, 5),
        difficulty=3,
        srs=SrsState(next_due=NOW - timedelta(hours=10, minutes=30)),
    )
    assert scorer.score(spot) == pytest.approx(90.0)


def test_overdue_penalty_floor(scorer):
    spot = make_spot(
        qualities=(5, 5, 5),
        difficulty=3,
        srs=SrsState(next_due=NOW - timedelta(days=30)),
    )
    assert scorer.score(spot) == pytest.approx(50.0)


def test_not_yet_due_has_no_penalty(scorer):
    spot = make_spot(
        qualities=(5, 5, 5),
        difficulty=3,
        srs=SrsState(next_due=NOW + timedelta(days=3)),
    )
    assert scorer.breakdown(spot).overdue == 1.0


@pytest.mark.parametrize("difficulty, expected", [(1, 100.0), (4, 90.0), (5, 80.0)])
def test_difficulty_multiplier(scorer, difficulty, expected):
    spot = make_spot(qualities=(5, 5, 5), difficulty=difficulty)
    assert scorer.score(spot) == pytest.approx(expected)


def test_injected_clock_matches_explicit_now(scorer):
    spot = make_spot(qualities=(5, 2, 4, 1), srs=SrsState(next_due=NOW - timedelta(hours=5)))
    assert scorer.score(spot) == scorer.score(spot, NOW)


@pytest.mark.parametrize(
    "qualities",
    [
        (5,),
        (1,),
        (1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1),
        (5, 1, 5, 1, 5, 1, 5, 1),
        (5, 5, 5, 5, 5, 5, 5, 5),
        (1,) * 50,
    ],
)
def test_score_always_in_range(scorer, qualities):
    for hours in (0, 5, 100, 10_000):
        spot = make_spot(qualities=qualities, srs=SrsState(next_due=NOW - timedelta(hours=hours)))
        score = scorer.score(spot)
        assert 0.0 <= score <= 100.0


def test_naive_now_is_taken_as_utc(scorer):
    spot = make_spot(
        qualities=(5, 5, 5),
        difficulty=3,
        srs=SrsState(next_due=NOW - timedelta(hours=10)),
    )
    naive = NOW.replace(tzinfo=None)
    assert scorer.score(spot, now=naive) == pytest.approx(90.0)

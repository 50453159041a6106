import asyncio
from datetime import timedelta
from unittest.mock import patch

import pytest

from conftest import NOW, make_piece, make_spot
from spotwise.application.config import EngineConfig
from spotwise.application.practice.service import PracticeService
from spotwise.domain.errors import InvalidInput
from spotwise.domain.practice.models import Project, SpotColor
from spotwise.infrastructure.adapters.memory_store import InMemoryPracticeRepository


@pytest.fixture
def repo():
    chaconne = make_piece(
        "p1",
        spots=[
            make_spot("s1", color=SpotColor.RED, difficulty=4),
            make_spot("s2", color=SpotColor.GREEN, qualities=(5, 5, 5)),
        ],
        total_practice_minutes=30,
    )
    nocturne = make_piece("p2", total_practice_minutes=90)
    project = Project(id="recital", name="Recital", piece_ids=("p1", "p2", "missing"))
    return InMemoryPracticeRepository(pieces=[chaconne, nocturne], projects=[project])


@pytest.fixture
def service(repo):
    return PracticeService(repo, config=EngineConfig(), clock=lambda: NOW)


@pytest.mark.asyncio
async def test_record_attempt_persists(service, repo):
    result = await service.record_attempt("s1", duration_minutes=12, quality=5, note="clean")

    assert result.srs.repetitions == 1
    assert result.srs.next_due == NOW + timedelta(days=1)
    assert result.attempt.id.startswith("att_")
    assert result.attempt.timestamp == NOW

    spot = await repo.get_spot("s1")
    assert spot.srs == result.srs
    assert spot.repeat_count == 1
    assert spot.attempts[0].note == "clean"

    piece = await repo.get_piece("p1")
    assert piece.total_practice_minutes == 42


@pytest.mark.asyncio
async def test_record_attempt_unknown_spot(service):
    with pytest.raises(InvalidInput):
        await service.record_attempt("nope", duration_minutes=5, quality=4)


@pytest.mark.asyncio
async def test_record_attempt_rejects_bad_quality_without_saving(service, repo):
    before = await repo.get_spot("s1")
    with pytest.raises(InvalidInput):
        await service.record_attempt("s1", duration_minutes=5, quality=7)
    assert await repo.get_spot("s1") == before


@pytest.mark.asyncio
async def test_concurrent_attempts_are_serialized(service, repo):
    await asyncio.gather(
        service.record_attempt("s1", duration_minutes=5, quality=4),
        service.record_attempt("s1", duration_minutes=5, quality=4),
        service.record_attempt("s1", duration_minutes=5, quality=4),
    )
    spot = await repo.get_spot("s1")
    assert spot.repeat_count == 3
    assert len(spot.attempts) == 3
    assert spot.srs.repetitions == 3


@pytest.mark.asyncio
async def test_explicit_timestamp(service):
    when = NOW - timedelta(days=2)
    result = await service.record_attempt("s1", duration_minutes=5, quality=3, timestamp=when)
    assert result.srs.next_due == when + timedelta(days=1)


@pytest.mark.asyncio
async def test_spot_readiness(service):
    assert await service.spot_readiness("s1") == 0.0
    assert await service.spot_readiness("s2") > 0.0
    with pytest.raises(InvalidInput):
        await service.spot_readiness("nope")


@pytest.mark.asyncio
async def test_piece_readiness(service):
    assert await service.piece_readiness("p2") == 85.0
    with pytest.raises(InvalidInput):
        await service.piece_readiness("nope")


@pytest.mark.asyncio
async def test_piece_readiness_degrades_to_none(service):
    with patch.object(service.aggregator, "score", side_effect=ZeroDivisionError("boom")):
        assert await service.piece_readiness("p1") is None


@pytest.mark.asyncio
async def test_rank_pieces(service):
    ranked = await service.rank_pieces()
    assert {r.piece_id for r in ranked} == {"p1", "p2"}

    only = await service.rank_pieces(piece_ids=["p2"])
    assert [r.piece_id for r in only] == ["p2"]


@pytest.mark.asyncio
async def test_plan_project_skips_unknown_pieces(service):
    report = await service.plan_project("recital")
    assert [p.piece_id for p in report.piece_scores] == ["p1", "p2"]

    with pytest.raises(InvalidInput):
        await service.plan_project("nope")


@pytest.mark.asyncio
async def test_piece_breakdowns(service):
    everything = await service.piece_breakdowns()
    assert [p.id for p, _ in everything] == ["p1", "p2"]

    (piece, breakdown), = await service.piece_breakdowns("p2")
    assert piece.id == "p2"
    assert breakdown.score == 85.0

    with pytest.raises(InvalidInput):
        await service.piece_breakdowns("nope")


@pytest.mark.asyncio
async def test_plan_session(service):
    plan = await service.plan_session("p1", target_minutes=10)
    assert [s.id for s in plan.spots] == ["s1"]

    with pytest.raises(InvalidInput):
        await service.plan_session("nope")


@pytest.mark.asyncio
async def test_due_spots_after_practice(service):
    assert [s.id for s in await service.due_spots("p1")] == ["s1", "s2"]

    await service.record_attempt("s1", duration_minutes=5, quality=5)
    assert [s.id for s in await service.due_spots("p1")] == ["s2"]
    assert [s.id for s in await service.due_spots("p1", now=NOW + timedelta(days=2))] == [
        "s2",
        "s1",
    ]

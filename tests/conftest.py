from datetime import datetime, timedelta, timezone

import pytest

from spotwise.domain.practice.models import (
    Piece,
    PracticeAttempt,
    PracticeSpot,
    SpotBounds,
    SpotColor,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def mock_home(tmp_path, monkeypatch):
    """Points HOME at a temp dir so no user config.toml leaks into tests."""
    home = tmp_path / "home"
    home.mkdir()

    monkeypatch.setenv("HOME", str(home))
    for key in ("SPOTWISE_BACKEND", "SPOTWISE_SNAPSHOT_PATH", "SPOTWISE_COLOR_WEIGHTS"):
        monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def now():
    return NOW


def make_attempt(spot_id="s1", quality=None, days_ago=0.0, minutes=5.0, idx=0):
    return PracticeAttempt(
        id=f"{spot_id}-a{idx}-{days_ago}",
        spot_id=spot_id,
        timestamp=NOW - timedelta(days=days_ago),
        duration_minutes=minutes,
        quality=quality,
    )


def make_spot(
    spot_id="s1",
    piece_id="p1",
    color=SpotColor.YELLOW,
    qualities=(),
    days_apart=1.0,
    **kwargs,
):
    """
    Spot with one attempt per quality, newest first, ``days_apart`` days
    between them.
    """
    attempts = tuple(
        make_attempt(spot_id, q, days_ago=i * days_apart, idx=i) for i, q in enumerate(qualities)
    )
    return PracticeSpot(
        id=spot_id,
        piece_id=piece_id,
        page=1,
        bounds=SpotBounds(0.1, 0.1, 0.2, 0.2),
        color=color,
        attempts=attempts,
        **kwargs,
    )


def make_piece(piece_id="p1", spots=(), **kwargs):
    kwargs.setdefault("title", piece_id.upper())
    return Piece(id=piece_id, spots=tuple(spots), **kwargs)

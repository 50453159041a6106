"""spotwise CLI — readiness, ranking and planning over a practice snapshot."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer

from spotwise.application.config import resolve_config
from spotwise.application.factory import get_practice_repository
from spotwise.application.practice import PracticeService, spot_phase, suggest_color
from spotwise.domain.errors import InvalidInput
from spotwise.domain.practice.models import as_utc

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="spotwise: spaced-repetition practice planner for musicians.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage spotwise configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

SnapshotArg = Annotated[
    Path, typer.Argument(help="YAML snapshot of pieces and projects.", exists=True, dir_okay=False)
]
JsonOpt = Annotated[bool, typer.Option("--json", help="Output as JSON.")]
ConcertOpt = Annotated[
    str | None, typer.Option("--concert", help="Concert date (ISO 8601) adding deadline pressure.")
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_time(value: str | None, name: str) -> datetime | None:
    if value is None:
        return None
    try:
        return as_utc(datetime.fromisoformat(value))
    except ValueError as e:
        raise typer.BadParameter(f"{name}: expected ISO 8601, got {value!r}") from e


def _service(ctx: typer.Context, snapshot: Path) -> PracticeService:
    # -v count of 0 means "not given", so env/TOML verbosity still applies
    config = resolve_config({"snapshot_path": snapshot, "verbose": ctx.obj.get("verbose") or None})
    if config.verbose > 1:
        logging.getLogger("spotwise").setLevel(logging.DEBUG)
    try:
        repo = get_practice_repository(config)
    except InvalidInput as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1)
    now = ctx.obj.get("now")
    return PracticeService(repo, config=config, clock=(lambda: now) if now else None)


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except InvalidInput as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1)


def _dump(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    now: Annotated[
        str | None,
        typer.Option("--now", help="Pretend the current time is this ISO 8601 timestamp."),
    ] = None,
):
    """Global settings for spotwise."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["now"] = _parse_time(now, "--now")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def score(
    ctx: typer.Context,
    snapshot: SnapshotArg,
    piece: Annotated[str | None, typer.Option(help="Only this piece id.")] = None,
    concert: ConcertOpt = None,
    json_output: JsonOpt = False,
):
    """Show piece readiness with every multiplier."""
    service = _service(ctx, snapshot)
    concert_date = _parse_time(concert, "--concert")

    results = _run(service.piece_breakdowns(piece, concert_date=concert_date))

    if json_output:
        _dump([{**asdict(b), "level": b.level.value} for _, b in results])
        return

    for p, b in results:
        typer.echo(f"{p.title} [{p.id}]  {b.score:.1f}  ({b.level.label})")
        typer.echo(
            f"  spots={b.weighted_mean:.1f}  time x{b.practice_time:.2f}  "
            f"tempo x{b.tempo:.2f}  recent x{b.recent_practice:.2f}  "
            f"concert x{b.concert_pressure:.2f}"
        )


@app.command()
def rank(
    ctx: typer.Context,
    snapshot: SnapshotArg,
    focus: Annotated[
        list[str] | None, typer.Option("--focus", help="Boost pieces carrying this tag.")
    ] = None,
    concert: ConcertOpt = None,
    json_output: JsonOpt = False,
):
    """Rank pieces by what to practice next."""
    service = _service(ctx, snapshot)
    ranked = _run(
        service.rank_pieces(concert_date=_parse_time(concert, "--concert"), focus_tags=focus)
    )

    if json_output:
        _dump([asdict(r) for r in ranked])
        return

    never = service.config.never_practiced_days
    for i, r in enumerate(ranked, start=1):
        idle = "never" if r.days_since_practice >= never else f"{r.days_since_practice}d ago"
        typer.echo(
            f"{i:>2}. {r.title}  priority={r.priority:.1f}  "
            f"readiness={r.readiness:.1f}  last practice: {idle}"
        )


@app.command()
def session(
    ctx: typer.Context,
    snapshot: SnapshotArg,
    piece_id: Annotated[str, typer.Argument(help="Piece to practice.")],
    minutes: Annotated[int, typer.Option(help="Session length in minutes.")] = 30,
    max_spots: Annotated[int, typer.Option(help="Maximum spots in the session.")] = 20,
    concert: ConcertOpt = None,
):
    """Pick the most urgent spots of a piece for a time-boxed session."""
    service = _service(ctx, snapshot)
    plan = _run(
        service.plan_session(
            piece_id,
            target_minutes=minutes,
            max_spots=max_spots,
            concert_date=_parse_time(concert, "--concert"),
        )
    )
    if not plan.spots:
        typer.secho("No active spots.", fg="yellow")
        return

    typer.echo(f"{len(plan.spots)} spots, ~{plan.total_minutes} min")
    for spot in plan.spots:
        label = spot.title or spot.id
        hint = suggest_color(spot)
        change = f"  (suggest {hint.value})" if hint is not spot.color else ""
        typer.echo(
            f"  p.{spot.page} {label}  [{spot.color.value}]  "
            f"urgency={plan.urgencies[spot.id]:.2f}{change}"
        )


@app.command()
def due(
    ctx: typer.Context,
    snapshot: SnapshotArg,
    piece_id: Annotated[str, typer.Argument(help="Piece to check.")],
):
    """List spots that are due now (never scheduled first)."""
    service = _service(ctx, snapshot)
    spots = _run(service.due_spots(piece_id))
    if not spots:
        typer.secho("Nothing due.", fg="green")
        return

    now = service.now()
    for spot in spots:
        phase = spot_phase(spot, now)
        when = spot.srs.next_due.isoformat() if spot.srs and spot.srs.next_due else "-"
        typer.echo(f"  {spot.title or spot.id}  {phase.value}  due={when}")


@app.command()
def plan(
    ctx: typer.Context,
    snapshot: SnapshotArg,
    project_id: Annotated[str, typer.Argument(help="Project to plan.")],
    json_output: JsonOpt = False,
):
    """Project readiness report with feasibility check and advice."""
    service = _service(ctx, snapshot)
    report = _run(service.plan_project(project_id))

    if json_output:
        _dump(asdict(report))
        return

    typer.echo(f"Overall: {report.overall_score:.1f} ({report.level.label})")
    for p in report.piece_scores:
        typer.echo(f"  {p.title}: {p.score:.1f} ({p.level.label}), ~{p.minutes_needed} min to go")
    color = "green" if report.feasible else "red"
    typer.secho(
        f"Time needed: {report.minutes_needed} min of {report.minutes_available:.0f} available",
        fg=color,
    )
    for rec in report.recommendations:
        typer.echo(f"- {rec}")


@app.command()
def schedule(
    ctx: typer.Context,
    snapshot: SnapshotArg,
    spot_id: Annotated[str, typer.Argument(help="Spot that was practiced.")],
    duration: Annotated[float, typer.Option(help="Minutes practiced.")],
    quality: Annotated[int | None, typer.Option(help="Self-rating 1-5.")] = None,
    note: Annotated[str | None, typer.Option(help="Optional note.")] = None,
):
    """Show the SRS update an attempt would produce. The snapshot is not modified."""
    service = _service(ctx, snapshot)
    result = _run(service.record_attempt(spot_id, duration, quality=quality, note=note))

    srs = result.srs
    _dump(
        {
            "spot_id": result.spot_id,
            "successful": result.successful,
            "repeat_count": result.repeat_count,
            "readiness": result.readiness,
            "ease_factor": srs.ease_factor if srs else None,
            "interval_days": srs.interval_days if srs else None,
            "repetitions": srs.repetitions if srs else None,
            "next_due": srs.next_due.isoformat() if srs and srs.next_due else None,
        }
    )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))

from __future__ import annotations

import contextlib
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional

import typer

from chronotrack.core.timing.formatting import format_time
from chronotrack.sdk.config import AppConfig
from chronotrack.sdk.events import GoalReached, HistoryCleared, Notification, SessionArchived
from chronotrack.sdk.log import configure_logging
from chronotrack.sdk.registry import RegistryError
from chronotrack.sdk.runtime import StopwatchEngine

app = typer.Typer(add_completion=False, no_args_is_help=True, help="ChronoTrack stopwatch.")

BAR_WIDTH = 20


@app.callback()
def main(
    ctx: typer.Context,
    data_root: Optional[Path] = typer.Option(
        None, "--data-root", help="Directory holding stopwatch.json and events.jsonl"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log INFO messages to stderr"),
) -> None:
    """Entry point shared by every sub-command."""

    cfg = AppConfig.from_env(data_root)
    try:
        cfg.paths.verify_writeable()
    except OSError as exc:
        typer.echo(f"[chronotrack] {exc}", err=True)
        raise typer.Exit(code=1)
    configure_logging(logging.INFO if verbose else logging.WARNING, cfg.paths.log_file)
    ctx.obj = cfg


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _echo_event(event: Notification) -> None:
    if isinstance(event, GoalReached):
        typer.echo(f"[chronotrack] Goal reached: {format_time(event.threshold_ms)}")
    elif isinstance(event, SessionArchived):
        s = event.session
        typer.echo(f"[chronotrack] Session saved: {format_time(s.total_time)}, {len(s.laps)} laps")
    elif isinstance(event, HistoryCleared):
        typer.echo(f"[chronotrack] History cleared ({event.removed} sessions)")


@contextlib.contextmanager
def _open_engine(ctx: typer.Context) -> Iterator[StopwatchEngine]:
    # every command is a fresh process, so a running timer keeps counting between them
    cfg = ctx.obj.model_copy(update={"count_downtime": True})
    try:
        engine = StopwatchEngine.from_config(cfg)
    except RegistryError as exc:
        typer.echo(f"[chronotrack] {exc}", err=True)
        raise typer.Exit(code=1)
    with engine:
        engine.subscribe(_echo_event)
        engine.load()
        yield engine


def _progress_bar(fraction: float) -> str:
    filled = int(fraction * BAR_WIDTH)
    return "[" + "#" * filled + "-" * (BAR_WIDTH - filled) + f"] {int(fraction * 100)}%"


def _render_status(engine: StopwatchEngine) -> None:
    snap = engine.snapshot()
    typer.echo(f"{snap.elapsed_text}  {'running' if snap.running else 'paused'}")
    if snap.goal_ms is not None:
        typer.echo(f"Goal {format_time(snap.goal_ms)} {_progress_bar(snap.goal_progress)}")
    for lap in snap.laps:
        mark = f"  ({lap.mark})" if lap.mark else ""
        typer.echo(f"Lap {lap.number:>3}  {lap.lap_time_text}  {lap.total_time_text}{mark}")


def _render_history(engine: StopwatchEngine, limit: Optional[int] = None) -> None:
    sessions = engine.sessions[:limit] if limit else engine.sessions
    if not sessions:
        typer.echo("No sessions yet.")
        return
    for s in sessions:
        typer.echo(f"{s.date}  {format_time(s.total_time)}  {len(s.laps)} laps  {s.id}")


def _report_goal(threshold_ms: Optional[int]) -> None:
    if threshold_ms is None:
        typer.echo("Goal cleared.")
    else:
        typer.echo(f"Goal set to {format_time(threshold_ms)}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def status(ctx: typer.Context) -> None:
    """Show elapsed time, goal progress and the laps of the current run."""

    with _open_engine(ctx) as engine:
        _render_status(engine)


@app.command()
def toggle(ctx: typer.Context) -> None:
    """Start the stopwatch, or pause it when running."""

    with _open_engine(ctx) as engine:
        running = engine.start_or_stop()
        typer.echo(f"{'Started' if running else 'Paused'} at {format_time(engine.elapsed_ms)}")


@app.command()
def lap(ctx: typer.Context) -> None:
    """Record a lap split (ignored while paused)."""

    with _open_engine(ctx) as engine:
        recorded = engine.record_lap()
        if recorded is None:
            typer.echo("Not running; no lap recorded.")
        else:
            typer.echo(
                f"Lap {recorded.number}  {format_time(recorded.lap_time)}  {format_time(recorded.total_time)}"
            )


@app.command()
def reset(ctx: typer.Context) -> None:
    """Archive the current run into history and reset to zero."""

    with _open_engine(ctx) as engine:
        if engine.reset_and_archive() is None:
            typer.echo("Nothing to archive; reset.")


@app.command()
def goal(
    ctx: typer.Context,
    seconds: str = typer.Argument(..., help="Goal in seconds, e.g. 60 or 90.5; 0 or 'off' clears it"),
) -> None:
    """Set or clear the elapsed-time goal."""

    with _open_engine(ctx) as engine:
        _report_goal(engine.set_goal(seconds))


@app.command()
def history(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Show only the newest N"),
) -> None:
    """List archived sessions, newest first."""

    with _open_engine(ctx) as engine:
        _render_history(engine, limit)


@app.command("clear-history")
def clear_history(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete every archived session."""

    if not yes:
        typer.confirm("Delete all archived sessions?", abort=True)
    with _open_engine(ctx) as engine:
        engine.clear_history()


@app.command()
def run(ctx: typer.Context) -> None:
    """Interactive mode: one command per line while the timer ticks."""

    with _open_engine(ctx) as engine:
        def _lap(_: str) -> None:
            recorded = engine.record_lap()
            if recorded is not None:
                typer.echo(f"Lap {recorded.number}  {format_time(recorded.lap_time)}")

        actions: Dict[str, Callable[[str], None]] = {
            "s": lambda _: engine.start_or_stop(),
            "l": _lap,
            "r": lambda _: engine.reset_and_archive(),
            "g": lambda arg: _report_goal(engine.set_goal(arg)),
            "h": lambda _: _render_history(engine),
            "c": lambda _: engine.clear_history(),
            "": lambda _: None,
        }
        typer.echo("s=start/stop  l=lap  r=reset  g <sec>=goal  h=history  c=clear history  q=quit")
        while True:
            typer.echo("> ", nl=False)
            line = sys.stdin.readline()
            if not line:
                break
            cmd, _, arg = line.strip().partition(" ")
            cmd = cmd.lower()[:1]
            if cmd == "q":
                break
            action = actions.get(cmd)
            if action is None:
                typer.echo(f"Unknown command {line.strip()!r}")
                continue
            action(arg.strip())
            _render_status(engine)


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8765, help="Bind port"),
) -> None:
    """Serve the HTTP API with uvicorn."""

    import uvicorn

    from chronotrack.apps.ui_api.main import create_app

    uvicorn.run(create_app(config=ctx.obj), host=host, port=port)


if __name__ == "__main__":
    app()

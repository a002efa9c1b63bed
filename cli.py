"""CLI commands for attendance poll management."""

from datetime import UTC, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import typer
from pydantic import ValidationError

from attendance.config.settings import settings
from attendance.polls import clock
from attendance.polls.dtos import DeadlineAfterEventError, InvalidFormatError
from attendance.polls.engine import AttendanceEngine
from attendance.polls.repository.snapshot import Snapshot
from attendance.polls.repository.store import EventStore

app = typer.Typer(help="CLI commands for attendance poll management")


def _load_store(snapshot_path: Path) -> EventStore | None:
    """Read the snapshot without touching the file, unlike the server startup."""
    if not snapshot_path.exists():
        typer.secho(f"No snapshot at {snapshot_path}", fg=typer.colors.YELLOW)
        return None
    try:
        snapshot = Snapshot.model_validate_json(snapshot_path.read_bytes())
    except (OSError, ValidationError) as e:
        typer.secho(f"Snapshot at {snapshot_path} is unreadable: {e}", fg=typer.colors.RED)
        raise typer.Exit(1)
    store = EventStore(snapshot_path)
    store.restore(snapshot)
    return store


@app.command()
def serve(
    host: str = typer.Option(settings.app_host, "--host", help="Interface to bind"),
    port: int = typer.Option(settings.app_port, "--port", "-p", help="Port to listen on"),
):
    """Run the attendance poll API."""
    import uvicorn

    uvicorn.run("attendance.main:app", host=host, port=port, log_level="info")


@app.command()
def list_polls(
    snapshot: Path = typer.Option(
        settings.snapshot_path,
        "--snapshot",
        "-s",
        help="Path to the snapshot file",
    ),
):
    """List every poll in the snapshot."""
    store = _load_store(snapshot)
    if store is None:
        return
    if not len(store):
        typer.secho("No polls yet", fg=typer.colors.YELLOW)
        return

    engine = AttendanceEngine(store, config=settings)
    for event in sorted(store, key=lambda e: e.event_date):
        view = engine.render_view(event)
        state = engine.state_of(event)
        typer.secho(f"{event.id}", fg=typer.colors.CYAN)
        typer.secho(f"  {view.title}", fg=typer.colors.BLUE)
        typer.secho(
            f"  {len(view.signed_up_names)} signed up, "
            f"{len(view.signed_off_names)} signed off ({state.value})",
            fg=typer.colors.GREEN,
        )


@app.command()
def show_poll(
    event_id: str = typer.Argument(
        ...,
        help="Poll id",
    ),
    snapshot: Path = typer.Option(
        settings.snapshot_path,
        "--snapshot",
        "-s",
        help="Path to the snapshot file",
    ),
):
    """Show the roster of one poll."""
    store = _load_store(snapshot)
    event = store.get(event_id) if store else None
    if event is None:
        typer.secho(f"Poll not found: {event_id}", fg=typer.colors.RED)
        raise typer.Exit(1)

    view = AttendanceEngine(store, config=settings).render_view(event)
    typer.secho(view.title, fg=typer.colors.GREEN)
    typer.echo(view.description)
    typer.secho(f"Registration open until: {view.deadline_text}", fg=typer.colors.BLUE)
    typer.echo()
    typer.secho(view.signed_up_header, fg=typer.colors.GREEN)
    typer.echo(view.signed_up_text)
    typer.echo()
    typer.secho(view.signed_off_header, fg=typer.colors.RED)
    typer.echo(view.signed_off_text)


@app.command()
def check_date(
    date_text: str = typer.Argument(
        ...,
        help="Format: YYYY-MM-DD HH:MM",
    ),
    deadline_minutes: float = typer.Option(
        None,
        "--deadline-minutes",
        "-m",
        help="Minutes until the registration deadline (default: 24h before the event)",
    ),
):
    """Validate an event date and show the deadline a new poll would get."""
    tz = ZoneInfo(settings.timezone)
    fmt = settings.datetime_display_format
    try:
        event_date = clock.parse_event_datetime(date_text, tz)
        deadline = clock.compute_deadline(
            event_date, explicit_minutes=deadline_minutes, now=datetime.now(UTC)
        )
        if deadline >= event_date:
            raise DeadlineAfterEventError(deadline=deadline, event_date=event_date)
    except (InvalidFormatError, DeadlineAfterEventError) as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)

    typer.secho(f"Event:    {clock.format_timestamp(event_date, tz, fmt)}", fg=typer.colors.GREEN)
    typer.secho(f"Deadline: {clock.format_timestamp(deadline, tz, fmt)}", fg=typer.colors.BLUE)


if __name__ == "__main__":
    app()

"""Command-line interface for the activity monitor."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config import MonitorSettings
from .paths import get_details_path, get_log_path, get_sessions_path

app = typer.Typer(help="Record mouse and keyboard activity as replayable sessions.")


@app.callback(no_args_is_help=True)
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    log_file: bool = typer.Option(
        False, "--log-file", help="Also write logs to the application data directory."
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if log_file:
        handler = logging.FileHandler(get_log_path(), encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        logging.getLogger().addHandler(handler)


@app.command()
def record(
    task: Optional[str] = typer.Option(
        None, "--task", "-t", help="Label for the session being recorded."
    ),
    sessions_path: Optional[Path] = typer.Option(
        None,
        "--sessions",
        path_type=Path,
        help="Location of the sessions CSV file.",
    ),
    details_path: Optional[Path] = typer.Option(
        None,
        "--details",
        path_type=Path,
        help="Location of the latest-session detail CSV file.",
    ),
    poll_ms: float = typer.Option(
        50.0,
        "--interval",
        min=5.0,
        help="Polling interval in milliseconds.",
    ),
) -> None:
    """Record one session until interrupted with Ctrl-C."""
    from .errors import MonitorError
    from .monitor import create_monitor

    settings = MonitorSettings.from_intervals(
        poll_ms=poll_ms, require_task_name=False, include_task_name=True
    )
    monitor = create_monitor(
        sessions_path or get_sessions_path(),
        details_path or get_details_path(),
        settings,
    )
    try:
        session_id = monitor.start(task)
    except MonitorError as exc:
        typer.echo(f"Could not start recording: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Recording session {session_id}. Press Ctrl-C to stop.")
    monitor.run_forever()
    for notice in monitor.recorder.drain_notices():
        typer.echo(notice)


@app.command()
def sessions(
    sessions_path: Optional[Path] = typer.Option(
        None, "--sessions", path_type=Path, help="Location of the sessions CSV file."
    ),
) -> None:
    """List recorded sessions."""
    from .reporting import SessionPrinter

    SessionPrinter(sessions_path or get_sessions_path()).print_sessions()


@app.command()
def show(
    session_id: str = typer.Argument(..., help="Identifier such as 20240120_123456."),
    sessions_path: Optional[Path] = typer.Option(
        None, "--sessions", path_type=Path, help="Location of the sessions CSV file."
    ),
) -> None:
    """Print the action timeline of a recorded session."""
    from .reporting import SessionPrinter

    if not SessionPrinter(sessions_path or get_sessions_path()).print_session(session_id):
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the control API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the control API."
    ),
    sessions_path: Optional[Path] = typer.Option(
        None, "--sessions", path_type=Path, help="Location of the sessions CSV file."
    ),
    details_path: Optional[Path] = typer.Option(
        None,
        "--details",
        path_type=Path,
        help="Location of the latest-session detail CSV file.",
    ),
    poll_ms: float = typer.Option(
        50.0,
        "--interval",
        min=5.0,
        help="Polling interval in milliseconds.",
    ),
    require_task: bool = typer.Option(
        True,
        "--require-task/--no-require-task",
        help="Reject session starts without a task name.",
    ),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the interactive API docs in your default browser.",
    ),
) -> None:
    """Start the control API with the background monitor."""
    from .server_runner import run_dashboard

    settings = MonitorSettings.from_intervals(
        poll_ms=poll_ms, require_task_name=require_task, include_task_name=True
    )
    run_dashboard(
        host=host,
        port=port,
        sessions_path=sessions_path or get_sessions_path(),
        details_path=details_path or get_details_path(),
        settings=settings,
        open_browser=open_browser,
    )

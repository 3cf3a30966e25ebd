"""CLI commands for FocusFlow using Typer."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from focusflow import __version__
from focusflow.core.config import AuthConfig, get_config

app = typer.Typer(
    name="focusflow",
    help="Focus sessions, task board and distraction log.",
    add_completion=False,
)

console = Console()


def setup_logging(log_level: str, log_file: Path | None = None) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    # Reduce noise from external libraries
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


@app.command()
def serve(
    host: str = typer.Option(None, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(None, "--port", "-p", help="Port to bind to"),
    log_level: str = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
    log_to_file: bool = typer.Option(False, "--log-file", help="Also write logs to the log directory"),
) -> None:
    """Run the FocusFlow API server."""
    config = get_config()
    config.ensure_directories()

    log_level = log_level or config.log_level
    setup_logging(log_level, config.log_dir / "focusflow.log" if log_to_file else None)

    host = host or config.web.host
    port = port or config.web.port

    console.print("[green]Starting FocusFlow API...[/green]")
    console.print(f"Listening on [blue]http://{host}:{port}[/blue]")
    console.print("Press Ctrl+C to stop\n")

    from focusflow.web.app import run_server

    try:
        run_server(host=host, port=port, log_level=log_level.lower())
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped[/yellow]")


@app.command(name="init-db")
def init_db() -> None:
    """Create the SQLite database and schema."""
    config = get_config()
    config.ensure_directories()

    async def create() -> bool:
        from focusflow.storage.database import Database

        db = Database(config.db_path)
        await db.connect()
        try:
            return await db.check_integrity()
        finally:
            await db.close()

    try:
        ok = asyncio.run(create())
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not ok:
        console.print(f"[red]Integrity check failed for {config.db_path}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Database ready:[/green] {config.db_path}")


@app.command()
def backup(
    backup_dir: Path = typer.Option(None, "--dir", "-d", help="Directory for the backup copy"),
) -> None:
    """Copy the SQLite database to a timestamped backup file."""
    from focusflow.storage.database import Database

    config = get_config()
    if not config.db_path.exists():
        console.print("[yellow]No database found. Run 'focusflow init-db' first.[/yellow]")
        raise typer.Exit(1)

    path = Database(config.db_path).backup(backup_dir)
    console.print(f"[green]Backup written to[/green] {path}")


@app.command(name="config-show")
def config_show() -> None:
    """Show current configuration."""
    config = get_config()

    table = Table(title="FocusFlow Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("[bold]Paths[/bold]", "")
    table.add_row("  Data Directory", str(config.data_dir))
    table.add_row("  Log Directory", str(config.log_dir))
    table.add_row("  Config File", str(config.config_file))
    table.add_row("  Database", str(config.db_path))

    table.add_row("[bold]Timer[/bold]", "")
    table.add_row("  Work", f"{config.timer.work_minutes} min")
    table.add_row("  Short Break", f"{config.timer.short_break_minutes} min")
    table.add_row("  Long Break", f"{config.timer.long_break_minutes} min")
    table.add_row("  Sessions per Cycle", str(config.timer.sessions_per_cycle))

    table.add_row("[bold]Storage[/bold]", "")
    table.add_row("  Backend", config.storage.backend)
    table.add_row("  Outbox Flush", f"{config.outbox.flush_interval_seconds}s")

    table.add_row("[bold]Auth[/bold]", "")
    table.add_row("  Cookie", config.auth.cookie_name)
    table.add_row("  HTTPS Only", str(config.auth.https_only))
    default_secret = AuthConfig().session_secret
    table.add_row(
        "  Session Secret",
        "[yellow]Default (set FOCUSFLOW_AUTH__SESSION_SECRET)[/yellow]"
        if config.auth.session_secret == default_secret else "***",
    )

    table.add_row("[bold]Web[/bold]", "")
    table.add_row("  URL", f"http://{config.web.host}:{config.web.port}")

    console.print(table)


@app.command(name="config-init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Write the current configuration to the YAML config file."""
    config = get_config()
    if config.config_file.exists() and not force:
        console.print(f"[yellow]Config already exists:[/yellow] {config.config_file}")
        raise typer.Exit(1)

    config.save()
    console.print(f"[green]Config written to[/green] {config.config_file}")


@app.command()
def stats(
    email: str = typer.Argument(..., help="Account email"),
    year: int = typer.Option(None, "--year", "-y", help="Heatmap year (default: current)"),
) -> None:
    """Show focus statistics for a user."""
    config = get_config()
    year = year or datetime.now().year

    async def load():
        from focusflow.storage import create_storage

        storage = create_storage(config)
        await storage.connect()
        try:
            user = await storage.get_user_by_email(email.strip().lower())
            if user is None:
                return None, None, None
            return (
                user,
                await storage.get_session_stats(user.id),
                await storage.get_heatmap_data(user.id, year),
            )
        finally:
            await storage.close()

    try:
        user, session_stats, heatmap = asyncio.run(load())
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if user is None:
        console.print(f"[red]No user with email {email}[/red]")
        raise typer.Exit(1)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Total Sessions", str(session_stats.total_sessions))
    table.add_row("Focused Hours", f"{session_stats.total_hours:.1f}")
    table.add_row("Completion Rate", f"{session_stats.completion_rate:.0f}%")
    table.add_row("Distraction Free", f"{session_stats.distraction_free_rate:.0f}%")
    table.add_row("Current Streak", f"{session_stats.current_streak} days")
    table.add_row("Longest Streak", f"{session_stats.longest_streak} days")
    table.add_row("Best Day", session_stats.best_day or "-")
    table.add_row("Best Hour", f"{session_stats.best_hour:02d}:00")
    table.add_row(f"Active Days {year}", str(len(heatmap)))
    table.add_row(f"Completed {year}", str(sum(heatmap.values())))

    console.print(Panel(table, title=f"FocusFlow Stats - {user.email}", border_style="green"))


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"FocusFlow v{__version__}")


@app.callback()
def main_callback() -> None:
    """FocusFlow - focus sessions, task board and distraction log."""
    pass


if __name__ == "__main__":
    app()

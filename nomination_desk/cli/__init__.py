"""
Command Line Interface for Nomination Desk.
"""

import asyncio
from typing import Optional

import typer
import uvicorn
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..admin.services import AdminReviewService
from ..awards import AWARD_CATEGORIES
from ..config import get_settings
from ..db.base import get_session_local, init_database
from ..db.services import NominationNotFound, StoreError
from ..log_config import configure_logging
from ..notifications import get_mailer
from ..reminders import ReminderDispatcher
from ..schemas.enums import NominationStatus

app = typer.Typer(help="Nomination Desk - TPAHLA nomination wizard and admin tools")
console = Console()

STATUS_STYLES = {
    "draft": "yellow",
    "incomplete": "bright_yellow",
    "submitted": "cyan",
    "approved": "green",
    "rejected": "red",
}


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    dev: bool = typer.Option(False, help="Run in development mode with reload"),
):
    """Start the API server."""
    settings = get_settings()
    rprint(Panel.fit("Starting Nomination Desk", style="bold blue"))
    uvicorn.run(
        "nomination_desk.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=dev or settings.debug,
        workers=1 if (dev or settings.debug) else settings.api_workers,
    )


@app.command("init-db")
def init_db():
    """Create all database tables."""
    configure_logging()
    asyncio.run(init_database())
    console.print("✅ Database initialized")


@app.command("list")
def list_nominations(
    status: Optional[NominationStatus] = typer.Option(None, help="Only this status"),
    search: Optional[str] = typer.Option(None, help="Match id, nominee, email or category"),
    page: int = typer.Option(1, min=1),
    page_size: int = typer.Option(20, min=1, max=200),
):
    """List nominations, newest first."""
    db = get_session_local()()
    try:
        result = AdminReviewService(db).list_nominations(
            status=status, search=search, page=page, page_size=page_size
        )
    except StoreError as exc:
        console.print(f"❌ {exc.message}")
        raise typer.Exit(code=1)
    finally:
        db.close()

    if not result.items:
        console.print(result.message or "No nominations found")
        return

    table = Table(
        title=f"Nominations (page {result.page}/{result.pages}, {result.total} total)",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("ID", style="dim")
    table.add_column("Nominee", style="cyan")
    table.add_column("Category")
    table.add_column("Status")
    table.add_column("Created")

    for nomination in result.items:
        style = STATUS_STYLES.get(nomination.status, "white")
        table.add_row(
            nomination.id,
            nomination.nominee_name,
            nomination.award_category_id or "-",
            f"[{style}]{nomination.status}[/{style}]",
            nomination.created_at.strftime("%Y-%m-%d") if nomination.created_at else "-",
        )

    console.print(table)


@app.command()
def remind(
    nomination_id: Optional[str] = typer.Option(None, "--id", help="Remind one nomination"),
    send_to_all: bool = typer.Option(False, "--all", help="Remind every unfinished nomination"),
    site_url: Optional[str] = typer.Option(None, help="Base URL for continuation links"),
):
    """Email continuation links to nominators."""
    if not nomination_id and not send_to_all:
        console.print("❌ Pass --id or --all")
        raise typer.Exit(code=2)

    configure_logging()
    db = get_session_local()()
    try:
        report = ReminderDispatcher(db, get_mailer()).dispatch(
            nomination_id=nomination_id, send_to_all=send_to_all, site_url=site_url
        )
    except NominationNotFound as exc:
        console.print(f"❌ {exc.message}")
        raise typer.Exit(code=1)
    except StoreError as exc:
        console.print(f"❌ {exc.message}")
        raise typer.Exit(code=1)
    finally:
        db.close()

    if report.message:
        console.print(report.message)
    for result in report.results:
        mark = "✅" if result.success else "❌"
        console.print(f"{mark} {result.nomination_id} {result.email or 'N/A'} {result.error or ''}")
    console.print(f"Sent: {report.success_count}, failed: {report.failure_count}")


@app.command()
def categories():
    """Show the award category catalog."""
    table = Table(title="Award Categories", show_header=True, header_style="bold cyan")
    table.add_column("Category", style="yellow")
    table.add_column("Award")
    table.add_column("Value", style="dim")

    for category in AWARD_CATEGORIES:
        for index, award in enumerate(category.awards):
            table.add_row(category.title if index == 0 else "", award.name, award.value)

    console.print(table)


@app.command()
def version():
    """Show version information."""
    from .. import __version__

    rprint(Panel.fit(f"Nomination Desk v{__version__}", style="bold green"))


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()

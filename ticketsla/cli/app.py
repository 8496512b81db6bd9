"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.json_ticket_store import JsonTicketStore
from ..adapters.service_data_client import ServiceDataClient
from ..config import AppConfig, get_default_config_path
from ..domain.business_hours import BusinessHoursCalculator
from ..domain.exceptions import TicketSlaError
from ..domain.tickets import PLACEHOLDER, ManualTicket, combine_date_time
from ..services.ticket_report import CSV_HEADERS, TicketReportService

app = typer.Typer(
    name="ticketsla",
    help="Working-hours SLA report for manual support tickets",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
RemoteOption = Annotated[
    bool,
    typer.Option("--remote", help="Use the dashboard API instead of the local JSON file.")
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """
    Load the explicit config file, else ./config.yaml if present, else defaults.
    """
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    config_path = get_default_config_path()
    if config_path.exists():
        return AppConfig.load_from_yaml(config_path)

    logger.info("No config file at %s, using default settings", config_path)
    return AppConfig()


def _build_service(config: AppConfig, remote: bool) -> TicketReportService:
    if remote:
        if config.api is None:
            raise ValueError("No 'api' section configured; --remote needs api.base_url.")
        store = ServiceDataClient(
            base_url=config.api.base_url,
            service_id=config.api.service_id,
            timeout=config.api.timeout
        )
    else:
        store = JsonTicketStore(config.data_file)

    calculator = BusinessHoursCalculator(config.build_working_hours())
    return TicketReportService(calculator=calculator, store=store)


def _parse_filters(filters: List[str]) -> Dict[str, str]:
    """Parse ``key=value`` filter arguments."""
    parsed: Dict[str, str] = {}
    for item in filters:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid filter '{item}', expected key=value")
        parsed[key.strip()] = value.strip()
    return parsed


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Errore:[/bold red] {error}")
    raise typer.Exit(1)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Working-hours SLA report for manual support tickets.
    """
    _configure_logging(verbose)


@app.command()
def diff(
    start: Annotated[str, typer.Argument(help="Start timestamp (ISO 8601)")],
    end: Annotated[str, typer.Argument(help="End timestamp (ISO 8601)")],
    config_file: ConfigOption = None,
):
    """
    Show the working time elapsed between two timestamps.

    Examples:

        ticketsla diff 2024-01-05T19:00 2024-01-08T09:00
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    calculator = BusinessHoursCalculator(config.build_working_hours())
    console.print(calculator.compute_working_duration(start, end) or PLACEHOLDER)


@app.command()
def check(
    timestamp: Annotated[str, typer.Argument(help="Timestamp to classify (ISO 8601)")],
    config_file: ConfigOption = None,
):
    """
    Tell whether a timestamp falls outside working hours.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    calculator = BusinessHoursCalculator(config.build_working_hours())
    if calculator.is_out_of_hours(timestamp):
        console.print("[yellow]Fuori orario: Sì[/yellow]")
    else:
        console.print("[green]Fuori orario: No[/green]")


@app.command()
def report(
    config_file: ConfigOption = None,
    remote: RemoteOption = False,
    search: Annotated[Optional[str], typer.Option("--search", "-s", help="Search platform, user, moderator, threshold and text.")] = None,
    filters: Annotated[Optional[List[str]], typer.Option("--filter", "-f", help="Column filter key=value (e.g. soglia=KO, flags=Risposto).")] = None,
    export: Annotated[Optional[Path], typer.Option("--export", "-e", help="Write the report to a CSV file.")] = None,
):
    """
    Show the manual ticket report with working-time differences.

    Examples:

        ticketsla report
        ticketsla report --search facebook --filter soglia=KO
        ticketsla report --remote --export report.csv
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config, remote)
        rows = service.report(search=search, column_filters=_parse_filters(filters or []))

        if export is not None:
            count = service.export_csv(rows, export)
            console.print(f"[green]✓ {count} ticket esportati in {export}[/green]")
            return

    except (FileNotFoundError, ValueError, TicketSlaError) as e:
        _fail(e)

    if not rows:
        console.print("[yellow]Nessun ticket trovato.[/yellow]")
        return

    table = Table(
        title="Report Ticket Manuale",
        show_header=True,
        header_style="bold cyan"
    )
    for header in CSV_HEADERS:
        table.add_column(header, justify="center" if header in ("Fuori orario", "Diff.", "Soglia", "Flag") else "left")

    for row in rows:
        table.add_row(*service.display_values(row))

    console.print()
    console.print(table)
    console.print()


@app.command()
def add(
    platform: Annotated[str, typer.Option("--platform", "-p", help="Platform, e.g. 'Facebook Pubblico'")],
    user: Annotated[str, typer.Option("--user", "-u", help="User name")],
    asked_date: Annotated[str, typer.Option("--asked-date", help="Question date (YYYY-MM-DD)")],
    asked_time: Annotated[str, typer.Option("--asked-time", help="Question time (HH:mm)")],
    handled_date: Annotated[Optional[str], typer.Option("--handled-date", help="Handling date (YYYY-MM-DD)")] = None,
    handled_time: Annotated[Optional[str], typer.Option("--handled-time", help="Handling time (HH:mm)")] = None,
    moderator: Annotated[Optional[str], typer.Option("--moderator", "-m")] = None,
    threshold: Annotated[Optional[str], typer.Option("--threshold", help="OK or KO")] = None,
    main_action: Annotated[Optional[str], typer.Option("--action", help="Risposto, Nascosto, Reaction or Ignorato")] = None,
    forward_action: Annotated[str, typer.Option("--forward", help="Inoltrato al BO or Rilasciato al FO")] = "",
    text: Annotated[str, typer.Option("--text", "-t", help="Question text")] = "",
    config_file: ConfigOption = None,
    remote: RemoteOption = False,
):
    """
    Record a new manual ticket.
    """
    try:
        config = _load_config(config_file)
        asked_at = combine_date_time(asked_date, asked_time, config.timezone)
        if asked_at is None:
            raise ValueError(f"Invalid question date/time: {asked_date} {asked_time}")

        handled_at = None
        if handled_date or handled_time:
            handled_at = combine_date_time(handled_date, handled_time, config.timezone)
            if handled_at is None:
                raise ValueError(
                    f"Invalid handling date/time: {handled_date or '?'} {handled_time or '?'} "
                    "(both --handled-date and --handled-time are required)"
                )

        ticket = ManualTicket(
            platform=platform,
            user_name=user,
            content=text,
            asked_at=asked_at,
            handled_at=handled_at,
            moderator=moderator,
            threshold=threshold,
            main_action=main_action,
            forward_action=forward_action,
        )

        service = _build_service(config, remote)
        saved = service.save_ticket(ticket)

    except (FileNotFoundError, ValueError, TicketSlaError) as e:
        _fail(e)

    console.print(f"[green]✓ Ticket per {saved.user_name} salvato ({saved.id})[/green]")


@app.command()
def delete(
    ticket_id: Annotated[str, typer.Argument(help="Ticket id")],
    config_file: ConfigOption = None,
    remote: RemoteOption = False,
):
    """
    Delete a manual ticket.
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config, remote)
        deleted = service.delete_ticket(ticket_id)
    except (FileNotFoundError, ValueError, TicketSlaError) as e:
        _fail(e)

    console.print(f"[green]✓ Ticket per {deleted.user_name} eliminato[/green]")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]ticketsla[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

"""
Main CLI application using Typer.
"""

import json
import logging
from pathlib import Path
from typing import NoReturn, Optional, Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.panel import Panel

from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import CraftsmanNotFoundError, DataAccessError, ValidationError
from ..domain.models import WEEKDAY_NAMES, format_slot_display
from ..adapters.api_client import CraftsmanApiClient
from ..adapters.json_repository import JsonCraftsmanRepository
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="craftslot",
    help="Check craftsman availability and find alternative appointment slots",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

EXIT_DATA_ERROR = 1
EXIT_VALIDATION = 2
EXIT_NOT_FOUND = 3

DAY_LABELS = {
    "monday": "Montag",
    "tuesday": "Dienstag",
    "wednesday": "Mittwoch",
    "thursday": "Donnerstag",
    "friday": "Freitag",
    "saturday": "Samstag",
    "sunday": "Sonntag"
}

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="Mock-Daten nutzen statt der Backend-API.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Ausführliche Log-Ausgabe.")]
JsonOption = Annotated[bool, typer.Option("--json", help="Ergebnis als JSON ausgeben.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True
    )


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    """
    Load the configuration file.

    In mock mode a missing config file falls back to the defaults.
    """
    config_path = config_file or get_default_config_path()
    if mock and not config_path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _build_service(config: AppConfig, mock: bool) -> AvailabilityService:
    if mock:
        repository = JsonCraftsmanRepository(data_file=config.data_file, timezone=config.timezone)
    else:
        if config.api is None:
            raise ValueError(
                "No 'api' section configured. Add it to config.yaml or use --mock."
            )
        repository = CraftsmanApiClient.from_config(config.api, timezone=config.timezone)

    return AvailabilityService.from_config(config, repository)


def _setup(config_file: Optional[Path], mock: bool, verbose: bool) -> AvailabilityService:
    _configure_logging(verbose)
    try:
        config = _load_config(config_file, mock)
        if mock:
            console.print("[yellow]⚠  MOCK-MODUS: Verwende Test-Daten[/yellow]\n")
        return _build_service(config, mock)
    except (FileNotFoundError, ValueError, DataAccessError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(EXIT_DATA_ERROR)


def _fail(error: Exception) -> NoReturn:
    """Print an error and exit with the code of its category."""
    if isinstance(error, ValidationError):
        console.print(f"[bold red]Ungültige Eingabe:[/bold red] {error}")
        raise typer.Exit(EXIT_VALIDATION)
    if isinstance(error, CraftsmanNotFoundError):
        console.print(f"[bold red]Nicht gefunden:[/bold red] Handwerker {error.craftsman_id} existiert nicht.")
        raise typer.Exit(EXIT_NOT_FOUND)
    console.print(f"[bold red]Fehler:[/bold red] {error}")
    raise typer.Exit(EXIT_DATA_ERROR)


@app.command()
def check(
    craftsman_id: Annotated[str, typer.Argument(help="ID des Handwerkers")],
    date: Annotated[str, typer.Argument(help="Datum (YYYY-MM-DD)")],
    time: Annotated[Optional[str], typer.Option("--time", "-t", help="Uhrzeit (H:MM)")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
    as_json: JsonOption = False,
):
    """
    Check whether a craftsman is available on a date (and optionally a time).

    Examples:

        craftslot check 1 2026-11-23 --time 10:00 --mock
    """
    service = _setup(config_file, mock, verbose)

    try:
        result = service.check_availability(craftsman_id, date, time)
    except (ValidationError, CraftsmanNotFoundError, DataAccessError) as e:
        _fail(e)

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
        return

    if result.available:
        console.print("[bold green]✓ Verfügbar[/bold green]")
    else:
        console.print(f"[bold red]✗ Nicht verfügbar:[/bold red] {result.reason}")

    if result.working_hours:
        console.print(f"   Arbeitszeiten: {', '.join(result.working_hours)}")

    if result.appointments:
        console.print("\n[bold]Termine:[/bold]")
        for appointment in result.appointments:
            console.print(
                f"  {format_slot_display(appointment.scheduled_at)} "
                f"({appointment.duration_minutes} Min.) {appointment.customer_name or ''}"
            )
    console.print()


@app.command()
def alternatives(
    craftsman_id: Annotated[str, typer.Argument(help="ID des Handwerkers")],
    requested_datetime: Annotated[str, typer.Argument(help="Gewünschter Termin (ISO 8601, z. B. 2026-11-23T10:00)")],
    days: Annotated[Optional[int], typer.Option("--days", "-d", help="Anzahl der zu prüfenden Tage")] = None,
    slots: Annotated[Optional[int], typer.Option("--slots", "-s", help="Maximale Anzahl an Alternativen")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
    as_json: JsonOption = False,
):
    """
    Check a requested appointment and suggest alternative slots if it is taken.

    Examples:

        craftslot alternatives 1 2026-11-23T10:00 --mock

        craftslot alternatives 2 2026-11-23T10:00 --days 3 --slots 5
    """
    service = _setup(config_file, mock, verbose)

    try:
        result = service.check_availability_with_alternatives(
            craftsman_id,
            requested_datetime,
            days_to_check=days,
            slots_to_return=slots
        )
    except (ValidationError, CraftsmanNotFoundError, DataAccessError) as e:
        _fail(e)

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
        return

    if result.is_available:
        console.print("[bold green]✓ Der gewünschte Termin ist verfügbar.[/bold green]\n")
    elif not result.alternative_slots:
        console.print(
            f"[yellow]⚠ Nicht verfügbar ({result.reason}).[/yellow]\n"
            "Keine Alternativen gefunden. Versuchen Sie einen längeren Zeitraum."
        )
    else:
        console.print(f"[bold red]✗ Nicht verfügbar:[/bold red] {result.reason}\n")
        console.print(f"[bold green]✓ {len(result.alternative_slots)} Alternative(n):[/bold green]\n")
        for slot in result.alternative_slots:
            console.print(f"  {format_slot_display(slot)}")

    console.print()
    console.print(Panel.fit(result.message_to_send, title="Nachricht an Kunden"))
    console.print()


@app.command()
def list_craftsmen(
    name: Annotated[Optional[str], typer.Option("--name", help="Nach Namen filtern")] = None,
    specialty: Annotated[Optional[str], typer.Option("--specialty", help="Nach Fachgebiet filtern")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List craftsmen.
    """
    service = _setup(config_file, mock, verbose)

    try:
        craftsmen = service.list_craftsmen(name=name, specialty=specialty)
    except DataAccessError as e:
        _fail(e)

    if not craftsmen:
        console.print("[yellow]Keine Handwerker gefunden.[/yellow]")
        return

    table = Table(
        title="Handwerker",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("ID", style="bold yellow")
    table.add_column("Name")
    table.add_column("Fachgebiet", style="dim")
    table.add_column("Telefon", style="dim")

    for craftsman in craftsmen:
        table.add_row(
            craftsman.id,
            craftsman.name,
            craftsman.specialty or "",
            craftsman.phone or ""
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def working_hours(
    craftsman_id: Annotated[str, typer.Argument(help="ID des Handwerkers")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show the weekly working hours of a craftsman.
    """
    service = _setup(config_file, mock, verbose)

    try:
        craftsman = service.get_craftsman(craftsman_id)
    except (ValidationError, CraftsmanNotFoundError, DataAccessError) as e:
        _fail(e)

    table = Table(
        title=f"Arbeitszeiten {craftsman.name}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Tag", style="bold yellow")
    table.add_column("Zeiten")

    # Monday first for display
    for day in WEEKDAY_NAMES[1:] + WEEKDAY_NAMES[:1]:
        ranges = craftsman.working_hours.ranges_for(day) if craftsman.working_hours else []
        table.add_row(DAY_LABELS[day], ", ".join(ranges) if ranges else "[dim]frei[/dim]")

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]craftslot[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

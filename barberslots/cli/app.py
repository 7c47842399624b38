"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.json_store import JsonShopStore
from ..config import AppConfig, get_default_config_path
from ..domain.business_hours import resolve_shop_hours
from ..domain.exceptions import SlotEngineError
from ..domain.models import ANY_STAFF, SpecificStaff, bundle_duration
from ..domain.staff_hours import group_rules_by_staff, resolve_staff_hours
from ..domain.time_windows import format_minutes
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="barberslots",
    help="Find bookable appointment slots for a barbershop",
    add_completion=False
)

console = Console()

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    barberslots - availability queries against a shop configuration.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> tuple[AppConfig, Path]:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path), config_path


def _parse_day(value: Optional[str], tz: str):
    """Parse YYYY-MM-DD, defaulting to today in the business timezone."""
    if not value:
        return pendulum.now(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Could not parse date {value!r}: {e}[/red]")
        raise typer.Exit(1)


def _hours_label(hours) -> str:
    if hours is None:
        return "off"
    return f"{format_minutes(hours.open_minutes)} - {format_minutes(hours.close_minutes)}"


@app.command()
def slots(
    day: Annotated[str, typer.Argument(help="Date to check (YYYY-MM-DD)")],
    duration: Annotated[Optional[List[int]], typer.Option("--duration", "-d", help="Service duration in minutes. Repeat for a bundle of services.")] = None,
    staff: Annotated[Optional[str], typer.Option("--staff", "-s", help="Staff id or name. Omit for any staff member.")] = None,
    now: Annotated[Optional[str], typer.Option("--now", help="Evaluate as of this instant (ISO 8601) instead of the clock.")] = None,
    exclude_appointment: Annotated[Optional[str], typer.Option("--exclude-appointment", help="Appointment id being rescheduled.")] = None,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    calendar_file: Annotated[Optional[Path], typer.Option("--calendar", help="JSON file with blackouts and appointments.")] = None,
    plain: Annotated[bool, typer.Option("--plain", help="Simple list output instead of a table.")] = False,
):
    """
    List bookable slots for a day.

    Examples:

        barberslots slots 2024-11-25

        barberslots slots 2024-11-25 -d 30 -d 15 --staff ana

        barberslots slots 2024-11-25 --now 2024-11-25T09:00:00+01:00
    """
    try:
        config, config_path = _load_config(config_file)
        tz = config.business.timezone

        target_day = _parse_day(day, tz)
        total_duration = bundle_duration(duration or [config.business.default_duration_minutes])

        requested_staff = ANY_STAFF
        if staff:
            member = config.find_staff(staff)
            if member is None:
                console.print(f"[bold red]Error:[/bold red] Unknown staff member: {staff}")
                raise typer.Exit(1)
            requested_staff = SpecificStaff(member.id)

        current = pendulum.parse(now, tz=tz) if now else None

        store = JsonShopStore(config, calendar_file or config.resolve_calendar_path(config_path))
        service = AvailabilityService(store)

        found = asyncio.run(
            service.find_slots(
                day=target_day,
                total_duration_minutes=total_duration,
                requested_staff=requested_staff,
                now=current,
                exclude_appointment_id=exclude_appointment,
            )
        )

        console.print()
        if not found:
            console.print(
                f"[yellow]No availability on {target_day.isoformat()} "
                f"for a {total_duration}-minute booking.[/yellow]"
            )
            console.print()
            return

        names = config.staff_names()

        if plain:
            # Simple list output
            for slot in found:
                staff_label = ", ".join(names.get(staff_id, staff_id) for staff_id in slot.eligible_staff_ids)
                console.print(f"  {slot.format_display()}  ({staff_label})")
            console.print()
            return

        table = Table(
            title=f"{config.business.name or config.business.id} - {target_day.format('dddd, DD.MM.YYYY')}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Time", style="bold yellow")
        table.add_column("Ends", style="dim")
        table.add_column("Staff")

        for slot in found:
            ends = slot.time_range.end.format("HH:mm") if slot.time_range else ""
            table.add_row(
                slot.time,
                ends,
                ", ".join(names.get(staff_id, staff_id) for staff_id in slot.eligible_staff_ids)
            )

        console.print(table)
        console.print(f"[green]{len(found)} slot(s), {total_duration} min each.[/green]")
        console.print()

    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def staff(
    day: Annotated[Optional[str], typer.Option("--date", help="Date to resolve hours for (YYYY-MM-DD). Defaults to today.")] = None,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
):
    """
    List the staff roster and each member's hours for a day.
    """
    try:
        config, _ = _load_config(config_file)
        target_day = _parse_day(day, config.business.timezone)

        if not config.staff:
            console.print("[yellow]No staff configured.[/yellow]")
            return

        shop_hours = resolve_shop_hours(config.shop_rules(), target_day)
        staff_rules = group_rules_by_staff(config.staff_rules())

        table = Table(
            title=f"Staff - {target_day.format('dddd, DD.MM.YYYY')}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Id", style="bold yellow")
        table.add_column("Name")
        table.add_column("Schedule", style="dim")
        table.add_column("Hours")

        for member in config.staff:
            if not member.active:
                hours_label = "inactive"
            else:
                hours_label = _hours_label(
                    resolve_staff_hours(member.id, staff_rules, shop_hours, target_day)
                )
            table.add_row(
                member.id,
                member.display_name(),
                "custom" if member.hours else "shop hours",
                hours_label
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def hours(
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
):
    """
    Show the shop's weekly opening hours.
    """
    try:
        config, _ = _load_config(config_file)
        by_day = {rule.day_of_week: rule for rule in config.hours}

        table = Table(title="Opening hours", show_header=True, header_style="bold cyan")
        table.add_column("Day", style="bold yellow")
        table.add_column("Hours")

        for day_number, name in enumerate(WEEKDAY_NAMES):
            rule = by_day.get(day_number)
            if rule is None or not rule.is_enabled:
                table.add_row(name, "[dim]closed[/dim]")
            else:
                table.add_row(name, f"{rule.open_time} - {rule.close_time}")

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]barberslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.file_store import FileAvailabilityStore
from ..config import AppConfig, load_config
from ..domain.exceptions import AvailabilityError
from ..domain.models import BookableSlot, DateRange, to_date, validate_timezone
from ..domain.slot_discretizer import group_slots_by_period
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="ivokan-slots",
    help="Resolve tutor availability into bookable lesson slots",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

PERIOD_TITLES = {
    "morning": "Morning",
    "afternoon": "Afternoon",
    "evening": "Evening",
}

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DataOption = Annotated[Optional[Path], typer.Option("--data", "-d", help="Availability data file. Overrides data_file from the config.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]
StartOption = Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD). Defaults to today.")]
EndOption = Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD). Defaults to start + range_days.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_service(config: AppConfig, data_file: Optional[Path]) -> AvailabilityService:
    store = FileAvailabilityStore(data_file or config.data_file)
    logger.debug("Reading availability from %s", store.data_file)
    return AvailabilityService(store=store, defaults=config.defaults, timezone=config.timezone)


def _parse_date(value: str, label: str):
    try:
        return to_date(pendulum.from_format(value, "YYYY-MM-DD"))
    except ValueError as e:
        console.print(f"[red]Could not parse {label} '{value}': {e}[/red]")
        raise typer.Exit(1)


def _determine_date_range(
    *,
    config: AppConfig,
    tz: str,
    day_option: Optional[str],
    start_option: Optional[str],
    end_option: Optional[str]
) -> DateRange:
    """
    Resolve the requested dates from --date or --start/--end.
    Falls back to today + the configured number of days.
    """
    if day_option and (start_option or end_option):
        console.print("[red]Error: --date cannot be combined with --start/--end.[/red]")
        raise typer.Exit(1)

    if day_option:
        day = _parse_date(day_option, "date")
        return DateRange(start=day, end=day)

    if start_option:
        start_date = _parse_date(start_option, "start date")
    else:
        start_date = to_date(pendulum.today(tz))

    if end_option:
        end_date = _parse_date(end_option, "end date")
    else:
        end_date = start_date.add(days=config.defaults.range_days)

    return DateRange(start=start_date, end=end_date)


def _parse_now(value: Optional[str], tz: str):
    if not value:
        return pendulum.now(tz)
    try:
        parsed = pendulum.parse(value, tz=tz)
    except ValueError as e:
        console.print(f"[red]Could not parse --now '{value}': {e}[/red]")
        raise typer.Exit(1)
    # Durations and intervals parse too, but only a point in time is usable
    if not isinstance(parsed, pendulum.DateTime):
        console.print(f"[red]Could not parse --now '{value}': not a date and time[/red]")
        raise typer.Exit(1)
    return parsed


def _format_slot(slot: BookableSlot, tutor_tz: str, student_tz: Optional[str]) -> str:
    text = f"{slot.start_time} – {slot.end_time}"
    if student_tz:
        start, end = slot.in_timezone(tutor_tz, student_tz)
        text += f"  [dim]({start.format('ddd DD.MM HH:mm')} – {end.format('HH:mm')} {student_tz})[/dim]"
    return text


@app.command()
def tutors(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    verbose: VerboseOption = False,
):
    """
    List all tutors in the availability data file.
    """
    _configure_logging(verbose)
    try:
        config = load_config(config_file)
        store = FileAvailabilityStore(data_file or config.data_file)
        entries = store.tutors()

        if not entries:
            console.print("[yellow]No tutors defined in the data file.[/yellow]")
            return

        table = Table(
            title="Tutors",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("ID", style="bold yellow")
        table.add_column("Name")
        table.add_column("Timezone", style="dim")
        table.add_column("Weekly windows", justify="right")
        table.add_column("Unavailability", justify="right")

        for tutor_id, tutor in entries.items():
            table.add_row(
                tutor_id,
                tutor.name or "",
                tutor.settings.timezone or config.timezone,
                str(len(tutor.weekly)),
                str(len(tutor.unavailability)),
            )

        console.print()
        console.print(table)
        console.print()

    except (AvailabilityError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def effective(
    tutor_id: Annotated[str, typer.Argument(help="Tutor identifier from the data file")],
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    start: StartOption = None,
    end: EndOption = None,
    merge: Annotated[bool, typer.Option("--merge", help="Merge touching or overlapping windows.")] = False,
    verbose: VerboseOption = False,
):
    """
    Show the effective availability windows of each day.
    """
    _configure_logging(verbose)
    try:
        config = load_config(config_file)
        service = _build_service(config, data_file)
        settings = asyncio.run(service.get_tutor_settings(tutor_id))
        tz = service.tutor_timezone(settings)

        date_range = _determine_date_range(
            config=config, tz=tz, day_option=None, start_option=start, end_option=end
        )
        days = asyncio.run(
            service.effective_availability(tutor_id, date_range, merge_adjacent=merge)
        )

        table = Table(
            title=f"Effective availability of {tutor_id} ({tz})",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Date", style="bold")
        table.add_column("Available windows")

        for day in days:
            windows = ", ".join(str(w) for w in day.available_windows)
            table.add_row(
                day.date.format("ddd DD.MM.YYYY"),
                windows or "[dim]unavailable[/dim]",
            )

        console.print()
        console.print(table)
        console.print()

    except (AvailabilityError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def slots(
    tutor_id: Annotated[str, typer.Argument(help="Tutor identifier from the data file")],
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    day: Annotated[Optional[str], typer.Option("--date", help="Single date (YYYY-MM-DD)")] = None,
    start: StartOption = None,
    end: EndOption = None,
    duration: Annotated[Optional[int], typer.Option("--duration", help="Lesson duration in minutes")] = None,
    break_minutes: Annotated[Optional[int], typer.Option("--break", help="Break between lessons in minutes")] = None,
    notice: Annotated[Optional[int], typer.Option("--notice", help="Minimum notice in minutes")] = None,
    now: Annotated[Optional[str], typer.Option("--now", help="Reference time, e.g. '2024-11-25 08:30'. Defaults to the current time.")] = None,
    student_tz: Annotated[Optional[str], typer.Option("--student-tz", help="Also show slot times in this timezone")] = None,
    verbose: VerboseOption = False,
):
    """
    List bookable lesson slots, grouped by morning, afternoon and evening.

    Examples:

        ivokan-slots slots tutor-1 --date 2024-11-25

        ivokan-slots slots tutor-1 --duration 25 --notice 0 --student-tz America/New_York
    """
    _configure_logging(verbose)
    try:
        config = load_config(config_file)
        service = _build_service(config, data_file)
        settings = asyncio.run(service.get_tutor_settings(tutor_id))
        tz = service.tutor_timezone(settings)

        date_range = _determine_date_range(
            config=config, tz=tz, day_option=day, start_option=start, end_option=end
        )
        if student_tz:
            validate_timezone(student_tz)
        reference = _parse_now(now, tz)
        lesson_duration = duration if duration is not None else config.defaults.lesson_duration_minutes

        found = asyncio.run(
            service.bookable_slots(
                tutor_id,
                date_range,
                lesson_duration,
                reference,
                break_minutes=break_minutes,
                minimum_notice_minutes=notice,
            )
        )

        console.print()
        if not found:
            console.print(
                "[yellow]No slots available for this period.[/yellow]\n"
                "Try a longer period or a shorter lesson duration."
            )
            console.print()
            return

        console.print(f"[bold green]✓ {len(found)} slot(s) available ({tz}):[/bold green]\n")

        by_date: dict = {}
        for slot in found:
            by_date.setdefault(slot.date, []).append(slot)

        for slot_date, day_slots in by_date.items():
            console.print(f"[bold]{slot_date.format('dddd, DD.MM.YYYY')}[/bold]")
            for period, period_slots in group_slots_by_period(day_slots).items():
                console.print(f"  [cyan]{PERIOD_TITLES[period]}[/cyan]")
                for slot in period_slots:
                    console.print(f"    {_format_slot(slot, tz, student_tz)}")
            console.print()

    except (AvailabilityError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]ivokan-slots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

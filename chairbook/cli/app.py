"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..access import pin_authorizer
from ..adapters.factory import build_store
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import ChairbookError, SchedulingConflict
from ..domain.intervals import DayKey, clock_to_minutes, day_key, minutes_to_clock
from ..domain.models import WEEKDAY_NAMES, ShopConfig
from ..services.booking_service import BookingService, UnknownServiceError

app = typer.Typer(
    name="chairbook",
    help="Book appointments for a single-chair shop",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DateOption = Annotated[Optional[str], typer.Option("--date", help="Day (YYYY-MM-DD). Defaults to today.")]
PinOption = Annotated[Optional[str], typer.Option("--pin", help="Admin PIN")]

_HANDLED_ERRORS = (ChairbookError, UnknownServiceError, FileNotFoundError, ValueError)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    chairbook - offer free slots, take bookings, manage the day's agenda.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_service(config: AppConfig, pin: Optional[str] = None) -> BookingService:
    return BookingService(
        build_store(config),
        is_authorized=pin_authorizer(config.effective_admin_pin(), pin),
    )


def _resolve_day(date_option: Optional[str], tz: str) -> DayKey:
    """Parse --date or fall back to today in the shop timezone."""
    if not date_option:
        return day_key(pendulum.now(tz), tz)
    try:
        return day_key(pendulum.from_format(date_option, "YYYY-MM-DD", tz=tz), tz)
    except ValueError as e:
        raise ValueError(f"Could not parse date '{date_option}': {e}") from e


def _parse_weekdays(days: str) -> frozenset:
    """Parse a comma separated weekday list such as '0,1,2,3,4,5'."""
    try:
        return frozenset(int(part) for part in days.split(",") if part.strip())
    except ValueError as e:
        raise ValueError(f"Weekdays must be numbers between 0 (Monday) and 6 (Sunday): {days}") from e


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


def _print_slots(slots: List[int], duration: int) -> None:
    if not slots:
        console.print("[yellow]⚠ No free slots on this day.[/yellow]")
        return
    console.print(f"[bold green]✓ {len(slots)} free slot(s):[/bold green]\n")
    for start in slots:
        console.print(f"  {minutes_to_clock(start)} – {minutes_to_clock(start + duration)}")


@app.command()
def slots(
    service: Annotated[str, typer.Argument(help="Service id or name")],
    date: DateOption = None,
    config_file: ConfigOption = None,
):
    """
    Show the free start times for a service on a day.

    Examples:

        chairbook slots "Men's haircut"
        chairbook slots beard --date 2024-11-25
    """
    try:
        config = _load_config(config_file)
        booking_service = _build_service(config)

        async def _run():
            shop = await booking_service.get_config()
            day = _resolve_day(date, shop.timezone)
            chosen = await booking_service.get_service(service)
            if not shop.is_open_on(day):
                return shop, day, chosen, None
            return shop, day, chosen, await booking_service.available_slots(chosen.id, day)

        shop, day, chosen, free = asyncio.run(_run())
    except _HANDLED_ERRORS as e:
        _fail(e)

    console.print(f"\n[bold cyan]{shop.shop_name}[/bold cyan] · {chosen.name} ({chosen.duration_minutes} min)")
    console.print(f"{WEEKDAY_NAMES[day.weekday()]}, {day.isoformat()}\n")
    if free is None:
        console.print("[yellow]The shop is closed on this day.[/yellow]\n")
        return
    _print_slots(free, chosen.duration_minutes)
    console.print()


@app.command()
def book(
    service: Annotated[str, typer.Argument(help="Service id or name")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    name: Annotated[str, typer.Option("--name", "-n", help="Customer name")],
    phone: Annotated[str, typer.Option("--phone", help="Customer phone")] = "",
    notes: Annotated[str, typer.Option("--notes", help="Notes for the barber")] = "",
    date: DateOption = None,
    config_file: ConfigOption = None,
):
    """
    Book a service at a start time.

    If the slot was taken in the meantime, the current free slots are shown.
    """
    try:
        config = _load_config(config_file)
        booking_service = _build_service(config)
        start_minutes = clock_to_minutes(start)
    except _HANDLED_ERRORS as e:
        _fail(e)

    async def _book():
        shop = await booking_service.get_config()
        day = _resolve_day(date, shop.timezone)
        chosen = await booking_service.get_service(service)
        try:
            booking = await booking_service.book(
                service_id=chosen.id,
                date=day,
                start=start_minutes,
                customer_name=name,
                customer_phone=phone,
                notes=notes,
            )
        except SchedulingConflict as conflict:
            return None, conflict, chosen, await booking_service.available_slots(chosen.id, day)
        return booking, None, chosen, []

    try:
        booking, conflict, chosen, free = asyncio.run(_book())
    except _HANDLED_ERRORS as e:
        _fail(e)

    if conflict is not None:
        console.print(f"[bold red]✗ Could not book:[/bold red] {escape(str(conflict))}\n")
        console.print("Please choose another time.")
        _print_slots(free, chosen.duration_minutes)
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]✓ Booking confirmed![/bold green]\n\n"
        f"[bold]Service:[/bold] {chosen.name} · {chosen.price}\n"
        f"[bold]When:[/bold] {booking.day.isoformat()} {booking.interval}\n"
        f"[bold]Customer:[/bold] {escape(booking.customer_name)}\n"
        f"[bold]Booking id:[/bold] {booking.id}",
        title="Booking"
    ))


@app.command()
def agenda(
    date: DateOption = None,
    config_file: ConfigOption = None,
):
    """
    List the bookings of a day.
    """
    try:
        config = _load_config(config_file)
        booking_service = _build_service(config)

        async def _run():
            shop = await booking_service.get_config()
            day = _resolve_day(date, shop.timezone)
            return day, await booking_service.day_agenda(day)

        day, entries = asyncio.run(_run())
    except _HANDLED_ERRORS as e:
        _fail(e)

    if not entries:
        console.print(f"[yellow]No bookings on {day.isoformat()}.[/yellow]")
        return

    table = Table(
        title=f"Bookings on {day.isoformat()}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Booking", style="bold")
    table.add_column("Notes", style="dim")
    table.add_column("Id", style="dim")

    for entry in entries:
        table.add_row(
            escape(entry.format_display()),
            escape(entry.booking.notes),
            entry.booking.id,
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def cancel(
    booking_id: Annotated[str, typer.Argument(help="Id of the booking to cancel")],
    pin: PinOption = None,
    config_file: ConfigOption = None,
):
    """
    Cancel a booking (admin PIN required).
    """
    try:
        config = _load_config(config_file)
        asyncio.run(_build_service(config, pin).cancel(booking_id))
    except _HANDLED_ERRORS as e:
        _fail(e)

    console.print("[green]✓ Booking cancelled.[/green]")


@app.command()
def services(
    config_file: ConfigOption = None,
):
    """
    List the service catalogue.
    """
    try:
        config = _load_config(config_file)
        catalogue = asyncio.run(_build_service(config).list_services())
    except _HANDLED_ERRORS as e:
        _fail(e)

    if not catalogue:
        console.print("[yellow]No services defined.[/yellow]")
        return

    table = Table(
        title="Services",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name", style="bold yellow")
    table.add_column("Duration")
    table.add_column("Price")
    table.add_column("Id", style="dim")

    for service in catalogue:
        table.add_row(service.name, f"{service.duration_minutes} min", str(service.price), service.id)

    console.print()
    console.print(table)
    console.print()


@app.command()
def add_service(
    name: Annotated[str, typer.Argument(help="Service name")],
    duration: Annotated[int, typer.Argument(help="Duration in minutes")],
    price: Annotated[str, typer.Argument(help="Price, e.g. 55.00")],
    pin: PinOption = None,
    config_file: ConfigOption = None,
):
    """
    Add a service to the catalogue (admin PIN required).
    """
    try:
        config = _load_config(config_file)
        service = asyncio.run(_build_service(config, pin).add_service(name, duration, price))
    except _HANDLED_ERRORS as e:
        _fail(e)

    console.print(f"[green]✓ Added {service.name} ({service.duration_minutes} min, {service.price}).[/green]")


@app.command()
def remove_service(
    service: Annotated[str, typer.Argument(help="Service id or name")],
    pin: PinOption = None,
    config_file: ConfigOption = None,
):
    """
    Remove a service from the catalogue (admin PIN required).

    Existing bookings keep their stored times.
    """
    try:
        config = _load_config(config_file)
        asyncio.run(_build_service(config, pin).remove_service(service))
    except _HANDLED_ERRORS as e:
        _fail(e)

    console.print("[green]✓ Service removed.[/green]")


@app.command()
def set_hours(
    opening: Annotated[Optional[str], typer.Option("--opening", help="Opening time (HH:MM)")] = None,
    closing: Annotated[Optional[str], typer.Option("--closing", help="Closing time (HH:MM)")] = None,
    slot: Annotated[Optional[int], typer.Option("--slot", help="Slot size in minutes")] = None,
    days: Annotated[Optional[str], typer.Option("--days", help="Open weekdays, e.g. 0,1,2,3,4,5 (0=Monday)")] = None,
    shop_name: Annotated[Optional[str], typer.Option("--name", help="Shop display name")] = None,
    pin: PinOption = None,
    config_file: ConfigOption = None,
):
    """
    Change opening hours, slot size or open weekdays (admin PIN required).
    """
    try:
        config = _load_config(config_file)
        booking_service = _build_service(config, pin)

        async def _run() -> ShopConfig:
            current = await booking_service.get_config()
            updated = ShopConfig(
                shop_name=shop_name if shop_name is not None else current.shop_name,
                slot_minutes=slot if slot is not None else current.slot_minutes,
                active_weekdays=_parse_weekdays(days) if days is not None else current.active_weekdays,
                opening=clock_to_minutes(opening) if opening is not None else current.opening,
                closing=clock_to_minutes(closing) if closing is not None else current.closing,
                timezone=current.timezone,
            )
            return await booking_service.update_config(updated)

        shop = asyncio.run(_run())
    except _HANDLED_ERRORS as e:
        _fail(e)

    open_days = ", ".join(WEEKDAY_NAMES[day] for day in sorted(shop.active_weekdays)) or "none"
    console.print(Panel.fit(
        f"[bold]{shop.shop_name}[/bold]\n"
        f"Hours: {shop.open_window}\n"
        f"Slot size: {shop.slot_minutes} min\n"
        f"Open on: {open_days}",
        title="✓ Configuration saved"
    ))


@app.command()
def check_store(
    config_file: ConfigOption = None,
):
    """
    Test the connection to a remote booking store.
    """
    try:
        config = _load_config(config_file)
        store = build_store(config)
        if not hasattr(store, "test_connection"):
            console.print("[green]✓ Local store, nothing to check.[/green]")
            return
        record = store.test_connection()
    except _HANDLED_ERRORS as e:
        _fail(e)

    console.print(Panel.fit(
        f"[bold green]✓ Store reachable![/bold green]\n\n"
        f"[bold]Shop:[/bold] {record.get('shop_name', 'N/A')}\n"
        f"[bold]Hours:[/bold] {record.get('opening', '?')} - {record.get('closing', '?')}",
        title="✓ Connection test"
    ))


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]chairbook[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()

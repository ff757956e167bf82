"""vdrlog CLI — command-line interface for voyage data recorder files.

Commands:
    vdrlog                       Interactive menu (option 1: new file)
    vdrlog new                   Create a new .dat file
    vdrlog info <file>           Show header, speed table and events
    vdrlog log <file>            Append an event
    vdrlog verify <file>         Decode the file and check every checksum
    vdrlog export <file>         Export to CSV
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from vdrlog import __version__
from vdrlog.errors import VDRError
from vdrlog.storage.format import DEFAULT_FILENAME, SHIP_NAME_SIZE
from vdrlog.storage.header import normalize_ship_name
from vdrlog.utils.schema import DEFAULT_SPEED_TABLE, EventType

console = Console(soft_wrap=True)

EVENT_TYPE_NAMES = [t.name.lower() for t in EventType]


class ShipNameType(click.ParamType):
    """Ship name: non-empty after trimming, at most 32 characters."""

    name = "ship_name"

    def convert(self, value, param, ctx):
        try:
            return normalize_ship_name(value)
        except VDRError as e:
            self.fail(str(e), param, ctx)


SHIP_NAME = ShipNameType()
IMO_NUMBER = click.IntRange(min=1, max=0xFFFFFFFF)


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise SystemExit(1)


def _create_file(output: Path, ship_name: str, imo_number: int, overwrite: bool) -> None:
    from vdrlog.storage.writer import VDRWriter

    try:
        size = VDRWriter(output).create(
            ship_name, imo_number, DEFAULT_SPEED_TABLE, overwrite=overwrite
        )
    except FileExistsError:
        _fail(f"{output} already exists. Use --force to overwrite it.")
    except (VDRError, OSError) as e:
        _fail(f"Error creating {output}: {e}")
    else:
        console.print(f"[green]Created {output} ({size} bytes)[/green]")


def new_vdr_file(output: Path) -> None:
    """Prompt for ship name and IMO number, then write a new file."""
    click.echo(">>> NEW VOYAGE DATA RECORDER FILE <<<")
    ship_name = click.prompt(
        f"Enter the name of the ship (max. {SHIP_NAME_SIZE} characters)", type=SHIP_NAME
    )
    imo_number = click.prompt("Enter the ship's IMO Number", type=IMO_NUMBER)
    _create_file(output, ship_name, imo_number, overwrite=True)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="vdrlog")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """vdrlog — Voyage Data Recorder files.

    Run without a command for the interactive menu.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )

    if ctx.invoked_subcommand is None:
        click.echo("OPTIONS:")
        click.echo("1.- New Voyage Data Recorder File")
        option = sys.stdin.readline().strip()
        if option == "1":
            new_vdr_file(Path(DEFAULT_FILENAME))


@cli.command()
@click.option("--name", "ship_name", type=SHIP_NAME,
              prompt=f"Enter the name of the ship (max. {SHIP_NAME_SIZE} characters)",
              help="Ship name")
@click.option("--imo", "imo_number", type=IMO_NUMBER, prompt="Enter the ship's IMO Number",
              help="Ship IMO number")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
              default=DEFAULT_FILENAME, show_default=True, help="Output file")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file")
def new(ship_name: str, imo_number: int, output: Path, force: bool) -> None:
    """Create a new voyage data recorder file."""
    _create_file(output, ship_name, imo_number, overwrite=force)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--limit", default=10, show_default=True, help="Number of events to show")
def info(file: Path, limit: int) -> None:
    """Show recording summary."""
    from vdrlog import Replay

    try:
        replay = Replay(file)
    except VDRError as e:
        _fail(f"Error opening {file}: {e}")

    # Header
    console.print()
    console.print(Panel.fit(
        f"[bold]{replay.ship_name}[/bold]",
        subtitle=f"{file}",
    ))

    meta_table = Table(show_header=False, box=None, padding=(0, 2))
    meta_table.add_column("Key", style="dim")
    meta_table.add_column("Value")
    meta_table.add_row("IMO", str(replay.imo_number))
    meta_table.add_row("Version", str(replay.version))
    meta_table.add_row("Size", f"{replay.size} bytes")
    meta_table.add_row("Entries", str(replay.num_entries))
    if replay.num_entries:
        meta_table.add_row("First", replay[0].time.isoformat())
        meta_table.add_row("Last", replay[-1].time.isoformat())
    console.print(meta_table)

    # Speed table
    if replay.speeds:
        console.print()
        speed_table = Table(title="Speed Table")
        speed_table.add_column("#", justify="right")
        speed_table.add_column("Name")
        speed_table.add_column("Knots", justify="right")
        for i, speed in enumerate(replay.speeds):
            speed_table.add_row(str(i), speed.name, str(speed.knots))
        console.print(speed_table)

    # Events
    if replay.num_entries > 0:
        console.print()
        events_table = Table(title="Log")
        events_table.add_column("Offset", justify="right")
        events_table.add_column("Time (UTC)")
        events_table.add_column("Type")
        events_table.add_column("Payload")

        for entry in replay[:limit]:
            events_table.add_row(
                str(entry.offset), entry.time.isoformat(), entry.event_type.name, entry.text
            )

        if replay.num_entries > limit:
            events_table.add_row("...", f"({replay.num_entries - limit} more)", "", "")

        console.print(events_table)

    replay.close()
    console.print()


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--type", "-t", "event_type", type=click.Choice(EVENT_TYPE_NAMES, case_sensitive=False),
              required=True, help="Event type")
@click.option("--message", "-m", default=None, help="ASCII text payload")
@click.option("--hex", "hex_payload", default=None, help="Payload as hex digits")
@click.option("--timestamp", type=click.IntRange(min=0, max=0xFFFFFFFE), default=None,
              help="Unix time in seconds (default: now)")
def log(
    file: Path,
    event_type: str,
    message: str | None,
    hex_payload: str | None,
    timestamp: int | None,
) -> None:
    """Append an event to a recording."""
    from vdrlog import Recorder

    if message is not None and hex_payload is not None:
        raise click.UsageError("Use either --message or --hex, not both.")

    payload: bytes | str = b""
    if message is not None:
        payload = message
    elif hex_payload is not None:
        try:
            payload = bytes.fromhex(hex_payload)
        except ValueError:
            raise click.BadParameter(f"not valid hex: {hex_payload!r}", param_hint="--hex")

    try:
        with Recorder(file) as rec:
            entries = rec.log(event_type, payload, timestamp=timestamp)
    except VDRError as e:
        _fail(f"Error appending to {file}: {e}")

    console.print(
        f"[green]Appended {len(entries)} record(s) at offset {entries[0].offset}[/green]"
    )


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def verify(file: Path) -> None:
    """Decode the whole file and verify every record checksum."""
    from vdrlog.storage.reader import Reader

    try:
        with Reader(file) as reader:
            n = len(reader.entries)
            trailing = reader.section.trailing_bytes
    except VDRError as e:
        _fail(f"✗ {file}: {e}")

    console.print(f"[green]✓ {file}: header OK, {n} record(s) verified[/green]")
    if trailing > 0:
        console.print(f"[yellow]⚠ {trailing} byte(s) after the log terminator[/yellow]")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(file_okay=False, path_type=Path),
              help="Output directory")
@click.option("--type", "-t", "event_types", multiple=True,
              type=click.Choice(EVENT_TYPE_NAMES, case_sensitive=False),
              help="Event types to export (default: all)")
def export(file: Path, output: Path | None, event_types: tuple[str, ...]) -> None:
    """Export recording to CSV."""
    from vdrlog.export.csv import export_csv

    try:
        created = export_csv(file, output_dir=output, event_types=list(event_types) or None)
    except VDRError as e:
        _fail(f"Error reading {file}: {e}")

    for p in created:
        console.print(f"  Created: {p}")
    console.print(f"[green]Exported {len(created)} CSV file(s)[/green]")


if __name__ == "__main__":
    cli()

"""Trip journal CLI entry point.

Allows running via `python -m tripjournal` and provides the console script
defined in `pyproject.toml`.
"""

from __future__ import annotations

import importlib.metadata
import logging
import sys
from dataclasses import dataclass, replace
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click

from .config import JournalConfig, load_config
from .errors import InvalidRange
from .model import AttributedDocument
from .pdf_export import FontLoadError, PDFExporter
from .rtf_codec import decode
from .session import EditingSession
from .store import FileJournalStore
from .terminal_render import TerminalRenderer
from .trips import Trip, contains_day, date_range_text, entry_preview, format_date, trip_days

DAY = click.DateTime(formats=["%Y-%m-%d"])


def get_version_string() -> str:
    try:
        return importlib.metadata.version("tripjournal")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


@dataclass
class Journal:
    config: JournalConfig
    store: FileJournalStore


def _require_trip(journal: Journal, trip_id: str) -> Trip:
    trip = journal.store.get_trip(trip_id)
    if trip is None:
        click.echo(f"No trip with id {trip_id}", err=True)
        sys.exit(1)
    return trip


def _require_day(trip: Trip, day: datetime) -> date:
    if not contains_day(trip, day.date()):
        click.echo(f"Error: {day.date()} is not a day of trip {trip.name!r}", err=True)
        sys.exit(1)
    return day.date()


def _open_session(journal: Journal, trip_id: str, day: datetime) -> EditingSession:
    trip = _require_trip(journal, trip_id)
    try:
        entry = journal.store.entry_for_day(trip.id, day.date())
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if entry is None:
        click.echo("Could not open entry", err=True)
        sys.exit(1)
    return EditingSession.open(journal.store, entry, accent=journal.config.accent)


def _read_document(journal: Journal, trip_id: str, day: datetime) -> AttributedDocument:
    """The stored document for a day; an unwritten day reads as empty."""
    trip = _require_trip(journal, trip_id)
    entry = journal.store.find_entry(trip.id, _require_day(trip, day))
    if entry is None:
        return AttributedDocument()
    stored = journal.store.load_document(entry.id)
    if stored is None:
        return AttributedDocument()
    return decode(stored.data, fallback_text=stored.plain)


@click.group()
@click.version_option(get_version_string(), "-V", "--version")
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Journal data directory")
@click.option("-v", "--verbose", is_flag=True, help="Log debug messages")
@click.pass_context
def main(ctx: click.Context, data_dir: Optional[Path], verbose: bool):
    """Tripjournal - trip journals with rich text and photo links."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = load_config()
    ctx.obj = Journal(config, FileJournalStore(data_dir or config.data_dir))


@main.command()
@click.pass_obj
def trips(journal: Journal):
    """List trips, newest first."""
    all_trips = journal.store.list_trips()
    if not all_trips:
        click.echo("No trips yet.")
        return
    for trip in all_trips:
        click.echo(f"{trip.id}  {trip.name}  {date_range_text(trip.start_date, trip.end_date)}")


@main.command("add-trip")
@click.argument("name")
@click.argument("start", type=DAY)
@click.argument("end", type=DAY, required=False)
@click.option("--cover", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Cover photo file")
@click.pass_obj
def add_trip(journal: Journal, name: str, start: datetime, end: Optional[datetime],
             cover: Optional[Path]):
    """Create a trip; END may be omitted for an open-ended trip."""
    cover_image = cover.read_bytes() if cover else None
    try:
        trip = journal.store.add_trip(name, start.date(), end.date() if end else None, cover_image)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    if trip is None:
        click.echo("Could not save trip", err=True)
        sys.exit(1)
    click.echo(trip.id)


@main.command("edit-trip")
@click.argument("trip_id")
@click.option("--name", help="New trip name")
@click.option("--start", type=DAY, help="New first day")
@click.option("--end", type=DAY, help="New last day")
@click.option("--open-ended", is_flag=True, help="Remove the last day")
@click.option("--cover", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="New cover photo file")
@click.option("--no-cover", is_flag=True, help="Remove the cover photo")
@click.pass_obj
def edit_trip(journal: Journal, trip_id: str, name: Optional[str], start: Optional[datetime],
              end: Optional[datetime], open_ended: bool, cover: Optional[Path], no_cover: bool):
    """Rename a trip or change its dates or cover photo."""
    trip = _require_trip(journal, trip_id)
    changes = {}
    if name is not None:
        changes["name"] = name
    if start is not None:
        changes["start_date"] = start.date()
    if open_ended:
        changes["end_date"] = None
    elif end is not None:
        changes["end_date"] = end.date()
    if no_cover:
        changes["cover_image"] = None
    elif cover is not None:
        changes["cover_image"] = cover.read_bytes()
    try:
        updated = replace(trip, **changes)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    if not journal.store.update_trip(updated):
        click.echo("Could not save trip", err=True)
        sys.exit(1)
    click.echo(f"{updated.id}  {updated.name}  {date_range_text(updated.start_date, updated.end_date)}")


@main.command("delete-trip")
@click.argument("trip_id")
@click.pass_obj
def delete_trip(journal: Journal, trip_id: str):
    """Delete a trip with all of its entries and photos."""
    _require_trip(journal, trip_id)
    if not journal.store.delete_trip(trip_id):
        click.echo("Could not delete trip", err=True)
        sys.exit(1)


@main.command()
@click.argument("trip_id")
@click.pass_obj
def days(journal: Journal, trip_id: str):
    """List the days of a trip with a preview of each entry."""
    trip = _require_trip(journal, trip_id)
    written = {entry.day: entry for entry in journal.store.list_entries(trip.id)}
    for day in trip_days(trip):
        entry = written.get(day)
        click.echo(f"{format_date(day)}  {entry_preview(entry.content if entry else None)}")


@main.command()
@click.argument("trip_id")
@click.argument("day", type=DAY)
@click.pass_obj
def show(journal: Journal, trip_id: str, day: datetime):
    """Print an entry with its formatting."""
    click.echo(TerminalRenderer().render(_read_document(journal, trip_id, day)))


@main.command()
@click.argument("trip_id")
@click.argument("day", type=DAY)
@click.argument("text")
@click.pass_obj
def write(journal: Journal, trip_id: str, day: datetime, text: str):
    """Append text to an entry."""
    session = _open_session(journal, trip_id, day)
    try:
        session.select(len(session.document))
        session.type_text(text)
        if not session.save():
            click.echo(session.status_message, err=True)
            sys.exit(1)
    finally:
        session.close()


@main.command("delete-entry")
@click.argument("trip_id")
@click.argument("day", type=DAY)
@click.pass_obj
def delete_entry(journal: Journal, trip_id: str, day: datetime):
    """Delete the entry of one day with its photos."""
    trip = _require_trip(journal, trip_id)
    entry = journal.store.find_entry(trip.id, _require_day(trip, day))
    if entry is None:
        click.echo(f"No entry for {day.date()}", err=True)
        sys.exit(1)
    if not journal.store.delete_entry(entry.id):
        click.echo("Could not delete entry", err=True)
        sys.exit(1)


@main.command()
@click.argument("trip_id")
@click.argument("day", type=DAY)
@click.argument("start", type=int)
@click.argument("end", type=int)
@click.argument("images", nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def attach(journal: Journal, trip_id: str, day: datetime, start: int, end: int,
           images: tuple[Path, ...]):
    """Link photos to the characters START to END of an entry."""
    session = _open_session(journal, trip_id, day)
    try:
        try:
            session.select(start, end - start)
            session.attach_images([path.read_bytes for path in images])
        except InvalidRange as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(2)
        session.links.wait()
        if not session.save():
            click.echo(session.status_message, err=True)
            sys.exit(1)
    finally:
        session.close()


@main.command("export-pdf")
@click.argument("trip_id")
@click.argument("day", type=DAY)
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def export_pdf(journal: Journal, trip_id: str, day: datetime, output: Path):
    """Export an entry to PDF."""
    try:
        exporter = PDFExporter(journal.config.pdf_font_name, journal.config.pdf_font_size)
    except FontLoadError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    document = _read_document(journal, trip_id, day)
    output.write_bytes(exporter.export(document, title=format_date(day.date())))
    warning = exporter.get_unprintable_warning()
    if warning:
        click.echo(warning, err=True)


if __name__ == "__main__":  # pragma: no cover
    main()

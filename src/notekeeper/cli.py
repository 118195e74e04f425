"""Notekeeper CLI - server, admin and client commands."""

import json
import logging
import sys
from datetime import date

import click

from .auth import hash_password
from .client import NotekeeperClient
from .config import load_config
from .core.notes import USERS_TABLE, Note
from .core.stats import aggregate, current_month
from .core.sync import RECURRENCE_FREQUENCIES
from .errors import NotekeeperError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


@click.group()
@click.version_option()
def main():
    """Notekeeper - notes, goals and calendar sync."""
    pass


# ============== Server & admin ==============


@main.command()
@click.option("--host", default=None, help="Bind address (default from config)")
@click.option("--port", default=None, type=int, help="Port (default from config)")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def serve(host: str | None, port: int | None, debug: bool):
    """Run the API server."""
    import uvicorn

    from .api import create_app

    logging.basicConfig(format=LOG_FORMAT, level=logging.DEBUG if debug else logging.INFO)

    config = load_config()
    try:
        app = create_app(config)
    except NotekeeperError as e:
        _fail(e)

    click.echo(f"Starting Notekeeper API on {host or config.host}:{port or config.port}")
    uvicorn.run(app, host=host or config.host, port=port or config.port)


@main.command("hash-password")
@click.password_option()
def hash_password_cmd(password: str):
    """Print a bcrypt hash for seeding the Users table."""
    click.echo(hash_password(password))


@main.command("add-user")
@click.argument("username")
@click.password_option()
def add_user(username: str, password: str):
    """Add a user directly to the configured store."""
    from .api import build_store

    config = load_config()
    try:
        store = build_store(config)
        if any(row and row[0] == username for row in store.read(USERS_TABLE)):
            _fail(f"User {username!r} already exists")
        store.append(USERS_TABLE, [username, hash_password(password)])
    except NotekeeperError as e:
        _fail(e)
    click.echo(f"✓ Added user {username}")


# ============== Client ==============


@main.command()
@click.option("--username", "-u", prompt=True)
@click.password_option(confirmation_prompt=False)
@click.option("--remember", is_flag=True, help="Stay logged in for a year instead of a day")
def login(username: str, password: str, remember: bool):
    """Log in and store the session token."""
    try:
        token = NotekeeperClient().login(username, password, remember)
    except NotekeeperError as e:
        _fail(e)
    click.echo(f"✓ Logged in as {token.username}")


@main.command()
def logout():
    """Discard the stored session token."""
    NotekeeperClient().logout()
    click.echo("Logged out.")


@main.command()
@click.option("--old", "old_password", prompt="Current password", hide_input=True)
@click.option("--new", "new_password", prompt="New password", hide_input=True, confirmation_prompt=True)
def passwd(old_password: str, new_password: str):
    """Change your password."""
    client = NotekeeperClient()
    try:
        client.change_password(old_password, new_password)
    except NotekeeperError as e:
        _fail(e)
    # Old tokens stay valid server-side; start a fresh session anyway
    client.logout()
    click.echo("✓ Password updated, please log in again")


def _format_note(note: Note) -> str:
    time_str = f" {note.start_time}-{note.end_time}" if note.start_time else ""
    synced = " [cal]" if note.is_synced else ""
    role = note.role or "-"
    return f"[{note.row_index:>3}] {note.date}{time_str}{synced}  {note.category} | {role}\n      {note.content}"


@main.command()
@click.option("--role", default=None, help="Only show notes for this role")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def notes(role: str | None, as_json: bool):
    """List notes, newest first."""
    try:
        all_notes = NotekeeperClient().get_notes()
    except NotekeeperError as e:
        _fail(e)

    shown = sorted(all_notes, key=lambda n: n.date, reverse=True)
    if role:
        shown = [n for n in shown if n.role == role]

    if as_json:
        click.echo(json.dumps([n.to_api() for n in shown], indent=2, ensure_ascii=False))
        return

    if not shown:
        click.echo("No matching notes.")
        return

    for note in shown:
        click.echo(_format_note(note))


@main.command()
@click.option("--date", "-d", "note_date", default=None, help="Date (YYYY-MM-DD), defaults to today")
@click.option("--category", "-c", required=True)
@click.option("--role", "-r", default="")
@click.option("--content", prompt=True)
@click.option("--start", "start_time", default="", help="Start time HH:MM")
@click.option("--end", "end_time", default="", help="End time HH:MM")
@click.option("--sync", is_flag=True, help="Mirror to the calendar (needs --start and --end)")
@click.option(
    "--repeat",
    type=click.Choice(["none", *[f.lower() for f in RECURRENCE_FREQUENCIES]], case_sensitive=False),
    default="none",
)
def add(note_date, category, role, content, start_time, end_time, sync, repeat):
    """Add a note."""
    note = Note(
        id="",
        date=note_date or date.today().isoformat(),
        category=category,
        content=content,
        role=role,
        start_time=start_time,
        end_time=end_time,
    )
    try:
        result = NotekeeperClient().create_note(note, sync, repeat)
    except NotekeeperError as e:
        _fail(e)

    click.echo("✓ Note saved")
    if sync and not result.get("eventId"):
        click.echo("  (calendar sync did not happen)")


@main.command()
@click.argument("row_index", type=int)
@click.option("--date", "-d", "note_date", default=None)
@click.option("--category", "-c", default=None)
@click.option("--role", "-r", default=None)
@click.option("--content", default=None)
@click.option("--start", "start_time", default=None)
@click.option("--end", "end_time", default=None)
@click.option("--sync/--no-sync", default=None, help="Keep, add or remove the calendar event")
def edit(row_index, note_date, category, role, content, start_time, end_time, sync):
    """Edit the note at ROW_INDEX (see 'notekeeper notes')."""
    client = NotekeeperClient()
    try:
        note = next((n for n in client.get_notes() if n.row_index == row_index), None)
    except NotekeeperError as e:
        _fail(e)
    if note is None:
        _fail(f"No note at row {row_index}")

    if note_date is not None:
        note.date = note_date
    if category is not None:
        note.category = category
    if role is not None:
        note.role = role
    if content is not None:
        note.content = content
    if start_time is not None:
        note.start_time = start_time
    if end_time is not None:
        note.end_time = end_time
    if sync is None:
        sync = note.is_calendar_eligible or note.is_synced

    try:
        client.update_note(row_index, note, sync)
    except NotekeeperError as e:
        _fail(e)
    click.echo("✓ Note updated")


@main.command()
@click.argument("row_index", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def delete(row_index: int, yes: bool):
    """Delete the note at ROW_INDEX, and its calendar event."""
    client = NotekeeperClient()
    try:
        note = next((n for n in client.get_notes() if n.row_index == row_index), None)
    except NotekeeperError as e:
        _fail(e)
    if note is None:
        _fail(f"No note at row {row_index}")

    if not yes and not click.confirm(f"Delete note from {note.date} ({note.category})?"):
        return

    try:
        client.delete_note(row_index, note.id)
    except NotekeeperError as e:
        _fail(e)
    click.echo("✓ Note deleted")


@main.command()
@click.option("--month", "-m", default=None, help="Month (YYYY-MM), defaults to this month")
@click.option("--by", "by", type=click.Choice(["category", "role"]), default="category")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(month: str | None, by: str, as_json: bool):
    """Show monthly progress against targets."""
    month = month or current_month()
    client = NotekeeperClient()
    try:
        all_notes = client.get_notes()
        catalog = client.get_categories() if by == "category" else client.get_roles()
    except NotekeeperError as e:
        _fail(e)

    lines = aggregate(all_notes, catalog, month, key=by)

    if as_json:
        click.echo(json.dumps([line.to_api() for line in lines], indent=2, ensure_ascii=False))
        return

    if not lines:
        click.echo(f"No {by} catalog entries.")
        return

    click.echo(f"Progress for {month}\n")
    for line in lines:
        filled = int(line.percentage // 10)
        bar = "#" * filled + "." * (10 - filled)
        click.echo(f"  [{bar}] {line.format()}")
        if line.description:
            click.echo(f"               {line.description}")


if __name__ == "__main__":
    main()

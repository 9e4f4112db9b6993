"""Daybook CLI - gratitude journal."""

import asyncio
import json
import logging
import sys
from datetime import date

import click

from .config import Config, Session, load_config
from .coordination import UNSET
from .core.entries import JournalEntry
from .errors import DaybookError, RemoteFailure
from .workflows import build_session, cached_entry, cached_streak, current_owner, fetch_entries, fetch_entry

logger = logging.getLogger(__name__)


def _parse_date(target_date: str | None, config: Config) -> date:
    if not target_date:
        return config.today()
    try:
        return date.fromisoformat(target_date)
    except ValueError:
        raise click.BadParameter(f"Invalid date {target_date!r}, expected YYYY-MM-DD")


def _execute(action, config: Config):
    """Run an async action against a fresh mutation session, reporting errors like the rest of the CLI."""

    async def runner():
        async with build_session(config) as mutation_session:
            return await action(mutation_session)

    try:
        return asyncio.run(runner())
    except RemoteFailure as e:
        logger.debug(f"Remote failure: {e.cause!r}")
        click.echo(f"Error: {e.user_message}", err=True)
        sys.exit(1)
    except DaybookError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _print_entry(entry: JournalEntry | None, target: date) -> None:
    if entry is None or not entry.statements:
        click.echo(f"No entry for {target.strftime('%A, %b %d')}.")
        return

    click.echo(f"Gratitude for {target.strftime('%A, %b %d')}\n")
    for i, statement in enumerate(entry.statements):
        mood = entry.mood_at(i)
        suffix = f" {mood}" if mood else ""
        click.echo(f"{i + 1}. {statement}{suffix}")


date_option = click.option(
    "--date", "-d", "target_date", default=None, help="Entry date (YYYY-MM-DD), defaults to today"
)


@click.group()
@click.version_option(package_name="daybook")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, debug: bool):
    """Daybook - gratitude journal CLI."""
    ctx.obj = load_config()
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@click.option("--owner-id", prompt=True, help="Your account id")
@click.option("--token", prompt=True, hide_input=True, default="", help="API access token")
def login(owner_id: str, token: str):
    """Save the account used for journal entries."""
    Session(owner_id=owner_id.strip(), access_token=token.strip()).save()
    click.echo(f"Signed in as {owner_id.strip()}.")


@main.command()
def logout():
    """Forget the saved account."""
    Session.load().clear()
    click.echo("Signed out.")


@main.command()
@click.argument("statement")
@date_option
@click.option("--mood", "-m", default=None, help="Mood emoji for the statement")
@click.pass_obj
def add(config: Config, statement: str, target_date: str | None, mood: str | None):
    """Add a gratitude statement."""
    target = _parse_date(target_date, config)

    async def action(ms):
        await ms.coordinator.append_statement(target, statement, mood)
        return cached_entry(ms, target)

    _print_entry(_execute(action, config), target)


@main.command()
@click.argument("number", type=click.IntRange(min=1))
@click.argument("statement")
@date_option
@click.option("--mood", "-m", default=None, help="New mood emoji (keeps the current one if omitted)")
@click.option("--clear-mood", is_flag=True, help="Remove the statement's mood")
@click.pass_obj
def edit(config: Config, number: int, statement: str, target_date: str | None, mood: str | None, clear_mood: bool):
    """Replace statement NUMBER."""
    target = _parse_date(target_date, config)
    new_mood = None if clear_mood else (mood if mood is not None else UNSET)

    async def action(ms):
        await fetch_entry(ms, target)
        await ms.coordinator.edit_statement(target, number - 1, statement, new_mood)
        return cached_entry(ms, target)

    _print_entry(_execute(action, config), target)


@main.command()
@click.argument("number", type=click.IntRange(min=1))
@date_option
@click.pass_obj
def delete(config: Config, number: int, target_date: str | None):
    """Delete statement NUMBER."""
    target = _parse_date(target_date, config)

    async def action(ms):
        await fetch_entry(ms, target)
        await ms.coordinator.delete_statement(target, number - 1)
        return cached_entry(ms, target)

    _print_entry(_execute(action, config), target)


@main.command("delete-entry")
@date_option
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
@click.pass_obj
def delete_entry(config: Config, target_date: str | None, yes: bool):
    """Delete the whole day's entry."""
    target = _parse_date(target_date, config)
    if not yes and not click.confirm(f"Delete every statement for {target.isoformat()}?"):
        return

    async def action(ms):
        await ms.coordinator.delete_entry(target)

    _execute(action, config)
    click.echo(f"Deleted entry for {target.isoformat()}.")


@main.command()
@click.argument("number", type=click.IntRange(min=1))
@click.argument("emoji", required=False)
@date_option
@click.pass_obj
def mood(config: Config, number: int, emoji: str | None, target_date: str | None):
    """Set the mood of statement NUMBER (omit EMOJI to clear it)."""
    target = _parse_date(target_date, config)

    async def action(ms):
        await fetch_entry(ms, target)
        await ms.coordinator.set_mood(target, number - 1, emoji)
        return cached_entry(ms, target)

    _print_entry(_execute(action, config), target)


@main.command()
@date_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def show(config: Config, target_date: str | None, as_json: bool):
    """Show the entry for a day."""
    target = _parse_date(target_date, config)
    entry = _execute(lambda ms: fetch_entry(ms, target), config)

    if as_json:
        click.echo(json.dumps(entry.to_dict() if entry else None, ensure_ascii=False, indent=2))
        return
    _print_entry(entry, target)


@main.command("list")
@click.pass_obj
def list_entries(config: Config):
    """List days with entries, newest first."""
    entries = _execute(fetch_entries, config)
    if not entries:
        click.echo("No entries yet.")
        return
    for entry in entries:
        count = len(entry.statements)
        click.echo(f"{entry.entry_date.isoformat()}  {count} statement{'s' if count != 1 else ''}")


@main.command()
@click.pass_obj
def streak(config: Config):
    """Show the current streak."""

    async def action(ms):
        await ms.recompute.on_mutation_success(current_owner(ms))
        return cached_streak(ms)

    if not config.recompute_streak:
        click.echo("Streak recalculation is disabled in daybook.conf.")
        return
    value = _execute(action, config)
    if value is None:
        click.echo("Streak unavailable.", err=True)
        sys.exit(1)
    click.echo(f"Current streak: {value} day{'s' if value != 1 else ''}")

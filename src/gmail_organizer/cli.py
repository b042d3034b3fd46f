"""CLI entry point for Gmail Organizer."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterator

import click

from .auth import check_auth, get_gmail_service
from .constants import WATCH_INITIAL_DELAY_SECONDS
from .display import (
    console,
    display_cycle_summary,
    display_rules,
    display_settings,
    display_suggestions,
)
from .errors import OrganizerError
from .gmail_client import GmailMailStore
from .log import set_verbose
from .models import APPROVED, CONDITION_TYPES, Rule, Settings
from .notify import ConsoleNotifier
from .scheduler import run_periodically
from .service import OrganizerService
from .storage import StateStore


@contextmanager
def _service(with_gmail: bool = False, interactive: bool = True) -> Iterator[OrganizerService]:
    """Open the state store (and Gmail, when needed) and map errors to CLI errors."""
    try:
        with StateStore() as store:
            mail_store = GmailMailStore(get_gmail_service(interactive=interactive)) if with_gmail else None
            yield OrganizerService(store, ConsoleNotifier(), mail_store=mail_store)
    except OrganizerError as e:
        raise click.ClickException(str(e)) from e


def _update_settings(mutate: Callable[[Settings], None]) -> Settings:
    """Load, mutate and save settings under the store's write lock."""
    with _service() as service:
        with service.state_store.locked():
            settings = service.get_settings()
            mutate(settings)
            return service.save_settings(settings)


@click.group()
@click.version_option(version="0.1.0", prog_name="gmail-organizer")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Gmail Organizer - label, filter spam and learn label suggestions."""
    set_verbose(verbose)


@cli.command()
@click.option("--no-browser", is_flag=True, help="Fail instead of opening a sign-in flow (for cron jobs).")
def process(no_browser: bool) -> None:
    """Run one processing cycle over unread messages now."""
    with _service(with_gmail=True, interactive=not no_browser) as service:
        result = service.process_now()
    display_cycle_summary(result)
    if not result.completed:
        raise click.ClickException(result.error or "Processing cycle aborted.")


@cli.command()
@click.option(
    "-i",
    "--interval",
    default=None,
    type=click.IntRange(min=1),
    help="Minutes between cycles (default: from settings).",
)
@click.option("--no-delay", is_flag=True, help="Start the first cycle immediately.")
def watch(interval: int | None, no_delay: bool) -> None:
    """Process unread messages periodically until interrupted."""
    stop = threading.Event()
    with _service(with_gmail=True) as service:
        minutes = interval or service.get_settings().processing_interval_minutes
        console.print(f"[bold]Processing every {minutes} minutes.[/bold] Press Ctrl+C to stop.")
        try:
            cycles = run_periodically(
                service,
                stop,
                interval_minutes=interval,
                initial_delay=0 if no_delay else WATCH_INITIAL_DELAY_SECONDS,
                on_result=display_cycle_summary,
            )
        except KeyboardInterrupt:
            stop.set()
            console.print("[dim]Stopped.[/dim]")
            return
    console.print(f"[dim]Stopped after {cycles} cycles.[/dim]")


@cli.command()
def auth() -> None:
    """Sign in to Gmail or test the stored credentials."""
    ok, message = check_auth()
    if not ok:
        raise click.ClickException(message)
    console.print(f"[green]{message}[/green]")


# --- settings ---


@cli.group(name="settings")
def settings_group() -> None:
    """Show or change settings."""


@settings_group.command(name="show")
def settings_show() -> None:
    """Show all settings and rules."""
    with _service() as service:
        settings = service.get_settings()
    display_settings(settings)


@settings_group.command(name="set")
@click.option("--interval", default=None, type=click.IntRange(min=1), help="Processing interval in minutes.")
@click.option("--spam/--no-spam", default=None, help="Enable or disable spam detection.")
@click.option("--patterns/--no-patterns", default=None, help="Enable or disable pattern detection.")
@click.option("--auto-rules/--no-auto-rules", default=None, help="Create a rule when a suggestion is approved.")
def settings_set(
    interval: int | None,
    spam: bool | None,
    patterns: bool | None,
    auto_rules: bool | None,
) -> None:
    """Change general settings."""

    def mutate(settings: Settings) -> None:
        if interval is not None:
            settings.processing_interval_minutes = interval
        if spam is not None:
            settings.spam.enabled = spam
        if patterns is not None:
            settings.pattern_detection_enabled = patterns
        if auto_rules is not None:
            settings.auto_create_rules_from_suggestions = auto_rules

    display_settings(_update_settings(mutate))


# --- rules ---


@cli.group(name="rules")
def rules_group() -> None:
    """Manage classification rules."""


@rules_group.command(name="list")
def rules_list() -> None:
    """List rules in evaluation order."""
    with _service() as service:
        settings = service.get_settings()
    display_rules(settings)


@rules_group.command(name="add")
@click.argument("condition_type", type=click.Choice(CONDITION_TYPES))
@click.argument("value")
@click.argument("label")
def rules_add(condition_type: str, value: str, label: str) -> None:
    """Add a rule: CONDITION_TYPE contains VALUE -> LABEL."""
    rule = Rule(condition_type=condition_type, condition_value=value.strip(), target_label_name=label.strip())
    settings = _update_settings(lambda s: s.rules.append(rule))
    console.print(f"[green]Rule added ({len(settings.rules)} rules).[/green]")


@rules_group.command(name="remove")
@click.argument("index", type=click.IntRange(min=1))
def rules_remove(index: int) -> None:
    """Remove the rule at INDEX (as shown by 'rules list')."""

    def mutate(settings: Settings) -> None:
        if index > len(settings.rules):
            raise click.ClickException(f"No rule #{index} ({len(settings.rules)} rules defined).")
        settings.rules.pop(index - 1)

    _update_settings(mutate)
    console.print("[green]Rule removed.[/green]")


# --- spam ---


@cli.group(name="spam")
def spam_group() -> None:
    """Manage spam keywords and suspicious domains."""


def _add_item(items: list[str], value: str) -> None:
    if value.lower() not in {i.lower() for i in items}:
        items.append(value)


def _remove_item(items: list[str], value: str) -> None:
    lowered = value.lower()
    if lowered not in {i.lower() for i in items}:
        raise click.ClickException(f"{value!r} is not configured.")
    items[:] = [i for i in items if i.lower() != lowered]


@spam_group.command(name="add-keyword")
@click.argument("keyword")
def spam_add_keyword(keyword: str) -> None:
    """Flag subjects containing KEYWORD as spam."""
    _update_settings(lambda s: _add_item(s.spam.keywords, keyword.strip()))
    console.print("[green]Keyword added.[/green]")


@spam_group.command(name="remove-keyword")
@click.argument("keyword")
def spam_remove_keyword(keyword: str) -> None:
    """Stop flagging KEYWORD."""
    _update_settings(lambda s: _remove_item(s.spam.keywords, keyword.strip()))
    console.print("[green]Keyword removed.[/green]")


@spam_group.command(name="add-domain")
@click.argument("domain")
def spam_add_domain(domain: str) -> None:
    """Flag senders whose domain ends with DOMAIN as spam."""
    _update_settings(lambda s: _add_item(s.spam.suspicious_domains, domain.strip()))
    console.print("[green]Domain added.[/green]")


@spam_group.command(name="remove-domain")
@click.argument("domain")
def spam_remove_domain(domain: str) -> None:
    """Stop flagging DOMAIN."""
    _update_settings(lambda s: _remove_item(s.spam.suspicious_domains, domain.strip()))
    console.print("[green]Domain removed.[/green]")


# --- suggestions ---


@cli.group(name="suggestions")
def suggestions_group() -> None:
    """Review learned label suggestions."""


@suggestions_group.command(name="list")
@click.option("--all", "show_all", is_flag=True, help="Include decided suggestions.")
def suggestions_list(show_all: bool) -> None:
    """List label suggestions (pending only by default)."""
    with _service() as service:
        suggestions = service.get_suggested_labels()
    display_suggestions(suggestions, show_all=show_all)


@suggestions_group.command(name="approve")
@click.argument("suggestion_id")
def suggestions_approve(suggestion_id: str) -> None:
    """Create the suggested label (and rule, if enabled)."""
    with _service(with_gmail=True) as service:
        suggestion = service.decide_suggestion(suggestion_id, "approve")
    if suggestion.status == APPROVED:
        console.print(f'[green]Suggestion "{suggestion.suggested_name}" approved. Label created/rule updated.[/green]')
    else:
        raise click.ClickException(f'Could not create label "{suggestion.suggested_name}".')


@suggestions_group.command(name="reject")
@click.argument("suggestion_id")
def suggestions_reject(suggestion_id: str) -> None:
    """Reject a pending suggestion."""
    with _service() as service:
        suggestion = service.decide_suggestion(suggestion_id, "reject")
    console.print(f'[green]Suggestion "{suggestion.suggested_name}" rejected.[/green]')


# --- state ---


@cli.group(name="state")
def state_group() -> None:
    """Manage the local state database."""


@state_group.command(name="info")
def state_info() -> None:
    """Show state database statistics."""
    with StateStore() as store:
        info = store.get_info()

    console.print(f"[bold]Database:[/bold] {info['db_path']}")
    console.print(f"[bold]Database size:[/bold] {info['db_file_size'] / 1024:.1f} KB")
    if not info["keys"]:
        console.print("[dim]State is empty.[/dim]")
        return
    for key in info["keys"]:
        console.print(f"[bold]Stored:[/bold] {key}")


@state_group.command(name="clear")
@click.confirmation_option(prompt="Delete all settings, counters and suggestions?")
def state_clear() -> None:
    """Delete all stored settings, counters and suggestions."""
    with StateStore() as store:
        store.clear()
    console.print("[green]State cleared.[/green]")

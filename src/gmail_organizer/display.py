"""Rich-based display functions for Gmail Organizer."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import APPROVED, FAILED_CREATION, PENDING, REJECTED, CycleResult, Settings, Suggestion

console = Console()

_STATUS_COLORS = {
    PENDING: "yellow",
    APPROVED: "green",
    REJECTED: "dim",
    FAILED_CREATION: "red",
}


def _flag(value: bool) -> str:
    return "[green]on[/green]" if value else "[dim]off[/dim]"


def display_rules(settings: Settings) -> None:
    """Display rules in evaluation order (first match wins)."""
    if not settings.rules:
        console.print("[dim]No rules defined yet.[/dim]")
        return

    table = Table(title="Rules (first match wins)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Condition")
    table.add_column("Value")
    table.add_column("Label")
    table.add_column("Label ID", style="dim")

    for idx, rule in enumerate(settings.rules, start=1):
        table.add_row(
            str(idx),
            rule.condition_type,
            rule.condition_value,
            rule.target_label_name,
            rule.target_label_id or "-",
        )

    console.print(table)


def display_settings(settings: Settings) -> None:
    """Display general, spam and pattern settings."""
    lines = [
        f"[bold]Processing interval:[/bold] {settings.processing_interval_minutes} min",
        f"[bold]Spam detection:[/bold] {_flag(settings.spam.enabled)}",
        f"[bold]Pattern detection:[/bold] {_flag(settings.pattern_detection_enabled)}",
        f"[bold]Auto-create rules from suggestions:[/bold] "
        f"{_flag(settings.auto_create_rules_from_suggestions)}",
        f"[bold]Last processed:[/bold] {settings.last_processed_timestamp or 'N/A'}",
        "",
        "[bold]Spam keywords:[/bold]",
    ]
    lines.extend(f"  - {kw}" for kw in settings.spam.keywords or ["(none)"])
    lines.append("[bold]Suspicious domains:[/bold]")
    lines.extend(f"  - {d}" for d in settings.spam.suspicious_domains or ["(none)"])

    console.print(Panel("\n".join(lines), title="Settings"))
    display_rules(settings)


def display_suggestions(suggestions: list[Suggestion], show_all: bool = False) -> None:
    """Display label suggestions; only pending ones unless show_all."""
    shown = suggestions if show_all else [s for s in suggestions if s.status == PENDING]
    if not shown:
        console.print("[dim]No active suggestions.[/dim]")
        return

    table = Table(title="Label Suggestions")
    table.add_column("ID", style="dim")
    table.add_column("Suggested label")
    table.add_column("Based on")
    table.add_column("Domain")
    table.add_column("Status")

    for s in shown:
        color = _STATUS_COLORS.get(s.status, "white")
        table.add_row(
            s.id,
            s.suggested_name,
            s.based_on_label_name,
            s.based_on_domain,
            f"[{color}]{s.status}[/{color}]",
        )

    console.print(table)


def display_cycle_summary(result: CycleResult) -> None:
    """Display the outcome of one processing cycle."""
    if not result.completed:
        console.print(
            Panel(
                f"[bold red]Processing cycle aborted:[/bold red] {result.error or 'unknown error'}",
                title="Cycle",
            )
        )
        return

    lines = [
        f"Fetched: {result.fetched}  |  Processed: {result.processed}  |  "
        f"Labeled: {result.labeled}  |  Spam: {result.spam}  |  Errors: {result.errors}",
    ]
    if result.deferred:
        lines.append("[dim]More unread emails exist, they will be processed in the next cycle.[/dim]")
    for s in result.new_suggestions:
        lines.append(f'[cyan]New suggestion:[/cyan] "{s.suggested_name}" ({s.id})')

    console.print(Panel("\n".join(lines), title="Cycle Finished"))

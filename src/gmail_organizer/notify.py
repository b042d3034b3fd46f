"""User-facing notifications raised by the processing engine."""

from __future__ import annotations

from typing import Protocol

from rich.panel import Panel

from .display import console
from .models import Suggestion


class Notifier(Protocol):
    def suggestion_created(self, suggestion: Suggestion) -> None: ...

    def label_creation_failed(self, label_name: str, error: Exception) -> None: ...

    def auth_required(self, error: Exception) -> None: ...

    def api_error(self, error: Exception) -> None: ...


class ConsoleNotifier:
    """Render notifications as Rich panels on the shared console."""

    def suggestion_created(self, suggestion: Suggestion) -> None:
        console.print(
            Panel(
                f'Suggest creating label [bold]"{suggestion.suggested_name}"[/bold] for emails from '
                f"{suggestion.based_on_domain} currently labeled "
                f'"{suggestion.based_on_label_name}"?\n\n'
                f"[dim]gmail-organizer suggestions approve {suggestion.id}\n"
                f"gmail-organizer suggestions reject {suggestion.id}[/dim]",
                title="New Label Suggestion",
                border_style="cyan",
            )
        )

    def label_creation_failed(self, label_name: str, error: Exception) -> None:
        console.print(
            Panel(
                f"Could not create label: {label_name}. Error: {error}",
                title="Label Creation Failed",
                border_style="yellow",
            )
        )

    def auth_required(self, error: Exception) -> None:
        console.print(
            Panel(
                f"{error}\n\nRun [bold]gmail-organizer auth[/bold] to sign in again.",
                title="Authentication Required",
                border_style="red",
            )
        )

    def api_error(self, error: Exception) -> None:
        console.print(
            Panel(
                f"Could not connect to Gmail: {error}. "
                "Please check your connection or try again later.",
                title="Gmail API Error",
                border_style="red",
            )
        )

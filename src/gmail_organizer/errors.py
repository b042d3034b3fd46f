"""Exception taxonomy for Gmail Organizer."""

from __future__ import annotations


class OrganizerError(Exception):
    """Base class for all Gmail Organizer errors."""


class AuthRequired(OrganizerError):
    """No valid Gmail credential; the user must re-authenticate."""


class TransportError(OrganizerError):
    """Gmail API call failed (rate limit, network, server or client error)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class LabelCreationFailed(TransportError):
    """Gmail refused or failed to create a label."""


class SuggestionNotFound(OrganizerError, KeyError):
    """No suggestion with the given id."""

    def __str__(self) -> str:
        return f"Suggestion not found: {self.args[0]}" if self.args else "Suggestion not found"


class InvalidSuggestionState(OrganizerError):
    """Operation attempted on a suggestion that is no longer pending."""

    def __init__(self, suggestion_id: str, status: str) -> None:
        super().__init__(f"Suggestion {suggestion_id} is {status}, expected pending")
        self.suggestion_id = suggestion_id
        self.status = status


class SettingsError(OrganizerError, ValueError):
    """Settings failed validation."""


class CycleAlreadyRunning(OrganizerError):
    """A processing cycle is already in progress."""

"""Request/response operations exposed to the CLI and trigger layers."""

from __future__ import annotations

from .cycle import run_cycle
from .errors import AuthRequired, InvalidSuggestionState
from .gmail_client import MailStore
from .labels import LabelCache, LabelResolver
from .models import PENDING, CycleResult, Settings, Suggestion
from .notify import Notifier
from .settings import load_settings, save_settings
from .storage import StateStore
from .suggestions import SuggestionStore


class OrganizerService:
    """One call, one outcome.

    `mail_store` may be None for operations that only touch local state
    (settings, listing and rejecting suggestions).
    """

    def __init__(self, state_store: StateStore, notifier: Notifier, mail_store: MailStore | None = None) -> None:
        self.state_store = state_store
        self.notifier = notifier
        self.mail_store = mail_store
        self.suggestions = SuggestionStore(state_store)

    def _require_mail_store(self) -> MailStore:
        if self.mail_store is None:
            raise AuthRequired("This operation needs Gmail access. Run 'gmail-organizer auth' first.")
        return self.mail_store

    def _resolver(self) -> LabelResolver:
        store = self._require_mail_store()
        cache = LabelCache()
        cache.refresh(store)
        return LabelResolver(store, cache, self.notifier)

    def get_settings(self) -> Settings:
        return load_settings(self.state_store)

    def save_settings(self, settings: Settings) -> Settings:
        return save_settings(self.state_store, settings)

    def process_now(self) -> CycleResult:
        return run_cycle(self._require_mail_store(), self.state_store, self.notifier)

    def get_suggested_labels(self) -> list[Suggestion]:
        return self.suggestions.list()

    def approve_suggestion(self, suggestion_id: str) -> Suggestion:
        # Validate before touching Gmail so unknown or decided ids fail fast.
        current = self.suggestions.get(suggestion_id)
        if current.status != PENDING:
            raise InvalidSuggestionState(suggestion_id, current.status)
        return self.suggestions.approve(suggestion_id, self._resolver())

    def reject_suggestion(self, suggestion_id: str) -> Suggestion:
        return self.suggestions.reject(suggestion_id)

    def decide_suggestion(self, suggestion_id: str, decision: str) -> Suggestion:
        """Single entry point replacing the notification-button callback."""
        if decision == "approve":
            return self.approve_suggestion(suggestion_id)
        return self.suggestions.decide(suggestion_id, decision)

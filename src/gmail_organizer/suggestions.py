"""Persisted label suggestions and their approval lifecycle.

pending -> approved | rejected | failed_creation; the targets are terminal.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from .constants import KEY_SUGGESTIONS
from .errors import InvalidSuggestionState, SuggestionNotFound
from .labels import LabelResolver
from .log import get_logger
from .models import APPROVED, FAILED_CREATION, PENDING, REJECTED, Rule, Suggestion
from .settings import append_rule, load_settings
from .storage import StateStore

logger = get_logger(__name__)


def suggestion_from_dict(data: dict[str, Any]) -> Suggestion:
    return Suggestion(
        id=data["id"],
        suggested_name=data["suggested_name"],
        based_on_domain=data.get("based_on_domain", ""),
        based_on_label_id=data.get("based_on_label_id", ""),
        based_on_label_name=data.get("based_on_label_name", ""),
        status=data.get("status", PENDING),
        created_label_id=data.get("created_label_id"),
        created_at=data.get("created_at", ""),
    )


class SuggestionStore:
    """Suggestion history kept under a single state-store key.

    Suggestions are never deleted.  Every mutation is a read-modify-write
    under the store's write lock.
    """

    def __init__(self, store: StateStore) -> None:
        self.store = store

    def list(self) -> list[Suggestion]:
        return [suggestion_from_dict(d) for d in self.store.load(KEY_SUGGESTIONS, [])]

    def _save(self, suggestions: list[Suggestion]) -> None:
        self.store.save(KEY_SUGGESTIONS, [asdict(s) for s in suggestions])

    def get(self, suggestion_id: str) -> Suggestion:
        for s in self.list():
            if s.id == suggestion_id:
                return s
        raise SuggestionNotFound(suggestion_id)

    def pending(self) -> list[Suggestion]:
        return [s for s in self.list() if s.status == PENDING]

    def add(self, suggestion: Suggestion) -> bool:
        """Append a suggestion unless one with the same name exists.

        Returns False when the name is already taken (any status).
        """
        with self.store.locked():
            suggestions = self.list()
            wanted = suggestion.suggested_name.lower()
            if any(s.suggested_name.lower() == wanted for s in suggestions):
                return False
            suggestions.append(suggestion)
            self._save(suggestions)
        return True

    def _transition(self, suggestion_id: str, status: str, created_label_id: str | None = None) -> Suggestion:
        with self.store.locked():
            suggestions = self.list()
            current = next((s for s in suggestions if s.id == suggestion_id), None)
            if current is None:
                raise SuggestionNotFound(suggestion_id)
            if current.status != PENDING:
                raise InvalidSuggestionState(suggestion_id, current.status)
            current.status = status
            if created_label_id is not None:
                current.created_label_id = created_label_id
            self._save(suggestions)
        return current

    def approve(self, suggestion_id: str, resolver: LabelResolver) -> Suggestion:
        """Create (or find) the suggested label and mark the suggestion.

        The label is resolved outside the write lock; the pending state is
        re-checked under the lock before the outcome is recorded.
        """
        suggestion = self.get(suggestion_id)
        if suggestion.status != PENDING:
            raise InvalidSuggestionState(suggestion_id, suggestion.status)

        label_id = resolver.resolve(suggestion.suggested_name)
        if label_id is None:
            logger.error("Failed to create label for suggestion: %s", suggestion.suggested_name)
            return self._transition(suggestion_id, FAILED_CREATION)

        with self.store.locked():
            approved = self._transition(suggestion_id, APPROVED, created_label_id=label_id)
            if load_settings(self.store).auto_create_rules_from_suggestions:
                append_rule(
                    self.store,
                    Rule(
                        condition_type="sender",
                        condition_value=f"@{approved.based_on_domain}",
                        target_label_name=approved.suggested_name,
                        target_label_id=label_id,
                    ),
                )
                logger.info("Rule auto-created for approved suggestion: %s", approved.suggested_name)
        logger.info('Suggestion approved and label "%s" created/found.', approved.suggested_name)
        return approved

    def reject(self, suggestion_id: str) -> Suggestion:
        rejected = self._transition(suggestion_id, REJECTED)
        logger.info("Suggestion rejected: %s", rejected.suggested_name)
        return rejected

    def decide(self, suggestion_id: str, decision: str, resolver: LabelResolver | None = None) -> Suggestion:
        """Apply an "approve" or "reject" decision to a pending suggestion."""
        if decision == "approve":
            if resolver is None:
                raise ValueError("Approving a suggestion requires a label resolver.")
            return self.approve(suggestion_id, resolver)
        if decision == "reject":
            return self.reject(suggestion_id)
        raise ValueError(f"Unknown decision {decision!r} (expected 'approve' or 'reject').")

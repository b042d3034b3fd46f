"""Shared fixtures for tests."""

from __future__ import annotations

import pytest

from gmail_organizer.errors import AuthRequired, LabelCreationFailed, TransportError
from gmail_organizer.labels import LabelCache, LabelResolver
from gmail_organizer.models import NormalizedMessage, Rule, Settings, SpamConfig, Suggestion
from gmail_organizer.storage import StateStore


class FakeMailStore:
    """In-memory stand-in for the Gmail mail/label store."""

    def __init__(self, labels: dict[str, str] | None = None) -> None:
        self.labels: dict[str, str] = dict(labels or {})
        self.messages: dict[str, NormalizedMessage] = {}
        self.unread: list[str] = []
        self.modified: list[tuple[str, list[str], list[str]]] = []
        self.created: list[str] = []
        self.list_label_calls = 0
        self.fail_create = False
        self.fail_list = False
        self.fail_list_labels = False
        self.fail_modify = False
        self.fail_get: set[str] = set()
        self.auth_fail_get: set[str] = set()
        self._next_label = 1

    def add_message(self, message: NormalizedMessage) -> None:
        self.messages[message.id] = message
        self.unread.append(message.id)

    def list_unread_messages(self, limit: int) -> list[str]:
        if self.fail_list:
            raise TransportError("Gmail API error (503) while trying to list unread messages", status=503)
        return self.unread[:limit]

    def get_message(self, message_id: str) -> NormalizedMessage:
        if message_id in self.auth_fail_get:
            raise AuthRequired("token revoked")
        if message_id in self.fail_get:
            raise TransportError(f"Gmail API error (500) while trying to fetch message {message_id}", status=500)
        return self.messages[message_id]

    def list_labels(self) -> list[dict[str, str]]:
        self.list_label_calls += 1
        if self.fail_list_labels:
            raise TransportError("Gmail API error (503) while trying to list labels", status=503)
        return [{"id": label_id, "name": name} for label_id, name in self.labels.items()]

    def create_label(self, name: str) -> dict[str, str]:
        self.created.append(name)
        if self.fail_create:
            raise LabelCreationFailed(f"Gmail API error (409) while trying to create label {name!r}", status=409)
        label_id = f"Label_{self._next_label}"
        self._next_label += 1
        self.labels[label_id] = name
        return {"id": label_id, "name": name}

    def modify_message_labels(self, message_id: str, add: list[str], remove: list[str]) -> None:
        if self.fail_modify:
            raise TransportError("Gmail API error (429) while trying to modify labels", status=429)
        self.modified.append((message_id, list(add), list(remove)))
        if "UNREAD" in remove and message_id in self.unread:
            self.unread.remove(message_id)

    def labels_added_to(self, message_id: str) -> list[str]:
        return [label for mid, add, _ in self.modified if mid == message_id for label in add]


class RecordingNotifier:
    """Notifier that records calls instead of printing."""

    def __init__(self) -> None:
        self.suggestions: list[Suggestion] = []
        self.label_failures: list[str] = []
        self.auth_errors: list[Exception] = []
        self.api_errors: list[Exception] = []

    def suggestion_created(self, suggestion: Suggestion) -> None:
        self.suggestions.append(suggestion)

    def label_creation_failed(self, label_name: str, error: Exception) -> None:
        self.label_failures.append(label_name)

    def auth_required(self, error: Exception) -> None:
        self.auth_errors.append(error)

    def api_error(self, error: Exception) -> None:
        self.api_errors.append(error)


@pytest.fixture
def mail_store() -> FakeMailStore:
    return FakeMailStore(labels={"INBOX": "INBOX", "UNREAD": "UNREAD", "Label_finance": "Finance"})


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def state_store(tmp_path):
    with StateStore(db_path=tmp_path / "state.db") as store:
        yield store


@pytest.fixture
def resolver(mail_store: FakeMailStore, notifier: RecordingNotifier) -> LabelResolver:
    cache = LabelCache()
    cache.refresh(mail_store)
    return LabelResolver(mail_store, cache, notifier)


@pytest.fixture
def billing_message() -> NormalizedMessage:
    return NormalizedMessage(
        id="msg_bill_001",
        sender_header="Billing Alerts <alerts@billing.example.com>",
        subject_header="Your invoice is ready",
        text_snippet="Your monthly statement is attached.",
    )


@pytest.fixture
def spam_message() -> NormalizedMessage:
    return NormalizedMessage(
        id="msg_spam_001",
        sender_header="Prize Desk <winner@lottery.example.com>",
        subject_header="You Won!!! Claim Now",
        text_snippet="Click here to claim your invoice refund",
    )


@pytest.fixture
def finance_rule() -> Rule:
    return Rule(condition_type="sender", condition_value="billing.example.com", target_label_name="Finance")


@pytest.fixture
def settings(finance_rule: Rule) -> Settings:
    return Settings(
        rules=[finance_rule],
        spam=SpamConfig(enabled=True, keywords=["free money"], suspicious_domains=["shady.biz"]),
    )


def make_message(message_id: str, sender: str, subject: str = "Hello", snippet: str = "") -> NormalizedMessage:
    return NormalizedMessage(id=message_id, sender_header=sender, subject_header=subject, text_snippet=snippet)

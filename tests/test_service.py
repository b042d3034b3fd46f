"""Tests for the organizer service and the periodic trigger."""

import threading

import pytest

from gmail_organizer.errors import AuthRequired, InvalidSuggestionState, SuggestionNotFound
from gmail_organizer.models import APPROVED, REJECTED, Settings, Suggestion
from gmail_organizer.scheduler import run_periodically
from gmail_organizer.service import OrganizerService


@pytest.fixture
def service(state_store, notifier, mail_store):
    svc = OrganizerService(state_store, notifier, mail_store=mail_store)
    svc.suggestions.add(
        Suggestion(
            id="sugg_1",
            suggested_name="Finance - billing.example.com",
            based_on_domain="billing.example.com",
            based_on_label_id="Label_finance",
            based_on_label_name="Finance",
        )
    )
    return svc


def test_settings_round_trip(service, finance_rule):
    saved = service.save_settings(Settings(rules=[finance_rule], processing_interval_minutes=3))

    assert service.get_settings() == saved
    assert saved.processing_interval_minutes == 3


def test_process_now(service, mail_store, billing_message, finance_rule):
    service.save_settings(Settings(rules=[finance_rule]))
    mail_store.add_message(billing_message)

    result = service.process_now()

    assert result.completed is True
    assert result.labeled == 1


def test_local_operations_without_gmail(state_store, notifier):
    """Settings and rejection work with no Gmail connection."""
    service = OrganizerService(state_store, notifier)
    service.suggestions.add(
        Suggestion(
            id="sugg_2",
            suggested_name="Travel - air.example",
            based_on_domain="air.example",
            based_on_label_id="Label_travel",
            based_on_label_name="Travel",
        )
    )

    assert service.get_settings().rules == []
    assert service.decide_suggestion("sugg_2", "reject").status == REJECTED
    with pytest.raises(AuthRequired):
        service.process_now()


def test_approve_unknown_id_fails_without_gmail(state_store, notifier):
    service = OrganizerService(state_store, notifier)

    with pytest.raises(SuggestionNotFound):
        service.approve_suggestion("sugg_missing")


def test_decide_suggestion(service, mail_store):
    approved = service.decide_suggestion("sugg_1", "approve")

    assert approved.status == APPROVED
    assert mail_store.created == ["Finance - billing.example.com"]
    assert service.get_suggested_labels()[0].status == APPROVED


def test_approve_decided_suggestion_fails_before_gmail(service, mail_store):
    service.reject_suggestion("sugg_1")
    calls_before = mail_store.list_label_calls

    with pytest.raises(InvalidSuggestionState):
        service.approve_suggestion("sugg_1")
    assert mail_store.list_label_calls == calls_before


def test_decide_unknown_decision(service):
    with pytest.raises(ValueError):
        service.decide_suggestion("sugg_1", "later")


def test_run_periodically_stops_on_event(service):
    """The loop runs a cycle, then exits once the stop event is set."""
    stop = threading.Event()
    results = []

    def on_result(result):
        results.append(result)
        stop.set()

    cycles = run_periodically(service, stop, interval_minutes=1, initial_delay=0, on_result=on_result)

    assert cycles == 1
    assert results[0].completed is True


def test_run_periodically_stopped_before_start(service, mail_store):
    stop = threading.Event()
    stop.set()

    assert run_periodically(service, stop, initial_delay=0) == 0
    assert mail_store.list_label_calls == 0


def test_run_periodically_propagates_auth_failure(state_store, notifier):
    service = OrganizerService(state_store, notifier)

    with pytest.raises(AuthRequired):
        run_periodically(service, threading.Event(), interval_minutes=1, initial_delay=0)

"""Tests for the rule matcher."""

from conftest import make_message

from gmail_organizer.matcher import first_matching_rule, matches
from gmail_organizer.models import Rule


def test_sender_rule_case_insensitive():
    msg = make_message("m1", "Alerts <ALERTS@Billing.Example.com>")
    rule = Rule(condition_type="sender", condition_value="billing.example.COM", target_label_name="Finance")
    assert matches(msg, rule)


def test_sender_rule_ignores_subject():
    """A sender rule must not match on subject text."""
    msg = make_message("m1", "bob@example.com", subject="Invoice from billing.example.com")
    rule = Rule(condition_type="sender", condition_value="billing.example.com", target_label_name="Finance")
    assert not matches(msg, rule)


def test_subject_rule():
    msg = make_message("m1", "bob@example.com", subject="Weekly Team Sync")
    assert matches(msg, Rule("subject", "team sync", "Meetings"))
    assert not matches(msg, Rule("subject", "standup", "Meetings"))


def test_keyword_rule_checks_subject_and_snippet():
    in_subject = make_message("m1", "a@example.com", subject="Your ORDER shipped", snippet="")
    in_snippet = make_message("m2", "a@example.com", subject="Update", snippet="tracking for your order 123")
    neither = make_message("m3", "order@example.com", subject="Update", snippet="nothing here")

    rule = Rule("keyword", "order", "Shopping")
    assert matches(in_subject, rule)
    assert matches(in_snippet, rule)
    # keyword rules do not look at the sender
    assert not matches(neither, rule)


def test_unknown_condition_type_never_matches():
    msg = make_message("m1", "a@example.com", subject="anything", snippet="anything")
    assert not matches(msg, Rule("header", "anything", "Other"))


def test_first_matching_rule_respects_order():
    msg = make_message("m1", "alerts@billing.example.com", subject="Invoice")
    r1 = Rule("subject", "invoice", "Invoices")
    r2 = Rule("sender", "billing.example.com", "Finance")
    assert first_matching_rule(msg, [r1, r2]) is r1
    assert first_matching_rule(msg, [r2, r1]) is r2
    assert first_matching_rule(msg, []) is None

"""Tests for settings persistence and validation."""

import pytest

from gmail_organizer.constants import DEFAULT_PROCESSING_INTERVAL_MINUTES, DEFAULT_SPAM_KEYWORDS, KEY_SETTINGS
from gmail_organizer.errors import SettingsError
from gmail_organizer.models import Rule, Settings
from gmail_organizer.settings import (
    append_rule,
    backfill_rule_label_ids,
    load_settings,
    record_last_processed,
    save_settings,
    settings_from_dict,
)


def test_defaults_when_nothing_stored(state_store):
    settings = load_settings(state_store)

    assert settings.rules == []
    assert settings.spam.enabled is True
    assert settings.spam.keywords == list(DEFAULT_SPAM_KEYWORDS)
    assert settings.spam.suspicious_domains == []
    assert settings.processing_interval_minutes == DEFAULT_PROCESSING_INTERVAL_MINUTES
    assert settings.auto_create_rules_from_suggestions is False
    assert settings.pattern_detection_enabled is True
    assert settings.last_processed_timestamp is None


def test_partial_dict_merges_over_defaults():
    settings = settings_from_dict({"spam": {"enabled": False}, "processing_interval_minutes": 15, "extra": 1})

    assert settings.spam.enabled is False
    assert settings.spam.keywords == list(DEFAULT_SPAM_KEYWORDS)
    assert settings.processing_interval_minutes == 15


def test_empty_keyword_list_is_kept():
    """An explicitly emptied keyword list does not revert to the defaults."""
    assert settings_from_dict({"spam": {"keywords": []}}).spam.keywords == []


def test_stored_interval_is_clamped():
    assert settings_from_dict({"processing_interval_minutes": 0}).processing_interval_minutes == 1
    assert settings_from_dict({"processing_interval_minutes": "soon"}).processing_interval_minutes == (
        DEFAULT_PROCESSING_INTERVAL_MINUTES
    )


def test_save_round_trip(state_store, finance_rule):
    settings = Settings(rules=[finance_rule], processing_interval_minutes=7)
    settings.spam.keywords = [" Prize ", "prize", "urgent"]

    saved = save_settings(state_store, settings)

    assert saved.rules == [finance_rule]
    assert saved.processing_interval_minutes == 7
    assert saved.spam.keywords == ["Prize", "urgent"]
    assert "last_processed_timestamp" not in state_store.load(KEY_SETTINGS)


def test_save_rejects_bad_interval(state_store):
    with pytest.raises(SettingsError):
        save_settings(state_store, Settings(processing_interval_minutes=0))
    assert state_store.load(KEY_SETTINGS) is None


def test_save_rejects_bad_rules(state_store):
    with pytest.raises(SettingsError, match="unknown condition type"):
        save_settings(state_store, Settings(rules=[Rule("header", "x", "Label")]))
    with pytest.raises(SettingsError, match="cannot be empty"):
        save_settings(state_store, Settings(rules=[Rule("sender", "  ", "Label")]))


def test_last_processed_is_separate(state_store):
    save_settings(state_store, Settings())
    record_last_processed(state_store, "2026-01-01T00:00:00+00:00")

    assert load_settings(state_store).last_processed_timestamp == "2026-01-01T00:00:00+00:00"


def test_append_rule(state_store, finance_rule):
    save_settings(state_store, Settings(rules=[finance_rule]))

    settings = append_rule(state_store, Rule("subject", "flight", "Travel"))

    assert [r.target_label_name for r in settings.rules] == ["Finance", "Travel"]


def test_backfill_rule_label_ids(state_store, finance_rule):
    """Resolved ids are written back onto the matching stored rules only."""
    other = Rule("subject", "flight", "Travel")
    save_settings(state_store, Settings(rules=[finance_rule, other]))

    resolved = Rule("sender", "billing.example.com", "finance", target_label_id="Label_finance")
    assert backfill_rule_label_ids(state_store, [resolved]) == 1
    assert backfill_rule_label_ids(state_store, [resolved]) == 0

    rules = load_settings(state_store).rules
    assert rules[0].target_label_id == "Label_finance"
    assert rules[1].target_label_id is None


def test_append_rule_ignores_invalid_stored_rules(state_store, finance_rule):
    """Appending validates only the new rule."""
    legacy = {"condition_type": "header", "condition_value": "x", "target_label_name": "Old"}
    state_store.save(KEY_SETTINGS, {"rules": [legacy]})

    settings = append_rule(state_store, finance_rule)

    assert [r.condition_type for r in settings.rules] == ["header", "sender"]
    with pytest.raises(SettingsError):
        append_rule(state_store, Rule("sender", "", "Finance"))
    assert len(load_settings(state_store).rules) == 2

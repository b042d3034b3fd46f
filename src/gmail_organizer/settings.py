"""Settings serialization, validation and persistence."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from .constants import DEFAULT_PROCESSING_INTERVAL_MINUTES, KEY_LAST_PROCESSED, KEY_SETTINGS
from .errors import SettingsError
from .log import get_logger
from .models import CONDITION_TYPES, Rule, Settings, SpamConfig
from .storage import StateStore

logger = get_logger(__name__)


def rule_from_dict(data: dict[str, Any]) -> Rule:
    return Rule(
        condition_type=str(data.get("condition_type", "")),
        condition_value=str(data.get("condition_value", "")),
        target_label_name=str(data.get("target_label_name", "")),
        target_label_id=data.get("target_label_id") or None,
    )


def _clean_list(values: Any) -> list[str]:
    """Strip, drop empties and de-duplicate case-insensitively, keeping order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values or []:
        item = str(value).strip()
        if item and item.lower() not in seen:
            seen.add(item.lower())
            result.append(item)
    return result


def settings_from_dict(data: dict[str, Any] | None) -> Settings:
    """Merge stored settings over the defaults; unknown keys are ignored."""
    data = data or {}
    defaults = Settings()
    spam_data = data.get("spam") or {}

    spam = SpamConfig(
        enabled=bool(spam_data.get("enabled", defaults.spam.enabled)),
        keywords=_clean_list(spam_data["keywords"]) if "keywords" in spam_data else defaults.spam.keywords,
        suspicious_domains=_clean_list(spam_data.get("suspicious_domains")),
    )

    try:
        interval = int(data.get("processing_interval_minutes", DEFAULT_PROCESSING_INTERVAL_MINUTES))
    except (TypeError, ValueError):
        interval = DEFAULT_PROCESSING_INTERVAL_MINUTES

    return Settings(
        rules=[rule_from_dict(r) for r in data.get("rules") or []],
        spam=spam,
        processing_interval_minutes=max(1, interval),
        auto_create_rules_from_suggestions=bool(
            data.get("auto_create_rules_from_suggestions", defaults.auto_create_rules_from_suggestions)
        ),
        pattern_detection_enabled=bool(
            data.get("pattern_detection_enabled", defaults.pattern_detection_enabled)
        ),
    )


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    """Serialize settings for storage; the last-processed time is kept separately."""
    data = asdict(settings)
    data.pop("last_processed_timestamp", None)
    return data


def validate_rule(rule: Rule, index: int) -> None:
    """Raise SettingsError if the rule at this 1-based position is invalid."""
    if rule.condition_type not in CONDITION_TYPES:
        raise SettingsError(
            f"Rule #{index}: unknown condition type {rule.condition_type!r} "
            f"(expected one of {', '.join(CONDITION_TYPES)})."
        )
    if not rule.condition_value.strip() or not rule.target_label_name.strip():
        raise SettingsError(f"Rule #{index}: condition value and label name cannot be empty.")


def validate_settings(settings: Settings) -> None:
    """Raise SettingsError if settings violate their invariants."""
    if settings.processing_interval_minutes < 1:
        raise SettingsError("Processing interval must be at least 1 minute.")
    for index, rule in enumerate(settings.rules, start=1):
        validate_rule(rule, index)


def load_settings(store: StateStore) -> Settings:
    """Load settings (defaults when nothing is stored yet)."""
    settings = settings_from_dict(store.load(KEY_SETTINGS))
    settings.last_processed_timestamp = store.load(KEY_LAST_PROCESSED)
    return settings


def save_settings(store: StateStore, settings: Settings) -> Settings:
    """Validate and persist settings, returning the stored view."""
    settings.spam.keywords = _clean_list(settings.spam.keywords)
    settings.spam.suspicious_domains = _clean_list(settings.spam.suspicious_domains)
    validate_settings(settings)
    store.save(KEY_SETTINGS, settings_to_dict(settings))
    logger.info("Settings saved (%d rules).", len(settings.rules))
    return load_settings(store)


def record_last_processed(store: StateStore, timestamp: str) -> None:
    store.save(KEY_LAST_PROCESSED, timestamp)


def append_rule(store: StateStore, rule: Rule) -> Settings:
    """Append a rule to the persisted rule list under the store's write lock.

    Only the new rule is validated; rules already stored are kept as they are.
    """
    with store.locked():
        settings = load_settings(store)
        validate_rule(rule, len(settings.rules) + 1)
        settings.rules.append(rule)
        store.save(KEY_SETTINGS, settings_to_dict(settings))
    logger.info("Rule appended (%d rules).", len(settings.rules))
    return load_settings(store)


def backfill_rule_label_ids(store: StateStore, resolved: list[Rule]) -> int:
    """Persist label ids resolved during a cycle onto the matching stored rules.

    Stored rules are matched on (type, value, label name) so that edits saved
    while the cycle ran are not overwritten.  Returns the number updated.
    """
    if not resolved:
        return 0
    wanted = {
        (r.condition_type, r.condition_value, r.target_label_name.lower()): r.target_label_id
        for r in resolved
        if r.target_label_id
    }
    updated = 0
    with store.locked():
        data = store.load(KEY_SETTINGS)
        if not data:
            return 0
        for rule in data.get("rules") or []:
            key = (
                rule.get("condition_type"),
                rule.get("condition_value"),
                str(rule.get("target_label_name", "")).lower(),
            )
            if key in wanted and rule.get("target_label_id") != wanted[key]:
                rule["target_label_id"] = wanted[key]
                updated += 1
        if updated:
            store.save(KEY_SETTINGS, data)
    return updated

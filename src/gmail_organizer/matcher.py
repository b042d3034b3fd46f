"""Rule matching against normalized messages."""

from __future__ import annotations

from .models import NormalizedMessage, Rule


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def matches(message: NormalizedMessage, rule: Rule) -> bool:
    """Return True if the rule's condition holds for the message.

    Comparisons are case-insensitive substring checks.  Unknown condition
    types never match.
    """
    value = rule.condition_value
    if not value:
        return False

    if rule.condition_type == "sender":
        return _contains(message.sender_header, value)
    if rule.condition_type == "subject":
        return _contains(message.subject_header, value)
    if rule.condition_type == "keyword":
        return _contains(message.subject_header, value) or _contains(message.text_snippet, value)
    return False


def first_matching_rule(message: NormalizedMessage, rules: list[Rule]) -> Rule | None:
    """Return the first rule in configured order that matches, if any."""
    for rule in rules:
        if matches(message, rule):
            return rule
    return None

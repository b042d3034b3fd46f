"""Data models for Gmail Organizer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from .constants import DEFAULT_PROCESSING_INTERVAL_MINUTES, DEFAULT_SPAM_KEYWORDS

ConditionType = Literal["sender", "subject", "keyword"]
CONDITION_TYPES: tuple[str, ...] = ("sender", "subject", "keyword")

SuggestionStatus = Literal["pending", "approved", "rejected", "failed_creation"]
PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
FAILED_CREATION = "failed_creation"
SUGGESTION_STATUSES: tuple[str, ...] = (PENDING, APPROVED, REJECTED, FAILED_CREATION)

Decision = Literal["approve", "reject"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Rule:
    """User-defined condition -> label mapping."""

    condition_type: str
    condition_value: str
    target_label_name: str
    target_label_id: str | None = None  # resolved lazily on first application


@dataclass(frozen=True)
class NormalizedMessage:
    """Projection of a Gmail message that all matching operates on."""

    id: str
    sender_header: str
    subject_header: str
    text_snippet: str = ""


@dataclass
class SpamConfig:
    """Spam heuristic configuration."""

    enabled: bool = True
    keywords: list[str] = field(default_factory=lambda: list(DEFAULT_SPAM_KEYWORDS))
    suspicious_domains: list[str] = field(default_factory=list)


@dataclass
class Settings:
    """User settings, held unchanged for the duration of one cycle."""

    rules: list[Rule] = field(default_factory=list)
    spam: SpamConfig = field(default_factory=SpamConfig)
    processing_interval_minutes: int = DEFAULT_PROCESSING_INTERVAL_MINUTES
    auto_create_rules_from_suggestions: bool = False
    pattern_detection_enabled: bool = True
    last_processed_timestamp: str | None = None


@dataclass
class Suggestion:
    """System-proposed label derived from recurring domain/label co-occurrence."""

    id: str
    suggested_name: str
    based_on_domain: str
    based_on_label_id: str
    based_on_label_name: str
    status: str = PENDING
    created_label_id: str | None = None
    created_at: str = field(default_factory=utc_now_iso)


@dataclass
class ClassificationResult:
    """Outcome of classifying one message."""

    label_ids_to_add: list[str] = field(default_factory=list)
    matched_rule_label_id: str | None = None
    matched_rule: Rule | None = None
    is_spam: bool = False


@dataclass
class CycleResult:
    """Summary of one processing cycle."""

    started_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None
    fetched: int = 0
    processed: int = 0
    labeled: int = 0
    spam: int = 0
    errors: int = 0
    deferred: bool = False
    completed: bool = False
    error: str | None = None
    new_suggestions: list[Suggestion] = field(default_factory=list)

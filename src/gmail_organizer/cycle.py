"""Processing cycle: one bounded, sequential pass over unread messages."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field

from .classifier import apply_classification, classify
from .constants import BATCH_SIZE, CYCLE_LEASE_SECONDS, PATTERN_THRESHOLD, SPAM_LABEL_NAME
from .errors import AuthRequired, CycleAlreadyRunning, OrganizerError, TransportError
from .gmail_client import MailStore
from .labels import LabelCache, LabelResolver
from .learner import load_counters, observe, save_counters
from .log import get_logger
from .models import ClassificationResult, CycleResult, NormalizedMessage, Rule, Settings, Suggestion, utc_now_iso
from .notify import Notifier
from .settings import backfill_rule_label_ids, load_settings, record_last_processed
from .storage import StateStore
from .suggestions import SuggestionStore

logger = get_logger(__name__)

CYCLE_LEASE_NAME = "processing_cycle"


@dataclass
class CycleContext:
    """Everything one cycle reads and mutates, built fresh per invocation."""

    mail_store: MailStore
    state_store: StateStore
    notifier: Notifier
    settings: Settings
    label_cache: LabelCache
    resolver: LabelResolver
    suggestions: SuggestionStore
    threshold: int = PATTERN_THRESHOLD
    resolved_rules: list[Rule] = field(default_factory=list)


def build_context(
    mail_store: MailStore,
    state_store: StateStore,
    notifier: Notifier,
    threshold: int = PATTERN_THRESHOLD,
) -> CycleContext:
    """Reload settings and refresh the label cache; each step may fail alone."""
    try:
        settings = load_settings(state_store)
    except (ValueError, sqlite3.Error) as exc:
        logger.error("Error loading settings, using defaults: %s", exc)
        settings = Settings()

    label_cache = LabelCache()
    try:
        label_cache.refresh(mail_store)
    except TransportError as exc:
        logger.error("Error fetching labels: %s", exc)

    return CycleContext(
        mail_store=mail_store,
        state_store=state_store,
        notifier=notifier,
        settings=settings,
        label_cache=label_cache,
        resolver=LabelResolver(mail_store, label_cache, notifier),
        suggestions=SuggestionStore(state_store),
        threshold=threshold,
    )


def learn_from_message(
    context: CycleContext, message: NormalizedMessage, result: ClassificationResult
) -> Suggestion | None:
    """Update domain/label counters for a rule-labeled message."""
    label_id = result.matched_rule_label_id
    if not label_id or result.is_spam:
        return None
    label_name = context.label_cache.name_of(label_id) or (
        result.matched_rule.target_label_name if result.matched_rule else label_id
    )
    if label_name.lower() == SPAM_LABEL_NAME.lower():
        return None

    store = context.state_store
    with store.locked():
        counters, suggestion = observe(
            message,
            label_id,
            load_counters(store),
            context.suggestions.list(),
            context.threshold,
            label_name,
            context.label_cache.names(),
        )
        save_counters(store, counters)
        if suggestion is not None and not context.suggestions.add(suggestion):
            suggestion = None

    if suggestion is not None:
        context.notifier.suggestion_created(suggestion)
    return suggestion


def process_message(context: CycleContext, message_id: str, cycle: CycleResult) -> None:
    """Fetch, classify, label and learn from one message."""
    message = context.mail_store.get_message(message_id)
    result = classify(message, context.settings, context.resolver)

    if result.matched_rule is not None and result.matched_rule_label_id:
        context.resolved_rules.append(result.matched_rule)

    applied = bool(result.label_ids_to_add) and apply_classification(context.mail_store, message.id, result)
    if applied:
        cycle.labeled += 1
    if result.is_spam:
        cycle.spam += 1

    # A failed apply leaves the message unread; it is counted when it is retried.
    if applied and context.settings.pattern_detection_enabled and result.matched_rule_label_id:
        suggestion = learn_from_message(context, message, result)
        if suggestion is not None:
            cycle.new_suggestions.append(suggestion)

    cycle.processed += 1


def run_cycle(
    mail_store: MailStore,
    state_store: StateStore,
    notifier: Notifier,
    batch_size: int = BATCH_SIZE,
    threshold: int = PATTERN_THRESHOLD,
) -> CycleResult:
    """Run one processing cycle.

    Raises CycleAlreadyRunning if another cycle holds the lease, and
    AuthRequired (after notifying) when Gmail rejects the credentials.  A
    failure to list unread messages aborts the cycle without recording the
    completion timestamp; per-message failures are logged and skipped.
    """
    token = state_store.try_acquire_lease(CYCLE_LEASE_NAME, CYCLE_LEASE_SECONDS)
    if token is None:
        raise CycleAlreadyRunning("A processing cycle is already running.")

    cycle = CycleResult()
    logger.info("Starting email processing cycle...")
    try:
        context = build_context(mail_store, state_store, notifier, threshold=threshold)

        try:
            message_ids = mail_store.list_unread_messages(batch_size + 1)
        except TransportError as exc:
            logger.error("Error fetching unread emails: %s", exc)
            notifier.api_error(exc)
            cycle.error = str(exc)
            cycle.finished_at = utc_now_iso()
            return cycle

        cycle.deferred = len(message_ids) > batch_size
        batch = message_ids[:batch_size]
        cycle.fetched = len(batch)
        if batch:
            logger.info("Found %d unread emails.", len(batch))
        else:
            logger.info("No unread emails found.")

        for message_id in batch:
            try:
                process_message(context, message_id, cycle)
            except AuthRequired:
                raise
            except OrganizerError as exc:
                cycle.errors += 1
                logger.error("Error processing email %s: %s", message_id, exc)

        if cycle.deferred:
            logger.info("More unread emails exist, will process in next cycle.")

        backfill_rule_label_ids(state_store, context.resolved_rules)

        cycle.finished_at = utc_now_iso()
        record_last_processed(state_store, cycle.finished_at)
        cycle.completed = True
        logger.info(
            "Email processing cycle finished: %d processed, %d labeled, %d errors.",
            cycle.processed,
            cycle.labeled,
            cycle.errors,
        )
        return cycle
    except AuthRequired as exc:
        logger.error("Authentication required, aborting cycle: %s", exc)
        notifier.auth_required(exc)
        raise
    finally:
        state_store.release_lease(CYCLE_LEASE_NAME, token)

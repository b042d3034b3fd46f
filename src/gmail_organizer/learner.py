"""Sender-domain/label co-occurrence learning."""

from __future__ import annotations

import re
import time
import uuid
from typing import Iterable

from .constants import COUNTER_KEY_SEPARATOR, KEY_DOMAIN_LABEL_COUNTS, SUGGESTION_NAME_TEMPLATE
from .log import get_logger
from .models import NormalizedMessage, Suggestion
from .storage import StateStore

logger = get_logger(__name__)

_DOMAIN_RE = re.compile(r"@([\w.-]+)")

CounterKey = tuple[str, str]  # (sender domain, label id)


def extract_domain(sender_header: str) -> str | None:
    """Return the lowercased domain following the first '@' in the header."""
    m = _DOMAIN_RE.search(sender_header or "")
    if not m:
        return None
    return m.group(1).lower().strip(".") or None


def suggestion_name(label_name: str, domain: str) -> str:
    return SUGGESTION_NAME_TEMPLATE.format(label=label_name, domain=domain)


def new_suggestion_id() -> str:
    return f"sugg_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


def observe(
    message: NormalizedMessage,
    matched_rule_label_id: str,
    counters: dict[CounterKey, int],
    suggestions: Iterable[Suggestion],
    threshold: int,
    label_name: str,
    existing_label_names: Iterable[str] = (),
) -> tuple[dict[CounterKey, int], Suggestion | None]:
    """Count one rule-labeled message and propose a label once a pair recurs.

    Returns the updated counters (a new mapping) and the new pending
    suggestion, if this observation produced one.  Once any suggestion with
    the derived name exists, whatever its status, further observations only
    increment the counter.
    """
    domain = extract_domain(message.sender_header)
    if not domain:
        return counters, None

    updated = dict(counters)
    key = (domain, matched_rule_label_id)
    updated[key] = updated.get(key, 0) + 1

    if updated[key] < threshold:
        return updated, None

    name = suggestion_name(label_name, domain)
    wanted = name.lower()
    if any(s.suggested_name.lower() == wanted for s in suggestions):
        return updated, None
    if any(n.lower() == wanted for n in existing_label_names):
        return updated, None

    suggestion = Suggestion(
        id=new_suggestion_id(),
        suggested_name=name,
        based_on_domain=domain,
        based_on_label_id=matched_rule_label_id,
        based_on_label_name=label_name,
    )
    logger.info("New label suggestion: %s (seen %d times)", name, updated[key])
    return updated, suggestion


# --- persistence ---


def counters_from_dict(data: dict[str, int] | None) -> dict[CounterKey, int]:
    counters: dict[CounterKey, int] = {}
    for raw_key, count in (data or {}).items():
        domain, sep, label_id = raw_key.partition(COUNTER_KEY_SEPARATOR)
        if sep and domain and label_id:
            counters[(domain, label_id)] = int(count)
    return counters


def counters_to_dict(counters: dict[CounterKey, int]) -> dict[str, int]:
    return {f"{domain}{COUNTER_KEY_SEPARATOR}{label_id}": count for (domain, label_id), count in counters.items()}


def load_counters(store: StateStore) -> dict[CounterKey, int]:
    return counters_from_dict(store.load(KEY_DOMAIN_LABEL_COUNTS))


def save_counters(store: StateStore, counters: dict[CounterKey, int]) -> None:
    store.save(KEY_DOMAIN_LABEL_COUNTS, counters_to_dict(counters))

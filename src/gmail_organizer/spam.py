"""Heuristic spam classification."""

from __future__ import annotations

import re
from typing import Callable

from .log import get_logger
from .models import NormalizedMessage, SpamConfig

logger = get_logger(__name__)

_REPEATED_PUNCTUATION_RE = re.compile(r"!{2,}|\?{2,}")


def sender_domain(sender_header: str) -> str:
    """Return the lowercased text after the last '@' with any '>' removed.

    "Shop <deals@Promo.Example>" -> "promo.example"
    """
    header = (sender_header or "").lower()
    at = header.rfind("@")
    if at == -1:
        return ""
    return header[at + 1 :].replace(">", "").strip()


def has_spam_keyword(message: NormalizedMessage, config: SpamConfig) -> bool:
    subject = message.subject_header.lower()
    return any(kw and kw.lower() in subject for kw in config.keywords)


def has_suspicious_domain(message: NormalizedMessage, config: SpamConfig) -> bool:
    domain = sender_domain(message.sender_header)
    return any(d and domain.endswith(d.lower()) for d in config.suspicious_domains)


def has_excessive_punctuation(message: NormalizedMessage, config: SpamConfig) -> bool:
    return bool(_REPEATED_PUNCTUATION_RE.search(message.subject_header))


def has_bare_domain(message: NormalizedMessage, config: SpamConfig) -> bool:
    domain = sender_domain(message.sender_header)
    return bool(domain) and "." not in domain and domain != "localhost"


HEURISTICS: list[tuple[str, Callable[[NormalizedMessage, SpamConfig], bool]]] = [
    ("keyword", has_spam_keyword),
    ("suspicious_domain", has_suspicious_domain),
    ("excessive_punctuation", has_excessive_punctuation),
    ("bare_domain", has_bare_domain),
]


def spam_reason(message: NormalizedMessage, config: SpamConfig) -> str | None:
    """Return the name of the first heuristic that flags the message."""
    if not config.enabled:
        return None
    for name, heuristic in HEURISTICS:
        if heuristic(message, config):
            return name
    return None


def is_spam(message: NormalizedMessage, config: SpamConfig) -> bool:
    """Return True if spam detection is enabled and any heuristic fires."""
    reason = spam_reason(message, config)
    if reason is None:
        return False
    logger.info(
        "Spam detected (%s) in message %s from %s: %s",
        reason,
        message.id,
        message.sender_header,
        message.subject_header,
    )
    return True

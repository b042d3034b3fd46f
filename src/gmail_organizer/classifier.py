"""Per-message classification: spam check, then first matching rule."""

from __future__ import annotations

from .constants import SPAM_LABEL_NAME, UNREAD_LABEL_ID
from .errors import TransportError
from .gmail_client import MailStore
from .labels import LabelResolver
from .log import get_logger
from .matcher import first_matching_rule
from .models import ClassificationResult, NormalizedMessage, Rule, Settings
from .spam import is_spam

logger = get_logger(__name__)


def rule_label_id(rule: Rule, resolver: LabelResolver) -> str | None:
    """Return the rule's label id, resolving and caching it on the rule.

    A stored id is trusted while the label still exists in the cache, or when
    the label list could not be loaded at all.
    """
    if rule.target_label_id and (rule.target_label_id in resolver.cache or not resolver.cache.loaded):
        return rule.target_label_id
    label_id = resolver.resolve(rule.target_label_name)
    if label_id:
        rule.target_label_id = label_id
    return label_id


def classify(message: NormalizedMessage, settings: Settings, resolver: LabelResolver) -> ClassificationResult:
    """Decide which label (if any) applies to the message.

    Spam and rule labels are mutually exclusive: rules are not evaluated for
    spam-flagged messages.  Among rules the first match in configured order
    wins.  An unresolvable label leaves the message untouched.
    """
    result = ClassificationResult()

    if is_spam(message, settings.spam):
        result.is_spam = True
        spam_label_id = resolver.resolve(SPAM_LABEL_NAME)
        if spam_label_id:
            result.label_ids_to_add.append(spam_label_id)
            logger.info("Message %s marked as spam.", message.id)
        return result

    rule = first_matching_rule(message, settings.rules)
    if rule is None:
        logger.debug("No rule matched message %s.", message.id)
        return result

    result.matched_rule = rule
    label_id = rule_label_id(rule, resolver)
    if label_id is None:
        logger.warning(
            "Rule matched message %s but label %r could not be resolved; skipping.",
            message.id,
            rule.target_label_name,
        )
        return result

    result.label_ids_to_add.append(label_id)
    result.matched_rule_label_id = label_id
    logger.info(
        "Rule matched for message %s (%s contains %r). Applying label: %s",
        message.id,
        rule.condition_type,
        rule.condition_value,
        resolver.cache.name_of(label_id) or rule.target_label_name,
    )
    return result


def apply_classification(store: MailStore, message_id: str, result: ClassificationResult) -> bool:
    """Add the decided labels and clear UNREAD.

    Returns False when Gmail rejects the change; the classification itself
    stands either way.  AuthRequired propagates.
    """
    if not result.label_ids_to_add:
        return False
    try:
        store.modify_message_labels(message_id, add=list(result.label_ids_to_add), remove=[UNREAD_LABEL_ID])
    except TransportError as exc:
        logger.error("Error applying labels to message %s: %s", message_id, exc)
        return False
    logger.debug("Labels modified for message %s. Added: %s", message_id, ", ".join(result.label_ids_to_add))
    return True

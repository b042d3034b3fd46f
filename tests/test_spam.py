"""Tests for the spam heuristics."""

from conftest import make_message

from gmail_organizer.models import SpamConfig
from gmail_organizer.spam import (
    has_bare_domain,
    has_excessive_punctuation,
    has_spam_keyword,
    has_suspicious_domain,
    is_spam,
    sender_domain,
    spam_reason,
)

CONFIG = SpamConfig(enabled=True, keywords=["free money"], suspicious_domains=["shady.biz"])


def test_disabled_is_never_spam():
    """Disabling spam detection wins over every heuristic."""
    msg = make_message("m1", "x@intranet", subject="FREE MONEY!!! ??")
    config = SpamConfig(enabled=False, keywords=["free money"], suspicious_domains=["intranet"])
    assert is_spam(msg, config) is False
    assert spam_reason(msg, config) is None


def test_clean_message_is_not_spam():
    msg = make_message("m1", "Alice <alice@example.com>", subject="Lunch tomorrow?")
    assert is_spam(msg, CONFIG) is False


def test_keyword_only():
    msg = make_message("m1", "promo@example.com", subject="Get Free Money today")
    assert has_spam_keyword(msg, CONFIG)
    assert spam_reason(msg, CONFIG) == "keyword"


def test_keyword_must_be_in_subject():
    msg = make_message("m1", "promo@example.com", subject="Hello", snippet="free money inside")
    assert is_spam(msg, CONFIG) is False


def test_suspicious_domain_only():
    msg = make_message("m1", "Deals <offers@mail.Shady.biz>", subject="Hello")
    assert has_suspicious_domain(msg, CONFIG)
    assert spam_reason(msg, CONFIG) == "suspicious_domain"


def test_excessive_punctuation_only():
    assert spam_reason(make_message("m1", "a@example.com", subject="Act now!!"), CONFIG) == "excessive_punctuation"
    assert spam_reason(make_message("m2", "a@example.com", subject="Really??"), CONFIG) == "excessive_punctuation"
    single = make_message("m3", "a@example.com", subject="Hi! Free? Maybe!")
    assert not has_excessive_punctuation(single, CONFIG)


def test_bare_domain_only():
    msg = make_message("m1", "root@intranet", subject="Hello")
    assert has_bare_domain(msg, CONFIG)
    assert spam_reason(msg, CONFIG) == "bare_domain"


def test_localhost_and_missing_domain_are_not_bare():
    assert not has_bare_domain(make_message("m1", "root@localhost", subject="Hello"), CONFIG)
    assert not has_bare_domain(make_message("m2", "Mailer Daemon", subject="Hello"), CONFIG)


def test_first_heuristic_reported():
    """With several heuristics firing the first in order is reported."""
    msg = make_message("m1", "x@intranet", subject="free money!!")
    assert spam_reason(msg, CONFIG) == "keyword"


def test_you_won_subject_is_spam():
    msg = make_message("m1", "Prize Desk <winner@lottery.example.com>", subject="You Won!!! Claim Now")
    assert is_spam(msg, CONFIG) is True


def test_sender_domain_extraction():
    assert sender_domain("Shop <deals@Promo.Example>") == "promo.example"
    assert sender_domain("a@b@c.example.org") == "c.example.org"
    assert sender_domain("no address") == ""

from __future__ import annotations

import pytest

from core.errors import ValidationError
from core.models import Rule
from core.rules_engine import match_rule, normalize_trigger


def _rules(*pairs: tuple[str, str]) -> list[Rule]:
    return [Rule(trigger=trigger, reply=reply) for trigger, reply in pairs]


def test_match_is_case_insensitive_substring() -> None:
    match = match_rule("Say HELLO now", _rules(("hello", "hi")))
    assert match is not None
    assert match.trigger == "hello"
    assert match.reply == "hi"


def test_no_match_returns_none() -> None:
    assert match_rule("nothing special", _rules(("urgent", "I'll reply ASAP"))) is None


def test_partial_words_match() -> None:
    # Containment, not word boundaries: "hit" contains "hi".
    match = match_rule("that was a hit", _rules(("hi", "hello")))
    assert match is not None
    assert match.trigger == "hi"


def test_first_policy_uses_storage_order() -> None:
    rules = _rules(("hi", "short"), ("hit", "long"))
    match = match_rule("big hit", rules)
    assert match is not None
    assert match.reply == "short"


def test_longest_policy_prefers_longest_trigger() -> None:
    rules = _rules(("hi", "short"), ("hit", "long"))
    match = match_rule("big hit", rules, policy="longest")
    assert match is not None
    assert match.reply == "long"


def test_longest_policy_ties_keep_storage_order() -> None:
    rules = _rules(("abc", "first"), ("bcd", "second"))
    match = match_rule("abcd", rules, policy="longest")
    assert match is not None
    assert match.reply == "first"


def test_unknown_policy_is_rejected() -> None:
    with pytest.raises(ValueError):
        match_rule("text", [], policy="random")


def test_normalize_trigger_lowercases() -> None:
    assert normalize_trigger("HeLLo") == "hello"


@pytest.mark.parametrize("trigger", ["", "   "])
def test_blank_trigger_is_rejected(trigger: str) -> None:
    with pytest.raises(ValidationError):
        normalize_trigger(trigger)

"""Rule normalization and matching logic (core domain)."""

from __future__ import annotations

from typing import Iterable, Optional

from core.errors import ValidationError
from core.models import Rule, RuleMatch

MATCH_POLICIES = ("first", "longest")


def normalize_trigger(trigger: str) -> str:
    """Lower-case a trigger and reject blank ones.

    A blank trigger would match every message, and the matcher performs no
    validation of its own, so it has to be refused here.
    """

    if not trigger or not trigger.strip():
        raise ValidationError("Trigger must not be empty.")
    return trigger.lower()


def match_rule(text: str, rules: Iterable[Rule], policy: str = "first") -> Optional[RuleMatch]:
    """Return the rule that fires for the given text, if any.

    Matching logic:
    - Case-insensitive substring containment, no tokenization.
    - "first": the first rule in storage order wins.
    - "longest": the longest matching trigger wins, ties go to storage order.
    """

    if policy not in MATCH_POLICIES:
        raise ValueError(f"Unsupported match policy: {policy}")

    lowered = text.lower()
    best: Optional[Rule] = None
    for rule in rules:
        if rule.trigger.lower() not in lowered:
            continue
        if policy == "first":
            return RuleMatch(trigger=rule.trigger, reply=rule.reply)
        if best is None or len(rule.trigger) > len(best.trigger):
            best = rule

    if best is None:
        return None
    return RuleMatch(trigger=best.trigger, reply=best.reply)

"""Durable trigger -> reply mapping with an owned in-memory cache."""

from __future__ import annotations

import logging
from typing import Optional

from core.models import Rule
from core.ports import StoragePort
from core.rules_engine import normalize_trigger

LOGGER = logging.getLogger(__name__)


class RuleStore:
    """Owns the rule cache and keeps it in lockstep with storage.

    The cache is only touched after the storage call returned, so a failed
    write (PersistenceError) leaves memory and disk agreeing with each other.
    """

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage
        # dict preserves insertion order, which mirrors the storage order.
        self._cache: Optional[dict[str, str]] = None

    def refresh(self) -> dict[str, str]:
        """Reload the cache from storage."""

        rules = self._storage.list_rules()
        cache = {rule.trigger: rule.reply for rule in rules}
        self._cache = cache
        LOGGER.debug("Rule cache refreshed (%s rules)", len(cache))
        return cache

    def _rules(self) -> dict[str, str]:
        if self._cache is None:
            return self.refresh()
        return self._cache

    def upsert(self, trigger: str, reply: str) -> Rule:
        """Create or overwrite a rule and return it as stored."""

        normalized = normalize_trigger(trigger)
        self._storage.upsert_rule(normalized, reply)
        self._rules()[normalized] = reply
        LOGGER.info("Rule saved: %r", normalized)
        return Rule(trigger=normalized, reply=reply)

    def remove(self, trigger: str) -> bool:
        """Delete a rule; False when no such trigger was stored."""

        normalized = trigger.lower()
        removed = self._storage.delete_rule(normalized)
        self._rules().pop(normalized, None)
        if removed:
            LOGGER.info("Rule deleted: %r", normalized)
        return removed

    def get(self, trigger: str) -> Optional[str]:
        normalized = trigger.lower()
        rules = self._rules()
        if normalized not in rules:
            # Read-miss: another writer may have committed since our last load.
            self.refresh()
            rules = self._rules()
        return rules.get(normalized)

    def list_all(self) -> list[Rule]:
        return [Rule(trigger=t, reply=r) for t, r in self._rules().items()]

    def snapshot(self) -> tuple[Rule, ...]:
        """Immutable view used for matching a single inbound message."""

        return tuple(self.list_all())

    def count(self) -> int:
        return len(self._rules())

from __future__ import annotations

import pytest

from adapters.sqlite_storage import SQLiteStorage
from core.errors import PersistenceError, ValidationError
from core.models import Rule
from core.rule_store import RuleStore
from core.rules_engine import match_rule


class FakeStorage:
    def __init__(self) -> None:
        self.rules: dict[str, str] = {}
        self.fail_writes = False
        self.list_calls = 0

    def list_rules(self) -> list[Rule]:
        self.list_calls += 1
        return [Rule(trigger=t, reply=r) for t, r in self.rules.items()]

    def upsert_rule(self, trigger: str, reply: str) -> None:
        if self.fail_writes:
            raise PersistenceError()
        self.rules[trigger] = reply

    def delete_rule(self, trigger: str) -> bool:
        if self.fail_writes:
            raise PersistenceError()
        return self.rules.pop(trigger, None) is not None


def _sqlite_store(tmp_path) -> RuleStore:
    storage = SQLiteStorage(str(tmp_path / "rules.db"))
    storage.init_db()
    return RuleStore(storage)


def test_upsert_then_get(tmp_path) -> None:
    store = _sqlite_store(tmp_path)
    store.upsert("Hello", "hi")
    assert store.get("hello") == "hi"
    assert store.get("HELLO") == "hi"


def test_last_write_wins_and_keeps_position(tmp_path) -> None:
    store = _sqlite_store(tmp_path)
    store.upsert("a", "1")
    store.upsert("b", "2")
    store.upsert("a", "3")
    assert store.list_all() == [Rule("a", "3"), Rule("b", "2")]


def test_list_order_is_insertion_order_not_alphabetical(tmp_path) -> None:
    store = _sqlite_store(tmp_path)
    for trigger in ["zeta", "alpha", "mid"]:
        store.upsert(trigger, trigger.upper())
    assert [rule.trigger for rule in store.list_all()] == ["zeta", "alpha", "mid"]


def test_rules_survive_restart(tmp_path) -> None:
    _sqlite_store(tmp_path).upsert("urgent", "I'll reply ASAP")
    reopened = _sqlite_store(tmp_path)
    assert reopened.get("urgent") == "I'll reply ASAP"


def test_remove_then_get_is_not_found(tmp_path) -> None:
    store = _sqlite_store(tmp_path)
    store.upsert("bye", "see you")
    assert store.remove("BYE") is True
    assert store.get("bye") is None


def test_remove_absent_leaves_store_unchanged(tmp_path) -> None:
    store = _sqlite_store(tmp_path)
    store.upsert("keep", "me")
    assert store.remove("missing") is False
    assert store.list_all() == [Rule("keep", "me")]


def test_blank_trigger_never_reaches_storage() -> None:
    storage = FakeStorage()
    store = RuleStore(storage)
    with pytest.raises(ValidationError):
        store.upsert("  ", "reply")
    assert storage.rules == {}


def test_failed_write_does_not_touch_cache() -> None:
    storage = FakeStorage()
    store = RuleStore(storage)
    store.upsert("hello", "hi")

    storage.fail_writes = True
    with pytest.raises(PersistenceError):
        store.upsert("hello", "changed")
    with pytest.raises(PersistenceError):
        store.upsert("new", "rule")

    assert store.list_all() == [Rule("hello", "hi")]


def test_read_miss_reloads_from_storage() -> None:
    storage = FakeStorage()
    store = RuleStore(storage)
    assert store.get("late") is None

    # Another writer commits directly to storage.
    storage.rules["late"] = "arrival"
    assert store.get("late") == "arrival"


def test_snapshot_is_not_affected_by_later_edits(tmp_path) -> None:
    store = _sqlite_store(tmp_path)
    store.upsert("hello", "old reply")
    snapshot = store.snapshot()
    store.upsert("hello", "new reply")

    match = match_rule("hello there", snapshot)
    assert match is not None
    assert match.reply == "old reply"


def test_refresh_returns_reloaded_rules() -> None:
    storage = FakeStorage()
    store = RuleStore(storage)
    storage.rules["hello"] = "hi"

    assert store.refresh() == {"hello": "hi"}
    storage.rules["bye"] = "see you"
    assert store.refresh() == {"hello": "hi", "bye": "see you"}
    assert storage.list_calls == 2

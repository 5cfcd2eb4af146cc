from __future__ import annotations

import asyncio
import logging
from typing import Any

from adapters.sqlite_storage import SQLiteStorage
from core.config import ContactConfig, ReplyConfig
from core.contacts import ContactAllowList
from core.errors import TransportError
from core.models import InboundMessage
from core.processor import AutoReplyProcessor
from core.rule_store import RuleStore


class FakeTransport:
    def __init__(self) -> None:
        self.sent: list[tuple[Any, str]] = []
        self.fail = False
        self.hang = False

    def is_ready(self) -> bool:
        return True

    async def send_message(self, destination: Any, text: str) -> None:
        if self.fail:
            raise TransportError("boom")
        if self.hang:
            await asyncio.sleep(3600)
        self.sent.append((destination, text))


def _processor(tmp_path, **reply_overrides):
    storage = SQLiteStorage(str(tmp_path / "relay.db"))
    storage.init_db()
    rules = RuleStore(storage)
    allow_list = ContactAllowList(storage, ContactConfig())
    primary = FakeTransport()
    secondary = FakeTransport()
    config = ReplyConfig(
        secondary_delay_seconds=reply_overrides.get("delay", 0),
        send_timeout_seconds=reply_overrides.get("timeout", 1),
        match_policy=reply_overrides.get("policy", "first"),
    )
    processor = AutoReplyProcessor(rules, allow_list, primary, secondary, config)
    return processor, rules, allow_list, primary, secondary


def _primary(text: str, chat_id: int = 100) -> InboundMessage:
    return InboundMessage(chat_id=chat_id, sender_id=chat_id, text=text)


def _secondary(text: str, contact_id: str = "+919876543210", chat_id: int = 555) -> InboundMessage:
    return InboundMessage(chat_id=chat_id, sender_id=chat_id, text=text, contact_id=contact_id)


def test_primary_reply_end_to_end(tmp_path) -> None:
    processor, rules, _, primary, _ = _processor(tmp_path)
    rules.upsert("urgent", "I'll reply ASAP")

    asyncio.run(processor.handle_primary(_primary("this is urgent!!")))
    asyncio.run(processor.handle_primary(_primary("nothing special")))

    assert primary.sent == [(100, "I'll reply ASAP")]


def test_primary_ignores_commands_and_blank_text(tmp_path) -> None:
    processor, rules, _, primary, _ = _processor(tmp_path)
    rules.upsert("rule", "reply")

    asyncio.run(processor.handle_primary(_primary("/listrules")))
    asyncio.run(processor.handle_primary(_primary("   ")))

    assert primary.sent == []


def test_primary_is_not_filtered_by_allow_list(tmp_path) -> None:
    processor, rules, allow_list, primary, _ = _processor(tmp_path)
    rules.upsert("hello", "hi")
    assert allow_list.list_all() == []

    asyncio.run(processor.handle_primary(_primary("hello")))
    assert primary.sent == [(100, "hi")]


def test_only_first_matching_rule_fires(tmp_path) -> None:
    processor, rules, _, primary, _ = _processor(tmp_path)
    rules.upsert("hi", "short")
    rules.upsert("hit", "long")

    asyncio.run(processor.handle_primary(_primary("what a hit")))
    assert primary.sent == [(100, "short")]


def test_longest_policy_is_applied(tmp_path) -> None:
    processor, rules, _, primary, _ = _processor(tmp_path, policy="longest")
    rules.upsert("hi", "short")
    rules.upsert("hit", "long")

    asyncio.run(processor.handle_primary(_primary("what a hit")))
    assert primary.sent == [(100, "long")]


def test_primary_send_failure_is_logged_not_raised(tmp_path, caplog) -> None:
    processor, rules, _, primary, _ = _processor(tmp_path)
    rules.upsert("hello", "hi")
    primary.fail = True

    match = asyncio.run(processor.handle_primary(_primary("hello")))
    assert match is not None
    assert "Auto-reply to chat 100 failed" in caplog.text


def test_hung_send_times_out(tmp_path, caplog) -> None:
    processor, rules, _, primary, _ = _processor(tmp_path, timeout=0.05)
    rules.upsert("hello", "hi")
    primary.hang = True

    asyncio.run(processor.handle_primary(_primary("hello")))
    assert primary.sent == []
    assert "timed out" in caplog.text


def test_secondary_requires_allow_listed_contact(tmp_path) -> None:
    processor, rules, allow_list, _, secondary = _processor(tmp_path)
    rules.upsert("price", "It costs 10")

    async def scenario() -> None:
        assert await processor.handle_secondary(_secondary("price?")) is None
        allow_list.add("9876543210")
        assert await processor.handle_secondary(_secondary("price?")) is not None
        await asyncio.sleep(0.01)

    asyncio.run(scenario())
    assert secondary.sent == [(555, "It costs 10")]


def test_secondary_ignores_outgoing_and_unknown_sender(tmp_path) -> None:
    processor, rules, allow_list, _, secondary = _processor(tmp_path)
    rules.upsert("price", "It costs 10")
    allow_list.add("9876543210")

    async def scenario() -> None:
        outgoing = InboundMessage(chat_id=1, sender_id=1, text="price", contact_id="+919876543210", outgoing=True)
        assert await processor.handle_secondary(outgoing) is None
        no_phone = InboundMessage(chat_id=1, sender_id=1, text="price", contact_id=None)
        assert await processor.handle_secondary(no_phone) is None
        await asyncio.sleep(0.01)

    asyncio.run(scenario())
    assert secondary.sent == []


def test_secondary_reply_waits_for_delay(tmp_path) -> None:
    processor, rules, allow_list, _, secondary = _processor(tmp_path, delay=0.2)
    rules.upsert("price", "It costs 10")
    allow_list.add("9876543210")

    async def scenario() -> None:
        await processor.handle_secondary(_secondary("price"))
        assert secondary.sent == []
        assert processor.pending_replies == 1
        await asyncio.sleep(0.3)

    asyncio.run(scenario())
    assert secondary.sent == [(555, "It costs 10")]


def test_shutdown_cancels_pending_delayed_replies(tmp_path) -> None:
    processor, rules, allow_list, _, secondary = _processor(tmp_path, delay=5)
    rules.upsert("price", "It costs 10")
    allow_list.add("9876543210")

    async def scenario() -> None:
        await processor.handle_secondary(_secondary("price"))
        await processor.shutdown()
        assert processor.pending_replies == 0
        # Nothing new is accepted after shutdown.
        assert await processor.handle_secondary(_secondary("price")) is None

    asyncio.run(scenario())
    assert secondary.sent == []


def test_secondary_sender_without_phone_is_logged_at_info(tmp_path, caplog) -> None:
    caplog.set_level(logging.INFO, logger="core.processor")
    processor, rules, allow_list, _, secondary = _processor(tmp_path)
    rules.upsert("price", "It costs 10")
    allow_list.add("9876543210")

    message = InboundMessage(chat_id=555, sender_id=555, text="price", contact_id=None)
    assert asyncio.run(processor.handle_secondary(message)) is None
    assert secondary.sent == []
    assert "phone number hidden" in caplog.text

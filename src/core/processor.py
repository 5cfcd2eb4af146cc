"""Core auto-reply pipeline.

This module is integration-agnostic. It only relies on ports for transports,
enabling other chat backends without changes here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from core.config import ReplyConfig
from core.contacts import ContactAllowList
from core.delivery import send_with_timeout
from core.errors import TransportError
from core.models import InboundMessage, RuleMatch
from core.ports import TransportPort
from core.rule_store import RuleStore
from core.rules_engine import match_rule

LOGGER = logging.getLogger(__name__)


class AutoReplyProcessor:
    """Matches inbound text against the rule set and sends the reply."""

    def __init__(
        self,
        rules: RuleStore,
        allow_list: ContactAllowList,
        primary: TransportPort,
        secondary: TransportPort,
        reply_config: ReplyConfig,
    ) -> None:
        self._rules = rules
        self._allow_list = allow_list
        self._primary = primary
        self._secondary = secondary
        self._config = reply_config
        self._pending: set[asyncio.Task] = set()
        self._closed = False

    def _match(self, text: str) -> Optional[RuleMatch]:
        # One snapshot per message: a concurrent edit can never pair an old
        # trigger with a new reply body.
        return match_rule(text, self._rules.snapshot(), self._config.match_policy)

    async def handle_primary(self, message: InboundMessage) -> Optional[RuleMatch]:
        """Auto-reply on the primary channel. Not filtered by the allow-list."""

        # Commands are routed to the dispatcher, never matched as rules.
        if not message.text.strip() or message.text.startswith("/"):
            return None

        match = self._match(message.text)
        if match is None:
            return None

        try:
            await send_with_timeout(
                self._primary, message.chat_id, match.reply, self._config.send_timeout_seconds
            )
        except TransportError as exc:
            LOGGER.warning("Auto-reply to chat %s failed: %s", message.chat_id, exc)
            return match
        LOGGER.info("Auto-replied to %r with rule %r", message.text, match.trigger)
        return match

    async def handle_secondary(self, message: InboundMessage) -> Optional[RuleMatch]:
        """Auto-reply on the secondary channel for allow-listed contacts.

        The reply is sent after a human-like pause on a tracked task, so the
        handler returns immediately and shutdown() can cancel pending sends.
        """

        if self._closed or message.outgoing or not message.text.strip():
            return None
        if not message.contact_id:
            LOGGER.info(
                "Ignoring secondary message from user %s: phone number hidden and not resolved from the allow-list",
                message.sender_id,
            )
            return None
        if not self._allow_list.is_allowed(message.contact_id):
            LOGGER.debug("Ignoring secondary message from non-allowed contact %s", message.contact_id)
            return None

        match = self._match(message.text)
        if match is None:
            return None

        task = asyncio.create_task(self._delayed_reply(message.chat_id, match))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return match

    async def _delayed_reply(self, destination: Any, match: RuleMatch) -> None:
        await asyncio.sleep(self._config.secondary_delay_seconds)
        try:
            await send_with_timeout(
                self._secondary, destination, match.reply, self._config.send_timeout_seconds
            )
        except TransportError as exc:
            LOGGER.warning("Secondary auto-reply to %s failed: %s", destination, exc)
            return
        LOGGER.info("Secondary auto-replied with rule %r", match.trigger)

    @property
    def pending_replies(self) -> int:
        return len(self._pending)

    async def shutdown(self) -> None:
        """Cancel delayed replies that have not been sent yet."""

        self._closed = True
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            self._pending.clear()
            LOGGER.info("Cancelled %s pending auto-replies", len(pending))

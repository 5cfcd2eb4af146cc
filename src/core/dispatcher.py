"""Administrative command routing.

The dispatcher is the thin layer between chat text and state mutation: it
checks authorization, parses arguments, calls the owning component and turns
every RelayError into a reply for the requester.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from core.auth import AuthorizationGate
from core.commands import PUBLIC_COMMANDS, command_name, parse_command, parse_time_of_day
from core.config import ReplyConfig
from core.contacts import ContactAllowList
from core.delivery import resolve_allowed_contacts, resolve_with_timeout, send_with_timeout
from core.errors import AuthorizationError, NotFoundError, RelayError, TransportError
from core.ports import ContactTransportPort
from core.replies import (
    HELP_TEXT,
    format_contact_list,
    format_rule_added,
    format_rule_list,
    format_rule_updated,
    format_schedule_list,
    format_welcome,
)
from core.rule_store import RuleStore
from core.scheduler import ScheduleManager

LOGGER = logging.getLogger(__name__)


def format_error(exc: RelayError) -> str:
    if isinstance(exc, (AuthorizationError, TransportError)):
        return f"❌ {exc.user_message}"
    return f"⚠️ {exc.user_message}"


class CommandDispatcher:
    """Executes administrative commands received on the primary channel."""

    def __init__(
        self,
        rules: RuleStore,
        contacts: ContactAllowList,
        schedules: ScheduleManager,
        gate: AuthorizationGate,
        secondary: ContactTransportPort,
        reply_config: ReplyConfig,
    ) -> None:
        self._rules = rules
        self._contacts = contacts
        self._schedules = schedules
        self._gate = gate
        self._secondary = secondary
        self._config = reply_config
        self._handlers: dict[str, Callable[..., Awaitable[str]]] = {
            "listrules": self._list_rules,
            "addrule": self._add_rule,
            "editrule": self._edit_rule,
            "deleterule": self._delete_rule,
            "addcontact": self._add_contact,
            "listcontacts": self._list_contacts,
            "removecontact": self._remove_contact,
            "send": self._send,
            "schedule": self._schedule,
            "listschedules": self._list_schedules,
            "cancelschedule": self._cancel_schedule,
            "help": self._help,
            "start": self._start,
        }

    async def dispatch(self, requester_id: Optional[int], text: str) -> Optional[str]:
        """Run one command; None when the text is not a known command."""

        name = command_name(text)
        if name is None:
            return None

        try:
            # Authorization comes before argument parsing so unauthorized
            # requesters learn nothing beyond "not permitted".
            if name not in PUBLIC_COMMANDS:
                self._gate.require(requester_id)
            command = parse_command(text)
            if command is None:
                return None
            return await self._handlers[command.name](*command.args)
        except RelayError as exc:
            LOGGER.info("Command /%s from %s failed: %s", name, requester_id, exc)
            return format_error(exc)

    async def _list_rules(self) -> str:
        return format_rule_list(self._rules.list_all())

    async def _add_rule(self, trigger: str, reply: str) -> str:
        rule = self._rules.upsert(trigger, reply)
        return format_rule_added(rule)

    async def _edit_rule(self, trigger: str, reply: str) -> str:
        old_reply = self._rules.get(trigger)
        if old_reply is None:
            raise NotFoundError(f'Rule "{trigger.lower()}" not found. Use /addrule to create a new rule.')
        rule = self._rules.upsert(trigger, reply)
        return format_rule_updated(rule.trigger, old_reply, rule.reply)

    async def _delete_rule(self, trigger: str) -> str:
        if not self._rules.remove(trigger):
            raise NotFoundError(f'Rule "{trigger.lower()}" not found.')
        return f'🗑️ Rule "{trigger.lower()}" deleted successfully.'

    async def _add_contact(self, number: str) -> str:
        contact_id, added = self._contacts.add(number)
        if self._secondary.is_ready():
            # Resolving now lets senders who hide their phone still be recognized.
            await resolve_allowed_contacts(self._secondary, [contact_id], self._config.send_timeout_seconds)
        if not added:
            return f"ℹ️ +{contact_id} is already in the allowed contacts."
        return f"✅ +{contact_id} added to the allowed contacts."

    async def _list_contacts(self) -> str:
        return format_contact_list(self._contacts.list_all())

    async def _remove_contact(self, number: str) -> str:
        contact_id, removed = self._contacts.remove(number)
        if not removed:
            raise NotFoundError(f"+{contact_id} is not in the allowed contacts.")
        return f"🗑️ +{contact_id} removed from the allowed contacts."

    async def _send(self, number: str, message: str) -> str:
        contact_id = self._contacts.normalize(number)
        if not self._secondary.is_ready():
            raise TransportError("Messaging account is not ready. Run `autorelay login` to scan the QR code first.")

        timeout = self._config.send_timeout_seconds
        destination = await resolve_with_timeout(self._secondary, contact_id, timeout)
        if destination is None:
            raise NotFoundError(f'Number "+{contact_id}" is not registered.')
        await send_with_timeout(self._secondary, destination, message, timeout)
        LOGGER.info("Direct message sent to +%s", contact_id)
        return f'✅ Message sent to +{contact_id}:\n"{message}"'

    async def _schedule(self, number: str, message: str, time_of_day: str) -> str:
        contact_id = self._contacts.normalize(number)
        hour, minute = parse_time_of_day(time_of_day)
        schedule, replaced = self._schedules.create(contact_id, message, hour, minute)
        verb = "updated" if replaced else "created"
        return f'⏰ Daily schedule {verb}: +{contact_id} at {schedule.time_label}\n"{schedule.message}"'

    async def _list_schedules(self) -> str:
        return format_schedule_list(self._schedules.list_all())

    async def _cancel_schedule(self, number: str, time_of_day: str) -> str:
        contact_id = self._contacts.normalize(number)
        hour, minute = parse_time_of_day(time_of_day)
        self._schedules.cancel(contact_id, hour, minute)
        return f"🗑️ Daily schedule for +{contact_id} at {hour:02d}:{minute:02d} cancelled."

    async def _help(self, *_: str) -> str:
        return HELP_TEXT

    async def _start(self, *_: str) -> str:
        return format_welcome(self._rules.count())

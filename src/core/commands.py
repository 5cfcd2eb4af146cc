"""Parsing of administrative chat commands.

Commands arrive as plain chat text such as::

    /addrule "hello" "Hi there! How can I help you?"
    /schedule 9876543210 "Good morning!" 08:00

Parsing is strict: a known command with malformed arguments raises
ValidationError carrying the usage line, while unknown commands and ordinary
text return None so they can fall through to auto-reply handling.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from core.errors import ValidationError

_COMMAND = re.compile(r"^/(?P<name>[A-Za-z_]+)(?:@\w+)?(?:\s*(?P<args>.*))?$", re.DOTALL)
_QUOTED = r'"([^"]+)"'
_NUMBER = r"(\+?[\d\-\s()]*\d)"
_TIME = r"(\d{1,2}:\d{2})"

USAGE = {
    "listrules": "/listrules",
    "addrule": '/addrule "trigger" "reply"',
    "editrule": '/editrule "trigger" "new reply"',
    "deleterule": '/deleterule "trigger"',
    "addcontact": "/addcontact <number>",
    "listcontacts": "/listcontacts",
    "removecontact": "/removecontact <number>",
    "send": '/send <number> "message"',
    "schedule": '/schedule <number> "message" HH:MM',
    "listschedules": "/listschedules",
    "cancelschedule": "/cancelschedule <number> HH:MM",
    "help": "/help",
    "start": "/start",
}

_ARGUMENT_PATTERNS = {
    "listrules": re.compile(r"^$"),
    "addrule": re.compile(rf"^{_QUOTED}\s*{_QUOTED}$", re.DOTALL),
    "editrule": re.compile(rf"^{_QUOTED}\s*{_QUOTED}$", re.DOTALL),
    "deleterule": re.compile(rf"^{_QUOTED}$"),
    "addcontact": re.compile(rf"^{_NUMBER}$"),
    "listcontacts": re.compile(r"^$"),
    "removecontact": re.compile(rf"^{_NUMBER}$"),
    "send": re.compile(rf"^{_NUMBER}\s+{_QUOTED}$", re.DOTALL),
    "schedule": re.compile(rf"^{_NUMBER}\s+{_QUOTED}\s+{_TIME}$", re.DOTALL),
    "listschedules": re.compile(r"^$"),
    "cancelschedule": re.compile(rf"^{_NUMBER}\s+{_TIME}$"),
    "help": re.compile(r"^.*$", re.DOTALL),
    "start": re.compile(r"^.*$", re.DOTALL),
}

# Commands anyone may run; everything else goes through the authorization gate.
PUBLIC_COMMANDS = frozenset({"help", "start"})


@dataclass(frozen=True)
class Command:
    name: str
    args: tuple[str, ...] = field(default_factory=tuple)

    @property
    def requires_auth(self) -> bool:
        return self.name not in PUBLIC_COMMANDS


def parse_time_of_day(value: str) -> tuple[int, int]:
    """Parse "HH:MM" into (hour, minute) with range checks."""

    hour_text, _, minute_text = value.partition(":")
    if not hour_text.isdigit() or not minute_text.isdigit() or len(minute_text) != 2:
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM.")
    hour, minute = int(hour_text), int(minute_text)
    if hour > 23 or minute > 59:
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM between 00:00 and 23:59.")
    return hour, minute


def parse_command(text: str) -> Optional[Command]:
    """Return the parsed command, or None when the text is not a known command."""

    match = _COMMAND.match(text.strip())
    if not match:
        return None

    name = match.group("name").lower()
    pattern = _ARGUMENT_PATTERNS.get(name)
    if pattern is None:
        return None

    raw_args = (match.group("args") or "").strip()
    arg_match = pattern.match(raw_args)
    if not arg_match:
        raise ValidationError(f"Usage: {USAGE[name]}")

    args = tuple(arg_match.groups())
    return Command(name=name, args=args)


def command_name(text: str) -> Optional[str]:
    """Return the known command name in text without validating arguments."""

    match = _COMMAND.match(text.strip())
    if not match:
        return None
    name = match.group("name").lower()
    return name if name in _ARGUMENT_PATTERNS else None

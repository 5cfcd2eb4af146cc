from __future__ import annotations

import pytest

from core.auth import AuthorizationGate
from core.commands import command_name, parse_command, parse_time_of_day
from core.errors import AuthorizationError, ValidationError


def test_parse_quoted_arguments_keep_spacing_and_case() -> None:
    command = parse_command('/addrule "Hello There" "  Hi!  "')
    assert command is not None
    assert command.name == "addrule"
    assert command.args == ("Hello There", "  Hi!  ")


def test_parse_multiline_reply() -> None:
    command = parse_command('/addrule "hours" "Mon-Fri\n9 to 5"')
    assert command is not None
    assert command.args == ("hours", "Mon-Fri\n9 to 5")


def test_parse_schedule() -> None:
    command = parse_command('/schedule 9876543210 "Good morning!" 08:00')
    assert command is not None
    assert command.args == ("9876543210", "Good morning!", "08:00")


def test_parse_cancel_schedule_with_formatted_number() -> None:
    command = parse_command("/cancelschedule +91 98765-43210 08:00")
    assert command is not None
    assert command.args == ("+91 98765-43210", "08:00")


def test_non_commands_are_ignored() -> None:
    assert parse_command("hello") is None
    assert parse_command("/unknown thing") is None
    assert command_name("/unknown") is None
    assert command_name("/SEND 1 \"x\"") == "send"


def test_missing_arguments_raise_usage() -> None:
    with pytest.raises(ValidationError, match="Usage: /deleterule"):
        parse_command("/deleterule")


@pytest.mark.parametrize("value,expected", [("08:00", (8, 0)), ("8:05", (8, 5)), ("23:59", (23, 59))])
def test_parse_time_of_day(value: str, expected: tuple[int, int]) -> None:
    assert parse_time_of_day(value) == expected


@pytest.mark.parametrize("value", ["24:00", "12:60", "7", "7:5", "ab:cd"])
def test_parse_time_of_day_rejects(value: str) -> None:
    with pytest.raises(ValidationError):
        parse_time_of_day(value)


def test_gate_open_mode_without_admins() -> None:
    gate = AuthorizationGate([])
    assert gate.open_mode
    assert gate.is_authorized(123)
    assert gate.is_authorized(None)


def test_gate_checks_membership() -> None:
    gate = AuthorizationGate([1, 2])
    assert gate.is_authorized(1)
    assert not gate.is_authorized(3)
    with pytest.raises(AuthorizationError):
        gate.require(3)

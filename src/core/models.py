"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Rule:
    """A single trigger -> reply pair. Triggers are stored lower-cased."""

    trigger: str
    reply: str


@dataclass(frozen=True)
class RuleMatch:
    """The rule that fired for an inbound message."""

    trigger: str
    reply: str


@dataclass(frozen=True)
class Schedule:
    """Durable daily send instruction for the secondary channel."""

    contact_id: str
    message: str
    hour: int
    minute: int

    @property
    def id(self) -> str:
        return build_schedule_id(self.contact_id, self.hour, self.minute)

    @property
    def time_label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def build_schedule_id(contact_id: str, hour: int, minute: int) -> str:
    """Return the natural key, which doubles as the dedup key."""

    return f"{contact_id}_{hour:02d}:{minute:02d}"


@dataclass(frozen=True)
class InboundMessage:
    """Minimal inbound message context used by the auto-reply processor."""

    chat_id: int
    sender_id: Optional[int]
    text: str
    # Phone-style identifier of the sender; only known on the secondary channel.
    contact_id: Optional[str] = None
    outgoing: bool = False

"""Ports (interfaces) used by the core.

Ports define the minimal contracts for storage and transport adapters so
that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from core.models import Rule, Schedule


class StoragePort(Protocol):
    """Durable row operations required by the core.

    Implementations raise PersistenceError when the backend fails.
    """

    def list_rules(self) -> list[Rule]:
        ...

    def upsert_rule(self, trigger: str, reply: str) -> None:
        ...

    def delete_rule(self, trigger: str) -> bool:
        ...

    def list_contacts(self) -> list[str]:
        ...

    def has_contact(self, contact_id: str) -> bool:
        ...

    def add_contact(self, contact_id: str) -> bool:
        ...

    def delete_contact(self, contact_id: str) -> bool:
        ...

    def list_schedules(self) -> list[Schedule]:
        ...

    def upsert_schedule(self, schedule: Schedule) -> None:
        ...

    def delete_schedule(self, schedule_id: str) -> bool:
        ...


class TransportPort(Protocol):
    """Outbound chat operations required by the core."""

    def is_ready(self) -> bool:
        ...

    async def send_message(self, destination: Any, text: str) -> None:
        ...


class ContactTransportPort(TransportPort, Protocol):
    """Phone-addressed transport used for the secondary channel."""

    async def resolve_contact(self, contact_id: str) -> Optional[Any]:
        ...

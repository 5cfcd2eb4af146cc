"""Secondary channel transport backed by a Telethon user session.

The user account is addressed by phone number. A number is resolved by
importing it as a contact: Telegram only returns a user when the number is
registered, which doubles as the "is this number on the network" check.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Optional

from telethon import TelegramClient
from telethon.errors import RPCError
from telethon.tl.functions.contacts import ImportContactsRequest
from telethon.tl.types import InputPhoneContact

from core.errors import TransportError

LOGGER = logging.getLogger(__name__)


class TelegramContactTransport:
    """Phone-addressed sends through the logged-in user account."""

    def __init__(self, client: TelegramClient) -> None:
        self._client = client
        self._authorized = False
        # contact_id -> resolved user entity; numbers rarely change owner.
        self._entities: dict[str, Any] = {}
        # user id -> contact_id, for senders whose phone is hidden by privacy.
        self._contact_ids: dict[int, str] = {}

    def mark_authorized(self, authorized: bool = True) -> None:
        self._authorized = authorized
        LOGGER.info("Secondary account %s", "ready" if authorized else "not authorized")

    def is_ready(self) -> bool:
        return self._authorized and self._client.is_connected()

    async def resolve_contact(self, contact_id: str) -> Optional[Any]:
        if contact_id in self._entities:
            return self._entities[contact_id]

        contact = InputPhoneContact(
            client_id=random.randrange(-(2**63), 2**63),
            phone=f"+{contact_id}",
            first_name=f"+{contact_id}",
            last_name="",
        )
        try:
            result = await self._client(ImportContactsRequest([contact]))
        except RPCError as exc:
            raise TransportError(f"Contact lookup failed: {exc}") from exc

        if not result.users:
            return None
        entity = result.users[0]
        self._entities[contact_id] = entity
        self._contact_ids[entity.id] = contact_id
        return entity

    def contact_for_user(self, user_id: Optional[int]) -> Optional[str]:
        """Return "+<digits>" for a user resolved earlier by phone number."""

        contact_id = self._contact_ids.get(user_id) if user_id is not None else None
        return f"+{contact_id}" if contact_id else None

    async def send_message(self, destination: Any, text: str) -> None:
        try:
            await self._client.send_message(destination, text, parse_mode=None)
        except (RPCError, ValueError) as exc:
            raise TransportError(f"Telegram send failed: {exc}") from exc

"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core processor.
"""

from __future__ import annotations

from typing import Callable, Optional

from core.models import InboundMessage


def build_primary_message(event) -> InboundMessage:
    """Build an InboundMessage from a bot NewMessage event."""

    message = event.message
    return InboundMessage(
        chat_id=event.chat_id,
        sender_id=event.sender_id,
        text=getattr(message, "raw_text", None) or "",
        outgoing=bool(getattr(message, "out", False)),
    )


def contact_id_from_sender(sender) -> Optional[str]:
    """Return "+<digits>" for a user with a visible phone number."""

    if sender is None or getattr(sender, "bot", False):
        return None
    phone = getattr(sender, "phone", None)
    if not isinstance(phone, str) or not phone:
        return None
    # Telegram reports phones as digits with the country code, no "+".
    return phone if phone.startswith("+") else f"+{phone}"


async def build_secondary_message(
    event,
    known_contacts: Optional[Callable[[Optional[int]], Optional[str]]] = None,
) -> Optional[InboundMessage]:
    """Build an InboundMessage from a user-account NewMessage event.

    Only private chats are considered; group traffic is not auto-replied.
    When the sender hides their phone number, `known_contacts` maps the
    sender id back to a number resolved earlier through the address book.
    """

    if not getattr(event, "is_private", False):
        return None

    message = event.message
    sender = await event.get_sender()
    contact_id = contact_id_from_sender(sender)
    if contact_id is None and known_contacts is not None and not getattr(sender, "bot", False):
        contact_id = known_contacts(event.sender_id)
    return InboundMessage(
        chat_id=event.chat_id,
        sender_id=event.sender_id,
        text=getattr(message, "raw_text", None) or "",
        contact_id=contact_id,
        outgoing=bool(getattr(message, "out", False)),
    )

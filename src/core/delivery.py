"""Outbound send helper shared by the processor, dispatcher and scheduler."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Optional

from core.errors import TransportError
from core.ports import ContactTransportPort, TransportPort

LOGGER = logging.getLogger(__name__)


async def send_with_timeout(transport: TransportPort, destination: Any, text: str, timeout: float) -> None:
    """Send one message, converting hangs and adapter failures to TransportError."""

    try:
        await asyncio.wait_for(transport.send_message(destination, text), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise TransportError(f"Send timed out after {timeout:g}s") from exc
    except TransportError:
        raise
    except Exception as exc:
        raise TransportError(f"Failed to send message: {exc}") from exc


async def resolve_with_timeout(transport: ContactTransportPort, contact_id: str, timeout: float) -> Optional[Any]:
    """Resolve a contact to a transport destination; None if it is not registered."""

    try:
        return await asyncio.wait_for(transport.resolve_contact(contact_id), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise TransportError(f"Contact lookup timed out after {timeout:g}s") from exc
    except TransportError:
        raise
    except Exception as exc:
        raise TransportError(f"Failed to look up +{contact_id}: {exc}") from exc


async def resolve_allowed_contacts(
    transport: ContactTransportPort, contact_ids: Iterable[str], timeout: float
) -> int:
    """Look up each allow-listed number so replies can reach senders with hidden phones.

    Failures are logged per number; returns how many numbers resolved.
    """

    resolved = 0
    for contact_id in contact_ids:
        try:
            destination = await resolve_with_timeout(transport, contact_id, timeout)
        except TransportError as exc:
            LOGGER.warning("Could not look up allowed contact +%s: %s", contact_id, exc)
            continue
        if destination is None:
            LOGGER.info("Allowed contact +%s is not registered", contact_id)
            continue
        resolved += 1
    return resolved

"""Primary channel transport backed by a Telethon bot session."""

from __future__ import annotations

from typing import Any

from telethon import TelegramClient
from telethon.errors import RPCError

from core.errors import TransportError


class TelegramBotTransport:
    """Sends plain-text replies through the bot account."""

    def __init__(self, client: TelegramClient) -> None:
        self._client = client

    def is_ready(self) -> bool:
        return self._client.is_connected()

    async def send_message(self, destination: Any, text: str) -> None:
        # parse_mode=None: rule replies are sent verbatim, no Markdown.
        try:
            await self._client.send_message(destination, text, parse_mode=None)
        except (RPCError, ValueError) as exc:
            raise TransportError(f"Telegram bot send failed: {exc}") from exc

"""Telegram client factories for autorelay.

Two sessions are used: a bot session for the primary channel (commands and
auto-replies) and a user session for the phone-addressed secondary channel.
We explicitly manage each client's lifecycle so it is obvious when a session
is created and when it ends.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient


def _api_credentials() -> tuple[int, str]:
    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")

    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")
    return int(api_id), api_hash


def build_bot_client() -> TelegramClient:
    """Create the bot client; the token is supplied later to start()."""

    api_id, api_hash = _api_credentials()
    session_name = os.getenv("BOT_SESSION_NAME", "autorelay-bot")
    logging.getLogger(__name__).info("Initializing Telegram bot client")
    return TelegramClient(session_name, api_id, api_hash)


def build_user_client() -> TelegramClient:
    """Create the user-account client used for the secondary channel.

    The session name defaults to "autorelay" to create a local .session file
    that survives restarts, so the QR handshake only happens once.
    """

    api_id, api_hash = _api_credentials()
    session_name = os.getenv("SESSION_NAME", "autorelay")
    logging.getLogger(__name__).info("Initializing Telegram user client")
    return TelegramClient(session_name, api_id, api_hash)


def bot_token() -> str:
    load_dotenv()
    token = os.getenv("BOT_TOKEN")
    if not token:
        raise RuntimeError("Missing BOT_TOKEN in environment")
    return token

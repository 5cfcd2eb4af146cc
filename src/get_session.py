"""One-time login handshake for the secondary (user) account.

The QR code is rendered in the terminal and scanned from the phone app
(Settings > Devices > Link Desktop Device). Phone-code login is offered as a
fallback for headless setups where the terminal cannot show the code.
"""

from __future__ import annotations

import asyncio
import logging
import os
from getpass import getpass

import qrcode
from dotenv import load_dotenv
from telethon import TelegramClient, errors

LOGGER = logging.getLogger(__name__)

QR_WAIT_SECONDS = 120
QR_ATTEMPTS = 3


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def _resolve_2fa_password() -> str:
    password = os.getenv("2FA")
    if password:
        return password
    return getpass("2FA password: ")


async def _authorize_with_qr(client: TelegramClient) -> None:
    qr = await client.qr_login()
    for attempt in range(1, QR_ATTEMPTS + 1):
        print("Scan this QR code with your phone:")
        _print_qr(qr.url)
        try:
            await qr.wait(timeout=QR_WAIT_SECONDS)
            return
        except asyncio.TimeoutError:
            LOGGER.info("QR code expired (attempt %s of %s)", attempt, QR_ATTEMPTS)
            await qr.recreate()
    raise RuntimeError("QR login was not confirmed in time")


async def _authorize_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or input("Phone number (international format): ").strip()
    await client.send_code_request(phone)
    code = input("Login code: ").strip()
    await client.sign_in(phone=phone, code=code)


def _pick_login_method() -> str:
    method = (os.getenv("LOGIN_METHOD") or "").strip().lower()
    if method in {"qr", "phone"}:
        return method
    while True:
        print("")
        print("Login methods:")
        print("[1] QR code")
        print("[2] Phone code")
        print("[3] Exit")
        print("Select a login method: \n")
        choice = input("autorelay > ").strip()
        if choice == "1":
            return "qr"
        elif choice == "2":
            return "phone"
        elif choice == "3":
            raise SystemExit(0)
        else:
            print("Invalid option. Please choose 1, 2, or 3.")


async def open_session(client: TelegramClient) -> bool:
    """Connect the saved user session without prompting.

    Returns False when the session is missing, logged out or unreachable;
    the caller keeps running with the secondary channel marked not ready.
    """

    try:
        await client.connect()
        authorized = await client.is_user_authorized()
    except (OSError, errors.RPCError) as exc:
        LOGGER.error("Secondary account unavailable: %s", exc)
        return False

    if not authorized:
        LOGGER.warning(
            "Secondary account is not logged in; run `autorelay login` and restart. "
            "Direct sends, schedules and secondary auto-replies are paused."
        )
    return authorized


async def authorize(client: TelegramClient) -> None:
    """Log the user session in unless its .session file is already valid."""

    if await client.is_user_authorized():
        return

    load_dotenv()
    try:
        if _pick_login_method() == "phone":
            await _authorize_with_phone(client)
        else:
            await _authorize_with_qr(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())

    me = await client.get_me()
    LOGGER.info("Secondary account logged in as %s", getattr(me, "first_name", None) or me.id)

"""Application entry point for the autorelay bot."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_bot_transport import TelegramBotTransport
from adapters.telegram_contact_transport import TelegramContactTransport
from adapters.telegram_mapper import build_primary_message, build_secondary_message
from client import bot_token, build_bot_client, build_user_client
from core.auth import AuthorizationGate
from core.config import ContactConfig, ReplyConfig
from core.contacts import ContactAllowList
from core.delivery import resolve_allowed_contacts, send_with_timeout
from core.dispatcher import CommandDispatcher
from core.errors import TransportError
from core.processor import AutoReplyProcessor
from core.rule_store import RuleStore
from core.rules_engine import MATCH_POLICIES
from core.scheduler import ScheduleManager
from get_session import authorize, open_session

NAME = "AUTORELAY"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Masks secret values (tokens, hashes) that end up in log lines."""

    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _redacted_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {})
    if not redact_cfg.get("enabled", False):
        return []
    return [os.getenv(name, "") for name in redact_cfg.get("patterns", [])]


def _level(name: object, default: int = logging.INFO) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def _build_handlers(config: dict, formatter: logging.Formatter) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/autorelay.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def _configure_logging(config: Optional[dict] = None) -> None:
    """Set up root logging from the `logging` section of config.json.

    `logging.loggers` maps library logger names to their own level: Telethon
    reports every reconnect and APScheduler every job run at INFO.
    """

    config = settings.LOGGING if config is None else config
    if not config or not config.get("enabled", False):
        return

    load_dotenv()
    formatter = _RedactingFormatter(
        _redacted_values(config),
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handlers = _build_handlers(config, formatter)
    if not handlers:
        return

    logging.basicConfig(level=_level(config.get("level", "INFO")), handlers=handlers)
    for name, level in config.get("loggers", {}).items():
        logging.getLogger(name).setLevel(_level(level, logging.WARNING))


def _reply_config() -> ReplyConfig:
    if settings.MATCH_POLICY not in MATCH_POLICIES:
        raise RuntimeError(f"matching.policy must be one of {', '.join(MATCH_POLICIES)}")
    return ReplyConfig(
        secondary_delay_seconds=settings.SECONDARY_DELAY_SECONDS,
        send_timeout_seconds=settings.SEND_TIMEOUT_SECONDS,
        match_policy=settings.MATCH_POLICY,
    )


async def _serve() -> None:
    logger = logging.getLogger(__name__)

    # Storage failures here are fatal: nothing is handled without a database.
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()

    reply_config = _reply_config()
    contact_config = ContactConfig(
        default_country_code=settings.DEFAULT_COUNTRY_CODE,
        national_number_length=settings.NATIONAL_NUMBER_LENGTH,
    )

    bot = build_bot_client()
    user = build_user_client()
    await bot.start(bot_token=bot_token())
    # The bot keeps serving when the user session is not logged in; the
    # interactive handshake only runs under `autorelay login`.
    secondary_ready = await open_session(user)

    primary = TelegramBotTransport(bot)
    secondary = TelegramContactTransport(user)
    secondary.mark_authorized(secondary_ready)

    rules = RuleStore(storage)
    rules.refresh()
    logger.info("%s rules are loaded", rules.count())
    if settings.ADMIN_IDS:
        logger.info("%s admins configured", len(settings.ADMIN_IDS))
    else:
        logger.warning("No admins configured: every chat may manage rules")

    allow_list = ContactAllowList(storage, contact_config)
    job_scheduler = AsyncIOScheduler()
    job_scheduler.start()
    schedules = ScheduleManager(storage, secondary, job_scheduler, reply_config)
    schedules.restore()
    if secondary.is_ready():
        resolved = await resolve_allowed_contacts(
            secondary, allow_list.list_all(), reply_config.send_timeout_seconds
        )
        logger.info("%s allowed contacts resolved", resolved)

    dispatcher = CommandDispatcher(
        rules=rules,
        contacts=allow_list,
        schedules=schedules,
        gate=AuthorizationGate(settings.ADMIN_IDS),
        secondary=secondary,
        reply_config=reply_config,
    )
    processor = AutoReplyProcessor(
        rules=rules,
        allow_list=allow_list,
        primary=primary,
        secondary=secondary,
        reply_config=reply_config,
    )

    @bot.on(events.NewMessage(incoming=True))
    async def primary_handler(event) -> None:
        try:
            message = build_primary_message(event)
            reply = await dispatcher.dispatch(message.sender_id, message.text)
            if reply is None:
                await processor.handle_primary(message)
                return
            await send_with_timeout(primary, message.chat_id, reply, reply_config.send_timeout_seconds)
        except TransportError as exc:
            logger.warning("Command reply to chat %s failed: %s", event.chat_id, exc)
        except Exception:
            logger.exception("Error while processing bot message")

    @user.on(events.NewMessage(incoming=True))
    async def secondary_handler(event) -> None:
        try:
            message = await build_secondary_message(event, secondary.contact_for_user)
            if message is not None:
                await processor.handle_secondary(message)
        except Exception:
            logger.exception("Error while processing secondary message")

    logger.info("Clients connected. Listening for incoming messages...")
    try:
        await bot.run_until_disconnected()
    finally:
        await processor.shutdown()
        schedules.shutdown()
        job_scheduler.shutdown(wait=False)
        await user.disconnect()
        logger.info("Stopped")


def _run() -> None:
    _print_banner()
    _configure_logging()
    logging.getLogger(__name__).info("Starting autorelay")
    asyncio.run(_serve())


def _login() -> None:
    _print_banner()
    _configure_logging()

    async def _run_login() -> None:
        client = build_user_client()
        await client.connect()
        try:
            await authorize(client)
            me = await client.get_me()
            print(f"Logged in as: {getattr(me, 'first_name', None) or me.id}")
        finally:
            await client.disconnect()

    asyncio.run(_run_login())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="autorelay")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser(
        "login",
        help="Log the secondary account in (QR code or phone code) and exit.",
    )

    args = parser.parse_args(argv)
    if args.command == "login":
        _login()
        return
    _run()


if __name__ == "__main__":
    main()

"""Static configuration for autorelay.

Non-secret settings (admins, contact normalization, reply timing, logging)
live in a single JSON file for quick edits without touching Python. Secrets
stay in the environment / .env.
"""

import json
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _parse_admin_ids(configured: list, env_value: "str | None") -> set[int]:
    """Merge admin ids from config.json and the ADMIN_CHAT_IDS variable."""

    raw_ids = [str(item) for item in configured]
    if env_value:
        raw_ids.extend(env_value.split(","))
    admins: set[int] = set()
    for raw in raw_ids:
        raw = raw.strip()
        if not raw:
            continue
        try:
            admins.add(int(raw))
        except ValueError as exc:
            raise ValueError(f"Invalid admin chat id: {raw!r}") from exc
    return admins


load_dotenv()
_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Empty admin set means every chat may manage rules (open mode).
ADMIN_IDS = _parse_admin_ids(_CONFIG.get("admins", []), os.getenv("ADMIN_CHAT_IDS"))

# Where to store the SQLite database (relative paths are project-relative).
_database = _CONFIG.get("database", {})
DB_PATH = _database.get("path", "autorelay.db")
if not os.path.isabs(DB_PATH):
    DB_PATH = os.path.join(PROJECT_ROOT, DB_PATH)

# Phone numbers without a "+" get this country code when they fit a
# national number.
_contacts = _CONFIG.get("contacts", {})
DEFAULT_COUNTRY_CODE = str(_contacts.get("default_country_code", "91"))
NATIONAL_NUMBER_LENGTH = int(_contacts.get("national_number_length", 10))

# Overlapping triggers: "first" (storage order) or "longest".
_matching = _CONFIG.get("matching", {})
MATCH_POLICY = _matching.get("policy", "first")

# Reply timing: human-like pause on the secondary channel and a hard
# deadline for every outbound send.
_replies = _CONFIG.get("replies", {})
SECONDARY_DELAY_SECONDS = float(_replies.get("secondary_delay_seconds", 3))
SEND_TIMEOUT_SECONDS = float(_replies.get("send_timeout_seconds", 15))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})

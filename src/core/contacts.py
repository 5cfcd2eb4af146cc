"""Contact identifier normalization and the secondary-channel allow-list."""

from __future__ import annotations

import logging
import re

from core.config import ContactConfig
from core.errors import ValidationError
from core.ports import StoragePort

LOGGER = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s\-().]")


def normalize_contact_id(raw: str, config: ContactConfig) -> str:
    """Return the canonical digits-only form of a phone-style identifier.

    - Anything from "@" on is a transport suffix (e.g. "123@c.us") and is dropped.
    - A leading "+" means the number already carries its country code.
    - Otherwise one leading zero is stripped and the default country code is
      prefixed when what remains fits a national number.

    The result is stable under re-normalization, so stored ids can be fed
    back in safely.
    """

    value = (raw or "").strip()
    had_suffix = "@" in value
    value = value.split("@", 1)[0]
    value = _SEPARATORS.sub("", value)

    qualified = had_suffix
    if value.startswith("+"):
        qualified = True
        value = value[1:]

    if not value.isdigit():
        raise ValidationError(f"Invalid phone number: {raw!r}")

    if qualified:
        return value

    if value.startswith("0"):
        value = value[1:]
    if not value:
        raise ValidationError(f"Invalid phone number: {raw!r}")
    if len(value) <= config.national_number_length:
        value = f"{config.default_country_code}{value}"
    return value


class ContactAllowList:
    """Durable set of contacts eligible for secondary-channel auto-reply."""

    def __init__(self, storage: StoragePort, config: ContactConfig) -> None:
        self._storage = storage
        self._config = config

    def normalize(self, raw: str) -> str:
        return normalize_contact_id(raw, self._config)

    def add(self, raw: str) -> tuple[str, bool]:
        """Add a contact; returns (contact_id, newly_added)."""

        contact_id = self.normalize(raw)
        added = self._storage.add_contact(contact_id)
        if added:
            LOGGER.info("Contact allowed: %s", contact_id)
        return contact_id, added

    def remove(self, raw: str) -> tuple[str, bool]:
        contact_id = self.normalize(raw)
        removed = self._storage.delete_contact(contact_id)
        if removed:
            LOGGER.info("Contact removed: %s", contact_id)
        return contact_id, removed

    def is_allowed(self, raw: str) -> bool:
        try:
            contact_id = self.normalize(raw)
        except ValidationError:
            return False
        return self._storage.has_contact(contact_id)

    def list_all(self) -> list[str]:
        return self._storage.list_contacts()

"""Error taxonomy shared by the core and adapters.

Every error carries a user-facing message so the command dispatcher can turn
it into a chat reply without inspecting the cause.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for errors that are reported back to the requester."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        return str(self)


class ValidationError(RelayError):
    """Malformed command arguments; nothing was changed."""

    default_message = "Invalid command arguments."


class AuthorizationError(RelayError):
    """Requester is not in the configured admin set."""

    default_message = "You don't have permission to manage rules."


class NotFoundError(RelayError):
    """Edit/delete/cancel referenced a key that does not exist."""

    default_message = "Not found."


class PersistenceError(RelayError):
    """The durable store rejected a read or write."""

    default_message = "Storage error, the change was not saved."


class TransportError(RelayError):
    """An outbound send failed or the transport is not ready."""

    default_message = "Failed to send message."

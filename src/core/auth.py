"""Authorization gate for administrative commands."""

from __future__ import annotations

from typing import Iterable, Optional

from core.errors import AuthorizationError


class AuthorizationGate:
    """Set-membership check against the configured admin ids.

    An empty admin set means open mode: every requester is authorized.
    """

    def __init__(self, admin_ids: Iterable[int]) -> None:
        self._admin_ids = frozenset(admin_ids)

    @property
    def open_mode(self) -> bool:
        return not self._admin_ids

    def is_authorized(self, requester_id: Optional[int]) -> bool:
        if self.open_mode:
            return True
        return requester_id in self._admin_ids

    def require(self, requester_id: Optional[int]) -> None:
        if not self.is_authorized(requester_id):
            raise AuthorizationError()

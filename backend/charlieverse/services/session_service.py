from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass

from charlieverse.models.user import Principal

logger = logging.getLogger(__name__)


@dataclass
class SessionRecord:
    principal: Principal
    expires_at: float


class SessionStore:
    """Server-side sessions keyed by an opaque random token.

    Sessions live in process memory only; a restart logs everyone out.
    """

    def __init__(self, ttl_seconds: int = 7 * 24 * 60 * 60):
        self.ttl_seconds = ttl_seconds
        self._sessions: dict[str, SessionRecord] = {}

    def create(self, principal: Principal) -> str:
        self._purge_expired()
        token = secrets.token_urlsafe(32)
        self._sessions[token] = SessionRecord(
            principal=principal,
            expires_at=time.monotonic() + self.ttl_seconds,
        )
        logger.debug("Session started for user %s", principal.user_id)
        return token

    def get(self, token: str | None) -> Principal | None:
        if not token:
            return None
        record = self._sessions.get(token)
        if record is None:
            return None
        if record.expires_at <= time.monotonic():
            self._sessions.pop(token, None)
            return None
        return record.principal

    def refresh_user(self, principal: Principal) -> None:
        """Replace the principal in every live session of that user."""
        for record in self._sessions.values():
            if record.principal.user_id == principal.user_id:
                record.principal = principal

    def destroy(self, token: str | None) -> None:
        if token:
            self._sessions.pop(token, None)

    def _purge_expired(self) -> None:
        now = time.monotonic()
        expired = [token for token, record in self._sessions.items() if record.expires_at <= now]
        for token in expired:
            del self._sessions[token]

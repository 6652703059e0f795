"""Session identity mapping for logged-in users."""

from __future__ import annotations

import logging

from authserver.core.logging_safety import exception_label, safe_log_identifier
from authserver.errors import SessionResolutionError, StoreError
from authserver.repositories.memory import InMemoryStore
from authserver.schemas.auth import UserPrincipal

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


class SessionSerializer:
    """Maps a user to the opaque id kept in the session and back again."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def serialize_user(self, user: UserPrincipal) -> str:
        logger.debug("session.serialized user_id=%s", safe_log_identifier(user.id, prefix="pid"))
        return user.id

    async def deserialize_user(self, user_id: str | None) -> UserPrincipal | None:
        """Re-resolve a session id. ``None`` means there is no usable session.

        Store faults are not folded into ``None``; they raise
        ``SessionResolutionError`` so the caller can tell an outage apart
        from a logged-out user.
        """
        if not isinstance(user_id, str) or not user_id:
            return None

        safe_user_id = safe_log_identifier(user_id, prefix="pid")
        try:
            user = await self._store.find_user_by_id(user_id)
        except StoreError as exc:
            logger.error("session.resolve_failed user_id=%s error=%s", safe_user_id, exception_label(exc))
            raise SessionResolutionError("Session store unavailable") from exc

        if user is None:
            logger.info("session.stale user_id=%s", safe_user_id)
            return None

        logger.debug("session.resolved user_id=%s", safe_user_id)
        return user


__all__ = ["SESSION_USER_KEY", "SessionSerializer"]

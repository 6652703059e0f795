"""In-memory repositories used by the API scaffold and tests."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from authserver.errors import StoreError
from authserver.schemas.auth import ClientPrincipal, UserPrincipal


def token_digest(value: str) -> str:
    """Storage key for an access token; raw token values are never kept."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class AccessTokenRecord:
    token_digest: str
    expires_at: datetime
    user_id: str | None = None
    client_id: str | None = None
    scope: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    revoked_at: datetime | None = None


@dataclass(slots=True)
class InMemoryStore:
    """Simple, deterministic persistence layer for scaffolding and tests.

    Lookups are coroutines so callers are written against the same shape a
    networked store would have. Setting ``fault_message`` makes every lookup
    raise ``StoreError``.
    """

    users: dict[str, UserPrincipal] = field(default_factory=dict)
    clients: dict[str, ClientPrincipal] = field(default_factory=dict)
    access_tokens: dict[str, AccessTokenRecord] = field(default_factory=dict)
    lookup_count: int = 0
    fault_message: str | None = None

    def _begin_lookup(self) -> None:
        self.lookup_count += 1
        if self.fault_message is not None:
            raise StoreError(self.fault_message)

    async def find_user_by_username(self, username: str) -> UserPrincipal | None:
        self._begin_lookup()
        for user in self.users.values():
            if user.username == username:
                return user
        return None

    async def find_user_by_id(self, user_id: str) -> UserPrincipal | None:
        self._begin_lookup()
        return self.users.get(user_id)

    async def find_client_by_client_id(self, client_id: str) -> ClientPrincipal | None:
        self._begin_lookup()
        for client in self.clients.values():
            if client.client_id == client_id:
                return client
        return None

    async def find_access_token(self, value: str) -> AccessTokenRecord | None:
        self._begin_lookup()
        return self.access_tokens.get(token_digest(value))

    def create_user(self, *, username: str, password_hash: str) -> UserPrincipal:
        if any(existing.username == username for existing in self.users.values()):
            raise ValueError(f"username already registered: {username}")
        user = UserPrincipal(id=str(uuid4()), username=username, password_hash=password_hash)
        self.users[user.id] = user
        return user

    def delete_user(self, user_id: str) -> bool:
        return self.users.pop(user_id, None) is not None

    def create_client(self, *, client_id: str, client_secret_hash: str, name: str = "") -> ClientPrincipal:
        if any(existing.client_id == client_id for existing in self.clients.values()):
            raise ValueError(f"client_id already registered: {client_id}")
        client = ClientPrincipal(
            id=str(uuid4()),
            client_id=client_id,
            name=name,
            client_secret_hash=client_secret_hash,
        )
        self.clients[client.id] = client
        return client

    def save_access_token(
        self,
        value: str,
        *,
        expires_at: datetime,
        user_id: str | None = None,
        client_id: str | None = None,
        scope: str | None = None,
    ) -> AccessTokenRecord:
        """Persist an already-issued token so it can be verified later."""
        if (user_id is None) == (client_id is None):
            raise ValueError("access token must belong to exactly one of user_id or client_id")
        record = AccessTokenRecord(
            token_digest=token_digest(value),
            expires_at=expires_at,
            user_id=user_id,
            client_id=client_id,
            scope=scope,
        )
        self.access_tokens[record.token_digest] = record
        return record

    def revoke_access_token(self, value: str) -> bool:
        record = self.access_tokens.get(token_digest(value))
        if record is None or record.revoked_at is not None:
            return False
        record.revoked_at = datetime.now(UTC)
        return True

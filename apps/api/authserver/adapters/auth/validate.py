"""Credential checks delegated to by the verifier."""

from __future__ import annotations

from datetime import datetime

from starlette.concurrency import run_in_threadpool

from authserver.adapters.auth.base import AuthVerificationError, RejectReason
from authserver.adapters.auth.passwords import SecretHasher
from authserver.repositories.memory import AccessTokenRecord, InMemoryStore
from authserver.schemas.auth import ClientPrincipal, Principal


async def validate_client(client: ClientPrincipal, client_secret: str, hasher: SecretHasher) -> ClientPrincipal:
    """Return ``client`` if ``client_secret`` matches its stored hash."""
    matched = await run_in_threadpool(hasher.verify, client.client_secret_hash, client_secret)
    if not matched:
        raise AuthVerificationError(RejectReason.MISMATCH)
    return client


async def validate_token(
    store: InMemoryStore,
    record: AccessTokenRecord,
    *,
    now: datetime,
) -> Principal:
    """Check a stored token is live and resolve it to the principal that owns it."""
    if record.revoked_at is not None:
        raise AuthVerificationError(RejectReason.INVALID, "token revoked")
    if record.expires_at <= now:
        raise AuthVerificationError(RejectReason.INVALID, "token expired")

    owner: Principal | None
    if record.user_id is not None:
        owner = await store.find_user_by_id(record.user_id)
    elif record.client_id is not None:
        owner = await store.find_client_by_client_id(record.client_id)
    else:
        raise AuthVerificationError(RejectReason.INVALID, "token has no owner")

    if owner is None:
        raise AuthVerificationError(RejectReason.NOT_FOUND, "token owner no longer exists")
    return owner


__all__ = ["validate_client", "validate_token"]

"""Credential verification service.

Every operation here is total: unknown identifiers, wrong secrets, dead tokens,
store faults and unexpected errors all come back as ``Rejected``. The reason is
logged under a hashed identifier and never surfaced to the caller.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
import logging

from starlette.concurrency import run_in_threadpool

from authserver.adapters.auth import (
    AuthVerificationError,
    RejectReason,
    SecretHasher,
    validate_client,
    validate_token,
)
from authserver.core.logging_safety import exception_label, safe_log_identifier
from authserver.errors import StoreError
from authserver.repositories.memory import InMemoryStore
from authserver.schemas.auth import (
    Accepted,
    BearerTokenCredential,
    ClientSecretCredential,
    PasswordCredential,
    Principal,
    Rejected,
    VerificationResult,
)

logger = logging.getLogger(__name__)

DEFAULT_BEARER_SCOPE = "*"


class CredentialVerifier:
    def __init__(
        self,
        store: InMemoryStore,
        hasher: SecretHasher,
        *,
        bearer_scope: str = DEFAULT_BEARER_SCOPE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._bearer_scope = bearer_scope
        self._clock = clock or (lambda: datetime.now(UTC))

    async def verify(
        self,
        credential: PasswordCredential | ClientSecretCredential | BearerTokenCredential,
    ) -> VerificationResult:
        """Dispatch a presented credential to the matching verification."""
        if isinstance(credential, PasswordCredential):
            return await self.verify_password(credential.username, credential.password)
        if isinstance(credential, ClientSecretCredential):
            return await self.verify_client_secret(credential.client_id, credential.client_secret)
        if isinstance(credential, BearerTokenCredential):
            return await self.verify_bearer_token(credential.token)
        logger.warning("auth.rejected kind=%s reason=%s", type(credential).__name__, RejectReason.MALFORMED.value)
        return Rejected()

    async def verify_password(self, username: str, password: str) -> VerificationResult:
        async def check() -> Principal:
            user = await self._store.find_user_by_username(username)
            if user is None:
                await run_in_threadpool(self._hasher.burn, password)
                raise AuthVerificationError(RejectReason.NOT_FOUND)
            matched = await run_in_threadpool(self._hasher.verify, user.password_hash, password)
            if not matched:
                raise AuthVerificationError(RejectReason.MISMATCH)
            return user

        return await self._run(
            "password",
            safe_log_identifier(username, prefix="uname"),
            check,
            presented=(username, password),
        )

    async def verify_client_secret(self, client_id: str, client_secret: str) -> VerificationResult:
        """Shared by the HTTP Basic and request-body client bindings."""

        async def check() -> Principal:
            client = await self._store.find_client_by_client_id(client_id)
            if client is None:
                await run_in_threadpool(self._hasher.burn, client_secret)
                raise AuthVerificationError(RejectReason.NOT_FOUND)
            return await validate_client(client, client_secret, self._hasher)

        return await self._run(
            "client_secret",
            safe_log_identifier(client_id, prefix="client"),
            check,
            presented=(client_id, client_secret),
        )

    async def verify_bearer_token(self, token: str) -> VerificationResult:
        async def check() -> Principal:
            record = await self._store.find_access_token(token)
            if record is None:
                raise AuthVerificationError(RejectReason.NOT_FOUND)
            return await validate_token(self._store, record, now=self._clock())

        return await self._run(
            "bearer_token",
            safe_log_identifier(token, prefix="tok"),
            check,
            presented=(token,),
            scope=self._bearer_scope,
        )

    async def _run(
        self,
        kind: str,
        safe_identifier: str,
        check: Callable[[], Awaitable[Principal]],
        *,
        presented: tuple[str, ...],
        scope: str | None = None,
    ) -> VerificationResult:
        if not all(isinstance(value, str) and value for value in presented):
            logger.warning(
                "auth.rejected kind=%s identifier=%s reason=%s",
                kind,
                safe_identifier,
                RejectReason.MALFORMED.value,
            )
            return Rejected()

        try:
            principal = await check()
        except AuthVerificationError as exc:
            logger.warning(
                "auth.rejected kind=%s identifier=%s reason=%s",
                kind,
                safe_identifier,
                exc.reason.value,
            )
            return Rejected()
        except StoreError as exc:
            logger.error(
                "auth.rejected kind=%s identifier=%s reason=%s error=%s",
                kind,
                safe_identifier,
                RejectReason.STORE_FAULT.value,
                exception_label(exc),
            )
            return Rejected()
        except Exception as exc:  # noqa: BLE001 - verification fails closed
            logger.error(
                "auth.rejected kind=%s identifier=%s reason=unexpected error=%s",
                kind,
                safe_identifier,
                exception_label(exc),
            )
            return Rejected()

        logger.info(
            "auth.accepted kind=%s identifier=%s principal_id=%s",
            kind,
            safe_identifier,
            safe_log_identifier(principal.id, prefix="pid"),
        )
        return Accepted(principal=principal, scope=scope)


__all__ = ["CredentialVerifier", "DEFAULT_BEARER_SCOPE"]

"""Credential verifier tests: every failure path folds to a plain rejection."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
import unittest
from unittest.mock import patch

from argon2 import PasswordHasher
from pydantic import TypeAdapter

from authserver.adapters.auth import SecretHasher
from authserver.repositories.memory import InMemoryStore
from authserver.schemas.auth import (
    Accepted,
    ClientPrincipal,
    PresentedCredential,
    Rejected,
    UserPrincipal,
)
from authserver.services.verifier import CredentialVerifier

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def fast_hasher() -> SecretHasher:
    return SecretHasher(PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1))


class _VerifierCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.hasher = fast_hasher()
        self.store = InMemoryStore()
        self.user = self.store.create_user(username="alice", password_hash=self.hasher.hash("wonderland"))
        self.client = self.store.create_client(
            client_id="abc123",
            client_secret_hash=self.hasher.hash("ssh-secret"),
            name="Sample Client",
        )
        self.verifier = CredentialVerifier(self.store, self.hasher, clock=lambda: _NOW)


class PasswordVerificationTests(_VerifierCase):
    async def test_correct_password_accepts_user_without_scope(self) -> None:
        result = await self.verifier.verify_password("alice", "wonderland")

        self.assertIsInstance(result, Accepted)
        self.assertIsInstance(result.principal, UserPrincipal)
        self.assertEqual(result.principal.id, self.user.id)
        self.assertIsNone(result.scope)

    async def test_wrong_password_is_rejected(self) -> None:
        result = await self.verifier.verify_password("alice", "looking-glass")

        self.assertIsInstance(result, Rejected)

    async def test_unknown_username_is_rejected(self) -> None:
        for username in ("bob", "Alice", "alice ", "ALICE"):
            with self.subTest(username=username):
                result = await self.verifier.verify_password(username, "wonderland")
                self.assertIsInstance(result, Rejected)

    async def test_unknown_user_and_wrong_password_are_indistinguishable(self) -> None:
        unknown = await self.verifier.verify_password("nobody", "wonderland")
        mismatch = await self.verifier.verify_password("alice", "wrong")

        self.assertEqual(unknown, mismatch)
        self.assertEqual(repr(unknown), repr(mismatch))

    async def test_blank_credentials_are_rejected_without_store_lookup(self) -> None:
        self.assertIsInstance(await self.verifier.verify_password("", "wonderland"), Rejected)
        self.assertIsInstance(await self.verifier.verify_password("alice", ""), Rejected)
        self.assertEqual(self.store.lookup_count, 0)

    async def test_store_fault_is_rejected(self) -> None:
        self.store.fault_message = "connection reset"

        result = await self.verifier.verify_password("alice", "wonderland")

        self.assertIsInstance(result, Rejected)

    async def test_unexpected_exception_is_rejected(self) -> None:
        with patch.object(InMemoryStore, "find_user_by_username", side_effect=RuntimeError("boom")):
            result = await self.verifier.verify_password("alice", "wonderland")

        self.assertIsInstance(result, Rejected)

    async def test_corrupt_password_hash_is_rejected(self) -> None:
        self.store.users[self.user.id] = UserPrincipal(id=self.user.id, username="alice", password_hash="not-a-hash")

        result = await self.verifier.verify_password("alice", "wonderland")

        self.assertIsInstance(result, Rejected)


class ClientSecretVerificationTests(_VerifierCase):
    async def test_correct_secret_accepts_client(self) -> None:
        result = await self.verifier.verify_client_secret("abc123", "ssh-secret")

        self.assertIsInstance(result, Accepted)
        self.assertIsInstance(result.principal, ClientPrincipal)
        self.assertEqual(result.principal.client_id, "abc123")
        self.assertIsNone(result.scope)

    async def test_wrong_secret_and_unknown_client_are_rejected(self) -> None:
        self.assertIsInstance(await self.verifier.verify_client_secret("abc123", "nope"), Rejected)
        self.assertIsInstance(await self.verifier.verify_client_secret("xyz789", "ssh-secret"), Rejected)

    async def test_store_fault_is_rejected(self) -> None:
        self.store.fault_message = "timeout"

        result = await self.verifier.verify_client_secret("abc123", "ssh-secret")

        self.assertIsInstance(result, Rejected)

    async def test_unexpected_exception_is_rejected(self) -> None:
        with patch.object(InMemoryStore, "find_client_by_client_id", side_effect=RuntimeError("boom")):
            result = await self.verifier.verify_client_secret("abc123", "ssh-secret")

        self.assertIsInstance(result, Rejected)


class BearerTokenVerificationTests(_VerifierCase):
    async def test_valid_user_token_accepts_owner_with_wildcard_scope(self) -> None:
        self.store.save_access_token("user-token", user_id=self.user.id, expires_at=_NOW + timedelta(hours=1))

        result = await self.verifier.verify_bearer_token("user-token")

        self.assertIsInstance(result, Accepted)
        self.assertEqual(result.principal.id, self.user.id)
        self.assertEqual(result.scope, "*")

    async def test_valid_client_token_accepts_owning_client(self) -> None:
        self.store.save_access_token("client-token", client_id="abc123", expires_at=_NOW + timedelta(hours=1))

        result = await self.verifier.verify_bearer_token("client-token")

        self.assertIsInstance(result, Accepted)
        self.assertIsInstance(result.principal, ClientPrincipal)
        self.assertEqual(result.principal.id, self.client.id)
        self.assertEqual(result.scope, "*")

    async def test_configured_scope_is_passed_through(self) -> None:
        self.store.save_access_token("user-token", user_id=self.user.id, expires_at=_NOW + timedelta(hours=1))
        verifier = CredentialVerifier(self.store, self.hasher, bearer_scope="profile", clock=lambda: _NOW)

        result = await verifier.verify_bearer_token("user-token")

        self.assertEqual(result.scope, "profile")

    async def test_unknown_token_is_rejected(self) -> None:
        self.assertIsInstance(await self.verifier.verify_bearer_token("missing"), Rejected)

    async def test_expired_token_is_rejected_even_though_stored(self) -> None:
        self.store.save_access_token("old-token", user_id=self.user.id, expires_at=_NOW - timedelta(seconds=1))
        self.store.save_access_token("edge-token", user_id=self.user.id, expires_at=_NOW)

        self.assertIsInstance(await self.verifier.verify_bearer_token("old-token"), Rejected)
        self.assertIsInstance(await self.verifier.verify_bearer_token("edge-token"), Rejected)

    async def test_revoked_token_is_rejected_even_though_stored(self) -> None:
        self.store.save_access_token("live-token", user_id=self.user.id, expires_at=_NOW + timedelta(hours=1))
        self.assertTrue(self.store.revoke_access_token("live-token"))

        result = await self.verifier.verify_bearer_token("live-token")

        self.assertIsInstance(result, Rejected)

    async def test_token_for_deleted_owner_is_rejected(self) -> None:
        self.store.save_access_token("orphan-token", user_id=self.user.id, expires_at=_NOW + timedelta(hours=1))
        self.store.delete_user(self.user.id)

        result = await self.verifier.verify_bearer_token("orphan-token")

        self.assertIsInstance(result, Rejected)

    async def test_store_fault_is_rejected(self) -> None:
        self.store.save_access_token("user-token", user_id=self.user.id, expires_at=_NOW + timedelta(hours=1))
        self.store.fault_message = "replica unavailable"

        result = await self.verifier.verify_bearer_token("user-token")

        self.assertIsInstance(result, Rejected)

    async def test_unexpected_exception_is_rejected(self) -> None:
        # A naive expiry cannot be compared with the aware clock and raises TypeError.
        self.store.save_access_token("naive-token", user_id=self.user.id, expires_at=datetime(2030, 1, 1))

        result = await self.verifier.verify_bearer_token("naive-token")

        self.assertIsInstance(result, Rejected)


class CredentialDispatchTests(_VerifierCase):
    async def test_tagged_credentials_route_to_matching_verification(self) -> None:
        self.store.save_access_token("user-token", user_id=self.user.id, expires_at=_NOW + timedelta(hours=1))
        adapter = TypeAdapter(PresentedCredential)

        password = adapter.validate_python({"kind": "password", "username": "alice", "password": "wonderland"})
        client = adapter.validate_python({"kind": "client_secret", "client_id": "abc123", "client_secret": "ssh-secret"})
        bearer = adapter.validate_python({"kind": "bearer_token", "token": "user-token"})

        password_result = await self.verifier.verify(password)
        client_result = await self.verifier.verify(client)
        bearer_result = await self.verifier.verify(bearer)

        self.assertEqual(password_result.principal.id, self.user.id)
        self.assertEqual(client_result.principal.id, self.client.id)
        self.assertEqual(bearer_result.principal.id, self.user.id)
        self.assertEqual(bearer_result.scope, "*")

    async def test_unrecognised_credential_is_rejected(self) -> None:
        result = await self.verifier.verify(object())  # type: ignore[arg-type]

        self.assertIsInstance(result, Rejected)


class InMemoryStoreTests(unittest.TestCase):
    def test_token_must_have_exactly_one_owner(self) -> None:
        store = InMemoryStore()
        expires_at = _NOW + timedelta(hours=1)

        with self.assertRaises(ValueError):
            store.save_access_token("t", expires_at=expires_at)
        with self.assertRaises(ValueError):
            store.save_access_token("t", expires_at=expires_at, user_id="u", client_id="c")

    def test_raw_token_value_is_not_stored(self) -> None:
        store = InMemoryStore()
        record = store.save_access_token("plain-value", user_id="u", expires_at=_NOW)

        self.assertNotIn("plain-value", store.access_tokens)
        self.assertNotEqual(record.token_digest, "plain-value")

    def test_duplicate_username_is_refused(self) -> None:
        store = InMemoryStore()
        store.create_user(username="alice", password_hash="h")

        with self.assertRaises(ValueError):
            store.create_user(username="alice", password_hash="h2")

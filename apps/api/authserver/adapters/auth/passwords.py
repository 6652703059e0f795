"""Argon2 password and client-secret hashing."""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_BURN_PLAINTEXT = "authserver-unknown-identifier"


class SecretHasher:
    """Hashes and checks user passwords and client secrets with Argon2id."""

    def __init__(self, hasher: PasswordHasher | None = None) -> None:
        self._hasher = hasher or PasswordHasher()
        self._burn_hash = self._hasher.hash(_BURN_PLAINTEXT)

    def hash(self, plaintext: str) -> str:
        return self._hasher.hash(plaintext)

    def verify(self, stored_hash: str, plaintext: str) -> bool:
        try:
            return self._hasher.verify(stored_hash, plaintext)
        except (VerificationError, InvalidHashError):
            return False

    def burn(self, plaintext: str) -> None:
        """Spend one verification on a dummy hash.

        Called when the identifier is unknown so the response takes as long
        as a wrong secret for a known identifier.
        """
        self.verify(self._burn_hash, plaintext)


__all__ = ["SecretHasher"]

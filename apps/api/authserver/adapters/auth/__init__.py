"""Credential verification adapters."""

from .base import AuthVerificationError, RejectReason
from .passwords import SecretHasher
from .validate import validate_client, validate_token

__all__ = [
    "AuthVerificationError",
    "RejectReason",
    "SecretHasher",
    "validate_client",
    "validate_token",
]

"""Authentication verification primitives shared by the auth adapters."""

from enum import Enum


class RejectReason(str, Enum):
    """Why a credential was rejected. Logged, never returned to callers."""

    NOT_FOUND = "not_found"
    MISMATCH = "mismatch"
    INVALID = "invalid"
    STORE_FAULT = "store_fault"
    MALFORMED = "malformed"


class AuthVerificationError(Exception):
    """Raised when a presented credential cannot be verified."""

    def __init__(self, reason: RejectReason, message: str = "") -> None:
        self.reason = reason
        super().__init__(message or reason.value)


__all__ = ["AuthVerificationError", "RejectReason"]

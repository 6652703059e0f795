"""Utilities for safe structured logging fields."""

from __future__ import annotations

import hashlib
from typing import Any


def safe_log_identifier(value: Any, *, prefix: str) -> str:
    """Return a deterministic non-reversible token for log correlation fields.

    Usernames, client ids and token values pass through here before they reach
    a log line, so the same credential correlates across requests without ever
    being written out.
    """
    text = str(value or "").strip()
    if not text:
        return f"{prefix}-missing"

    digest = hashlib.blake2b(text.encode("utf-8"), digest_size=6, person=b"authsrv-log").hexdigest()
    return f"{prefix}-{digest}"


def exception_label(exc: BaseException) -> str:
    """Name an exception for log output without echoing its message."""
    return type(exc).__name__

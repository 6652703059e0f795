"""Application exception types."""

from authserver.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message)
        self.headers = headers
        super().__init__(message)


class StoreError(Exception):
    """Raised by store collaborators when a lookup cannot be completed."""


class SessionResolutionError(Exception):
    """Raised when a session identifier cannot be re-resolved because the store failed."""


__all__ = ["ApiError", "SessionResolutionError", "StoreError"]

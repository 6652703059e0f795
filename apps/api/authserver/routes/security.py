"""HTTP Basic client scheme that always hands decoding to the verifier."""

import base64
import binascii

from fastapi import Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

_UNREADABLE = HTTPBasicCredentials(username="", password="")


class ClientBasicScheme(HTTPBasic):
    """Reads ``Authorization: Basic`` as UTF-8 without raising.

    FastAPI's ``HTTPBasic`` decodes as ASCII and answers 401 itself on a bad
    header. Here an unreadable header becomes blank credentials, which the
    verifier rejects like any other wrong secret.
    """

    async def __call__(self, request: Request) -> HTTPBasicCredentials | None:
        authorization = request.headers.get("Authorization")
        if not authorization:
            return None
        scheme, _, param = authorization.partition(" ")
        if scheme.lower() != "basic":
            return None

        try:
            decoded = base64.b64decode(param.strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return _UNREADABLE

        username, separator, password = decoded.partition(":")
        if not separator:
            return _UNREADABLE
        return HTTPBasicCredentials(username=username, password=password)


__all__ = ["ClientBasicScheme"]

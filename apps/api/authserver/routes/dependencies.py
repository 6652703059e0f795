"""Dependency wiring for routes.

Each transport binding only extracts credentials and hands them to
``CredentialVerifier``; no binding decides acceptance on its own.
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Form, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBasicCredentials, HTTPBearer

from authserver.adapters.auth import SecretHasher
from authserver.core.config import Settings, get_settings
from authserver.core.logging_safety import safe_log_identifier
from authserver.errors import ApiError, SessionResolutionError
from authserver.repositories.memory import InMemoryStore
from authserver.routes.security import ClientBasicScheme
from authserver.schemas.auth import (
    Accepted,
    ClientPrincipal,
    ClientSecretCredential,
    Rejected,
    UserPrincipal,
    VerificationResult,
)
from authserver.services.sessions import SESSION_USER_KEY, SessionSerializer
from authserver.services.verifier import CredentialVerifier

basic_scheme = ClientBasicScheme(auto_error=False, scheme_name="clientBasic")
bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def _auth_error(message: str, challenge: str | None = None) -> ApiError:
    headers = {"WWW-Authenticate": challenge} if challenge else None
    return ApiError(status_code=401, code="UNAUTHORIZED", message=message, headers=headers)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def _log_outcome(request: Request, binding: str, result: VerificationResult) -> None:
    safe_correlation_id = safe_log_identifier(_request_correlation_id(request), prefix="cid")
    if isinstance(result, Accepted):
        logger.info(
            "binding.accepted binding=%s correlation_id=%s method=%s path=%s principal_id=%s",
            binding,
            safe_correlation_id,
            request.method,
            request.url.path,
            safe_log_identifier(result.principal.id, prefix="pid"),
        )
    else:
        logger.warning(
            "binding.rejected binding=%s correlation_id=%s method=%s path=%s",
            binding,
            safe_correlation_id,
            request.method,
            request.url.path,
        )


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


def get_secret_hasher(request: Request) -> SecretHasher:
    return request.app.state.secret_hasher


def get_credential_verifier(
    store: Annotated[InMemoryStore, Depends(get_store)],
    hasher: Annotated[SecretHasher, Depends(get_secret_hasher)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CredentialVerifier:
    return CredentialVerifier(store, hasher, bearer_scope=settings.bearer_scope)


def get_session_serializer(store: Annotated[InMemoryStore, Depends(get_store)]) -> SessionSerializer:
    return SessionSerializer(store)


async def get_local_user(
    request: Request,
    verifier: Annotated[CredentialVerifier, Depends(get_credential_verifier)],
    username: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
) -> UserPrincipal:
    """Username and password posted by a login form."""
    result = await verifier.verify_password(username or "", password or "")
    _log_outcome(request, "local", result)
    if not isinstance(result, Accepted):
        raise _auth_error("Invalid username or password")
    request.state.auth_result = result
    return result.principal


def _basic_credential(
    credentials: Annotated[HTTPBasicCredentials | None, Security(basic_scheme)],
) -> ClientSecretCredential | None:
    if credentials is None:
        return None
    return ClientSecretCredential(client_id=credentials.username, client_secret=credentials.password)


def _body_credential(
    client_id: Annotated[str | None, Form()] = None,
    client_secret: Annotated[str | None, Form()] = None,
) -> ClientSecretCredential | None:
    if client_id is None and client_secret is None:
        return None
    return ClientSecretCredential(client_id=client_id or "", client_secret=client_secret or "")


async def _verify_client(
    request: Request,
    binding: str,
    credential: ClientSecretCredential | None,
    verifier: CredentialVerifier,
    settings: Settings,
) -> ClientPrincipal:
    if credential is None:
        result: VerificationResult = Rejected()
    else:
        result = await verifier.verify_client_secret(credential.client_id, credential.client_secret)
    _log_outcome(request, binding, result)
    if not isinstance(result, Accepted) or not isinstance(result.principal, ClientPrincipal):
        raise _auth_error("Invalid client credentials", f'Basic realm="{settings.basic_realm}"')
    request.state.auth_result = result
    return result.principal


async def get_basic_client(
    request: Request,
    credential: Annotated[ClientSecretCredential | None, Depends(_basic_credential)],
    verifier: Annotated[CredentialVerifier, Depends(get_credential_verifier)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ClientPrincipal:
    """Client id and secret carried in an HTTP Basic ``Authorization`` header."""
    return await _verify_client(request, "basic", credential, verifier, settings)


async def get_body_client(
    request: Request,
    credential: Annotated[ClientSecretCredential | None, Depends(_body_credential)],
    verifier: Annotated[CredentialVerifier, Depends(get_credential_verifier)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ClientPrincipal:
    """Client id and secret posted as ``client_id``/``client_secret`` form fields."""
    return await _verify_client(request, "client_password", credential, verifier, settings)


async def get_authenticated_client(
    request: Request,
    basic: Annotated[ClientSecretCredential | None, Depends(_basic_credential)],
    body: Annotated[ClientSecretCredential | None, Depends(_body_credential)],
    verifier: Annotated[CredentialVerifier, Depends(get_credential_verifier)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ClientPrincipal:
    """Accept a client authenticated by either binding, header first."""
    if basic is not None:
        return await _verify_client(request, "basic", basic, verifier, settings)
    return await _verify_client(request, "client_password", body, verifier, settings)


async def get_bearer_result(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    verifier: Annotated[CredentialVerifier, Depends(get_credential_verifier)],
) -> Accepted:
    """Access token presented as ``Authorization: Bearer <token>``."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        logger.warning(
            "binding.rejected binding=bearer correlation_id=%s method=%s path=%s reason=missing_bearer",
            safe_log_identifier(_request_correlation_id(request), prefix="cid"),
            request.method,
            request.url.path,
        )
        raise _auth_error("Invalid or missing bearer token", "Bearer")

    result = await verifier.verify_bearer_token(credentials.credentials)
    _log_outcome(request, "bearer", result)
    if not isinstance(result, Accepted):
        raise _auth_error("Invalid or missing bearer token", 'Bearer error="invalid_token"')
    request.state.auth_result = result
    return result


async def get_session_user(
    request: Request,
    serializer: Annotated[SessionSerializer, Depends(get_session_serializer)],
) -> UserPrincipal:
    """User re-resolved from the signed session cookie."""
    user_id = request.session.get(SESSION_USER_KEY)
    try:
        user = await serializer.deserialize_user(user_id)
    except SessionResolutionError as exc:
        raise ApiError(status_code=503, code="SESSION_UNAVAILABLE", message="Session could not be resolved") from exc

    if user is None:
        if user_id is not None:
            request.session.pop(SESSION_USER_KEY, None)
        raise _auth_error("No active session")
    return user

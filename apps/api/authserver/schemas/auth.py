"""Authentication schemas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class UserPrincipal(BaseModel):
    """Stored end-user record as seen by the authentication layer."""

    id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    password_hash: str = Field(exclude=True, repr=False)


class ClientPrincipal(BaseModel):
    """Registered OAuth2 client as seen by the authentication layer."""

    id: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    name: str = ""
    client_secret_hash: str = Field(exclude=True, repr=False)


Principal = UserPrincipal | ClientPrincipal


class PasswordCredential(BaseModel):
    kind: Literal["password"] = "password"
    username: str
    password: str = Field(repr=False)


class ClientSecretCredential(BaseModel):
    kind: Literal["client_secret"] = "client_secret"
    client_id: str
    client_secret: str = Field(repr=False)


class BearerTokenCredential(BaseModel):
    kind: Literal["bearer_token"] = "bearer_token"
    token: str = Field(repr=False)


PresentedCredential = Annotated[
    PasswordCredential | ClientSecretCredential | BearerTokenCredential,
    Field(discriminator="kind"),
]


@dataclass(frozen=True, slots=True)
class Accepted:
    principal: Principal
    scope: str | None = None


@dataclass(frozen=True, slots=True)
class Rejected:
    """Credential was not accepted. Deliberately carries no reason."""


VerificationResult = Accepted | Rejected


class UserProfile(BaseModel):
    id: str
    username: str


class ClientProfile(BaseModel):
    id: str
    client_id: str
    name: str


class AuthenticatedPrincipal(BaseModel):
    kind: Literal["user", "client"]
    id: str
    name: str
    scope: str | None = None


def user_profile(user: UserPrincipal) -> UserProfile:
    return UserProfile(id=user.id, username=user.username)


def client_profile(client: ClientPrincipal) -> ClientProfile:
    return ClientProfile(id=client.id, client_id=client.client_id, name=client.name)


def describe_acceptance(result: Accepted) -> AuthenticatedPrincipal:
    principal = result.principal
    if isinstance(principal, UserPrincipal):
        return AuthenticatedPrincipal(kind="user", id=principal.id, name=principal.username, scope=result.scope)
    return AuthenticatedPrincipal(
        kind="client",
        id=principal.id,
        name=principal.name or principal.client_id,
        scope=result.scope,
    )

"""Authentication routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from authserver.routes.dependencies import (
    get_authenticated_client,
    get_bearer_result,
    get_local_user,
    get_session_serializer,
    get_session_user,
)
from authserver.schemas.auth import (
    Accepted,
    AuthenticatedPrincipal,
    ClientPrincipal,
    ClientProfile,
    UserPrincipal,
    UserProfile,
    client_profile,
    describe_acceptance,
    user_profile,
)
from authserver.schemas.error import ErrorResponse
from authserver.services.sessions import SESSION_USER_KEY, SessionSerializer

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=UserProfile,
    responses={401: {"model": ErrorResponse}},
)
async def login(
    request: Request,
    user: Annotated[UserPrincipal, Depends(get_local_user)],
    serializer: Annotated[SessionSerializer, Depends(get_session_serializer)],
) -> UserProfile:
    request.session.clear()
    request.session[SESSION_USER_KEY] = serializer.serialize_user(user)
    return user_profile(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(request: Request) -> Response:
    request.session.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/session",
    response_model=UserProfile,
    responses={401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def current_session(
    user: Annotated[UserPrincipal, Depends(get_session_user)],
) -> UserProfile:
    return user_profile(user)


@router.post(
    "/client",
    response_model=ClientProfile,
    responses={401: {"model": ErrorResponse}},
)
async def authenticate_client(
    client: Annotated[ClientPrincipal, Depends(get_authenticated_client)],
) -> ClientProfile:
    return client_profile(client)


@router.get(
    "/me",
    response_model=AuthenticatedPrincipal,
    responses={401: {"model": ErrorResponse}},
)
async def token_principal(
    result: Annotated[Accepted, Depends(get_bearer_result)],
) -> AuthenticatedPrincipal:
    return describe_acceptance(result)

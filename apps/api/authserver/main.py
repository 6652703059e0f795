"""FastAPI application entrypoint."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from authserver.adapters.auth import SecretHasher
from authserver.core.config import get_settings
from authserver.errors import ApiError
from authserver.repositories.memory import InMemoryStore
from authserver.routes import auth_router
from authserver.schemas.error import ErrorResponse

_API_PREFIX = "/api/v1"

_AUTH_VALIDATION_PATHS: set[tuple[str, str]] = {
    ("POST", f"{_API_PREFIX}/auth/login"),
    ("POST", f"{_API_PREFIX}/auth/client"),
}


def create_app(store: InMemoryStore | None = None, secret_hasher: SecretHasher | None = None) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Authserver API", version="1.0.0")
    app.state.store = store if store is not None else InMemoryStore()
    app.state.secret_hasher = secret_hasher if secret_hasher is not None else SecretHasher()

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age_seconds,
        https_only=settings.session_https_only,
    )

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json"),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Malformed credentials on authentication endpoints are plain rejections.
        route = request.scope.get("route")
        route_path = getattr(route, "path", request.url.path)
        if (request.method.upper(), route_path) in _AUTH_VALIDATION_PATHS:
            payload = ErrorResponse(code="UNAUTHORIZED", message="Invalid request payload")
            return JSONResponse(status_code=401, content=payload.model_dump())

        return await request_validation_exception_handler(request, exc)

    app.include_router(auth_router, prefix=_API_PREFIX)

    return app

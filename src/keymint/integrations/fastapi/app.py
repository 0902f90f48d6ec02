"""FastAPI application factory: routers, CORS and start-up seeding."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

if TYPE_CHECKING:
    from keymint.keymint import KeyMint

logger = logging.getLogger("keymint.http")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}


def create_app(keymint: KeyMint) -> FastAPI:
    """Build the JWKS server app around a KeyMint instance.

    Startup runs migrations and seeds an empty store before any request is
    served; shutdown disposes the engine.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await keymint.migrate()
        if await keymint.ensure_seeded():
            logger.info("Seeded empty key store at %s", keymint.config.database_path)
        yield
        await keymint.dispose()

    app = FastAPI(title="keymint JWKS server", lifespan=lifespan)

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "not found"})
        if exc.status_code == 405:
            # Methods outside the guard's list are rejected by the router itself.
            return JSONResponse(
                status_code=405,
                content={"error": "not allowed"},
                headers=getattr(exc, "headers", None),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    app.include_router(keymint.jwks_router())
    app.include_router(keymint.auth_router())
    return app

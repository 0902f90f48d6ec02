"""FastAPI JWKS router: serves the public key at /jwks and /.well-known/jwks.json."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from keymint.config import KeyMintConfig
from keymint.core.errors import NoKeyAvailableError
from keymint.core.jwks import build_jwks
from keymint.events import get_collector
from keymint.integrations.fastapi.guard import add_method_guard

logger = logging.getLogger("keymint.http")

JWKS_PATHS = ("/jwks", "/.well-known/jwks.json")


def create_jwks_router(config: KeyMintConfig, get_db: Callable) -> APIRouter:
    """Create a FastAPI router serving the JWKS endpoints.

    Mount at the root (no prefix). Non-GET methods get 405 with ``Allow: GET``.
    """
    router = APIRouter(tags=["jwks"])

    async def jwks_endpoint(
        session: Annotated[AsyncSession, Depends(get_db)],
    ):
        """Serve the current active public key as a JWK Set (RFC 7517)."""
        try:
            jwk_set = await build_jwks(session, config=config, events=get_collector())
        except NoKeyAvailableError as e:
            return JSONResponse(status_code=404, content={"error": e.message})
        except Exception as e:
            await session.rollback()
            logger.exception("JWKS request failed")
            return JSONResponse(status_code=500, content={"error": str(e)})
        return JSONResponse(content=jwk_set)

    for path in JWKS_PATHS:
        router.add_api_route(path, jwks_endpoint, methods=["GET"])
        add_method_guard(router, path, "GET")

    return router

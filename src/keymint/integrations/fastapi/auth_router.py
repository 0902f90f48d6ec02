"""FastAPI auth router: issues signed JWTs at POST /auth."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from keymint.config import KeyMintConfig
from keymint.core.errors import NoKeyAvailableError
from keymint.core.tokens import issue_token, parse_expired_flag
from keymint.events import get_collector
from keymint.integrations.fastapi.guard import add_method_guard

logger = logging.getLogger("keymint.http")


def create_auth_router(config: KeyMintConfig, get_db: Callable) -> APIRouter:
    """Create a FastAPI router serving POST /auth.

    ``?expired`` (empty, "1" or "true") switches to signing with an expired
    key. Any request body is ignored. Non-POST methods get 405 with ``Allow: POST``.
    """
    router = APIRouter(tags=["auth"])

    @router.post("/auth")
    async def auth_endpoint(
        session: Annotated[AsyncSession, Depends(get_db)],
        expired: Annotated[str | None, Query()] = None,
    ):
        want_expired = parse_expired_flag(expired)
        try:
            issued = await issue_token(
                session, config=config, want_expired=want_expired, events=get_collector(),
            )
        except NoKeyAvailableError as e:
            return JSONResponse(status_code=401, content={"error": e.message})
        except Exception as e:
            await session.rollback()
            logger.exception("Token issuance failed")
            return JSONResponse(status_code=500, content={"error": str(e)})
        return JSONResponse(content={"jwt": issued.token, "token": issued.token})

    add_method_guard(router, "/auth", "POST")

    return router

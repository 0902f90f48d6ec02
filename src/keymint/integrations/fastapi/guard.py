"""405 guard: reject every method but the one a path serves."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def add_method_guard(router: APIRouter, path: str, allowed: str) -> None:
    """Answer any method other than ``allowed`` on ``path`` with 405.

    Register the real endpoint first so it keeps priority. The ``Allow``
    header names only the permitted method.
    """
    async def method_not_allowed():
        return JSONResponse(
            status_code=405,
            content={"error": "not allowed"},
            headers={"Allow": allowed},
        )

    router.add_api_route(
        path,
        method_not_allowed,
        methods=[m for m in _METHODS if m != allowed],
        include_in_schema=False,
    )

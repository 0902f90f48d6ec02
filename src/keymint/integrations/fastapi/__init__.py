"""FastAPI integration for keymint."""

from keymint.integrations.fastapi.app import create_app
from keymint.integrations.fastapi.auth_router import create_auth_router
from keymint.integrations.fastapi.jwks_router import create_jwks_router

__all__ = [
    "create_app",
    "create_auth_router",
    "create_jwks_router",
]

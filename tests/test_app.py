"""Tests for the app factory lifespan."""

import pytest
from httpx import ASGITransport, AsyncClient

from keymint import KeyMint

pytestmark = pytest.mark.asyncio


class TestLifespan:
    async def test_startup_migrates_and_seeds(self, tmp_path):
        mint = KeyMint(str(tmp_path / "app.db"))
        app = mint.create_app()
        async with app.router.lifespan_context(app):
            assert await mint.count_keys() == 2
            jwks = await mint.get_jwks()
            assert jwks["keys"][0]["kid"] == "key-active-1"

    async def test_restart_does_not_reseed(self, tmp_path):
        path = str(tmp_path / "app.db")
        for _ in range(2):
            mint = KeyMint(path)
            app = mint.create_app()
            async with app.router.lifespan_context(app):
                assert await mint.count_keys() == 2

    @pytest.mark.parametrize(
        ("method", "path"),
        [("GET", "/jwks"), ("GET", "/.well-known/jwks.json"), ("POST", "/auth")],
    )
    async def test_routes_served(self, mint: KeyMint, method: str, path: str):
        app = mint.create_app()
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.request(method, path)
        assert resp.status_code == 200

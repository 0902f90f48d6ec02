"""Test fixtures for keymint: every test gets its own SQLite key store."""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from keymint import KeyMint


@pytest_asyncio.fixture
async def mint(tmp_path):
    """A migrated, empty KeyMint instance on a temp database file."""
    instance = KeyMint(str(tmp_path / "keys.db"))
    await instance.migrate()
    yield instance
    await instance.dispose()


@pytest_asyncio.fixture
async def seeded(mint: KeyMint):
    """KeyMint instance after start-up seeding (one active, one expired key)."""
    await mint.ensure_seeded()
    return mint


@pytest_asyncio.fixture
async def client(mint: KeyMint):
    """Async HTTP client against the full app.

    ASGITransport does not run the lifespan, so the store starts empty and
    every endpoint has to backfill on its own.
    """
    app = mint.create_app()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest_asyncio.fixture
async def seeded_client(seeded: KeyMint):
    """Async HTTP client against a seeded store."""
    app = seeded.create_app()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

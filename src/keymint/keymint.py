"""KeyMint: instance-based key store configuration and entry point."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from keymint.config import ALEMBIC_VERSION_TABLE, KeyMintConfig, resolve_database_path
from keymint.db import create_engine, create_session_factory, get_session
from keymint.events import EventCollector, HookRegistry, _current_collector

if TYPE_CHECKING:
    from fastapi import APIRouter, FastAPI

    from keymint.core.tokens import IssuedToken
    from keymint.models.key import Key

T = TypeVar("T")


class KeyMint:
    """Main KeyMint instance: holds config and the database connection state.

    Each instance owns its own engine, so tests can run against isolated
    key stores side by side.

    Args:
        database_path: SQLite file for the keys table. Defaults to $DB_FILE,
            then "totally_not_my_privateKeys.db". Created if absent by migrate().
        active_key_ttl: Lifetime of generated active keys in seconds (default 1 hour).
        expired_key_ttl: Negative TTL for backfilled expired keys (default -60).
        seed_expired_key_ttl: Negative TTL for the expired key created at
            seeding (default -300).
        token_ttl: Lifetime of tokens signed with an active key (default 300).
        rsa_key_size: RSA modulus size in bits (default and minimum 2048).
        jwt_issuer: JWT ``iss`` claim.
        jwt_audience: JWT ``aud`` claim.
        jwt_subject: JWT ``sub`` claim.
    """

    def __init__(
        self,
        database_path: str | None = None,
        *,
        active_key_ttl: int = 60 * 60,
        expired_key_ttl: int = -60,
        seed_expired_key_ttl: int = -5 * 60,
        token_ttl: int = 300,
        rsa_key_size: int = 2048,
        jwt_issuer: str = "jwks-server",
        jwt_audience: str = "gradebot",
        jwt_subject: str = "userABC",
    ) -> None:
        self._config = KeyMintConfig(
            database_path=resolve_database_path(database_path),
            active_key_ttl_seconds=active_key_ttl,
            expired_key_ttl_seconds=expired_key_ttl,
            seed_expired_key_ttl_seconds=seed_expired_key_ttl,
            token_ttl_seconds=token_ttl,
            rsa_key_size=rsa_key_size,
            jwt_issuer=jwt_issuer,
            jwt_audience=jwt_audience,
            jwt_subject=jwt_subject,
        )
        self._engine = create_engine(self._config.database_url)
        self._session_factory = create_session_factory(self._engine)
        self._hooks = HookRegistry()

    @property
    def config(self) -> KeyMintConfig:
        """Read-only access to the internal config."""
        return self._config

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Access the async session factory (e.g., for testing)."""
        return self._session_factory

    @property
    def hooks(self) -> HookRegistry:
        """Access the hook registry."""
        return self._hooks

    # ------ Event hooks ------

    def on(self, event_name: str):
        """Decorator to register an event hook.

        Usage:
            @keymint.on("key_created")
            async def handle(event):
                print(event.kid, event.expires_at)
        """
        def decorator(fn):
            self._hooks.register(event_name, fn)
            return fn
        return decorator

    def add_hook(self, event_name: str, callback) -> None:
        """Register an event hook callback programmatically."""
        self._hooks.register(event_name, callback)

    # ------ Database session helpers ------

    def get_session(self) -> AsyncGenerator[AsyncSession]:
        """Context manager for service-level code (non-FastAPI)."""
        return get_session(self._session_factory)

    async def _get_db(self) -> AsyncGenerator[AsyncSession]:
        """FastAPI dependency: one session per request, hooks fired after commit."""
        collector = EventCollector(self._hooks)
        reset_to = _current_collector.set(collector)
        try:
            async with get_session(self._session_factory) as session:
                yield session
        finally:
            _current_collector.reset(reset_to)
        await collector.flush()

    async def _run(self, operation: Callable[..., Awaitable[T]], **kwargs) -> T:
        """Run a core operation in its own session, then dispatch its events."""
        collector = EventCollector(self._hooks)
        async with get_session(self._session_factory) as session:
            outcome = await operation(session, config=self._config, events=collector, **kwargs)
        await collector.flush()
        return outcome

    # ------ Key lifecycle ------

    async def ensure_seeded(self) -> bool:
        """Seed an empty store with one active and one expired key.

        Returns:
            True if keys were created, False if the store already had keys.
        """
        from keymint.core.lifecycle import ensure_seeded

        return await self._run(ensure_seeded)

    async def ensure_active_present(self) -> Key | None:
        """Create an active key if none exists. Returns the new key or None."""
        from keymint.core.lifecycle import ensure_active_present

        return await self._run(ensure_active_present)

    async def ensure_expired_present(self) -> Key | None:
        from keymint.core.lifecycle import ensure_expired_present

        return await self._run(ensure_expired_present)

    async def select_key(self, want_expired: bool = False) -> Key:
        """Pick the key an auth request would sign with (backfilling if needed).

        Raises:
            NoKeyAvailableError: If no qualifying key exists after backfill.
        """
        from keymint.core.selector import select_signing_key

        return await self._run(select_signing_key, want_expired=want_expired)

    async def count_keys(self) -> int:
        from keymint.repositories import key as key_repo

        async with get_session(self._session_factory) as session:
            return await key_repo.count_keys(session)

    # ------ JWKS and tokens ------

    async def get_jwks(self) -> dict:
        """Get the public JWK Set, as served at /.well-known/jwks.json.

        Raises:
            NoKeyAvailableError: If no active key exists after backfill.
        """
        from keymint.core.jwks import build_jwks

        return await self._run(build_jwks)

    async def issue_token(self, *, expired: bool = False) -> IssuedToken:
        """Sign a token with an active key, or with an expired key if expired=True.

        Raises:
            NoKeyAvailableError: If no qualifying key exists after backfill.
        """
        from keymint.core.tokens import issue_token

        return await self._run(issue_token, want_expired=expired)

    # ------ FastAPI integration ------

    def jwks_router(self) -> APIRouter:
        """Create a FastAPI router serving GET /jwks and GET /.well-known/jwks.json."""
        from keymint.integrations.fastapi.jwks_router import create_jwks_router

        return create_jwks_router(self._config, self._get_db)

    def auth_router(self) -> APIRouter:
        """Create a FastAPI router serving POST /auth."""
        from keymint.integrations.fastapi.auth_router import create_auth_router

        return create_auth_router(self._config, self._get_db)

    def create_app(self) -> FastAPI:
        """Build the complete FastAPI app (routers, CORS, start-up seeding)."""
        from keymint.integrations.fastapi.app import create_app

        return create_app(self)

    # ------ Migrations ------

    async def migrate(self) -> None:
        """Run pending database migrations. Safe to call on every startup.

        Uses bundled Alembic migrations to create the keys table when the
        database file is new. Tracks state in ``ALEMBIC_VERSION_TABLE``.
        """
        from pathlib import Path

        from alembic.config import Config

        config = Config()
        config.set_main_option(
            "script_location",
            str(Path(__file__).parent / "migrations"),
        )
        config.set_main_option("version_table", ALEMBIC_VERSION_TABLE)

        async with self._engine.begin() as conn:
            await conn.run_sync(self._run_upgrade, config)

    @staticmethod
    def _run_upgrade(connection, config) -> None:
        from alembic import command

        config.attributes["connection"] = connection
        command.upgrade(config, "head")

    # ------ Lifecycle ------

    async def dispose(self) -> None:
        """Dispose the database engine (for clean shutdown)."""
        await self._engine.dispose()

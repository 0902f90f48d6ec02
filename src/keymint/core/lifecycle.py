"""Key lifecycle policy: start-up seeding and on-demand backfill.

These are the only places keys get created. Each created key is committed
before the function returns. There is no cross-request lock: two concurrent
backfills may each add a key, and selection picks deterministically among
duplicates.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from keymint.config import KeyMintConfig
from keymint.core.keys import generate_key
from keymint.events import KeyCreated
from keymint.models.key import Key
from keymint.repositories import key as key_repo
from keymint.utils import now_epoch

if TYPE_CHECKING:
    from keymint.events import EventCollector

logger = logging.getLogger("keymint.lifecycle")


async def create_key(
    session: AsyncSession,
    *,
    config: KeyMintConfig,
    ttl_seconds: int,
    reason: str,
    events: EventCollector | None = None,
) -> Key:
    """Generate a keypair off the event loop, store it and commit."""
    generated = await asyncio.to_thread(
        generate_key, ttl_seconds, key_size=config.rsa_key_size,
    )
    key = await key_repo.insert_key(
        session,
        private_key_pem=generated.private_key_pem,
        expires_at=generated.expires_at,
    )
    await session.commit()

    expired = key.is_expired(now_epoch())
    logger.info(
        "Created %s key kid=%s exp=%s (%s)",
        "expired" if expired else "active", key.kid, key.exp, reason,
    )
    if events is not None:
        events.add(
            KeyCreated(kid=key.kid, expires_at=key.exp, expired=expired, reason=reason)
        )
    return key


async def ensure_seeded(
    session: AsyncSession,
    *,
    config: KeyMintConfig,
    events: EventCollector | None = None,
) -> bool:
    """Seed an empty store with one active key, then one expired key.

    Returns:
        True if keys were created, False if the store already had keys.
    """
    if await key_repo.count_keys(session) > 0:
        return False

    await create_key(
        session, config=config, ttl_seconds=config.active_key_ttl_seconds,
        reason="seed", events=events,
    )
    await create_key(
        session, config=config, ttl_seconds=config.seed_expired_key_ttl_seconds,
        reason="seed", events=events,
    )
    return True


async def ensure_active_present(
    session: AsyncSession,
    *,
    config: KeyMintConfig,
    events: EventCollector | None = None,
) -> Key | None:
    """Create an active key if none exists. Returns the new key, or None (no-op)."""
    if await key_repo.has_active_key(session):
        return None
    return await create_key(
        session, config=config, ttl_seconds=config.active_key_ttl_seconds,
        reason="backfill", events=events,
    )


async def ensure_expired_present(
    session: AsyncSession,
    *,
    config: KeyMintConfig,
    events: EventCollector | None = None,
) -> Key | None:
    """Create an expired key if none exists. Returns the new key, or None (no-op)."""
    if await key_repo.has_expired_key(session):
        return None
    return await create_key(
        session, config=config, ttl_seconds=config.expired_key_ttl_seconds,
        reason="backfill", events=events,
    )


async def ensure_present(
    session: AsyncSession,
    *,
    config: KeyMintConfig,
    want_expired: bool,
    events: EventCollector | None = None,
) -> Key | None:
    """Dispatch to ensure_expired_present / ensure_active_present."""
    if want_expired:
        return await ensure_expired_present(session, config=config, events=events)
    return await ensure_active_present(session, config=config, events=events)

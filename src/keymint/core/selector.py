"""Key selection: which stored key answers an auth request."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from keymint.config import KeyMintConfig
from keymint.core.errors import NoKeyAvailableError
from keymint.core.lifecycle import ensure_present
from keymint.models.key import Key
from keymint.repositories import key as key_repo

if TYPE_CHECKING:
    from keymint.events import EventCollector


async def select_signing_key(
    session: AsyncSession,
    *,
    config: KeyMintConfig,
    want_expired: bool,
    events: EventCollector | None = None,
) -> Key:
    """Backfill if needed, then pick the key to sign with.

    Among several active keys the one soonest to expire wins; among several
    expired keys the one that expired most recently wins.

    Raises:
        NoKeyAvailableError: If no qualifying key exists after two backfill
            attempts (status 401).
    """
    await ensure_present(session, config=config, want_expired=want_expired, events=events)
    key = await key_repo.select_one_key(session, want_expired=want_expired)
    if key is None:
        # The backfilled key can age out between the ensure and the select.
        await ensure_present(session, config=config, want_expired=want_expired, events=events)
        key = await key_repo.select_one_key(session, want_expired=want_expired)
    if key is None:
        kind = "expired" if want_expired else "active"
        raise NoKeyAvailableError(
            f"No {kind} key available", want_expired=want_expired, status_code=401,
        )
    return key

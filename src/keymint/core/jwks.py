"""JWKS document building."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from keymint.config import KeyMintConfig
from keymint.core.errors import NoKeyAvailableError
from keymint.core.keys import kid_label_for, private_key_to_jwk
from keymint.core.lifecycle import ensure_active_present
from keymint.repositories import key as key_repo
from keymint.utils import now_epoch

if TYPE_CHECKING:
    from keymint.events import EventCollector


async def build_jwks(
    session: AsyncSession,
    *,
    config: KeyMintConfig,
    events: EventCollector | None = None,
) -> dict:
    """Build the public JWK Set.

    Only the first valid key (the one soonest to expire, which is also the
    key /auth signs with) is published, so its ``key-active-1`` label is
    unambiguous.

    Raises:
        NoKeyAvailableError: If no active key exists after backfill (status 404).
    """
    await ensure_active_present(session, config=config, events=events)
    now = now_epoch()
    keys = await key_repo.select_all_valid_keys(session, now)
    if not keys:
        await ensure_active_present(session, config=config, events=events)
        now = now_epoch()
        keys = await key_repo.select_all_valid_keys(session, now)
    if not keys:
        raise NoKeyAvailableError("no keys available", status_code=404)

    first = keys[0]
    return {"keys": [private_key_to_jwk(first.private_key_pem, kid_label_for(first, now))]}

"""Key repository: database operations for RSA signing keys.

Every query takes a single ``now`` snapshot so one call never classifies
the same row as both active and expired. Filtering only ever binds that
integer; no caller-supplied text reaches the SQL.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from keymint.models.key import Key
from keymint.utils import now_epoch


async def insert_key(session: AsyncSession, *, private_key_pem: str, expires_at: int) -> Key:
    """Insert a new key row. The store assigns ``kid``."""
    key = Key(key=private_key_pem.encode("utf-8"), exp=int(expires_at))
    session.add(key)
    await session.flush()
    await session.refresh(key)
    return key


async def select_one_key(
    session: AsyncSession, *, want_expired: bool, now: int | None = None,
) -> Key | None:
    """Pick one key.

    Active: the key closest to expiring (smallest exp > now).
    Expired: the most recently expired key (largest exp <= now).
    Equal expirations fall back to the lowest kid.
    """
    now = now_epoch() if now is None else now
    if want_expired:
        statement = (
            select(Key)
            .where(Key.exp <= now)
            .order_by(Key.exp.desc(), Key.kid.asc())
            .limit(1)
        )
    else:
        statement = (
            select(Key)
            .where(Key.exp > now)
            .order_by(Key.exp.asc(), Key.kid.asc())
            .limit(1)
        )
    result = (await session.execute(statement)).scalars()
    return result.first()


async def select_all_valid_keys(session: AsyncSession, now: int | None = None) -> list[Key]:
    """Get all keys that have not expired, soonest-expiring first."""
    now = now_epoch() if now is None else now
    statement = (
        select(Key)
        .where(Key.exp > now)
        .order_by(Key.exp.asc(), Key.kid.asc())
    )
    result = (await session.execute(statement)).scalars()
    return list(result.all())


async def has_active_key(session: AsyncSession, now: int | None = None) -> bool:
    now = now_epoch() if now is None else now
    statement = select(Key.kid).where(Key.exp > now).limit(1)
    return (await session.execute(statement)).first() is not None


async def has_expired_key(session: AsyncSession, now: int | None = None) -> bool:
    now = now_epoch() if now is None else now
    statement = select(Key.kid).where(Key.exp <= now).limit(1)
    return (await session.execute(statement)).first() is not None


async def count_keys(session: AsyncSession) -> int:
    """Total number of stored keys, active and expired."""
    statement = select(func.count()).select_from(Key)
    return (await session.execute(statement)).scalar_one()

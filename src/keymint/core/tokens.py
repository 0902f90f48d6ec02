"""JWT issuance and verification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from keymint.config import JWT_ALGORITHM, KeyMintConfig
from keymint.core.keys import kid_label_for
from keymint.core.selector import select_signing_key
from keymint.events import TokenIssued
from keymint.models.key import Key
from keymint.utils import now_epoch

if TYPE_CHECKING:
    from keymint.events import EventCollector

_EXPIRED_FLAG_VALUES = frozenset({"", "1", "true"})


def parse_expired_flag(raw: str | None) -> bool:
    """Interpret the ``expired`` query parameter.

    Present with an empty value, "1" or "true" (any case) means an expired
    token is wanted. Absent or any other value means an active one.
    Nothing is rejected.
    """
    if raw is None:
        return False
    return raw.lower() in _EXPIRED_FLAG_VALUES


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """A signed JWT plus the facts it was built from."""

    token: str
    kid: int
    kid_label: str
    expired: bool
    issued_at: int
    expires_at: int


def create_token(
    key: Key,
    *,
    config: KeyMintConfig,
    want_expired: bool,
    now: int | None = None,
) -> str:
    """Sign a JWT with the given stored key.

    For an active request ``exp`` is ``iat + token_ttl_seconds``. For an
    expired request ``exp`` is the key's own expiry, so the token is already
    expired when it is issued.

    Args:
        key: The stored key to sign with.
        config: keymint configuration (claims and token lifetime).
        want_expired: Whether this is an expired-token request.
        now: Issue instant (Unix seconds). Defaults to the current time.

    Returns:
        Encoded JWT string.
    """
    iat = now_epoch() if now is None else now
    exp = key.exp if want_expired else iat + config.token_ttl_seconds
    payload = {
        "sub": config.jwt_subject,
        "iss": config.jwt_issuer,
        "aud": config.jwt_audience,
        "kid_db": str(key.kid),
        "iat": iat,
        "exp": exp,
    }
    return jwt.encode(
        payload,
        key.private_key_pem,
        algorithm=JWT_ALGORITHM,
        headers={"kid": kid_label_for(key, iat)},
    )


async def issue_token(
    session: AsyncSession,
    *,
    config: KeyMintConfig,
    want_expired: bool,
    events: EventCollector | None = None,
) -> IssuedToken:
    """Select a key (backfilling if needed) and sign a token with it.

    Raises:
        NoKeyAvailableError: If no qualifying key exists after backfill.
    """
    key = await select_signing_key(
        session, config=config, want_expired=want_expired, events=events,
    )
    iat = now_epoch()
    token = create_token(key, config=config, want_expired=want_expired, now=iat)
    kid_label = kid_label_for(key, iat)
    expires_at = key.exp if want_expired else iat + config.token_ttl_seconds

    if events is not None:
        events.add(
            TokenIssued(kid=key.kid, kid_label=kid_label, expired=want_expired, expires_at=expires_at)
        )
    return IssuedToken(
        token=token,
        kid=key.kid,
        kid_label=kid_label,
        expired=want_expired,
        issued_at=iat,
        expires_at=expires_at,
    )


def decode_token(
    token: str,
    public_key: Any,
    *,
    config: KeyMintConfig,
    verify_exp: bool = True,
) -> dict:
    """Verify and decode a token issued by this service.

    Args:
        token: The encoded JWT string.
        public_key: PEM-encoded public key or a cryptography public key object.
        config: keymint configuration (expected issuer and audience).
        verify_exp: Set False to inspect deliberately expired tokens.

    Returns:
        Decoded payload dict.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired and verify_exp is set.
        jwt.InvalidTokenError: If the token is invalid.
    """
    return jwt.decode(
        token,
        public_key,
        algorithms=[JWT_ALGORITHM],
        audience=config.jwt_audience,
        issuer=config.jwt_issuer,
        options={
            "verify_exp": verify_exp,
            "require": ["sub", "iss", "aud", "exp", "iat"],
        },
    )


def get_unverified_header(token: str) -> dict:
    """Get the JWT header without verifying the signature.

    Used to read the ``kid`` label and match it against the JWKS.
    """
    return jwt.get_unverified_header(token)

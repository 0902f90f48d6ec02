"""keymint configuration: service settings and storage path resolution."""

import os
from dataclasses import dataclass

JWT_ALGORITHM = "RS256"

DB_FILE_ENV = "DB_FILE"
DEFAULT_DB_FILE = "totally_not_my_privateKeys.db"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

MIN_RSA_KEY_SIZE = 2048

# Kept apart from a host application's own alembic_version table.
ALEMBIC_VERSION_TABLE = "keymint_alembic_version"


def resolve_database_path(database_path: str | None = None) -> str:
    """Pick the key database file.

    Resolution order: explicit argument, then the ``DB_FILE`` environment
    variable, then the fixed default filename in the working directory.
    """
    if database_path:
        return database_path
    return os.environ.get(DB_FILE_ENV) or DEFAULT_DB_FILE


@dataclass(frozen=True, slots=True)
class KeyMintConfig:
    """Internal config built by the KeyMint constructor. Not user-facing."""

    database_path: str
    active_key_ttl_seconds: int = 60 * 60  # 1 hour
    seed_expired_key_ttl_seconds: int = -5 * 60  # expired 5 minutes ago
    expired_key_ttl_seconds: int = -60  # expired 1 minute ago
    token_ttl_seconds: int = 300  # 5 minutes
    rsa_key_size: int = MIN_RSA_KEY_SIZE
    jwt_issuer: str = "jwks-server"
    jwt_audience: str = "gradebot"
    jwt_subject: str = "userABC"

    def __post_init__(self) -> None:
        """Validate key lifetimes and key size at construction time."""
        if self.rsa_key_size < MIN_RSA_KEY_SIZE:
            raise ValueError(
                f"RSA key size must be at least {MIN_RSA_KEY_SIZE} bits, got {self.rsa_key_size}"
            )
        if self.active_key_ttl_seconds <= 0:
            raise ValueError("active_key_ttl_seconds must be positive")
        if self.seed_expired_key_ttl_seconds >= 0 or self.expired_key_ttl_seconds >= 0:
            raise ValueError("Expired key TTLs must be negative")
        if self.token_ttl_seconds <= 0:
            raise ValueError("token_ttl_seconds must be positive")

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.database_path}"

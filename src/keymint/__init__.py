"""keymint: RSA key store, JWKS publisher and JWT issuer."""

__version__ = "0.1.0"

from keymint.config import KeyMintConfig
from keymint.core.errors import KeyGenerationError, KeyMintError, NoKeyAvailableError, StorageError
from keymint.core.tokens import IssuedToken
from keymint.events import KeyCreated, TokenIssued
from keymint.keymint import KeyMint
from keymint.models.key import Key

__all__ = [
    "IssuedToken",
    "Key",
    "KeyCreated",
    "KeyGenerationError",
    "KeyMint",
    "KeyMintConfig",
    "KeyMintError",
    "NoKeyAvailableError",
    "StorageError",
    "TokenIssued",
]

"""keymint error taxonomy."""


class KeyMintError(Exception):
    """Base keymint error with an error code and HTTP status."""

    def __init__(self, message: str, code: str, status_code: int = 500):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class NoKeyAvailableError(KeyMintError):
    """No qualifying key exists, even after backfill."""

    def __init__(self, message: str, *, want_expired: bool = False, status_code: int = 404):
        self.want_expired = want_expired
        super().__init__(message, code="no_key", status_code=status_code)


class StorageError(KeyMintError):
    """The key database rejected a read or write."""

    def __init__(self, message: str):
        super().__init__(message, code="storage_error", status_code=500)


class KeyGenerationError(KeyMintError):
    """RSA keypair generation or serialization failed."""

    def __init__(self, message: str):
        super().__init__(message, code="key_generation_error", status_code=500)

"""keymint SQLModel models."""

from keymint.models.key import Key

__all__ = [
    "Key",
]

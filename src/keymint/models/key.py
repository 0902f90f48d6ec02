from sqlalchemy import LargeBinary
from sqlmodel import Column, Field, SQLModel


class Key(SQLModel, table=True):
    __tablename__ = "keys"

    kid: int | None = Field(default=None, primary_key=True)
    key: bytes = Field(sa_column=Column(LargeBinary(), nullable=False))
    exp: int

    @property
    def private_key_pem(self) -> str:
        """The stored private key as a PEM string (PKCS#1)."""
        if isinstance(self.key, bytes):
            return self.key.decode("utf-8")
        return str(self.key)

    def is_expired(self, now: int) -> bool:
        """Expired at the boundary instant too: exp == now counts as expired."""
        return self.exp <= now

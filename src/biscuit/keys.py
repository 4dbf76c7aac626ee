"""Ordered secret key rings.

Index 0 is the primary key: it signs and encrypts. Every key in the ring
may verify and decrypt, so cookies issued under an older key stay
readable while it remains in the ring.

Rings are immutable. Rotate by building a new ring and swapping the
reference the application holds::

    ring = KeyRing.coerce(["new-secret", "old-secret"])
    ring = ring.rotated("newer-secret", keep=2)
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TypeAlias

from biscuit.errors import ConfigurationError

Secret: TypeAlias = str | bytes
KeyRingLike: TypeAlias = "KeyRing | Secret | Sequence[Secret]"


def _to_bytes(secret: Secret) -> bytes:
    if isinstance(secret, bytes):
        return secret
    if isinstance(secret, str):
        return secret.encode("utf-8")
    msg = f"Cookie secrets must be str or bytes, got {type(secret).__name__}."
    raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class KeyRing:
    """An ordered, non-empty sequence of secret keys."""

    keys: tuple[bytes, ...]

    def __post_init__(self) -> None:
        if not self.keys:
            msg = "A key ring needs at least one key."
            raise ConfigurationError(msg)
        if any(not key for key in self.keys):
            msg = "Key ring entries must not be empty."
            raise ConfigurationError(msg)

    @classmethod
    def coerce(cls, value: KeyRingLike | None) -> KeyRing | None:
        """Build a ring from a single secret, a sequence of secrets, or a ring.

        ``None`` passes through so callers can forward an optional argument.
        """
        if value is None or isinstance(value, KeyRing):
            return value
        if isinstance(value, str | bytes):
            return cls((_to_bytes(value),))
        return cls(tuple(_to_bytes(secret) for secret in value))

    @property
    def primary(self) -> bytes:
        """The key used for signing and encryption."""
        return self.keys[0]

    def rotated(self, new_key: Secret, *, keep: int | None = None) -> KeyRing:
        """Return a new ring with *new_key* as primary.

        Existing keys follow in their current order. ``keep`` caps the
        total number of keys, dropping the oldest.
        """
        primary = _to_bytes(new_key)
        keys = (primary, *(key for key in self.keys if key != primary))
        if keep is not None:
            if keep < 1:
                msg = "KeyRing.rotated(keep=...) must keep at least one key."
                raise ConfigurationError(msg)
            keys = keys[:keep]
        return KeyRing(keys)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def __repr__(self) -> str:
        # Never print key material.
        return f"KeyRing(<{len(self.keys)} keys>)"

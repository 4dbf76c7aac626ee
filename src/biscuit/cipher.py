"""Authenticated encryption over ring keys, backed by ``cryptography``.

Each ring secret is stretched with HKDF-SHA256 into a Fernet key. Fernet
tokens carry their own IV, timestamp and HMAC tag and are already
base64url text, so the blob is self-contained and header-safe once
percent-encoded. ``MultiFernet`` encrypts under the first key and tries
every key, in order, on decrypt.
"""

import base64
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken, MultiFernet
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from biscuit.errors import DecryptionFailed
from biscuit.keys import KeyRing

DEFAULT_INFO = b"biscuit.cookie.encryption"


def derive_key(secret: bytes, info: bytes = DEFAULT_INFO) -> bytes:
    """Derive a urlsafe-base64 Fernet key from an arbitrary-length secret."""
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=info)
    return base64.urlsafe_b64encode(hkdf.derive(secret))


@lru_cache(maxsize=64)
def _fernet(keyring: KeyRing, info: bytes) -> MultiFernet:
    return MultiFernet([Fernet(derive_key(secret, info)) for secret in keyring])


def encrypt(payload: str, keyring: KeyRing, *, info: bytes = DEFAULT_INFO) -> str:
    """Encrypt *payload* under ``keyring.primary``. Returns base64url text."""
    token = _fernet(keyring, info).encrypt(payload.encode("utf-8"))
    return token.decode("ascii")


def decrypt(blob: str, keyring: KeyRing, *, info: bytes = DEFAULT_INFO) -> str:
    """Decrypt a blob produced by ``encrypt`` with any key in the ring.

    Every failure mode raises the same ``DecryptionFailed``.
    """
    try:
        token = blob.encode("ascii")
        plaintext = _fernet(keyring, info).decrypt(token)
        return plaintext.decode("utf-8")
    except (InvalidToken, UnicodeError) as exc:
        raise DecryptionFailed("Cookie could not be decrypted.") from exc

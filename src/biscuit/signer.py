"""HMAC signing over ring keys, backed by ``itsdangerous``.

Wire form is ``payload.signature``. The signature is the base64url
(unpadded) HMAC of the payload under the primary key; verification
splits on the last ``.`` and accepts a match under any ring key.
Comparison is constant-time (``hmac.compare_digest`` inside
``itsdangerous``).
"""

from dataclasses import dataclass

from itsdangerous import BadSignature, Signer

from biscuit.errors import SignatureInvalid
from biscuit.keys import KeyRing

SEPARATOR = "."


@dataclass(frozen=True, slots=True)
class SignedValue:
    """A payload and its signature. ``str()`` gives the wire form."""

    payload: str
    signature: str

    def __str__(self) -> str:
        return f"{self.payload}{SEPARATOR}{self.signature}"


def _signer(keyring: KeyRing, digest: str) -> Signer:
    # itsdangerous signs with the *last* key and verifies newest-first,
    # so hand it the ring reversed to keep index 0 as primary.
    return Signer(
        list(reversed(keyring.keys)),
        sep=SEPARATOR,
        key_derivation="none",
        digest_method=digest,
    )


def sign(payload: str, keyring: KeyRing, *, digest: str = "sha256") -> SignedValue:
    """Sign *payload* with ``keyring.primary``."""
    signature = _signer(keyring, digest).get_signature(payload)
    return SignedValue(payload=payload, signature=signature.decode("ascii"))


def verify(wire: str, keyring: KeyRing, *, digest: str = "sha256") -> str:
    """Return the payload of a signed wire string.

    Raises ``SignatureInvalid`` if the separator is missing or no key in
    the ring matches. Which key matched is not reported.
    """
    try:
        payload = _signer(keyring, digest).unsign(wire)
    except BadSignature as exc:
        raise SignatureInvalid("Cookie signature does not verify.") from exc
    return payload.decode("utf-8")

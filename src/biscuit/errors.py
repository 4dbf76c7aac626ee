"""Biscuit exception hierarchy.

Two families: ``ConfigurationError`` and ``InvalidCookie`` are caller
mistakes and always propagate. ``CookieDecodeError`` subclasses describe
a single bad cookie on the wire; ``parse`` absorbs them and drops the
cookie, so an absent cookie and a tampered one look the same.
"""


class BiscuitError(Exception):
    """Base for all biscuit-specific errors."""


class ConfigurationError(BiscuitError):
    """Raised when the codec is called with missing or invalid configuration.

    Typical causes: ``decrypt=True`` without a key ring, an empty key ring,
    or an unknown digest name in ``CodecConfig``.
    """


class InvalidCookie(BiscuitError, ValueError):  # noqa: N818 — reads as a verdict, like NotFound
    """Raised by ``create`` when a name or attribute cannot be put on the wire."""


class CookieDecodeError(BiscuitError):
    """A single cookie could not be decoded. Never escapes ``parse``."""


class MalformedWire(CookieDecodeError):  # noqa: N818
    """The ``name=value`` pair could not be split or percent-decoded."""


class SignatureInvalid(CookieDecodeError):  # noqa: N818
    """No key in the ring produced a matching signature."""


class DecryptionFailed(CookieDecodeError):  # noqa: N818
    """Wrong key, corrupted ciphertext, or truncated input."""


class SerializationError(CookieDecodeError):
    """A ``j:`` tagged body is not valid JSON, or a value cannot be encoded."""

"""Cookie codec: wire text to structured values and back.

The pipeline order is fixed. Creating a cookie always runs
serialize -> sign -> encrypt (each step optional only from the right),
and parsing runs the exact inverse. ``Protection`` is the sealed set of
pipelines; there is no way to ask for encryption without signing.

Usage::

    from biscuit import codec

    record = codec.create("user", {"name": "foo"}, {"httponly": True}, "s3cr3t", encrypt=True)
    set_header(sink, [record])

    cookies = codec.parse(request_cookie_text, "s3cr3t", decrypt=True)
    cookies["user"]  # {"name": "foo"}

A cookie that fails to decode (bad escape, bad signature, bad ciphertext,
bad JSON) is left out of the result. Only API misuse raises.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from urllib.parse import quote, unquote

from biscuit import cipher, signer
from biscuit.config import AttributeValue, CodecConfig
from biscuit.errors import ConfigurationError, CookieDecodeError, MalformedWire
from biscuit.http.cookies import CookieRecord, render_attributes, validate_name, wire_name
from biscuit.keys import KeyRing, KeyRingLike
from biscuit.serializer import deserialize, serialize

logger = logging.getLogger("biscuit.codec")

# Characters encodeURIComponent leaves alone, beyond quote()'s own "_.-~"
_SAFE = "!*'()"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def encode_component(value: str) -> str:
    """Percent-encode *value* the way ``encodeURIComponent`` does."""
    return quote(value, safe=_SAFE)


def decode_component(value: str) -> str:
    """Percent-decode *value*. Invalid UTF-8 raises ``MalformedWire``."""
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError as exc:
        raise MalformedWire("Cookie value is not valid percent-encoded UTF-8.") from exc


# -- Wire segments --


@dataclass(frozen=True, slots=True)
class WireCookie:
    """A cookie exactly as it appears on the wire, before decoding."""

    name: str
    raw_value: str


def parse_segments(header: str) -> list[WireCookie]:
    """Split a ``Cookie`` header into wire cookies, in header order.

    Pairs without ``=`` or with an empty name are skipped. A value
    wrapped in double quotes loses the quotes.
    """
    if not header:
        return []
    cookies: list[WireCookie] = []
    for pair in header.split(";"):
        name, sep, value = pair.strip().partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies.append(WireCookie(name=name, raw_value=value))
    return cookies


def format_segment(name: str, wire_value: str) -> str:
    """Render ``name=value`` with the value percent-encoded."""
    return f"{validate_name(name)}={encode_component(wire_value)}"


# -- Pipelines --


class Protection(Enum):
    """Which layers wrap a cookie value.

    ``ENCRYPTED`` always signs before encrypting.
    """

    PLAIN = "plain"
    SIGNED = "signed"
    ENCRYPTED = "encrypted"

    @classmethod
    def resolve(cls, keyring: KeyRing | None, encrypted: bool = False) -> Protection:
        """Pick the pipeline for a call. Encryption without keys is an error."""
        if encrypted:
            if keyring is None:
                msg = "Encrypted cookies need a secret or key ring."
                raise ConfigurationError(msg)
            return cls.ENCRYPTED
        return cls.PLAIN if keyring is None else cls.SIGNED


class CookieCodec:
    """Stateless cookie codec bound to a ``CodecConfig``.

    Holds no key material; every call takes its own key ring, so one
    instance can be shared across threads and requests.
    """

    __slots__ = ("_config",)

    def __init__(self, config: CodecConfig | None = None) -> None:
        config = config or CodecConfig()
        config.validate()
        self._config = config

    @property
    def config(self) -> CodecConfig:
        return self._config

    def encode(self, value: Any, protection: Protection, keyring: KeyRing | None = None) -> str:
        """Run the create pipeline up to, but not including, percent-encoding."""
        wire = serialize(value)
        if protection is Protection.PLAIN:
            return wire
        if keyring is None:
            msg = f"{protection.value} cookies need a key ring."
            raise ConfigurationError(msg)
        wire = str(signer.sign(wire, keyring, digest=self._config.digest))
        if protection is Protection.ENCRYPTED:
            wire = cipher.encrypt(wire, keyring, info=self._config.encryption_info)
        return wire

    def decode(self, raw_value: str, protection: Protection, keyring: KeyRing | None = None) -> Any:
        """Run the parse pipeline on one raw wire value.

        Raises a ``CookieDecodeError`` subclass when the cookie is unusable.
        """
        payload = decode_component(raw_value)
        if protection is Protection.PLAIN:
            return deserialize(payload)
        if keyring is None:
            msg = f"{protection.value} cookies need a key ring."
            raise ConfigurationError(msg)
        if protection is Protection.ENCRYPTED:
            payload = cipher.decrypt(payload, keyring, info=self._config.encryption_info)
        payload = signer.verify(payload, keyring, digest=self._config.digest)
        return deserialize(payload)

    def parse(
        self,
        header: str,
        keyring: KeyRingLike | None = None,
        decrypt: bool = False,
    ) -> dict[str, Any]:
        """Decode a ``Cookie`` header into ``{name: value}``.

        With no *keyring* the values are only percent-decoded and
        de-tagged. With a *keyring* every cookie must carry a valid
        signature; ``decrypt=True`` additionally decrypts first.
        Later duplicates overwrite earlier ones.
        """
        ring = KeyRing.coerce(keyring)
        protection = Protection.resolve(ring, decrypt)
        cookies: dict[str, Any] = {}
        for cookie in parse_segments(header):
            try:
                cookies[cookie.name] = self.decode(cookie.raw_value, protection, ring)
            except CookieDecodeError as exc:
                logger.debug("Dropped cookie %r: %s", cookie.name, type(exc).__name__)
        return cookies

    def create(
        self,
        name: str,
        value: Any,
        attributes: Mapping[str, AttributeValue] | None = None,
        secret: KeyRingLike | None = None,
        encrypt: bool = False,
    ) -> CookieRecord:
        """Build a ``CookieRecord`` for *value*.

        Supplying *secret* signs the value; ``encrypt=True`` also
        encrypts the signed value. Raises ``InvalidCookie`` for a bad
        name or attribute and ``ConfigurationError`` for ``encrypt``
        without a secret.
        """
        validate_name(name)
        ring = KeyRing.coerce(secret)
        protection = Protection.resolve(ring, encrypt)
        wire = self.encode(value, protection, ring)
        return CookieRecord(
            name=name,
            value=encode_component(wire),
            attributes=self._attributes(attributes),
        )

    def expire(
        self,
        name: str,
        attributes: Mapping[str, AttributeValue] | None = None,
    ) -> CookieRecord:
        """Build a record that tells the client to delete *name*."""
        validate_name(name)
        merged = dict(attributes or {})
        merged.update({"Max-Age": 0, "Expires": _EPOCH})
        return CookieRecord(name=name, value="", attributes=self._attributes(merged))

    def _attributes(
        self, attributes: Mapping[str, AttributeValue] | None
    ) -> dict[str, AttributeValue]:
        merged: dict[str, AttributeValue] = {}
        for key, value in (*self._config.default_attributes, *(attributes or {}).items()):
            merged[wire_name(key)] = value
        # Render once so bad attributes fail here rather than at send time.
        render_attributes(merged)
        return merged


# -- Module-level API --

_default_codec = CookieCodec()


def parse(header: str, keyring: KeyRingLike | None = None, decrypt: bool = False) -> dict[str, Any]:
    """``CookieCodec.parse`` with the default configuration."""
    return _default_codec.parse(header, keyring, decrypt)


def create(
    name: str,
    value: Any,
    attributes: Mapping[str, AttributeValue] | None = None,
    secret: KeyRingLike | None = None,
    encrypt: bool = False,
) -> CookieRecord:
    """``CookieCodec.create`` with the default configuration."""
    return _default_codec.create(name, value, attributes, secret, encrypt)


def expire(name: str, attributes: Mapping[str, AttributeValue] | None = None) -> CookieRecord:
    """``CookieCodec.expire`` with the default configuration."""
    return _default_codec.expire(name, attributes)

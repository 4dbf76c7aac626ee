"""CookieRecord and Set-Cookie rendering.

A record is the per-cookie output of ``create``: the name, the finished
wire value, and an attribute mapping. ``to_header_value`` renders one
``Set-Cookie`` line. Attribute keys may be given in Python spelling
(``max_age``, ``httponly``) or wire spelling (``Max-Age``, ``HttpOnly``).
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import format_datetime

from biscuit.config import AttributeValue
from biscuit.errors import InvalidCookie

# RFC 6265 cookie-name = token (RFC 2616 section 2.2)
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_UNSAFE_ATTR_RE = re.compile(r"[;\x00-\x1f\x7f]")

_WIRE_NAMES: dict[str, str] = {
    "max_age": "Max-Age",
    "maxage": "Max-Age",
    "expires": "Expires",
    "domain": "Domain",
    "path": "Path",
    "secure": "Secure",
    "httponly": "HttpOnly",
    "http_only": "HttpOnly",
    "samesite": "SameSite",
    "same_site": "SameSite",
    "partitioned": "Partitioned",
    "priority": "Priority",
}


def validate_name(name: str) -> str:
    """Return *name* unchanged, or raise ``InvalidCookie`` if it is not a token."""
    if not _TOKEN_RE.match(name):
        msg = f"Invalid cookie name {name!r}."
        raise InvalidCookie(msg)
    return name


def wire_name(key: str) -> str:
    """Map an attribute key to its canonical ``Set-Cookie`` spelling."""
    return _WIRE_NAMES.get(key.lower().replace("-", "_"), key)


def _format_value(name: str, value: AttributeValue) -> str:
    if name == "Expires" and isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return format_datetime(value.astimezone(UTC), usegmt=True)
    if name == "Max-Age":
        try:
            return str(math.floor(float(value)))  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            msg = f"Max-Age must be an integer, got {value!r}."
            raise InvalidCookie(msg) from None
    if name == "SameSite" and isinstance(value, str):
        return value.capitalize()
    return str(value)


def render_attributes(attributes: Mapping[str, AttributeValue]) -> list[str]:
    """Render attribute pairs as ``Attr=Val`` / bare ``Attr`` strings.

    ``True`` renders a flag, ``False`` and ``None`` drop the attribute.
    ``SameSite=True`` means ``Strict``.
    """
    parts: list[str] = []
    for key, value in attributes.items():
        name = wire_name(key)
        if not _TOKEN_RE.match(name):
            msg = f"Invalid cookie attribute name {name!r}."
            raise InvalidCookie(msg)
        if value is None or value is False:
            continue
        if value is True:
            parts.append("SameSite=Strict" if name == "SameSite" else name)
            continue
        rendered = _format_value(name, value)
        if _UNSAFE_ATTR_RE.search(rendered):
            msg = f"Invalid value for cookie attribute {name}: {rendered!r}."
            raise InvalidCookie(msg)
        parts.append(f"{name}={rendered}")
    return parts


@dataclass(frozen=True, slots=True)
class CookieRecord:
    """A ``Set-Cookie`` directive produced by the codec.

    ``value`` is already serialized, protected and percent-encoded.
    """

    name: str
    value: str
    attributes: Mapping[str, AttributeValue] = field(default_factory=dict)

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        return "; ".join([f"{self.name}={self.value}", *render_attributes(self.attributes)])

    def __str__(self) -> str:
        return self.to_header_value()

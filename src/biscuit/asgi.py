"""ASGI glue.

Reads the cookie text out of an ASGI scope and collects ``Set-Cookie``
lines as raw byte pairs ready for ``http.response.start``.
"""

from collections.abc import Iterable, MutableMapping
from typing import Any, TypeAlias

Scope: TypeAlias = MutableMapping[str, Any]


def raw_header_values(raw: Iterable[tuple[bytes, bytes]], name: str) -> list[str]:
    """Return every value for *name* in raw ASGI header pairs, in order."""
    wanted = name.lower().encode("latin-1")
    return [value.decode("latin-1") for key, value in raw if key.lower() == wanted]


def read_cookie_header(scope: Scope) -> str:
    """Return the ``Cookie`` header text from an HTTP scope.

    Cookies split over several lines (HTTP/2) are rejoined with ``"; "``.
    """
    return "; ".join(raw_header_values(scope.get("headers", ()), "cookie"))


class RawHeaderSink:
    """A ``HeaderSink`` over an ASGI raw header list.

    Usage::

        raw_headers = [(b"content-type", b"text/plain")]
        set_header(RawHeaderSink(raw_headers), records)
        await send({"type": "http.response.start", "status": 200, "headers": raw_headers})
    """

    __slots__ = ("raw",)

    def __init__(self, raw: list[tuple[bytes, bytes]] | None = None) -> None:
        self.raw: list[tuple[bytes, bytes]] = raw if raw is not None else []

    def append(self, name: str, value: str) -> None:
        self.raw.append((name.lower().encode("latin-1"), value.encode("latin-1")))

"""Header plumbing on both sides of the codec.

Request side: ``cookie_header`` extracts the text ``parse`` consumes from
a header mapping.

Response side: ``set_header`` writes one ``Set-Cookie`` line per record
into any ``HeaderSink``. Lines are never comma-joined and keep the order
the records were given in.
"""

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from biscuit.http.cookies import CookieRecord

SET_COOKIE = "Set-Cookie"


def cookie_header(headers: Mapping[str, str]) -> str:
    """Return the request cookie text, joining repeated ``Cookie`` lines.

    HTTP/2 clients may split cookies over several header lines; they are
    rejoined with ``"; "``. Plain mappings are looked up case-insensitively.
    """
    get_list = getattr(headers, "get_list", None)
    if get_list is not None:
        return "; ".join(get_list("cookie"))
    for name, value in headers.items():
        if name.lower() == "cookie":
            return value
    return ""


@runtime_checkable
class HeaderSink(Protocol):
    """Anything that can append a header line without replacing earlier ones."""

    def append(self, name: str, value: str) -> None: ...


class HeaderList:
    """In-memory sink of ``(name, value)`` pairs.

    ``items`` can be handed straight to a WSGI ``start_response``.
    """

    __slots__ = ("items",)

    def __init__(self) -> None:
        self.items: list[tuple[str, str]] = []

    def append(self, name: str, value: str) -> None:
        self.items.append((name, value))

    def get_list(self, name: str) -> list[str]:
        name_lower = name.lower()
        return [value for key, value in self.items if key.lower() == name_lower]


def header_lines(records: Iterable[CookieRecord]) -> list[str]:
    """Render each record to its ``Set-Cookie`` value, in order."""
    return [record.to_header_value() for record in records]


def set_header(sink: HeaderSink, records: Iterable[CookieRecord]) -> None:
    """Append one ``Set-Cookie`` line per record to *sink*."""
    for line in header_lines(records):
        sink.append(SET_COOKIE, line)

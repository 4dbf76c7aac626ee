"""Tagged value serialization.

Strings travel as-is. Everything else is compact JSON behind a ``j:``
prefix, so a string that merely looks like JSON stays a string::

    serialize("foo")        -> "foo"
    serialize([1, 2, 3])    -> "j:[1,2,3]"
    deserialize("j:[1,2,3]") -> [1, 2, 3]
"""

import json
from typing import Any

from biscuit.errors import SerializationError

JSON_PREFIX = "j:"


def serialize(value: Any) -> str:
    """Return the tagged wire string for *value*.

    Raises ``SerializationError`` when JSON cannot represent the value.
    """
    if isinstance(value, str):
        return value
    try:
        body = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        msg = f"Cannot serialize {type(value).__name__} as a cookie value: {exc}"
        raise SerializationError(msg) from exc
    return JSON_PREFIX + body


def deserialize(wire: str) -> Any:
    """Inverse of ``serialize``. Untagged input is returned unchanged."""
    if not wire.startswith(JSON_PREFIX):
        return wire
    try:
        return json.loads(wire[len(JSON_PREFIX) :])
    except (ValueError, RecursionError) as exc:
        msg = "Tagged cookie body is not valid JSON."
        raise SerializationError(msg) from exc

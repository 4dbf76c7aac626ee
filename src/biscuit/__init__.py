"""Biscuit — a cookie codec for Python web stacks.

Turns ``Cookie`` header text into structured values and structured
values into ``Set-Cookie`` lines, optionally signed (HMAC) and
encrypted (Fernet), with key rotation through ordered key rings.

Basic usage::

    import biscuit

    record = biscuit.create("cart", [1, 2, 3], {"path": "/"}, "s3cr3t")
    biscuit.set_header(sink, [record])

    cookies = biscuit.parse("cart=...", "s3cr3t")
    cookies["cart"]  # [1, 2, 3]

Signed and encrypted::

    record = biscuit.create("user", {"id": 7}, None, ["new-key", "old-key"], encrypt=True)
    biscuit.parse(header, ["new-key", "old-key"], decrypt=True)
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0-dev"
__all__ = [
    "BiscuitError",
    "CodecConfig",
    "ConfigurationError",
    "CookieCodec",
    "CookieDecodeError",
    "CookieRecord",
    "DecryptionFailed",
    "HeaderList",
    "HeaderSink",
    "InvalidCookie",
    "KeyRing",
    "MalformedWire",
    "Protection",
    "SerializationError",
    "SignatureInvalid",
    "create",
    "expire",
    "parse",
    "set_header",
]


_LAZY_IMPORTS: dict[str, str] = {
    "BiscuitError": "biscuit.errors",
    "CodecConfig": "biscuit.config",
    "ConfigurationError": "biscuit.errors",
    "CookieCodec": "biscuit.codec",
    "CookieDecodeError": "biscuit.errors",
    "CookieRecord": "biscuit.http.cookies",
    "DecryptionFailed": "biscuit.errors",
    "HeaderList": "biscuit.http.headers",
    "HeaderSink": "biscuit.http.headers",
    "InvalidCookie": "biscuit.errors",
    "KeyRing": "biscuit.keys",
    "MalformedWire": "biscuit.errors",
    "Protection": "biscuit.codec",
    "SerializationError": "biscuit.errors",
    "SignatureInvalid": "biscuit.errors",
    "create": "biscuit.codec",
    "expire": "biscuit.codec",
    "parse": "biscuit.codec",
    "set_header": "biscuit.http.headers",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import biscuit`` free of the crypto imports until first use.
    """
    module_path = _LAZY_IMPORTS.get(name)
    if module_path is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    from importlib import import_module

    return getattr(import_module(module_path), name)

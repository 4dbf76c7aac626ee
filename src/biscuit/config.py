"""Codec configuration.

CodecConfig is a frozen dataclass. It holds the non-secret knobs only;
key material is always passed per call.
"""

import hmac
from dataclasses import dataclass
from datetime import datetime
from typing import TypeAlias

from biscuit.errors import ConfigurationError

AttributeValue: TypeAlias = str | int | bool | datetime | None


@dataclass(frozen=True, slots=True)
class CodecConfig:
    """Codec configuration. Immutable after creation.

    Defaults reproduce the plain wire format::

        config = CodecConfig(default_attributes=(("path", "/"), ("httponly", True)))
    """

    # Signing
    digest: str = "sha256"

    # Encryption (HKDF context label for per-key cipher keys)
    encryption_info: bytes = b"biscuit.cookie.encryption"

    # Attributes applied beneath per-call attributes in create()/expire()
    default_attributes: tuple[tuple[str, AttributeValue], ...] = ()

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if any field is unusable."""
        try:
            hmac.new(b"", digestmod=self.digest).digest()
        except (TypeError, ValueError):
            msg = f"Unknown digest {self.digest!r} for cookie signing."
            raise ConfigurationError(msg) from None
        if not self.encryption_info:
            msg = "CodecConfig.encryption_info must not be empty."
            raise ConfigurationError(msg)

"""Error taxonomy for the TRA VFD integration."""

from __future__ import annotations

from typing import Any, Optional


class TraVfdError(RuntimeError):
    """Base class for every failure raised by the TRA VFD helpers."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
        }


class TokenAcquisitionError(TraVfdError):
    """Raised when the token endpoint is unreachable or answers garbage."""


class AuthorizationError(TraVfdError):
    """Raised when the service keeps answering 401 after a token refresh."""


class TransportError(TraVfdError):
    """Raised on network failures: timeouts, refused connections, TLS errors."""


class UpstreamError(TraVfdError):
    """Raised when the service answers with a non-401 HTTP error status."""


class SerializationError(TraVfdError):
    """Raised when a payload cannot be represented as XML."""


class ParseError(TraVfdError):
    """Raised when a response body is not well-formed XML."""


class ConfigurationError(TraVfdError):
    """Raised when key material is missing, unreadable or locked."""


class CryptoError(TraVfdError):
    """Raised when an encrypt/decrypt operation fails."""


__all__ = [
    "TraVfdError",
    "TokenAcquisitionError",
    "AuthorizationError",
    "TransportError",
    "UpstreamError",
    "SerializationError",
    "ParseError",
    "ConfigurationError",
    "CryptoError",
]

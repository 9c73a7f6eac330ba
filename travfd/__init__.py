"""Client for the TRA Virtual Fiscal Device (VFD) web service."""

from .auth import (
    DjangoTokenCache,
    InMemoryTokenCache,
    Token,
    TokenCache,
    TokenManager,
    build_token_payload,
)
from .client import BodyFormat, TraVfdHttpClient, TraVfdResult
from .conf import TraVfdSettings, build_settings, get_settings, refresh_settings
from .crypto import (
    CryptoHelper,
    create_signature,
    decrypt,
    encrypt,
    load_key_from_pkcs12,
    load_private_key,
    load_public_key,
    verify_signature,
)
from .errors import (
    AuthorizationError,
    ConfigurationError,
    CryptoError,
    ParseError,
    SerializationError,
    TokenAcquisitionError,
    TransportError,
    TraVfdError,
    UpstreamError,
)
from .http import HttpRequest, HttpResponse, build_requests_http_request
from .service import TraVfdService, get_service, reset_service
from .validators import normalize_receipt_data
from .xml_builder import build_request_xml, parse_response_xml

__all__ = [
    "DjangoTokenCache",
    "InMemoryTokenCache",
    "Token",
    "TokenCache",
    "TokenManager",
    "build_token_payload",
    "BodyFormat",
    "TraVfdHttpClient",
    "TraVfdResult",
    "TraVfdSettings",
    "build_settings",
    "get_settings",
    "refresh_settings",
    "CryptoHelper",
    "create_signature",
    "decrypt",
    "encrypt",
    "load_key_from_pkcs12",
    "load_private_key",
    "load_public_key",
    "verify_signature",
    "AuthorizationError",
    "ConfigurationError",
    "CryptoError",
    "ParseError",
    "SerializationError",
    "TokenAcquisitionError",
    "TransportError",
    "TraVfdError",
    "UpstreamError",
    "HttpRequest",
    "HttpResponse",
    "build_requests_http_request",
    "TraVfdService",
    "get_service",
    "reset_service",
    "normalize_receipt_data",
    "build_request_xml",
    "parse_response_xml",
]

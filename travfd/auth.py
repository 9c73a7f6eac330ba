"""Bearer token acquisition and caching for the TRA VFD API."""

from __future__ import annotations

import datetime as dt
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from django.core.cache import caches
from django.utils import timezone

from .conf import TraVfdSettings, get_settings
from .errors import TokenAcquisitionError, TransportError
from .http import HttpRequest, build_requests_http_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Token:
    """A bearer token and the moment it stops being trusted locally."""

    value: str
    expires_at: dt.datetime

    @classmethod
    def issue(cls, value: str, ttl: dt.timedelta) -> "Token":
        return cls(value=value, expires_at=timezone.now() + ttl)

    def is_expired(self, now: Optional[dt.datetime] = None) -> bool:
        return (now or timezone.now()) >= self.expires_at


class TokenCache(Protocol):
    def get(self) -> Optional[Token]: ...

    def put(self, token: Token) -> None: ...

    def clear(self) -> None: ...


class InMemoryTokenCache:
    """Process-local token slot."""

    def __init__(self, token: Optional[Token] = None) -> None:
        self._token = token

    def get(self) -> Optional[Token]:
        return self._token

    def put(self, token: Token) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class DjangoTokenCache:
    """Token slot stored in a Django cache backend, shared across workers."""

    def __init__(self, *, alias: str = "default", key: str = "travfd_token") -> None:
        self._alias = alias
        self._key = key

    @property
    def _cache(self):
        return caches[self._alias]

    def get(self) -> Optional[Token]:
        data = self._cache.get(self._key)
        if not data:
            return None
        return Token(value=data["value"], expires_at=data["expires_at"])

    def put(self, token: Token) -> None:
        remaining = (token.expires_at - timezone.now()).total_seconds()
        self._cache.set(
            self._key,
            {"value": token.value, "expires_at": token.expires_at},
            timeout=max(int(remaining), 1),
        )

    def clear(self) -> None:
        self._cache.delete(self._key)


@dataclass(frozen=True)
class TokenRequest:
    url: str
    payload: Mapping[str, Any]


def build_token_payload(settings: TraVfdSettings) -> Mapping[str, Any]:
    return {
        "tin": settings.tin,
        "username": settings.username,
        "password": settings.password,
    }


class TokenManager:
    """Hand out a usable bearer token, fetching a new one when needed.

    Failures to obtain a token are logged and turned into an empty token so
    the request still goes out; the service then answers 401 and the
    pipeline's refresh path takes over.
    """

    def __init__(
        self,
        settings: Optional[TraVfdSettings] = None,
        *,
        http_request: Optional[HttpRequest] = None,
        cache: Optional[TokenCache] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http_request = http_request or build_requests_http_request(
            timeout=self._settings.timeout
        )
        self._cache = cache or DjangoTokenCache(
            alias=self._settings.cache_alias, key=self._settings.cache_key
        )

    @property
    def cache(self) -> TokenCache:
        return self._cache

    def build_request(self) -> TokenRequest:
        return TokenRequest(
            url=self._settings.url_for(self._settings.endpoint("token")),
            payload=build_token_payload(self._settings),
        )

    def obtain_token(self) -> Token:
        """Call the token endpoint; raises TokenAcquisitionError on any failure."""

        request = self.build_request()
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        try:
            response = self._http_request("POST", request.url, headers, json=request.payload)
        except TransportError as exc:
            raise TokenAcquisitionError(f"Token endpoint unreachable: {exc.message}") from exc

        if not response.ok:
            raise TokenAcquisitionError(
                "Token endpoint rejected the request", status_code=response.status_code
            )

        try:
            data = json.loads(response.text)
        except ValueError as exc:
            raise TokenAcquisitionError("Token endpoint did not return JSON") from exc

        value = data.get("token") if isinstance(data, dict) else None
        if not value:
            raise TokenAcquisitionError("Token endpoint response has no 'token' field")

        return Token.issue(str(value), self._settings.token_ttl)

    def refresh(self) -> str:
        """Fetch a token bypassing the cache; return "" when none could be had."""

        try:
            token = self.obtain_token()
        except TokenAcquisitionError as exc:
            logger.warning("TRA VFD: could not acquire token: %s", exc)
            return ""

        self._cache.put(token)
        logger.debug("TRA VFD: token acquired, valid until %s", token.expires_at)
        return token.value

    def get_valid_token(self) -> str:
        token = self._cache.get()
        if token is not None and token.value and not token.is_expired():
            return token.value
        return self.refresh()

    def invalidate(self) -> None:
        self._cache.clear()


__all__ = [
    "DjangoTokenCache",
    "InMemoryTokenCache",
    "Token",
    "TokenCache",
    "TokenManager",
    "TokenRequest",
    "build_token_payload",
]

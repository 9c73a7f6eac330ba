"""HTTP adapters for the TRA VFD integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

import requests
from requests import Session

from .errors import TransportError


@dataclass(frozen=True)
class HttpResponse:
    """Transport-neutral view of an HTTP response."""

    status_code: int
    text: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def raw(self) -> bytes:
        """Undecoded body; falls back to UTF-8 encoded text when no bytes were kept."""
        return self.content or self.text.encode("utf-8")


Body = Union[str, bytes, None]
# (method, url, headers, *, body=..., json=..., params=...) -> HttpResponse
HttpRequest = Callable[..., HttpResponse]


def build_requests_http_request(
    session: Optional[Session] = None, timeout: float = 30.0
) -> HttpRequest:
    """Return an HttpRequest callable backed by requests.

    HTTP error statuses are returned, not raised; only network level
    failures become :class:`TransportError`.
    """

    sess = session or requests.Session()
    default_timeout = timeout

    def http_request(
        method: str,
        url: str,
        headers: Mapping[str, str],
        *,
        body: Body = None,
        json: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> HttpResponse:
        try:
            response = sess.request(
                method=method,
                url=url,
                data=body,
                json=json,
                params=params,
                headers=dict(headers),
                timeout=default_timeout,
            )
        except requests.Timeout as exc:
            raise TransportError(f"Request to {url} timed out") from exc
        except requests.ConnectionError as exc:
            raise TransportError(f"Could not connect to {url}: {exc}") from exc
        except requests.RequestException as exc:
            raise TransportError(f"HTTP request to {url} failed: {exc}") from exc

        return HttpResponse(
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
            content=response.content,
        )

    return http_request


__all__ = ["Body", "HttpRequest", "HttpResponse", "build_requests_http_request"]

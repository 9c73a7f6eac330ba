"""Request pipeline for the TRA VFD API.

Every call goes through the same steps: serialize the payload, attach a
bearer token, optionally encrypt, dispatch, optionally decrypt and parse the
XML answer. A 401 answer triggers one token refresh and one retry. Failures
never escape :meth:`TraVfdHttpClient.send_request`; they come back as a
:class:`TraVfdResult` carrying the typed error.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping, Optional

from .auth import TokenManager
from .conf import TraVfdSettings, get_settings
from .crypto import CryptoHelper
from .errors import AuthorizationError, TraVfdError, UpstreamError
from .http import Body, HttpRequest, HttpResponse, build_requests_http_request
from .xml_builder import build_request_xml, parse_response_xml

logger = logging.getLogger(__name__)

XML_CONTENT_TYPE = "application/xml"
JSON_CONTENT_TYPE = "application/json"
MAX_ERROR_BODY = 500


class BodyFormat(str, enum.Enum):
    JSON = "json"
    XML = "xml"


@dataclass
class TraVfdResult:
    """Outcome of a VFD call: parsed payload on success, typed error otherwise."""

    data: MutableMapping[str, Any] = field(default_factory=dict)
    status_code: Optional[int] = None
    error: Optional[TraVfdError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        return self.error.message if self.error is not None else ""

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return self.error.to_dict()
        return dict(self.data)


def _upstream_message(response: HttpResponse) -> str:
    text = (response.text or "").strip()
    if not text:
        return f"HTTP {response.status_code}"
    return text[:MAX_ERROR_BODY]


class TraVfdHttpClient:
    """Combine token handling, XML codec and encryption for VFD endpoints."""

    def __init__(
        self,
        settings: Optional[TraVfdSettings] = None,
        *,
        http_request: Optional[HttpRequest] = None,
        token_manager: Optional[TokenManager] = None,
        crypto: Optional[CryptoHelper] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http_request = http_request or build_requests_http_request(
            timeout=self._settings.timeout
        )
        self._token_manager = token_manager or TokenManager(
            self._settings, http_request=self._http_request
        )
        self._crypto = crypto or CryptoHelper.from_settings(self._settings)

    @property
    def settings(self) -> TraVfdSettings:
        return self._settings

    @property
    def token_manager(self) -> TokenManager:
        return self._token_manager

    # Pipeline steps ----------------------------------------------------------------

    def _build_body(
        self, data: Optional[Mapping[str, Any]], body_format: Optional[BodyFormat]
    ) -> tuple[Body, Optional[Mapping[str, Any]], dict[str, str]]:
        headers = {"Accept": XML_CONTENT_TYPE}
        if body_format == BodyFormat.XML:
            headers["Content-Type"] = XML_CONTENT_TYPE
            return build_request_xml(data or {}), None, headers
        if body_format == BodyFormat.JSON:
            headers["Content-Type"] = JSON_CONTENT_TYPE
            return None, dict(data or {}), headers
        return None, None, headers

    def _dispatch(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        token: str,
        *,
        body: Body,
        json_body: Optional[Mapping[str, Any]],
        params: Optional[Mapping[str, Any]],
    ) -> HttpResponse:
        request_headers = dict(headers)
        request_headers["Authorization"] = f"Bearer {token}"
        return self._http_request(
            method, url, request_headers, body=body, json=json_body, params=params
        )

    def _parse(self, response: HttpResponse, encrypted: bool) -> dict[str, Any]:
        if encrypted:
            return parse_response_xml(self._crypto.decrypt(response.text))
        # Raw bytes so lxml honours the encoding named in the XML declaration.
        return parse_response_xml(response.raw)

    def _send(
        self,
        method: str,
        endpoint: str,
        data: Optional[Mapping[str, Any]],
        body_format: Optional[BodyFormat],
        encrypted: bool,
        params: Optional[Mapping[str, Any]],
    ) -> TraVfdResult:
        body, json_body, headers = self._build_body(data, body_format)
        if body_format is None and data:
            params = {**data, **(params or {})}

        token = self._token_manager.get_valid_token()

        encrypt_body = encrypted and body_format == BodyFormat.XML
        if encrypt_body:
            body = self._crypto.encrypt(body)

        url = self._settings.url_for(endpoint)
        dispatch = dict(body=body, json_body=json_body, params=params)
        response = self._dispatch(method, url, headers, token, **dispatch)

        if response.status_code == 401:
            logger.info("TRA VFD: %s %s answered 401, refreshing token", method, endpoint)
            self._token_manager.invalidate()
            token = self._token_manager.refresh()
            response = self._dispatch(method, url, headers, token, **dispatch)
            if response.status_code == 401:
                raise AuthorizationError(_upstream_message(response), status_code=401)

        if not response.ok:
            raise UpstreamError(_upstream_message(response), status_code=response.status_code)

        return TraVfdResult(
            data=self._parse(response, encrypted),
            status_code=response.status_code,
        )

    # Public API --------------------------------------------------------------------

    def send_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Mapping[str, Any]] = None,
        *,
        body_format: Optional[BodyFormat] = None,
        encrypted: bool = False,
        params: Optional[Mapping[str, Any]] = None,
    ) -> TraVfdResult:
        """Run one VFD call and return its result; never raises TraVfdError."""

        try:
            return self._send(method.upper(), endpoint, data, body_format, encrypted, params)
        except TraVfdError as exc:
            logger.warning("TRA VFD: %s %s failed: %s", method, endpoint, exc)
            return TraVfdResult(status_code=exc.status_code, error=exc)
        except Exception as exc:  # pragma: no cover - guard rails for runtime errors
            logger.exception("TRA VFD: unexpected error on %s %s", method, endpoint)
            return TraVfdResult(error=TraVfdError(f"Unexpected error: {exc}"))


__all__ = ["BodyFormat", "TraVfdHttpClient", "TraVfdResult"]

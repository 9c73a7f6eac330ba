"""High level TRA VFD operations."""

from __future__ import annotations

import functools
from typing import Any, Mapping, Optional

from .client import BodyFormat, TraVfdHttpClient, TraVfdResult
from .conf import TraVfdSettings, get_settings
from .validators import normalize_receipt_data


class TraVfdService:
    """Register the device, send receipts and Z reports, verify receipts."""

    def __init__(
        self,
        *,
        http_client: Optional[TraVfdHttpClient] = None,
        settings: Optional[TraVfdSettings] = None,
    ) -> None:
        self._settings = settings or (http_client.settings if http_client else get_settings())
        self._http_client = http_client or TraVfdHttpClient(self._settings)

    def register_vfd(self) -> TraVfdResult:
        return self._http_client.send_request(
            "POST",
            self._settings.endpoint("register"),
            {"TIN": self._settings.tin},
            body_format=BodyFormat.XML,
        )

    def send_receipt(self, receipt_data: Mapping[str, Any]) -> TraVfdResult:
        return self._http_client.send_request(
            "POST",
            self._settings.endpoint("receipt"),
            normalize_receipt_data(receipt_data),
            body_format=BodyFormat.XML,
            encrypted=self._settings.encrypt_payloads,
        )

    def send_z_report(self, report_data: Mapping[str, Any]) -> TraVfdResult:
        return self._http_client.send_request(
            "POST",
            self._settings.endpoint("z_report"),
            report_data,
            body_format=BodyFormat.XML,
            encrypted=self._settings.encrypt_payloads,
        )

    def verify_receipt(self, receipt_number: str) -> TraVfdResult:
        return self._http_client.send_request(
            "GET",
            self._settings.endpoint("verify"),
            params={"invoice": receipt_number},
        )


@functools.lru_cache(maxsize=1)
def get_service() -> TraVfdService:
    """Return the process-wide service built from Django settings."""

    return TraVfdService()


def reset_service() -> None:
    get_service.cache_clear()


__all__ = ["TraVfdService", "get_service", "reset_service"]

"""Configuration helpers for the TRA VFD integration.

Values are read from the ``TRAVFD`` dictionary in Django settings. Any key
missing there falls back to the matching environment variable and then to
the defaults below. The resulting :class:`TraVfdSettings` is immutable and
cached for the lifetime of the process; call :func:`refresh_settings` after
changing settings (tests use ``override_settings`` + ``refresh_settings``).
"""

from __future__ import annotations

import datetime as dt
import functools
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from django.conf import settings

DEFAULT_BASE_URL = "https://virtual.tra.go.tz/efdmsRctApi"
DEFAULT_ENDPOINTS: Mapping[str, str] = {
    "token": "/vfdtoken",
    "register": "/api/vfdRegReq",
    "receipt": "/api/efdmsRctInfo",
    "z_report": "/api/efdmszreport",
    "verify": "/efdmsRctVerify/Home/Index",
}
DEFAULT_TIMEOUT = 30.0
DEFAULT_TOKEN_TTL = dt.timedelta(minutes=55)
DEFAULT_CACHE_KEY = "travfd_token"

ENV_VARIABLES: Mapping[str, str] = {
    "BASE_URL": "TRA_VFD_API_BASE",
    "TIN": "TRA_VFD_TIN",
    "USERNAME": "TRA_VFD_USERNAME",
    "PASSWORD": "TRA_VFD_PASSWORD",
    "PUBLIC_KEY_PATH": "TRA_VFD_PUBLIC_KEY",
    "PRIVATE_KEY_PATH": "TRA_VFD_PRIVATE_KEY",
    "PRIVATE_KEY_PASSWORD": "TRA_VFD_PRIVATE_KEY_PASSWORD",
    "ENCRYPT_PAYLOADS": "TRA_VFD_ENCRYPT",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class TraVfdSettings:
    """Resolved, read-only configuration for the VFD client."""

    base_url: str = DEFAULT_BASE_URL
    tin: str = ""
    username: str = ""
    password: str = ""
    endpoints: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_ENDPOINTS))
    public_key_path: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_password: Optional[str] = None
    encrypt_payloads: bool = True
    timeout: float = DEFAULT_TIMEOUT
    token_ttl: dt.timedelta = DEFAULT_TOKEN_TTL
    cache_alias: str = "default"
    cache_key: str = DEFAULT_CACHE_KEY

    def endpoint(self, name: str) -> str:
        try:
            return self.endpoints[name]
        except KeyError as exc:
            raise KeyError(f"Unknown TRA VFD endpoint: {name}") from exc

    def url_for(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")


def _lookup(options: Mapping[str, Any], key: str) -> Any:
    if key in options:
        return options[key]
    env_name = ENV_VARIABLES.get(key)
    if env_name:
        return os.environ.get(env_name)
    return None


def _as_bool(value: Any, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _as_timedelta(value: Any, default: dt.timedelta) -> dt.timedelta:
    if value is None:
        return default
    if isinstance(value, dt.timedelta):
        return value
    return dt.timedelta(seconds=int(value))


def build_settings(options: Optional[Mapping[str, Any]] = None) -> TraVfdSettings:
    """Build settings from a ``TRAVFD``-style mapping plus environment fallbacks."""

    options = dict(options or {})

    endpoints = dict(DEFAULT_ENDPOINTS)
    endpoints.update(options.get("ENDPOINTS") or {})

    timeout = options.get("TIMEOUT")

    return TraVfdSettings(
        base_url=_lookup(options, "BASE_URL") or DEFAULT_BASE_URL,
        tin=str(_lookup(options, "TIN") or ""),
        username=str(_lookup(options, "USERNAME") or ""),
        password=str(_lookup(options, "PASSWORD") or ""),
        endpoints=endpoints,
        public_key_path=_lookup(options, "PUBLIC_KEY_PATH") or None,
        private_key_path=_lookup(options, "PRIVATE_KEY_PATH") or None,
        private_key_password=_lookup(options, "PRIVATE_KEY_PASSWORD") or None,
        encrypt_payloads=_as_bool(_lookup(options, "ENCRYPT_PAYLOADS"), True),
        timeout=float(timeout) if timeout is not None else DEFAULT_TIMEOUT,
        token_ttl=_as_timedelta(options.get("TOKEN_TTL"), DEFAULT_TOKEN_TTL),
        cache_alias=options.get("CACHE_ALIAS") or "default",
        cache_key=options.get("CACHE_KEY") or DEFAULT_CACHE_KEY,
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> TraVfdSettings:
    """Return the process-wide settings, built once from ``settings.TRAVFD``."""

    return build_settings(getattr(settings, "TRAVFD", None))


def refresh_settings() -> None:
    """Invalidate the cached settings so the next call re-reads Django settings."""

    get_settings.cache_clear()


__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_ENDPOINTS",
    "TraVfdSettings",
    "build_settings",
    "get_settings",
    "refresh_settings",
]

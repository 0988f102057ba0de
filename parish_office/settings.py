"""Runtime configuration for the parish office app."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import find_dotenv, load_dotenv

DEFAULT_API_URL = "http://127.0.0.1:8000/api"
DEFAULT_CACHE_PATH = ".data/parish_office_cache.db"


def _read_number(environ: Mapping[str, str], name: str, default: str, cast: type) -> int | float:
    raw = environ.get(name, default).strip() or default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}.") from exc
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero.")
    return value


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    api_token: str | None
    request_timeout: float
    cache_path: Path
    audit_cache_limit: int
    currency_symbol: str
    log_level: str


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    return Settings(
        api_base_url=(environ.get("PARISH_API_URL") or DEFAULT_API_URL).rstrip("/"),
        api_token=(environ.get("PARISH_API_TOKEN") or "").strip() or None,
        request_timeout=float(_read_number(environ, "PARISH_API_TIMEOUT", "15", float)),
        cache_path=Path(environ.get("PARISH_CACHE_PATH") or DEFAULT_CACHE_PATH),
        audit_cache_limit=int(_read_number(environ, "PARISH_AUDIT_CACHE_LIMIT", "1000", int)),
        currency_symbol=environ.get("PARISH_CURRENCY") or "₱",
        log_level=(environ.get("PARISH_LOG_LEVEL") or "INFO").upper(),
    )

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .constants import DEFAULT_TIMEOUT_MS, ENV_FILE, LOGGER


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")


@dataclass(frozen=True)
class Settings:
    base_url: str
    refresh_endpoint: str
    timeout_ms: int
    token_store_path: str
    debug: bool


def load_env() -> None:
    if not ENV_FILE.exists():
        return
    try:
        from dotenv import load_dotenv
    except ImportError:
        return
    load_dotenv(ENV_FILE, override=True)


def load_settings() -> Settings:
    return Settings(
        base_url=os.getenv("API_BASE_URL", "").strip(),
        refresh_endpoint=os.getenv("API_REFRESH_ENDPOINT", "").strip(),
        timeout_ms=_get_env_int("API_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        token_store_path=os.getenv("API_TOKEN_STORE_PATH", ".tokens.json"),
        debug=is_truthy(os.getenv("API_DEBUG", "1")),
    )


def validate_env() -> None:
    if not os.getenv("API_REFRESH_ENDPOINT", "").strip():
        raise RuntimeError("Missing required environment variable: API_REFRESH_ENDPOINT")

    base_url = os.getenv("API_BASE_URL", "").strip()
    if base_url:
        parsed = urlparse(base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise RuntimeError(
                "API_BASE_URL must be an absolute http(s) URL (for example: "
                "https://api.example.com)."
            )

    if _get_env_int("API_TIMEOUT_MS", DEFAULT_TIMEOUT_MS) <= 0:
        raise RuntimeError("API_TIMEOUT_MS must be a positive integer.")


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("API_DEBUG", "1"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
        logging.getLogger("tokenauth").setLevel(logging.INFO)
    return debug_enabled

"""
config.py - Runtime configuration from the environment.

Values come from process environment variables, with a local `.env` file
loaded first when present. Read through the getters below so tests can
override variables with monkeypatch at call time.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

try:
    load_dotenv()
except UnicodeDecodeError:
    # Fallback for legacy Windows-encoded .env files.
    load_dotenv(encoding="cp1252")

# -- Defaults --

DEFAULT_PORT = 8000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_EXPORT_FILENAME_PREFIX = "receipts-export"

TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in TRUTHY


def log_level() -> str:
    return os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).strip() or DEFAULT_LOG_LEVEL


def log_json() -> bool:
    return _env_flag("LOG_JSON")


def api_host() -> str:
    return os.getenv("HOST", DEFAULT_HOST).strip() or DEFAULT_HOST


def api_port() -> int:
    raw = os.getenv("PORT", "").strip()
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"PORT must be an integer, got {raw!r}") from exc


def cors_allow_origins() -> list[str]:
    """Comma-separated CORS_ALLOW_ORIGINS; '*' when unset."""
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


def export_filename_prefix() -> str:
    prefix = os.getenv("EXPORT_FILENAME_PREFIX", DEFAULT_EXPORT_FILENAME_PREFIX).strip()
    return prefix or DEFAULT_EXPORT_FILENAME_PREFIX

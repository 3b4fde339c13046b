"""
test_config.py - Environment configuration and logging setup checks.

Usage:
    python -m pytest test_config.py
"""

from __future__ import annotations

import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import config
from logging_config import parse_level, setup_logging


def test_defaults_when_environment_is_empty(monkeypatch):
    for name in ("PORT", "HOST", "LOG_LEVEL", "LOG_JSON", "CORS_ALLOW_ORIGINS", "EXPORT_FILENAME_PREFIX"):
        monkeypatch.delenv(name, raising=False)

    assert config.api_port() == 8000
    assert config.api_host() == "0.0.0.0"
    assert config.log_level() == "INFO"
    assert config.log_json() is False
    assert config.cors_allow_origins() == ["*"]
    assert config.export_filename_prefix() == "receipts-export"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.setenv("LOG_JSON", "yes")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://localhost:3000, https://app.example.com ,")
    monkeypatch.setenv("EXPORT_FILENAME_PREFIX", "  ")

    assert config.api_port() == 9100
    assert config.log_json() is True
    assert config.cors_allow_origins() == ["http://localhost:3000", "https://app.example.com"]
    assert config.export_filename_prefix() == "receipts-export"


def test_invalid_port_raises(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ValueError, match="PORT"):
        config.api_port()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (logging.DEBUG, logging.DEBUG),
        ("debug", logging.DEBUG),
        ("WARNING", logging.WARNING),
        ("", logging.INFO),
        (None, logging.INFO),
        ("chatty", logging.INFO),
    ],
)
def test_parse_level(raw, expected):
    assert parse_level(raw) == expected


def test_setup_logging_installs_single_handler():
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    try:
        _check_single_handler()
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def _check_single_handler():
    setup_logging("DEBUG", json_format=True)
    setup_logging("WARNING")
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1

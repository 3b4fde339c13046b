"""
normalize.py - Input cleanup for loosely-structured OCR receipt records.

Core normalizers:
    normalize_date(value)      -> ISO YYYY-MM-DD or ""
    normalize_amount(value)    -> float rounded to 2 decimals, >= 0
    normalize_category(value)  -> lowercase, trimmed tag
    normalize_currency(value)  -> 3-letter upper-case code

Convenience wrapper:
    normalize_receipt_payload(raw)  -> dict ready for Receipt.model_validate

Design principles:
    - Runs only at the file/HTTP boundary; the export engine never normalizes
    - Pure transformations, no external API calls
    - Invalid input degrades to neutral defaults (the validator then reports it)
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any

import pandas as pd
from dateutil import parser as dateparser

from logging_config import get_logger

logger = get_logger(__name__)

NULL_TOKENS = {"n/a", "na", "none", "null", "unknown", "nan"}
FALLBACK_CURRENCY = "USD"

AMOUNT_FIELDS = ("amount", "taxAmount", "tax_amount", "quantity", "unitAmount", "unit_amount")
DATE_FIELDS = ("date", "dueDate", "due_date")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_date(date_str: Any) -> str:
    """Normalize date text to ISO YYYY-MM-DD."""
    if _is_missing(date_str):
        return ""

    date_str = str(date_str).strip()
    if not date_str:
        return ""

    if not any(char.isdigit() for char in date_str):
        logger.debug("normalize_date | rejected_no_digits | raw=%r", date_str)
        return ""

    if date_str.lower() in NULL_TOKENS:
        return ""

    # Bare years, bare numbers, and month/year fragments are not purchase dates.
    if re.fullmatch(r"\d+", date_str):
        return ""
    if re.fullmatch(r"\d{1,2}[/-]\d{2,4}", date_str):
        return ""
    if re.fullmatch(r"[A-Za-z]{3,9}\s+\d{4}", date_str):
        return ""

    try:
        parsed = dateparser.parse(date_str, dayfirst=False)
    except (ValueError, TypeError, OverflowError) as exc:
        logger.warning(
            "normalize_date | parse_error=%s | raw=%r | fallback=''",
            type(exc).__name__,
            date_str,
        )
        return ""

    if parsed is None:
        logger.warning("normalize_date | parse_failed | raw=%r | fallback=''", date_str)
        return ""

    if parsed.year < 2000 or parsed.year > datetime.now().year + 2:
        logger.warning(
            "normalize_date | suspicious_year=%s | raw=%r",
            parsed.year,
            date_str,
        )

    normalized = parsed.strftime("%Y-%m-%d")
    logger.debug("normalize_date | raw=%r | normalized=%r", date_str, normalized)
    return normalized


def normalize_amount(amount_str: Any) -> float:
    """Normalize amount input into a non-negative 2-decimal float."""
    if _is_missing(amount_str):
        return 0.0

    if isinstance(amount_str, (int, float)) and not isinstance(amount_str, bool):
        value = float(amount_str)
        if not math.isfinite(value) or value < 0:
            logger.warning("normalize_amount | rejected=%r | fallback=0.0", amount_str)
            return 0.0
        return round(value, 2)

    cleaned = str(amount_str).strip()
    if not cleaned or cleaned.lower() in NULL_TOKENS:
        return 0.0

    is_negative = (
        cleaned.startswith("-")
        or (cleaned.startswith("(") and cleaned.endswith(")"))
        or "-$" in cleaned
        or "$-" in cleaned
    )

    for symbol in ("$", "€", "£", "¥", "(", ")", ","):
        cleaned = cleaned.replace(symbol, "")
    cleaned = cleaned.strip()
    if not cleaned:
        return 0.0

    try:
        value = float(cleaned)
    except ValueError:
        logger.warning("normalize_amount | parse_failed | raw=%r | fallback=0.0", amount_str)
        return 0.0

    if not math.isfinite(value) or is_negative or value < 0:
        logger.warning("normalize_amount | rejected=%r | fallback=0.0", amount_str)
        return 0.0

    normalized = round(value, 2)
    logger.debug("normalize_amount | raw=%r | normalized=%s", amount_str, normalized)
    return normalized


def normalize_category(category: Any) -> str:
    """Lowercase, trimmed category tag ("" when missing)."""
    if _is_missing(category):
        return ""
    return str(category).strip().lower()


def normalize_currency(currency: Any) -> str:
    """Three-letter upper-case currency code, USD when missing or malformed."""
    if _is_missing(currency):
        return FALLBACK_CURRENCY

    code = str(currency).strip().upper()
    if not re.fullmatch(r"[A-Z]{3}", code):
        if code:
            logger.warning(
                "normalize_currency | rejected=%r | fallback=%s",
                currency,
                FALLBACK_CURRENCY,
            )
        return FALLBACK_CURRENCY
    return code


def normalize_receipt_payload(raw: dict[str, Any]) -> dict[str, Any]:
    """Clean one raw receipt mapping before model validation.

    Missing cells (None/NaN from a CSV load) are dropped so model defaults
    apply. Amounts, dates, category, and currency are normalized; every
    other value is passed through as trimmed text.
    """
    cleaned: dict[str, Any] = {}
    for key, value in raw.items():
        if _is_missing(value):
            continue
        if key in AMOUNT_FIELDS:
            cleaned[key] = normalize_amount(value)
        elif key in DATE_FIELDS:
            cleaned[key] = normalize_date(value)
        elif key == "category":
            cleaned[key] = normalize_category(value)
        elif key == "currency":
            cleaned[key] = normalize_currency(value)
        elif isinstance(value, str):
            cleaned[key] = value.strip()
        else:
            cleaned[key] = value

    # Receipt ids are opaque strings even when a CSV column parses as numbers.
    if "id" in cleaned:
        cleaned["id"] = str(cleaned["id"]).strip()
    return cleaned

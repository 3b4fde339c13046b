"""
validate.py - Export readiness checks.

Decides whether a batch of receipts carries enough data to produce an
accounting import file, and reports per receipt which required fields are
missing.

Rules, evaluated in this order for every receipt:
    vendor          non-blank after trimming
    invoice number  explicit invoice number OR a receipt id to derive one from
    date            non-empty
    amount          positive and finite
    quantity        positive and finite (absence is flagged even though export defaults it to 1)

The batch is ready only when every receipt passes every rule. Problems are
returned as data; nothing here raises for a sequence of Receipt objects.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, Optional

from logging_config import get_logger
from models import ReadinessReport, Receipt

logger = get_logger(__name__)


def _is_positive(value: Optional[float]) -> bool:
    # isfinite rejects NaN as well as infinity.
    return value is not None and math.isfinite(value) and value > 0


def check_receipt(receipt: Receipt) -> dict[str, Any]:
    """Return the missing-field mapping for one receipt (empty when complete)."""
    issues: dict[str, Any] = {}

    if not (receipt.vendor or "").strip():
        issues["vendor"] = ""
    if not receipt.invoice_number and not receipt.id:
        issues["invoice_number"] = ""
    if not receipt.date:
        issues["date"] = ""
    if not _is_positive(receipt.amount):
        issues["amount"] = 0.0
    if not _is_positive(receipt.quantity):
        issues["quantity"] = 1

    return issues


def validate_export_data(receipts: Sequence[Receipt]) -> ReadinessReport:
    """Validate a batch of receipts and build its readiness report."""
    per_record_issues: list[dict[str, Any]] = []

    for index, receipt in enumerate(receipts):
        issues = check_receipt(receipt)
        if issues:
            logger.debug(
                "export_validate_record | index=%s | id=%s | missing=%s",
                index,
                receipt.id,
                sorted(issues),
            )
        per_record_issues.append(issues)

    export_ready = all(not issues for issues in per_record_issues)
    report = ReadinessReport(export_ready=export_ready, per_record_issues=per_record_issues)
    logger.info(
        "export_validate | receipts=%s | missing=%s | export_ready=%s",
        report.record_count,
        report.missing_count,
        export_ready,
    )
    return report

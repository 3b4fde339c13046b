"""
export.py - CSV generation for the accounting import file.

Pipeline role:
    validate.py  ->  ReadinessReport
    export.py    ->  CSV text (header + one row per exportable receipt)

Generation assumes the caller already decided how strict to be. A batch that
is not ready still produces a best-effort file containing the receipts that
have no issues of their own; once a batch is marked ready every receipt in it
is emitted.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from pydantic import BaseModel, ConfigDict

from defaults import apply_export_defaults
from derive import resolve_export_fields
from logging_config import get_logger
from models import ExportDefaults, ReadinessReport, Receipt
from serialize import format_row, header_line, join_rows
from validate import validate_export_data

logger = get_logger(__name__)


class ExportNotReadyError(ValueError):
    """Raised by strict exports when required fields are still missing."""

    def __init__(self, report: ReadinessReport) -> None:
        super().__init__(report.summary())
        self.report = report


class ExportResult(BaseModel):
    """CSV text together with the readiness report it was generated from."""

    model_config = ConfigDict(frozen=True)

    csv_text: str
    report: ReadinessReport
    exported_count: int


def select_exportable(
    receipts: Sequence[Receipt],
    report: ReadinessReport,
) -> list[Receipt]:
    """Receipts to emit: those without issues, or all of them once the batch is ready."""
    return [
        receipt
        for index, receipt in enumerate(receipts)
        if not report.issues_for(index) or report.export_ready
    ]


def generate_csv(receipts: Sequence[Receipt], report: ReadinessReport) -> str:
    """Serialize the exportable receipts into import-file CSV text."""
    exportable = select_exportable(receipts, report)
    rows = [header_line()]
    rows.extend(format_row(resolve_export_fields(receipt)) for receipt in exportable)

    logger.info(
        "export_generate | receipts=%s | exported=%s | skipped=%s | export_ready=%s",
        len(receipts),
        len(exportable),
        len(receipts) - len(exportable),
        report.export_ready,
    )
    return join_rows(rows)


def export_receipts(
    receipts: Sequence[Receipt],
    defaults: Optional[ExportDefaults] = None,
    strict: bool = False,
) -> ExportResult:
    """Merge user defaults, validate, and generate in one call.

    With `strict=True` an unready batch raises ExportNotReadyError instead
    of producing a partial file.
    """
    prepared = apply_export_defaults(receipts, defaults)
    report = validate_export_data(prepared)

    if strict and not report.export_ready:
        logger.warning(
            "export_blocked | receipts=%s | missing=%s",
            report.record_count,
            report.missing_count,
        )
        raise ExportNotReadyError(report)

    csv_text = generate_csv(prepared, report)
    return ExportResult(
        csv_text=csv_text,
        report=report,
        exported_count=len(select_exportable(prepared, report)),
    )

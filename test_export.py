"""
test_export.py - CSV generation tests.

Covers:
- header stability and row layout
- best-effort filtering of receipts with issues
- escaping round-trip through a standard CSV reader
- export_receipts convenience (defaults merge + strict mode)

Usage:
    python -m pytest test_export.py
"""

from __future__ import annotations

import csv
import io
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from export import ExportNotReadyError, export_receipts, generate_csv, select_exportable
from models import ExportDefaults, ReadinessReport, Receipt
from serialize import COLUMN_KEYS, header_line
from validate import validate_export_data

EXPECTED_HEADER = (
    "*ContactName,EmailAddress,POAddressLine1,POAddressLine2,POAddressLine3,"
    "POAddressLine4,POCity,PORegion,POPostalCode,POCountry,*InvoiceNumber,"
    "*InvoiceDate,DueDate,InventoryItemCode,Description,*Quantity,*UnitAmount,"
    "AccountCode,TaxType,TrackingName1,TrackingOption1,TrackingName2,"
    "TrackingOption2,Currency"
)


def _receipt(**overrides) -> Receipt:
    data = {
        "id": "rcpt_01j9xabc123456789",
        "vendor": "El Agave Mexican Restaurant",
        "date": "2026-01-12",
        "amount": 47.50,
        "tax_amount": 3.50,
        "category": "dining",
        "quantity": 1,
    }
    data.update(overrides)
    return Receipt(**data)


def _rows(csv_text: str) -> list[dict[str, str]]:
    """Parse generated CSV into dicts keyed by column name without markers."""
    reader = csv.reader(io.StringIO(csv_text))
    next(reader)
    return [dict(zip(COLUMN_KEYS, cells)) for cells in reader]


def test_header_is_the_fixed_contract():
    assert header_line() == EXPECTED_HEADER


def test_header_stable_for_single_minimal_receipt():
    receipts = [Receipt(id="r1")]
    csv_text = generate_csv(receipts, validate_export_data(receipts))
    assert csv_text.split("\n")[0] == EXPECTED_HEADER


def test_header_only_when_no_receipts():
    assert generate_csv([], validate_export_data([])) == EXPECTED_HEADER


def test_every_cell_is_quoted():
    receipts = [_receipt()]
    csv_text = generate_csv(receipts, validate_export_data(receipts))
    lines = csv_text.split("\n")
    assert len(lines) == 2
    assert lines[1].startswith('"El Agave Mexican Restaurant","",')
    assert lines[1].endswith(',"USD"')
    assert lines[1].count('","') == 23


def test_generated_row_values():
    receipts = [_receipt()]
    row = _rows(generate_csv(receipts, validate_export_data(receipts)))[0]
    assert row["ContactName"] == "El Agave Mexican Restaurant"
    assert row["InvoiceNumber"] == "RCP-23456789"
    assert row["InvoiceDate"] == "2026-01-12"
    assert row["DueDate"] == "2026-01-12"
    assert row["Description"] == "Business meals and entertainment - El Agave Mexican Restaurant"
    assert row["Quantity"] == "1"
    assert row["UnitAmount"] == "47.50"
    assert row["AccountCode"] == "421"
    assert row["TaxType"] == "GST"
    assert row["Currency"] == "USD"


def test_quoted_vendor_round_trips():
    vendor = 'Joe\'s "Diner"'
    receipts = [_receipt(vendor=vendor)]
    csv_text = generate_csv(receipts, validate_export_data(receipts))

    data_line = csv_text.split("\n")[1]
    assert data_line.startswith('"Joe\'s ""Diner""",')
    assert _rows(csv_text)[0]["ContactName"] == vendor


def test_receipt_with_issues_excluded_from_unready_batch():
    complete = _receipt(id="rcpt_aaaaaaaa")
    missing_vendor = _receipt(id="rcpt_bbbbbbbb", vendor="")
    receipts = [complete, missing_vendor]
    report = validate_export_data(receipts)
    assert report.export_ready is False

    rows = _rows(generate_csv(receipts, report))
    assert [row["InvoiceNumber"] for row in rows] == ["RCP-AAAAAAAA"]


def test_ready_batch_emits_every_receipt():
    receipts = [_receipt(id="rcpt_1"), _receipt(id="rcpt_2", vendor="Starbucks")]
    report = validate_export_data(receipts)
    assert report.export_ready is True
    assert len(_rows(generate_csv(receipts, report))) == 2


def test_batch_marked_ready_overrides_per_receipt_issues():
    receipts = [_receipt(), _receipt(vendor="", amount=0)]
    report = ReadinessReport(export_ready=True, per_record_issues=[{}, {"vendor": ""}])
    assert select_exportable(receipts, report) == receipts


def test_receipts_without_report_entry_are_included():
    receipts = [_receipt(id="rcpt_1"), _receipt(id="rcpt_2")]
    report = ReadinessReport(export_ready=False, per_record_issues=[{"vendor": ""}])
    assert select_exportable(receipts, report) == [receipts[1]]


def test_zero_amount_serializes_when_batch_marked_ready():
    receipts = [_receipt(amount=0, quantity=None)]
    report = ReadinessReport(export_ready=True, per_record_issues=[{"amount": 0.0}])
    row = _rows(generate_csv(receipts, report))[0]
    assert row["UnitAmount"] == "0.00"
    assert row["Quantity"] == "1"


def test_no_trailing_newline():
    receipts = [_receipt()]
    assert not generate_csv(receipts, validate_export_data(receipts)).endswith("\n")


def test_generation_is_deterministic():
    receipts = [_receipt(), _receipt(id="rcpt_2", category="travel")]
    report = validate_export_data(receipts)
    assert generate_csv(receipts, report) == generate_csv(receipts, report)


def test_export_receipts_applies_defaults_before_validation():
    receipts = [_receipt(quantity=None, contact_email=None)]
    result = export_receipts(receipts, ExportDefaults(contact_email="books@example.com"))

    assert result.report.per_record_issues == [{"quantity": 1}]
    assert result.exported_count == 0
    assert result.csv_text == EXPECTED_HEADER


def test_export_receipts_merges_user_values_into_rows():
    receipts = [_receipt(), _receipt(id="rcpt_x", account_code="499")]
    defaults = ExportDefaults(invoice_prefix="INV-", contact_email="books@example.com", account_code="429")
    result = export_receipts(receipts, defaults)

    rows = _rows(result.csv_text)
    assert result.exported_count == 2
    assert rows[0]["InvoiceNumber"] == "INV-23456789"
    assert rows[0]["EmailAddress"] == "books@example.com"
    assert rows[0]["AccountCode"] == "429"
    assert rows[1]["AccountCode"] == "499"


def test_strict_export_raises_with_report():
    receipts = [_receipt(), _receipt(vendor="")]
    with pytest.raises(ExportNotReadyError) as excinfo:
        export_receipts(receipts, strict=True)

    assert excinfo.value.report.missing_count == 1
    assert "1 of 2 receipts" in str(excinfo.value)


def test_strict_export_passes_ready_batch():
    result = export_receipts([_receipt()], strict=True)
    assert result.report.export_ready is True
    assert result.exported_count == 1

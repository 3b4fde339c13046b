"""
serialize.py - Column contract and CSV text primitives for the import file.

The accounting system accepts one fixed 24-column layout. Column names with
a leading asterisk are the ones it treats as required; the asterisk stays in
the header text but is stripped when looking up a row's value.

Every value is double-quoted and embedded quotes are doubled, so commas and
newlines inside a value need no further escaping.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

CSV_HEADERS: tuple[str, ...] = (
    "*ContactName",
    "EmailAddress",
    "POAddressLine1",
    "POAddressLine2",
    "POAddressLine3",
    "POAddressLine4",
    "POCity",
    "PORegion",
    "POPostalCode",
    "POCountry",
    "*InvoiceNumber",
    "*InvoiceDate",
    "DueDate",
    "InventoryItemCode",
    "Description",
    "*Quantity",
    "*UnitAmount",
    "AccountCode",
    "TaxType",
    "TrackingName1",
    "TrackingOption1",
    "TrackingName2",
    "TrackingOption2",
    "Currency",
)

REQUIRED_MARKER = "*"

REQUIRED_COLUMNS: tuple[str, ...] = tuple(
    header for header in CSV_HEADERS if header.startswith(REQUIRED_MARKER)
)

LINE_TERMINATOR = "\n"


def column_key(header: str) -> str:
    """Header name without the required-column marker."""
    return header.replace(REQUIRED_MARKER, "")


COLUMN_KEYS: tuple[str, ...] = tuple(column_key(header) for header in CSV_HEADERS)


def header_line() -> str:
    return ",".join(CSV_HEADERS)


def escape_csv_value(value: object) -> str:
    """Quote a single cell value, doubling any embedded double quotes."""
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def format_row(fields: Mapping[str, object]) -> str:
    """Serialize one record's resolved fields in column order.

    Columns missing from `fields` (or holding a falsy value) export as an
    empty quoted cell.
    """
    return ",".join(escape_csv_value(fields.get(key) or "") for key in COLUMN_KEYS)


def join_rows(rows: Iterable[str]) -> str:
    return LINE_TERMINATOR.join(rows)

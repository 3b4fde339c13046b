"""
derive.py - Default values for optional accounting-export fields.

Two composable steps:
    derive_missing_fields(receipt)  -> only the defaults for fields left empty
    resolve_export_fields(receipt)  -> every export column resolved to text

Defaulting rules:
    invoice number  "RCP-" + last 8 characters of the id, upper-cased
    due date        the receipt date
    description     "<category phrase> - <vendor>"
    account code    exact category lookup, "default" entry for any other string
    tax type        "GST" when tax was charged, otherwise left empty
    quantity        1
    unit amount     amount / quantity (after quantity is defaulted)

Everything else (contact email, inventory code, address, tracking) stays
empty when absent. Nothing is looked up outside this module and the source
receipt is never modified.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from logging_config import get_logger
from models import Receipt

logger = get_logger(__name__)

DEFAULT_CATEGORY = "default"
INVOICE_NUMBER_PREFIX = "RCP-"
INVOICE_ID_SUFFIX_LENGTH = 8
DEFAULT_TAX_TYPE = "GST"

# Chart-of-accounts codes for common business expenses.
CATEGORY_TO_ACCOUNT_CODE: Mapping[str, str] = MappingProxyType(
    {
        "groceries": "410",  # office supplies / consumables
        "dining": "421",  # entertainment / meals
        "gas": "413",  # motor vehicle
        "healthcare": "411",
        "shopping": "426",
        "electronics": "426",
        "home": "424",  # repairs & maintenance
        "clothing": "426",
        "utilities": "430",
        "entertainment": "421",
        "travel": "420",
        DEFAULT_CATEGORY: "426",  # general expenses
    }
)

CATEGORY_TO_DESCRIPTION: Mapping[str, str] = MappingProxyType(
    {
        "groceries": "Office supplies and consumables",
        "dining": "Business meals and entertainment",
        "gas": "Motor vehicle fuel and expenses",
        "healthcare": "Medical and healthcare expenses",
        "shopping": "General business purchases",
        "electronics": "Technology and equipment purchases",
        "home": "Office repairs and maintenance",
        "clothing": "Business attire and uniforms",
        "utilities": "Utility bills and services",
        "entertainment": "Entertainment and events",
        "travel": "Business travel and accommodation",
        DEFAULT_CATEGORY: "Business expense",
    }
)


def _category_key(receipt: Receipt) -> str:
    return receipt.category or ""


def default_invoice_number(receipt: Receipt, prefix: str = INVOICE_NUMBER_PREFIX) -> str:
    return f"{prefix}{receipt.id[-INVOICE_ID_SUFFIX_LENGTH:].upper()}"


def default_account_code(receipt: Receipt) -> str:
    return CATEGORY_TO_ACCOUNT_CODE.get(
        _category_key(receipt), CATEGORY_TO_ACCOUNT_CODE[DEFAULT_CATEGORY]
    )


def default_description(receipt: Receipt) -> str:
    phrase = CATEGORY_TO_DESCRIPTION.get(
        _category_key(receipt), CATEGORY_TO_DESCRIPTION[DEFAULT_CATEGORY]
    )
    return f"{phrase} - {receipt.vendor}"


def default_tax_type(receipt: Receipt) -> str:
    """GST for taxed receipts; untaxed receipts get no invented tax type."""
    if receipt.has_tax:
        return DEFAULT_TAX_TYPE
    return ""


def derive_missing_fields(receipt: Receipt) -> dict[str, Any]:
    """Compute defaults for the optional fields this receipt leaves empty.

    Returned keys are Receipt field names; fields the receipt already
    carries are not included.
    """
    derived: dict[str, Any] = {}

    if not receipt.invoice_number:
        derived["invoice_number"] = default_invoice_number(receipt)
    if not receipt.due_date:
        derived["due_date"] = receipt.date
    if not receipt.account_code:
        derived["account_code"] = default_account_code(receipt)
    if not receipt.description:
        derived["description"] = default_description(receipt)

    quantity = receipt.quantity or 1
    if not receipt.quantity:
        derived["quantity"] = 1
    if not receipt.unit_amount:
        derived["unit_amount"] = receipt.amount / quantity

    if not receipt.tax_type and receipt.has_tax:
        derived["tax_type"] = default_tax_type(receipt)

    if derived:
        logger.debug(
            "derive_defaults | id=%s | fields=%s",
            receipt.id,
            sorted(derived),
        )
    return derived


def format_amount(value: float) -> str:
    """Plain two-decimal number, no currency symbol."""
    return f"{value:.2f}"


def format_quantity(value: float) -> str:
    """Whole quantities print without a decimal part ("1", not "1.0")."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def resolve_export_fields(receipt: Receipt) -> dict[str, str]:
    """Resolve every export column for one receipt, defaults applied.

    Keys are column names without the required marker (see
    serialize.COLUMN_KEYS). Values are always strings.
    """
    resolved = receipt.model_copy(update=derive_missing_fields(receipt))

    return {
        "ContactName": resolved.vendor or "",
        "EmailAddress": resolved.contact_email or "",
        "POAddressLine1": resolved.po_address_line1 or "",
        "POAddressLine2": resolved.po_address_line2 or "",
        "POAddressLine3": "",
        "POAddressLine4": "",
        "POCity": resolved.po_city or "",
        "PORegion": resolved.po_region or "",
        "POPostalCode": resolved.po_postal_code or "",
        "POCountry": resolved.po_country or "",
        "InvoiceNumber": resolved.invoice_number or "",
        "InvoiceDate": resolved.date or "",
        "DueDate": resolved.due_date or "",
        "InventoryItemCode": resolved.inventory_item_code or "",
        "Description": resolved.description or "",
        "Quantity": format_quantity(resolved.quantity),
        "UnitAmount": format_amount(resolved.unit_amount),
        "AccountCode": resolved.account_code or "",
        "TaxType": resolved.tax_type or "",
        "TrackingName1": resolved.tracking_name1 or "",
        "TrackingOption1": resolved.tracking_option1 or "",
        "TrackingName2": resolved.tracking_name2 or "",
        "TrackingOption2": resolved.tracking_option2 or "",
        "Currency": resolved.currency or "",
    }

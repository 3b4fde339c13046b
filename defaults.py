"""
defaults.py - Merge user-supplied export defaults into receipts.

The export dialog lets the user type fallback values (invoice prefix,
contact email, due date, account code, tax type, postal address) once for
the whole batch. This module applies them before validation:

    receipt value  ->  user default  ->  built-in default (invoice number, due date)

Only empty fields are filled. Inputs are returned as new Receipt objects;
the originals are left untouched.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional

from derive import default_invoice_number
from logging_config import get_logger
from models import ExportDefaults, Receipt

logger = get_logger(__name__)

# Receipt fields filled straight from the ExportDefaults field of the same name.
PASSTHROUGH_FIELDS: tuple[str, ...] = (
    "contact_email",
    "account_code",
    "tax_type",
    "po_address_line1",
    "po_address_line2",
    "po_city",
    "po_region",
    "po_postal_code",
    "po_country",
)


def _merged_fields(receipt: Receipt, defaults: ExportDefaults) -> dict[str, Any]:
    update: dict[str, Any] = {}

    if not receipt.invoice_number:
        if defaults.invoice_prefix:
            update["invoice_number"] = default_invoice_number(receipt, defaults.invoice_prefix)
        else:
            update["invoice_number"] = default_invoice_number(receipt)

    if not receipt.due_date:
        update["due_date"] = defaults.due_date or receipt.date

    for field_name in PASSTHROUGH_FIELDS:
        user_value = getattr(defaults, field_name)
        if user_value and not getattr(receipt, field_name):
            update[field_name] = user_value

    return update


def apply_export_defaults(
    receipts: Sequence[Receipt],
    defaults: Optional[ExportDefaults] = None,
) -> list[Receipt]:
    """Return receipts with empty optional fields filled from `defaults`."""
    if defaults is None:
        return [receipt.model_copy() for receipt in receipts]

    merged: list[Receipt] = []
    filled = 0
    for receipt in receipts:
        update = _merged_fields(receipt, defaults)
        filled += len(update)
        merged.append(receipt.model_copy(update=update))

    logger.debug(
        "export_defaults_applied | receipts=%s | fields_filled=%s",
        len(merged),
        filled,
    )
    return merged

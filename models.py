"""
models.py - Data Models for the Receipt Export Engine

Every module in the export pipeline communicates through these models:

    main.py / export_api.py  ->  list[Receipt]
    defaults.py              ->  list[Receipt] (user defaults merged in)
    validate.py              ->  ReadinessReport
    export.py                ->  str (CSV text, uses Receipt + ReadinessReport)

Design principles:
1. Receipts are immutable input. Derivation code computes new values
   alongside a receipt and never writes back into it (models are frozen).
2. Field names are snake_case in Python and camelCase on the wire, so the
   OCR/UI collaborator can post its JSON unchanged ("taxAmount",
   "poAddressLine1", ...).
3. Missing data is data. A ReadinessReport lists what is missing instead of
   the engine raising.

Schema relationships:
    Receipt        --used by--> ReadinessReport (parallel issue list)
    ExportDefaults --merged into--> Receipt (by defaults.py, before validation)
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TAX_TYPE_CHOICES = ("GST", "VAT", "EXEMPT", "NONE")


class Receipt(BaseModel):
    """One purchase's extracted and accounting data.

    This is what the OCR step hands over after processing a receipt image,
    optionally enriched with accounting metadata the user typed in. Only
    `id` is structurally required. Everything else may be missing; the
    validator decides whether the record is complete enough to export and
    the generator fills defaults for the optional export fields.

    Empty strings and zero quantities are treated as "absent" by the
    derivation rules, the same way blank form inputs are.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "id": "rcpt_01j9x4abc123456789",
                    "vendor": "Joe's \"Diner\"",
                    "date": "2026-01-12",
                    "amount": 47.50,
                    "taxAmount": 3.50,
                    "currency": "USD",
                    "category": "dining",
                    "paymentMethod": "Visa",
                }
            ]
        },
    )

    id: str = Field(
        ...,
        description=(
            "Opaque unique identifier assigned when the receipt was captured. "
            "Immutable once assigned. The last 8 characters seed the default "
            "invoice number (RCP-XXXXXXXX)."
        ),
    )
    vendor: str = Field(
        default="",
        description=(
            "Vendor or merchant name as extracted from the receipt. Exported as "
            "the contact name. Must be non-blank for the record to be export-ready."
        ),
    )
    date: str = Field(
        default="",
        description="Purchase date in ISO YYYY-MM-DD form. Exported as the invoice date.",
    )
    amount: float = Field(
        default=0.0,
        description="Receipt total including tax. Must be positive for export readiness.",
    )
    tax_amount: float = Field(
        default=0.0,
        description=(
            "Tax portion of the total. May be zero. A positive tax amount with "
            "no explicit tax type defaults the exported tax type to GST."
        ),
    )
    currency: str = Field(
        default="USD",
        description="ISO 4217 currency code, carried through without conversion.",
    )
    category: str = Field(
        default="",
        description=(
            "Spending category tag (groceries, dining, gas, ...). Only used to "
            "look up a default account code and description phrase."
        ),
    )
    file_name: Optional[str] = Field(
        default=None,
        description="Source image file name. Carried for the UI, never exported.",
    )
    payment_method: Optional[str] = Field(
        default=None,
        description="Payment method printed on the receipt. Never exported.",
    )

    # Optional accounting-export fields
    invoice_number: Optional[str] = None
    contact_email: Optional[str] = None
    due_date: Optional[str] = None
    inventory_item_code: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[float] = Field(
        default=None,
        description=(
            "Item count. Conceptually 1 when absent, but absence is still "
            "reported by the validator so the user can confirm it."
        ),
    )
    unit_amount: Optional[float] = Field(
        default=None,
        description="Unit price. Back-computed as amount / quantity when absent.",
    )
    account_code: Optional[str] = None
    tax_type: Optional[str] = None
    tracking_name1: Optional[str] = None
    tracking_option1: Optional[str] = None
    tracking_name2: Optional[str] = None
    tracking_option2: Optional[str] = None

    # Postal address. The target schema reserves four address lines; the
    # input model carries two, so lines 3 and 4 always export empty.
    po_address_line1: Optional[str] = None
    po_address_line2: Optional[str] = None
    po_city: Optional[str] = None
    po_region: Optional[str] = None
    po_postal_code: Optional[str] = None
    po_country: Optional[str] = None

    @property
    def has_tax(self) -> bool:
        """Whether this receipt carries a non-zero tax amount."""
        return self.tax_amount > 0


class ReadinessReport(BaseModel):
    """Result of validating a batch of receipts for export.

    Computed fresh on every validation call and never stored. The issue
    list is parallel to the input: entry i describes receipt i. Each entry
    maps a field name to the placeholder value a correction form would
    prefill ("" for text fields, 0.0 for amount, 1 for quantity). An empty
    mapping means the receipt has everything it needs.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    export_ready: bool = Field(
        ...,
        description="True when every receipt in the batch has zero issues.",
    )
    per_record_issues: list[dict[str, Any]] = Field(
        default_factory=list,
        description="One issue mapping per input receipt, in input order.",
    )

    @property
    def record_count(self) -> int:
        return len(self.per_record_issues)

    @property
    def missing_count(self) -> int:
        """Number of receipts with at least one missing required field."""
        return sum(1 for issues in self.per_record_issues if issues)

    def issues_for(self, index: int) -> dict[str, Any]:
        """Copy of the issue mapping for receipt `index`; receipts without an entry have none."""
        if 0 <= index < len(self.per_record_issues):
            return dict(self.per_record_issues[index])
        return {}

    def summary(self) -> str:
        """Short prompt text for the UI, e.g. '2 of 5 receipts need ...'."""
        if self.export_ready:
            return f"All {self.record_count} receipts are ready to export"
        return (
            f"{self.missing_count} of {self.record_count} receipts need "
            "additional information to export"
        )


class ExportDefaults(BaseModel):
    """User-supplied fallback values for optional export fields.

    Collected by the export dialog and merged into receipts by
    `defaults.apply_export_defaults` BEFORE validation. A receipt's own
    value always wins; these only fill gaps. Blank strings count as
    "not supplied".
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    invoice_prefix: str = Field(
        default="",
        description=(
            "Prefix for generated invoice numbers. Combined with the last 8 "
            "characters of the receipt id, e.g. 'INV-' -> 'INV-23456789'."
        ),
    )
    contact_email: str = ""
    due_date: str = ""
    account_code: str = ""
    tax_type: str = Field(
        default="",
        description="One of GST, VAT, EXEMPT, NONE, or blank for no default.",
    )
    po_address_line1: str = ""
    po_address_line2: str = ""
    po_city: str = ""
    po_region: str = ""
    po_postal_code: str = ""
    po_country: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("tax_type")
    @classmethod
    def _known_tax_type(cls, value: str) -> str:
        normalized = value.upper()
        if normalized and normalized not in TAX_TYPE_CHOICES:
            raise ValueError(
                f"tax_type must be one of {', '.join(TAX_TYPE_CHOICES)} or blank, got {value!r}"
            )
        return normalized

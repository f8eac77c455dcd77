"""
Invoice validation.

``validate_invoice`` is the single gate between an untyped request body and
the trusted ``InvoiceDraft`` the totals pipeline works on. It collects every
violation before failing so callers get a complete report in one round trip.

Rules
-----
- customer name must not be empty
- a supplied invoice number must not be empty, is limited to letters, digits,
  dots, dashes and underscores, and must not belong to another invoice (advisory; the store's unique constraint is authoritative)
- every line item passes the per-item checks of ``line_items.item_problems``
- sequence numbers are unique within the invoice
- charge values and the special discount are non-negative
- quantities, prices, charge values and the discount stay within
  ``money.MAX_AMOUNT``

Non-fatal findings (due date before issue date, no line items) are returned
as warnings.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from app import config
from app.errors import DuplicateInvoiceNumber, ValidationFailed
from app.models import ChargeSpec, Customer, InvoiceDraft, LineItem
from app.schemas import InvoiceIn, Violation
from app.services import money
from app.services.line_items import item_problems

INVOICE_NUMBER_PATTERN = re.compile(r"[A-Z0-9][A-Z0-9._-]*")


@dataclass
class ValidationResult:
    draft: InvoiceDraft
    warnings: List[str] = field(default_factory=list)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_invoice_number(value: str) -> str:
    return value.strip().upper()


def validate_invoice(
    payload: InvoiceIn,
    number_taken: Optional[Callable[[str], bool]] = None,
    now: Optional[datetime] = None,
) -> ValidationResult:
    """
    Validate ``payload`` and convert it into an ``InvoiceDraft``.

    ``number_taken`` is asked whether a supplied invoice number already belongs
    to another invoice. When that is the only problem ``DuplicateInvoiceNumber``
    is raised; otherwise it is reported alongside the rest in
    ``ValidationFailed``.
    """
    violations: List[Violation] = []
    warnings: List[str] = []

    # --- Customer ---
    customer_name = _clean(payload.customer.name)
    if customer_name is None:
        violations.append(
            Violation(code="MISSING_CUSTOMER_NAME", field="customer.name",
                      message="Customer name is required.")
        )

    # --- Invoice number ---
    invoice_number = None
    duplicate = False
    if payload.invoice_number is not None:
        invoice_number = normalize_invoice_number(payload.invoice_number)
        if not invoice_number:
            violations.append(
                Violation(code="MISSING_INVOICE_NUMBER", field="invoice_number",
                          message="Invoice number must not be empty.")
            )
        elif not INVOICE_NUMBER_PATTERN.fullmatch(invoice_number):
            violations.append(
                Violation(code="INVALID_INVOICE_NUMBER", field="invoice_number",
                          message="Invoice number may only contain letters, digits, '.', '-' and '_'.")
            )
        elif number_taken is not None and number_taken(invoice_number):
            duplicate = True
            violations.append(
                Violation(code="DUPLICATE_INVOICE_NUMBER", field="invoice_number",
                          message=f"Invoice number {invoice_number} already exists.")
            )

    # --- Dates ---
    issue_date = _naive_utc(payload.issue_date) or (now or utcnow())
    due_date = _naive_utc(payload.due_date) or issue_date + timedelta(days=config.DEFAULT_DUE_DAYS)
    if due_date < issue_date:
        warnings.append("Due date is before the issue date.")

    # --- Line items ---
    if not payload.items:
        warnings.append("Invoice has no line items.")

    seen_sequence_numbers = set()
    for index, item in enumerate(payload.items):
        for field_name, reason in item_problems(item):
            violations.append(
                Violation(code="INVALID_LINE_ITEM", field=f"items[{index}].{field_name}",
                          message=reason, index=index)
            )
        sequence_number = item.sequence_number if item.sequence_number is not None else index + 1
        if sequence_number in seen_sequence_numbers:
            violations.append(
                Violation(code="DUPLICATE_SEQUENCE_NUMBER", field=f"items[{index}].sequence_number",
                          message=f"Sequence number {sequence_number} is used more than once.",
                          index=index)
            )
        seen_sequence_numbers.add(sequence_number)

    # --- Charges and discount ---
    for field_name, spec in (("service_charge", payload.service_charge), ("vat", payload.vat)):
        if spec.value < 0:
            violations.append(
                Violation(code="INVALID_CHARGE", field=f"{field_name}.value",
                          message=f"{field_name} value cannot be negative.")
            )
        elif not money.within_limit(spec.value):
            violations.append(
                Violation(code="INVALID_CHARGE", field=f"{field_name}.value",
                          message=f"{field_name} value cannot exceed {money.MAX_AMOUNT}.")
            )
    if payload.special_discount < 0:
        violations.append(
            Violation(code="INVALID_AMOUNT", field="special_discount",
                      message="Special discount cannot be negative.")
        )
    elif not money.within_limit(payload.special_discount):
        violations.append(
            Violation(code="INVALID_AMOUNT", field="special_discount",
                      message=f"Special discount cannot exceed {money.MAX_AMOUNT}.")
        )

    if violations:
        if duplicate and len(violations) == 1:
            raise DuplicateInvoiceNumber(invoice_number)
        raise ValidationFailed(violations)

    email = _clean(payload.customer.email)
    draft = InvoiceDraft(
        invoice_number=invoice_number,
        issue_date=issue_date,
        due_date=due_date,
        customer=Customer(
            name=customer_name,
            email=email.lower() if email else None,
            address=_clean(payload.customer.address),
            phone=_clean(payload.customer.phone),
        ),
        payment_status=payload.payment_status,
        items=[
            LineItem(
                sequence_number=item.sequence_number if item.sequence_number is not None else index + 1,
                product_name=item.product_name.strip(),
                unit=item.unit,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for index, item in enumerate(payload.items)
        ],
        service_charge=ChargeSpec(kind=payload.service_charge.kind, value=payload.service_charge.value),
        vat=ChargeSpec(kind=payload.vat.kind, value=payload.vat.value),
        special_discount=Decimal(payload.special_discount),
        notes=payload.notes,
    )
    return ValidationResult(draft=draft, warnings=warnings)

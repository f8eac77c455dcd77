"""
Invoice totals pipeline.

The only place derived invoice fields are computed. It runs on every create
and every full update, and is a pure function of its inputs:

1. normalize the line items and sum them into the subtotal
2. resolve the service charge against the subtotal
3. resolve VAT against the subtotal (not subtotal plus service charge)
4. grand total = subtotal + service charge + VAT
5. net total = grand total - special discount
6. reject a negative net total
"""

from decimal import Decimal
from typing import Iterable, Optional

from app.errors import NegativeNetTotal
from app.models import ChargeSpec, InvoiceDraft, InvoiceTotals
from app.services import money
from app.services.charges import resolve_charge
from app.services.line_items import normalize_items


def compute_totals(
    items: Iterable,
    service_charge: Optional[ChargeSpec] = None,
    vat: Optional[ChargeSpec] = None,
    special_discount: Decimal = money.ZERO,
) -> InvoiceTotals:
    normalized = normalize_items(items)
    subtotal = money.total(item.line_total for item in normalized)

    service = resolve_charge(service_charge or ChargeSpec(), subtotal, "service charge")
    tax = resolve_charge(vat or ChargeSpec(), subtotal, "VAT")

    grand_total = money.add(subtotal, service.amount, tax.amount)
    discount = money.round_money(money.non_negative(special_discount, "special discount"))
    net_total = money.subtract(grand_total, discount)
    if net_total < money.ZERO:
        raise NegativeNetTotal(grand_total, discount)

    return InvoiceTotals(
        items=normalized,
        subtotal=subtotal,
        service_charge=service,
        vat=tax,
        special_discount=discount,
        grand_total=grand_total,
        net_total=net_total,
    )


def compute_invoice_totals(draft: InvoiceDraft) -> InvoiceTotals:
    return compute_totals(draft.items, draft.service_charge, draft.vat, draft.special_discount)

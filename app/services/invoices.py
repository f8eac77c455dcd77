"""
Invoice service: validate, recompute, persist.

Create and full update both run the validator and then the totals pipeline
before anything touches the store. Auto-generated invoice numbers are retried
a bounded number of times when a concurrent create takes the same number.
"""

import logging
from typing import List, Optional, Tuple

from app import config
from app.errors import DuplicateInvoiceNumber
from app.models import Invoice, InvoiceDraft, InvoiceTotals, PaymentStatus
from app.schemas import InvoiceIn
from app.services.invoice_numbers import next_invoice_number
from app.services.invoice_store import InvoiceStore
from app.services.totals import compute_invoice_totals
from app.services.validator import validate_invoice

logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(self, store: InvoiceStore, number_retries: int = config.INVOICE_NUMBER_RETRIES):
        self.store = store
        self.number_retries = max(1, number_retries)

    def list(
        self,
        payment_status: Optional[PaymentStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[Invoice], int]:
        invoices = self.store.find_all(payment_status=payment_status, limit=limit, offset=offset)
        return invoices, self.store.count_where(payment_status=payment_status)

    def get(self, invoice_id: int) -> Invoice:
        return self.store.find_by_id(invoice_id)

    def preview(self, payload: InvoiceIn) -> Tuple[Invoice, List[str]]:
        """Validate and compute an invoice without persisting it."""
        result = validate_invoice(payload, number_taken=self.store.number_exists)
        totals = compute_invoice_totals(result.draft)
        number = result.draft.invoice_number or next_invoice_number(self.store, result.draft.issue_date)
        return _assemble(0, number, result.draft, totals), result.warnings

    def create(self, payload: InvoiceIn) -> Invoice:
        result = validate_invoice(payload, number_taken=self.store.number_exists)
        draft = result.draft
        totals = compute_invoice_totals(draft)
        self._log_warnings(draft.invoice_number, result.warnings)

        if draft.invoice_number is not None:
            invoice = self.store.insert(draft.invoice_number, draft, totals)
        else:
            invoice = self._insert_with_generated_number(draft, totals)

        logger.info("Invoice created", extra={"extra": {
            "invoice_id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "items": len(invoice.items),
            "net_total": str(invoice.net_total),
        }})
        return invoice

    def update(self, invoice_id: int, payload: InvoiceIn) -> Invoice:
        existing = self.store.find_by_id(invoice_id)
        result = validate_invoice(
            payload,
            number_taken=lambda number: self.store.number_exists(number, exclude_id=invoice_id),
        )
        draft = result.draft
        totals = compute_invoice_totals(draft)
        self._log_warnings(draft.invoice_number or existing.invoice_number, result.warnings)

        invoice = self.store.update_by_id(
            invoice_id, draft.invoice_number or existing.invoice_number, draft, totals
        )
        logger.info("Invoice updated", extra={"extra": {
            "invoice_id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "net_total": str(invoice.net_total),
        }})
        return invoice

    def update_status(self, invoice_id: int, payment_status: PaymentStatus) -> Invoice:
        invoice = self.store.update_status(invoice_id, payment_status)
        logger.info("Invoice status changed", extra={"extra": {
            "invoice_id": invoice_id, "payment_status": invoice.payment_status.value,
        }})
        return invoice

    def delete(self, invoice_id: int) -> None:
        self.store.delete_by_id(invoice_id)
        logger.info("Invoice deleted", extra={"extra": {"invoice_id": invoice_id}})

    def _insert_with_generated_number(self, draft: InvoiceDraft, totals: InvoiceTotals) -> Invoice:
        for attempt in range(1, self.number_retries + 1):
            number = next_invoice_number(self.store, draft.issue_date)
            try:
                return self.store.insert(number, draft, totals)
            except DuplicateInvoiceNumber:
                logger.warning("Generated invoice number already taken", extra={"extra": {
                    "invoice_number": number, "attempt": attempt,
                }})
                if attempt == self.number_retries:
                    raise

    @staticmethod
    def _log_warnings(invoice_number: Optional[str], warnings: List[str]) -> None:
        for warning in warnings:
            logger.warning(warning, extra={"extra": {"invoice_number": invoice_number}})


def _assemble(invoice_id: int, invoice_number: str, draft: InvoiceDraft, totals: InvoiceTotals) -> Invoice:
    return Invoice(
        id=invoice_id,
        invoice_number=invoice_number,
        issue_date=draft.issue_date,
        due_date=draft.due_date,
        customer=draft.customer,
        payment_status=draft.payment_status,
        items=totals.items,
        subtotal=totals.subtotal,
        service_charge=totals.service_charge,
        vat=totals.vat,
        special_discount=totals.special_discount,
        grand_total=totals.grand_total,
        net_total=totals.net_total,
        notes=draft.notes,
    )

"""
sqlite-backed invoice store.

An ``InvoiceStore`` wraps one connection handed to it by the caller. Every
write runs in its own transaction, so a failed insert or update leaves
nothing behind. The unique constraint on ``invoice_number`` is the
authoritative duplicate check.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from app.errors import DuplicateInvoiceNumber, NotFound, StoreUnavailable
from app.models import (
    ChargeKind,
    ChargeSpec,
    Customer,
    Invoice,
    InvoiceDraft,
    InvoiceTotals,
    LineItem,
    PaymentStatus,
    Unit,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {"issue_date", "due_date", "created_at", "invoice_number"}


@contextmanager
def _store_errors(invoice_number: Optional[str] = None):
    try:
        yield
    except sqlite3.IntegrityError as e:
        if invoice_number is not None and "invoice_number" in str(e):
            raise DuplicateInvoiceNumber(invoice_number)
        raise StoreUnavailable(f"Database integrity error: {e}")
    except sqlite3.DatabaseError as e:
        logger.error("Invoice store error", extra={"extra": {"error": str(e)}})
        raise StoreUnavailable(f"Database error: {e}")


def _now() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat()


class InvoiceStore:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # --- Reads ---

    def find_all(
        self,
        sort: str = "issue_date",
        descending: bool = True,
        payment_status: Optional[PaymentStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Invoice]:
        if sort not in SORT_COLUMNS:
            raise ValueError(f"Cannot sort invoices by {sort!r}")
        query = "SELECT * FROM invoices"
        params: list = []
        if payment_status is not None:
            query += " WHERE payment_status = ?"
            params.append(PaymentStatus(payment_status).value)
        query += f" ORDER BY {sort} {'DESC' if descending else 'ASC'}, id DESC"
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])

        with _store_errors():
            rows = self.conn.execute(query, params).fetchall()
            return [self._load(row) for row in rows]

    def find_by_id(self, invoice_id: int) -> Invoice:
        with _store_errors():
            row = self.conn.execute("SELECT * FROM invoices WHERE id = ?", (invoice_id,)).fetchone()
            if not row:
                raise NotFound("Invoice not found")
            return self._load(row)

    def count_where(self, payment_status: Optional[PaymentStatus] = None) -> int:
        query, params = "SELECT COUNT(*) FROM invoices", []
        if payment_status is not None:
            query += " WHERE payment_status = ?"
            params.append(PaymentStatus(payment_status).value)
        with _store_errors():
            return self.conn.execute(query, params).fetchone()[0]

    def numbers_with_prefix(self, prefix: str) -> List[str]:
        with _store_errors():
            rows = self.conn.execute(
                "SELECT invoice_number FROM invoices WHERE invoice_number LIKE ?", (prefix + "%",)
            ).fetchall()
            return [row[0] for row in rows]

    def number_exists(self, invoice_number: str, exclude_id: Optional[int] = None) -> bool:
        query = "SELECT 1 FROM invoices WHERE invoice_number = ?"
        params: list = [invoice_number]
        if exclude_id is not None:
            query += " AND id != ?"
            params.append(exclude_id)
        with _store_errors():
            return self.conn.execute(query, params).fetchone() is not None

    # --- Writes ---

    def insert(self, invoice_number: str, draft: InvoiceDraft, totals: InvoiceTotals) -> Invoice:
        now = _now()
        with _store_errors(invoice_number):
            with self.conn:
                cursor = self.conn.execute(
                    """
                    INSERT INTO invoices (
                        invoice_number, issue_date, due_date,
                        customer_name, customer_email, customer_address, customer_phone,
                        payment_status, subtotal,
                        service_charge_kind, service_charge_value, service_charge_amount,
                        vat_kind, vat_value, vat_amount,
                        special_discount, grand_total, net_total, notes,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (invoice_number, *self._columns(draft, totals), now, now),
                )
                invoice_id = cursor.lastrowid
                self._insert_items(invoice_id, totals.items)
        return self.find_by_id(invoice_id)

    def update_by_id(self, invoice_id: int, invoice_number: str, draft: InvoiceDraft, totals: InvoiceTotals) -> Invoice:
        with _store_errors(invoice_number):
            with self.conn:
                cursor = self.conn.execute(
                    """
                    UPDATE invoices SET
                        invoice_number = ?, issue_date = ?, due_date = ?,
                        customer_name = ?, customer_email = ?, customer_address = ?, customer_phone = ?,
                        payment_status = ?, subtotal = ?,
                        service_charge_kind = ?, service_charge_value = ?, service_charge_amount = ?,
                        vat_kind = ?, vat_value = ?, vat_amount = ?,
                        special_discount = ?, grand_total = ?, net_total = ?, notes = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (invoice_number, *self._columns(draft, totals), _now(), invoice_id),
                )
                if cursor.rowcount == 0:
                    raise NotFound("Invoice not found")
                self.conn.execute("DELETE FROM invoice_items WHERE invoice_id = ?", (invoice_id,))
                self._insert_items(invoice_id, totals.items)
        return self.find_by_id(invoice_id)

    def update_status(self, invoice_id: int, payment_status: PaymentStatus) -> Invoice:
        with _store_errors():
            with self.conn:
                cursor = self.conn.execute(
                    "UPDATE invoices SET payment_status = ?, updated_at = ? WHERE id = ?",
                    (PaymentStatus(payment_status).value, _now(), invoice_id),
                )
                if cursor.rowcount == 0:
                    raise NotFound("Invoice not found")
        return self.find_by_id(invoice_id)

    def delete_by_id(self, invoice_id: int) -> None:
        with _store_errors():
            with self.conn:
                self.conn.execute("DELETE FROM invoice_items WHERE invoice_id = ?", (invoice_id,))
                cursor = self.conn.execute("DELETE FROM invoices WHERE id = ?", (invoice_id,))
                if cursor.rowcount == 0:
                    raise NotFound("Invoice not found")

    # --- Row mapping ---

    @staticmethod
    def _columns(draft: InvoiceDraft, totals: InvoiceTotals) -> tuple:
        return (
            draft.issue_date.isoformat(),
            draft.due_date.isoformat(),
            draft.customer.name,
            draft.customer.email,
            draft.customer.address,
            draft.customer.phone,
            draft.payment_status.value,
            str(totals.subtotal),
            totals.service_charge.kind.value,
            str(totals.service_charge.value),
            str(totals.service_charge.amount),
            totals.vat.kind.value,
            str(totals.vat.value),
            str(totals.vat.amount),
            str(totals.special_discount),
            str(totals.grand_total),
            str(totals.net_total),
            draft.notes,
        )

    def _insert_items(self, invoice_id: int, items: List[LineItem]) -> None:
        self.conn.executemany(
            """
            INSERT INTO invoice_items (
                invoice_id, position, sequence_number, product_name, unit,
                quantity, unit_price, line_total
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    invoice_id, position, item.sequence_number, item.product_name, item.unit.value,
                    str(item.quantity), str(item.unit_price), str(item.line_total),
                )
                for position, item in enumerate(items)
            ],
        )

    def _load(self, row: sqlite3.Row) -> Invoice:
        item_rows = self.conn.execute(
            "SELECT * FROM invoice_items WHERE invoice_id = ? ORDER BY position", (row["id"],)
        ).fetchall()
        return Invoice(
            id=row["id"],
            invoice_number=row["invoice_number"],
            issue_date=datetime.fromisoformat(row["issue_date"]),
            due_date=datetime.fromisoformat(row["due_date"]),
            customer=Customer(
                name=row["customer_name"],
                email=row["customer_email"],
                address=row["customer_address"],
                phone=row["customer_phone"],
            ),
            payment_status=PaymentStatus(row["payment_status"]),
            items=[
                LineItem(
                    sequence_number=item["sequence_number"],
                    product_name=item["product_name"],
                    unit=Unit(item["unit"]),
                    quantity=Decimal(item["quantity"]),
                    unit_price=Decimal(item["unit_price"]),
                    line_total=Decimal(item["line_total"]),
                )
                for item in item_rows
            ],
            subtotal=Decimal(row["subtotal"]),
            service_charge=ChargeSpec(
                kind=ChargeKind(row["service_charge_kind"]),
                value=Decimal(row["service_charge_value"]),
                amount=Decimal(row["service_charge_amount"]),
            ),
            vat=ChargeSpec(
                kind=ChargeKind(row["vat_kind"]),
                value=Decimal(row["vat_value"]),
                amount=Decimal(row["vat_amount"]),
            ),
            special_discount=Decimal(row["special_discount"]),
            grand_total=Decimal(row["grand_total"]),
            net_total=Decimal(row["net_total"]),
            notes=row["notes"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

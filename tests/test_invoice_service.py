from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal

import pytest

from app.database import connect
from app.errors import DuplicateInvoiceNumber, NotFound
from app.schemas import InvoiceIn
from app.services.invoice_numbers import format_invoice_number, next_invoice_number
from app.services.invoice_store import InvoiceStore
from app.services.invoices import InvoiceService
from app.services.totals import compute_invoice_totals
from app.services.validator import validate_invoice


def _payload(**overrides):
    data = {
        "customer": {"name": "Acme Corp"},
        "issue_date": "2024-03-05T10:00:00",
        "items": [{"product_name": "Widget", "quantity": 2, "unit_price": 100}],
    }
    data.update(overrides)
    return InvoiceIn(**data)


class StaleNumberStore(InvoiceStore):
    """Reports no existing numbers for the first ``stale_reads`` lookups."""

    def __init__(self, conn, stale_reads=1):
        super().__init__(conn)
        self.stale_reads = stale_reads

    def numbers_with_prefix(self, prefix):
        if self.stale_reads > 0:
            self.stale_reads -= 1
            return []
        return super().numbers_with_prefix(prefix)


def test_format_invoice_number():
    assert format_invoice_number(datetime(2024, 3, 1), 7) == "INV-202403-007"
    assert format_invoice_number(datetime(2024, 12, 1), 1234) == "INV-202412-1234"


def test_generated_numbers_are_sequential_per_month(conn):
    service = InvoiceService(InvoiceStore(conn))
    first = service.create(_payload())
    second = service.create(_payload())
    april = service.create(_payload(issue_date="2024-04-01T00:00:00"))
    assert first.invoice_number == "INV-202403-001"
    assert second.invoice_number == "INV-202403-002"
    assert april.invoice_number == "INV-202404-001"


def test_sequence_continues_after_delete(conn):
    service = InvoiceService(InvoiceStore(conn))
    first = service.create(_payload())
    service.create(_payload())
    service.delete(first.id)
    assert next_invoice_number(service.store, datetime(2024, 3, 9)) == "INV-202403-003"


def test_collision_on_generated_number_is_retried(conn):
    InvoiceService(InvoiceStore(conn)).create(_payload())
    service = InvoiceService(StaleNumberStore(conn, stale_reads=1), number_retries=3)
    invoice = service.create(_payload())
    assert invoice.invoice_number == "INV-202403-002"


def test_retries_are_bounded(conn):
    InvoiceService(InvoiceStore(conn)).create(_payload())
    service = InvoiceService(StaleNumberStore(conn, stale_reads=10), number_retries=2)
    with pytest.raises(DuplicateInvoiceNumber):
        service.create(_payload())
    assert service.store.count_where() == 1


def test_concurrent_creates_get_distinct_numbers(db_path):
    def create(_):
        connection = connect(db_path)
        try:
            service = InvoiceService(InvoiceStore(connection), number_retries=10)
            return service.create(_payload()).invoice_number
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=5) as pool:
        numbers = list(pool.map(create, range(5)))

    assert sorted(numbers) == [f"INV-202403-{n:03d}" for n in range(1, 6)]


def test_failed_update_leaves_record_untouched(conn):
    service = InvoiceService(InvoiceStore(conn))
    original = service.create(_payload(invoice_number="KEEP-1"))
    service.create(_payload(invoice_number="OTHER-1"))

    with pytest.raises(DuplicateInvoiceNumber):
        service.update(original.id, _payload(invoice_number="other-1", items=[]))

    reloaded = service.get(original.id)
    assert reloaded.invoice_number == "KEEP-1"
    assert len(reloaded.items) == 1
    assert reloaded.subtotal == Decimal("200")


def test_update_keeps_number_when_omitted(conn):
    service = InvoiceService(InvoiceStore(conn))
    original = service.create(_payload(invoice_number="INV-X"))
    updated = service.update(original.id, _payload(items=[
        {"product_name": "Gadget", "quantity": 3, "unit_price": "9.99"},
    ]))
    assert updated.invoice_number == "INV-X"
    assert updated.subtotal == Decimal("29.97")
    assert [i.product_name for i in updated.items] == ["Gadget"]


class NoLookupStore(InvoiceStore):
    """Skips the advisory duplicate lookup so writes reach the unique constraint."""

    def number_exists(self, invoice_number, exclude_id=None):
        return False


def test_store_enforces_unique_number(conn):
    store = InvoiceStore(conn)
    InvoiceService(store).create(_payload(invoice_number="SAME"))
    draft = validate_invoice(_payload()).draft
    with pytest.raises(DuplicateInvoiceNumber):
        store.insert("SAME", draft, compute_invoice_totals(draft))
    assert store.count_where() == 1


def test_update_rejected_by_constraint_leaves_record_untouched(conn):
    service = InvoiceService(NoLookupStore(conn))
    original = service.create(_payload(invoice_number="KEEP-2"))
    service.create(_payload(invoice_number="OTHER-2"))

    with pytest.raises(DuplicateInvoiceNumber):
        service.update(original.id, _payload(invoice_number="OTHER-2", items=[]))

    reloaded = service.get(original.id)
    assert reloaded.invoice_number == "KEEP-2"
    assert len(reloaded.items) == 1



def test_preview_does_not_persist(conn):
    service = InvoiceService(InvoiceStore(conn))
    invoice, warnings = service.preview(_payload(items=[]))
    assert invoice.invoice_number == "INV-202403-001"
    assert warnings == ["Invoice has no line items."]
    assert service.store.count_where() == 0


def test_missing_invoice(conn):
    service = InvoiceService(InvoiceStore(conn))
    with pytest.raises(NotFound):
        service.get(999)
    with pytest.raises(NotFound):
        service.delete(999)
    with pytest.raises(NotFound):
        service.update(999, _payload())

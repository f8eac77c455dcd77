from fpdf import FPDF
from fpdf.enums import XPos, YPos

from app.models import ChargeKind, ChargeSpec, Invoice


def _latin1(text) -> str:
    # Core PDF fonts only cover latin-1.
    return str(text).encode("latin-1", "replace").decode("latin-1")


def _charge_label(name: str, charge: ChargeSpec) -> str:
    if charge.kind == ChargeKind.PERCENTAGE:
        return f"{name} ({charge.value.normalize():f}%)"
    return name


class InvoicePDF(FPDF):
    def header(self):
        self.set_font('Helvetica', 'B', 20)
        self.cell(0, 10, 'INVOICE', align='C', new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(10)

    def footer(self):
        self.set_y(-15)
        self.set_font('Helvetica', 'I', 8)
        self.cell(0, 10, f'Page {self.page_no()}', align='C')

    def line_cell(self, text, style=''):
        self.set_font('Helvetica', style, 12)
        self.cell(0, 8, _latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def generate_invoice_pdf(invoice: Invoice) -> bytes:
    pdf = InvoicePDF()
    pdf.add_page()

    # Invoice details
    pdf.line_cell(f"Invoice No: {invoice.invoice_number}", 'B')
    pdf.line_cell(f"Date: {invoice.issue_date:%Y-%m-%d}")
    pdf.line_cell(f"Due Date: {invoice.due_date:%Y-%m-%d}")
    pdf.line_cell(f"Status: {invoice.payment_status.value.upper()}")

    pdf.ln(5)

    # Customer details
    customer = invoice.customer
    pdf.line_cell("Bill To:", 'B')
    pdf.line_cell(customer.name)
    for extra in (customer.address, customer.email, customer.phone):
        if extra:
            pdf.line_cell(extra)

    pdf.ln(10)

    # Items table header
    pdf.set_font('Helvetica', 'B', 11)
    pdf.cell(15, 10, '#', border=1, align='C')
    pdf.cell(70, 10, 'Item', border=1)
    pdf.cell(25, 10, 'Quantity', border=1, align='C')
    pdf.cell(20, 10, 'Unit', border=1, align='C')
    pdf.cell(30, 10, 'Unit Price', border=1, align='R')
    pdf.cell(30, 10, 'Total', border=1, align='R')
    pdf.ln()

    # Items
    pdf.set_font('Helvetica', '', 11)
    for item in invoice.items:
        pdf.cell(15, 10, str(item.sequence_number), border=1, align='C')
        pdf.cell(70, 10, _latin1(item.product_name), border=1)
        pdf.cell(25, 10, f"{item.quantity.normalize():f}", border=1, align='C')
        pdf.cell(20, 10, item.unit.value, border=1, align='C')
        pdf.cell(30, 10, f"{item.unit_price:.2f}", border=1, align='R')
        pdf.cell(30, 10, f"{item.line_total:.2f}", border=1, align='R')
        pdf.ln()

    pdf.ln(5)

    # Totals
    rows = [
        ("Subtotal", invoice.subtotal),
        (_charge_label("Service Charge", invoice.service_charge), invoice.service_charge.amount),
        (_charge_label("VAT", invoice.vat), invoice.vat.amount),
        ("Grand Total", invoice.grand_total),
        ("Special Discount", invoice.special_discount),
        ("Net Total", invoice.net_total),
    ]
    for label, amount in rows:
        pdf.set_font('Helvetica', 'B' if label in ("Grand Total", "Net Total") else '', 12)
        pdf.cell(150, 10, label, align='R')
        pdf.cell(40, 10, f"{amount:.2f}", border=1, align='R')
        pdf.ln()

    if invoice.notes:
        pdf.ln(5)
        pdf.set_font('Helvetica', 'I', 10)
        pdf.multi_cell(0, 6, _latin1(f"Notes: {invoice.notes}"))

    return bytes(pdf.output())

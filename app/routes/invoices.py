from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse
from typing import Optional
import io
import math

from app.dependencies import get_current_user, get_invoice_service
from app.models import Invoice, PaymentStatus
from app.rate_limiter import limiter
from app.schemas import (
    InvoiceIn,
    InvoicePreview,
    InvoiceStatusUpdate,
    MessageResponse,
    PaginatedInvoiceResponse,
)
from app.services.invoices import InvoiceService
from app.services.pdf_generator import generate_invoice_pdf

router = APIRouter(
    prefix="/api/invoices",
    tags=["invoices"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=PaginatedInvoiceResponse)
@limiter.limit("100/minute")
def list_invoices(
    request: Request,
    payment_status: Optional[PaymentStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    service: InvoiceService = Depends(get_invoice_service),
):
    invoices, total = service.list(
        payment_status=payment_status,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    return PaginatedInvoiceResponse(
        items=invoices,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )


@router.post("", response_model=Invoice, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def create_invoice(
    request: Request,
    payload: InvoiceIn,
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.create(payload)


@router.post("/preview", response_model=InvoicePreview)
def preview_invoice(payload: InvoiceIn, service: InvoiceService = Depends(get_invoice_service)):
    invoice, warnings = service.preview(payload)
    return InvoicePreview(invoice=invoice, warnings=warnings)


@router.get("/{invoice_id}", response_model=Invoice)
def get_invoice(invoice_id: int, service: InvoiceService = Depends(get_invoice_service)):
    return service.get(invoice_id)


@router.put("/{invoice_id}", response_model=Invoice)
@limiter.limit("10/minute")
def update_invoice(
    request: Request,
    invoice_id: int,
    payload: InvoiceIn,
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.update(invoice_id, payload)


@router.patch("/{invoice_id}/status", response_model=Invoice)
def update_invoice_status(
    invoice_id: int,
    status_update: InvoiceStatusUpdate,
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.update_status(invoice_id, status_update.payment_status)


@router.delete("/{invoice_id}", response_model=MessageResponse)
def delete_invoice(invoice_id: int, service: InvoiceService = Depends(get_invoice_service)):
    service.delete(invoice_id)
    return MessageResponse(message="Invoice deleted successfully")


@router.get("/{invoice_id}/pdf")
@limiter.limit("5/minute")
def get_invoice_pdf(
    request: Request,
    invoice_id: int,
    service: InvoiceService = Depends(get_invoice_service),
):
    invoice = service.get(invoice_id)
    pdf_bytes = generate_invoice_pdf(invoice)

    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=invoice_{invoice.invoice_number}.pdf"},
    )

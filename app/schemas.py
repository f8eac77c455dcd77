from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from app.models import ChargeKind, Invoice, PaymentStatus, Unit, User


# Request bodies only fix the types. Business rules (positive quantities,
# non-empty names, ...) are checked by the invoice validator so that every
# violation is reported in one response. Derived fields sent by a caller
# (line_total, subtotal, amounts, totals) are ignored.

class LineItemIn(BaseModel):
    sequence_number: Optional[int] = None
    product_name: Optional[str] = None
    unit: Unit = Unit.PCS
    quantity: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None


class ChargeSpecIn(BaseModel):
    kind: ChargeKind = ChargeKind.FIXED
    value: Decimal = Decimal("0")


class CustomerIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class InvoiceIn(BaseModel):
    invoice_number: Optional[str] = None
    issue_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    customer: CustomerIn = Field(default_factory=CustomerIn)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    items: List[LineItemIn] = Field(default_factory=list)
    service_charge: ChargeSpecIn = Field(default_factory=ChargeSpecIn)
    vat: ChargeSpecIn = Field(default_factory=ChargeSpecIn)
    special_discount: Decimal = Decimal("0")
    notes: Optional[str] = None


class InvoiceStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class Violation(BaseModel):
    code: str = Field(..., description="Short machine-readable error code.")
    field: Optional[str] = Field(default=None, description="Path of the offending field.")
    message: str
    index: Optional[int] = Field(default=None, description="Item position, for item violations.")


class InvoicePreview(BaseModel):
    invoice: Invoice
    warnings: List[str] = Field(default_factory=list)


class PaginatedInvoiceResponse(BaseModel):
    items: List[Invoice]
    total: int
    page: int
    page_size: int
    total_pages: int


class MessageResponse(BaseModel):
    message: str


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class AuthResponse(BaseModel):
    message: str
    token: str
    user: User


class AdminExistsResponse(BaseModel):
    admin_exists: bool
    message: str


class AdminCheckResponse(BaseModel):
    is_admin: bool
    user: User

"""
Trusted internal invoice model.

Instances of these classes are only produced by the validator and the totals
pipeline; raw request bodies live in ``app.schemas``.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Unit(str, Enum):
    CFT = "CFT"
    PCS = "PCS"
    SFT = "SFT"
    KG = "KG"
    LTR = "LTR"
    M = "M"
    CM = "CM"
    MM = "MM"


DEFAULT_UNIT = Unit.PCS


class ChargeKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class Customer(BaseModel):
    name: str
    email: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class LineItem(BaseModel):
    sequence_number: int
    product_name: str
    unit: Unit = DEFAULT_UNIT
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal = Decimal("0")


class ChargeSpec(BaseModel):
    kind: ChargeKind = ChargeKind.FIXED
    value: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")


class InvoiceDraft(BaseModel):
    """Validated, normalized invoice input. Derived fields are not set yet."""

    invoice_number: Optional[str] = None
    issue_date: datetime
    due_date: datetime
    customer: Customer
    payment_status: PaymentStatus = PaymentStatus.PENDING
    items: List[LineItem] = Field(default_factory=list)
    service_charge: ChargeSpec = Field(default_factory=ChargeSpec)
    vat: ChargeSpec = Field(default_factory=ChargeSpec)
    special_discount: Decimal = Decimal("0")
    notes: Optional[str] = None


class InvoiceTotals(BaseModel):
    """Output of the totals pipeline: every derived field of an invoice."""

    items: List[LineItem]
    subtotal: Decimal
    service_charge: ChargeSpec
    vat: ChargeSpec
    special_discount: Decimal
    grand_total: Decimal
    net_total: Decimal


class Invoice(BaseModel):
    id: int
    invoice_number: str
    issue_date: datetime
    due_date: datetime
    customer: Customer
    payment_status: PaymentStatus
    items: List[LineItem]
    subtotal: Decimal
    service_charge: ChargeSpec
    vat: ChargeSpec
    special_discount: Decimal
    grand_total: Decimal
    net_total: Decimal
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Identity(BaseModel):
    user_id: int
    username: str
    role: Role


class User(BaseModel):
    id: int
    username: str
    name: str
    email: str
    role: Role
    created_at: Optional[datetime] = None

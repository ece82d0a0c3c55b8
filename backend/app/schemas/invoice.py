"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from backend.app.schemas.customer import CustomerRead
from backend.app.schemas.invoice_item import LineItemIn, LineItemRead


class InvoiceCreate(BaseModel):
    customer_id: int
    date: date
    items: List[LineItemIn] = Field(min_length=1)


class InvoiceUpdate(BaseModel):
    customer_id: int
    date: date
    is_paid: Optional[bool] = None
    items: List[LineItemIn] = Field(min_length=1)


class MarkPaidRequest(BaseModel):
    is_paid: bool


class InvoiceRead(BaseModel):
    id: int
    owner_id: int
    customer_id: int
    recurring_invoice_id: Optional[int] = None
    invoice_number: int
    date: date
    is_paid: bool
    amount: Decimal
    items: List[LineItemRead]
    customer: Optional[CustomerRead] = None
    stripe_payment_link_id: Optional[str] = None
    payment_link_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    # Best-effort follow-ups (payment link, email, sheet sync) that failed.
    warnings: List[str] = Field(default_factory=list)


class PaymentLinkRead(BaseModel):
    invoice_id: int
    stripe_payment_link_id: str
    payment_link_url: str

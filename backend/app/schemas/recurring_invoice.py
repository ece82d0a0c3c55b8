"""Recurring invoice template schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from backend.app.schemas.customer import CustomerRead
from backend.app.schemas.invoice_item import LineItemIn, LineItemRead

Frequency = Literal["weekly", "monthly", "quarterly", "yearly"]


class RecurringInvoiceCreate(BaseModel):
    customer_id: int
    name: str = Field(min_length=1, max_length=255)
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True
    items: List[LineItemIn] = Field(min_length=1)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RecurringInvoiceUpdate(BaseModel):
    customer_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    frequency: Optional[Frequency] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    items: Optional[List[LineItemIn]] = Field(default=None, min_length=1)


class RecurringInvoiceRead(BaseModel):
    id: int
    owner_id: int
    customer_id: int
    name: str
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    next_invoice_date: date
    last_invoice_date: Optional[date] = None
    is_active: bool
    amount: Decimal
    items: List[LineItemRead]
    customer: Optional[CustomerRead] = None
    generated_count: int = 0
    last_invoice_number: Optional[int] = None
    created_at: datetime
    updated_at: datetime

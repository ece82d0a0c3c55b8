"""Recurring invoice templates and the schedule that drives them.

Generation is always triggered by a caller (the UI or an external job hitting
``/recurring-invoices/{id}/generate``); nothing here runs on a timer. The next
due date advances from the day generation actually happened, so a late trigger
shifts every later date by the same delay.
"""

import logging
from datetime import date, timedelta
from typing import List, Sequence

from dateutil.relativedelta import relativedelta
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from backend.app.core.errors import InvalidState, NotFound, ValidationError
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_item import InvoiceItem
from backend.app.models.recurring_invoice import RecurringInvoice
from backend.app.models.recurring_invoice_item import RecurringInvoiceItem
from backend.app.schemas.customer import CustomerRead
from backend.app.schemas.invoice_item import LineItemIn, LineItemRead
from backend.app.schemas.recurring_invoice import RecurringInvoiceCreate, RecurringInvoiceRead, RecurringInvoiceUpdate
from backend.app.services.invoices import (
    get_owned_customer,
    persist_new_invoice,
    quantize_amount,
    sum_amounts,
    validate_line_items,
)

logger = logging.getLogger(__name__)

# relativedelta clamps to the last day of a shorter target month:
# Jan 31 + 1 month -> Feb 28, Feb 29 + 1 year -> Feb 28.
FREQUENCY_STEPS = {
    "weekly": timedelta(days=7),
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "yearly": relativedelta(years=1),
}


def next_occurrence(frequency: str, from_date: date) -> date:
    step = FREQUENCY_STEPS.get(frequency)
    if step is None:
        raise ValidationError(f"Unknown frequency: {frequency}")
    return from_date + step


def _build_template_items(items: Sequence[LineItemIn]) -> List[RecurringInvoiceItem]:
    return [RecurringInvoiceItem(description=item.description, amount=quantize_amount(item.amount)) for item in items]


def to_recurring_invoice_read(db: Session, template: RecurringInvoice) -> RecurringInvoiceRead:
    generated_count, last_invoice_number = (
        db.query(func.count(Invoice.id), func.max(Invoice.invoice_number))
        .filter(Invoice.recurring_invoice_id == template.id)
        .one()
    )
    items = [
        LineItemRead(id=item.id, description=item.description, amount=quantize_amount(item.amount))
        for item in template.items
    ]
    return RecurringInvoiceRead(
        id=template.id,
        owner_id=template.owner_id,
        customer_id=template.customer_id,
        name=template.name,
        frequency=template.frequency,
        start_date=date.fromisoformat(template.start_date),
        end_date=date.fromisoformat(template.end_date) if template.end_date else None,
        next_invoice_date=date.fromisoformat(template.next_invoice_date),
        last_invoice_date=date.fromisoformat(template.last_invoice_date) if template.last_invoice_date else None,
        is_active=template.is_active,
        amount=sum_amounts(item.amount for item in items),
        items=items,
        customer=CustomerRead.model_validate(template.customer) if template.customer else None,
        generated_count=generated_count or 0,
        last_invoice_number=last_invoice_number,
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


def get_owned_recurring_invoice(db: Session, template_id: int, owner_id: int) -> RecurringInvoice:
    template = (
        db.query(RecurringInvoice)
        .options(selectinload(RecurringInvoice.items), selectinload(RecurringInvoice.customer))
        .filter(RecurringInvoice.id == template_id)
        .first()
    )
    if not template or template.owner_id != owner_id:
        raise NotFound("Recurring invoice not found")
    return template


def list_recurring_invoices(db: Session, owner_id: int) -> List[RecurringInvoice]:
    return (
        db.query(RecurringInvoice)
        .options(selectinload(RecurringInvoice.items), selectinload(RecurringInvoice.customer))
        .filter(RecurringInvoice.owner_id == owner_id)
        .order_by(RecurringInvoice.created_at.desc(), RecurringInvoice.id.desc())
        .all()
    )


def find_due_recurring_invoices(db: Session, owner_id: int, as_of: date) -> List[RecurringInvoice]:
    """Active templates whose next date has arrived and whose end date has not passed."""
    as_of_text = as_of.isoformat()
    return (
        db.query(RecurringInvoice)
        .filter(
            RecurringInvoice.owner_id == owner_id,
            RecurringInvoice.is_active.is_(True),
            RecurringInvoice.next_invoice_date <= as_of_text,
            or_(
                RecurringInvoice.end_date.is_(None),
                RecurringInvoice.end_date >= RecurringInvoice.next_invoice_date,
            ),
        )
        .order_by(RecurringInvoice.next_invoice_date.asc(), RecurringInvoice.id.asc())
        .all()
    )


def create_recurring_invoice(db: Session, *, owner_id: int, data: RecurringInvoiceCreate) -> RecurringInvoice:
    get_owned_customer(db, data.customer_id, owner_id)
    validate_line_items(data.items)
    template = RecurringInvoice(
        owner_id=owner_id,
        customer_id=data.customer_id,
        name=data.name,
        frequency=data.frequency,
        start_date=data.start_date.isoformat(),
        end_date=data.end_date.isoformat() if data.end_date else None,
        next_invoice_date=data.start_date.isoformat(),
        is_active=data.is_active,
        items=_build_template_items(data.items),
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def update_recurring_invoice(
    db: Session, *, template_id: int, owner_id: int, data: RecurringInvoiceUpdate
) -> RecurringInvoice:
    template = get_owned_recurring_invoice(db, template_id, owner_id)
    update_data = data.model_dump(exclude_unset=True, exclude={"items"})

    if update_data.get("customer_id") is not None:
        get_owned_customer(db, update_data["customer_id"], owner_id)
    if data.items is not None:
        validate_line_items(data.items)

    start_date = update_data.get("start_date") or date.fromisoformat(template.start_date)
    if "end_date" in update_data:
        end_date = update_data["end_date"]
    else:
        end_date = date.fromisoformat(template.end_date) if template.end_date else None
    if end_date is not None and end_date < start_date:
        raise ValidationError("end_date must not be before start_date")

    try:
        for field, value in update_data.items():
            if value is None and field != "end_date":
                continue
            if isinstance(value, date):
                value = value.isoformat()
            setattr(template, field, value)
        # A template that never generated anything starts over from its new start date.
        if "start_date" in update_data and template.last_invoice_date is None:
            template.next_invoice_date = template.start_date
        if data.items is not None:
            template.items.clear()
            db.flush()
            template.items.extend(_build_template_items(data.items))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(template)
    return template


def delete_recurring_invoice(db: Session, *, template_id: int, owner_id: int) -> None:
    template = get_owned_recurring_invoice(db, template_id, owner_id)
    db.delete(template)
    db.commit()


def generate_from_template(db: Session, *, template_id: int, owner_id: int, today: date) -> Invoice:
    """Materialize an invoice from a template and advance its schedule in one commit."""
    template = get_owned_recurring_invoice(db, template_id, owner_id)
    if not template.is_active:
        raise InvalidState("Recurring invoice is not active")
    if not template.items:
        raise InvalidState("Recurring invoice has no line items")

    today_text = today.isoformat()
    next_text = next_occurrence(template.frequency, today).isoformat()

    def build(number: int) -> Invoice:
        # Items are copied by value so later template edits leave this invoice alone.
        snapshot = [InvoiceItem(description=item.description, amount=item.amount) for item in template.items]
        template.next_invoice_date = next_text
        template.last_invoice_date = today_text
        return Invoice(
            owner_id=template.owner_id,
            customer_id=template.customer_id,
            recurring_invoice_id=template.id,
            invoice_number=number,
            date=today_text,
            is_paid=False,
            items=snapshot,
        )

    invoice = persist_new_invoice(db, owner_id, build)
    logger.info(
        "Generated invoice #%s from recurring invoice %s; next due %s",
        invoice.invoice_number,
        template_id,
        next_text,
    )
    return invoice

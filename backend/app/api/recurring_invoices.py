"""Recurring invoice template routes."""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from backend.app.core.time import get_today
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.dependencies.integrations import get_mailer
from backend.app.models.user import User
from backend.app.schemas.invoice import InvoiceRead
from backend.app.schemas.recurring_invoice import RecurringInvoiceCreate, RecurringInvoiceRead, RecurringInvoiceUpdate
from backend.app.services.delivery import attempt
from backend.app.services.invoices import to_invoice_read
from backend.app.services.mailer import Mailer
from backend.app.services.recurring import (
    create_recurring_invoice,
    delete_recurring_invoice,
    find_due_recurring_invoices,
    generate_from_template,
    get_owned_recurring_invoice,
    list_recurring_invoices,
    to_recurring_invoice_read,
    update_recurring_invoice,
)

router = APIRouter(prefix="/recurring-invoices", tags=["recurring-invoices"])


@router.get("/", response_model=List[RecurringInvoiceRead])
def get_recurring_invoices(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [to_recurring_invoice_read(db, template) for template in list_recurring_invoices(db, current_user.id)]


@router.get("/due", response_model=List[RecurringInvoiceRead])
def get_due_recurring_invoices(
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Active templates whose next invoice date has arrived, for an external scheduler to generate."""
    templates = find_due_recurring_invoices(db, current_user.id, today)
    return [to_recurring_invoice_read(db, template) for template in templates]


@router.post("/", response_model=RecurringInvoiceRead, status_code=status.HTTP_201_CREATED)
def create_template(
    payload: RecurringInvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    template = create_recurring_invoice(db, owner_id=current_user.id, data=payload)
    return to_recurring_invoice_read(db, template)


@router.get("/{template_id}", response_model=RecurringInvoiceRead)
def get_template(template_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return to_recurring_invoice_read(db, get_owned_recurring_invoice(db, template_id, current_user.id))


@router.patch("/{template_id}", response_model=RecurringInvoiceRead)
def update_template(
    template_id: int,
    payload: RecurringInvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    template = update_recurring_invoice(db, template_id=template_id, owner_id=current_user.id, data=payload)
    return to_recurring_invoice_read(db, template)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(template_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    delete_recurring_invoice(db, template_id=template_id, owner_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{template_id}/generate", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
def generate_invoice(
    template_id: int,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    mailer: Mailer = Depends(get_mailer),
):
    invoice = generate_from_template(db, template_id=template_id, owner_id=current_user.id, today=today)
    invoice_read = to_invoice_read(invoice)
    warnings: List[str] = []
    attempt(warnings, "Invoice email", mailer.send_invoice, invoice_read, current_user.company_name)
    return invoice_read.model_copy(update={"warnings": warnings})

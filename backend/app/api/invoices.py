"""Invoice routes."""

from datetime import date
from io import BytesIO
from typing import List

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.dependencies.integrations import get_mailer, get_payment_gateway, get_sheets_sync
from backend.app.models.invoice import Invoice
from backend.app.models.user import User
from backend.app.schemas.invoice import InvoiceCreate, InvoiceRead, InvoiceUpdate, MarkPaidRequest, PaymentLinkRead
from backend.app.services.delivery import attempt
from backend.app.services.export import XLSX_MEDIA_TYPE, export_invoices_xlsx
from backend.app.services.invoices import (
    create_invoice_with_items,
    delete_invoice,
    get_owned_invoice,
    list_invoices,
    mark_paid,
    to_invoice_read,
    update_invoice_with_items,
)
from backend.app.services.mailer import Mailer
from backend.app.services.payments import PaymentGateway, attach_payment_link
from backend.app.services.pdf import render_invoice_pdf
from backend.app.services.sheets import SheetsSync

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _sync_new_invoice_to_sheet(db: Session, invoice: Invoice, sheets: SheetsSync, warnings: List[str]) -> None:
    row_range = attempt(warnings, "Spreadsheet sync", sheets.append_invoice, to_invoice_read(invoice))
    if row_range:
        invoice.google_sheet_row_id = row_range
        db.commit()


@router.get("/", response_model=List[InvoiceRead])
def get_invoices(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [to_invoice_read(invoice) for invoice in list_invoices(db, current_user.id)]


@router.get("/export")
def export_invoices(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoices = [to_invoice_read(invoice) for invoice in list_invoices(db, current_user.id)]
    content = export_invoices_xlsx(invoices)
    filename = f"invoices-{date.today().isoformat()}.xlsx"
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return to_invoice_read(get_owned_invoice(db, invoice_id, current_user.id))


@router.post("/", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    sheets: SheetsSync = Depends(get_sheets_sync),
):
    invoice = create_invoice_with_items(
        db,
        owner_id=current_user.id,
        customer_id=payload.customer_id,
        invoice_date=payload.date,
        items=payload.items,
    )
    warnings: List[str] = []
    if gateway.configured:
        attempt(warnings, "Payment link creation", attach_payment_link, db, invoice, gateway, to_invoice_read(invoice))
    if sheets.configured:
        _sync_new_invoice_to_sheet(db, invoice, sheets, warnings)
    return to_invoice_read(invoice, warnings)


@router.patch("/{invoice_id}", response_model=InvoiceRead)
def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = update_invoice_with_items(
        db,
        invoice_id=invoice_id,
        owner_id=current_user.id,
        customer_id=payload.customer_id,
        invoice_date=payload.date,
        is_paid=payload.is_paid,
        items=payload.items,
    )
    return to_invoice_read(invoice)


@router.patch("/{invoice_id}/mark-paid", response_model=InvoiceRead)
def mark_invoice_paid(
    invoice_id: int,
    payload: MarkPaidRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    sheets: SheetsSync = Depends(get_sheets_sync),
):
    invoice = mark_paid(db, invoice_id, payload.is_paid, owner_id=current_user.id)
    warnings: List[str] = []
    if sheets.configured and invoice.google_sheet_row_id:
        attempt(warnings, "Spreadsheet sync", sheets.update_status, invoice.google_sheet_row_id, invoice.is_paid)
    return to_invoice_read(invoice, warnings)


@router.post("/{invoice_id}/email")
def email_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    mailer: Mailer = Depends(get_mailer),
):
    invoice = get_owned_invoice(db, invoice_id, current_user.id)
    mailer.send_invoice(to_invoice_read(invoice), current_user.company_name)
    return {"message": "Invoice sent successfully"}


@router.post("/{invoice_id}/payment-link", response_model=PaymentLinkRead)
def create_payment_link(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    invoice = get_owned_invoice(db, invoice_id, current_user.id)
    invoice = attach_payment_link(db, invoice, gateway, to_invoice_read(invoice))
    return PaymentLinkRead(
        invoice_id=invoice.id,
        stripe_payment_link_id=invoice.stripe_payment_link_id,
        payment_link_url=invoice.payment_link_url,
    )


@router.get("/{invoice_id}/download")
def download_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoice = get_owned_invoice(db, invoice_id, current_user.id)
    pdf_bytes = render_invoice_pdf(to_invoice_read(invoice), current_user.company_name)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=invoice-{invoice.invoice_number}.pdf"},
    )


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    delete_invoice(db, invoice_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

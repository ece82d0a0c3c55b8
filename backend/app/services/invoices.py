"""Invoice aggregate helpers.

An invoice and its line items change together: the header update, removal of the
previous items and insertion of the new ones happen in a single transaction. The
invoice total is never stored for itemised invoices; it is derived from the items
every time an invoice is read.
"""

import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from backend.app.core.errors import Conflict, Forbidden, NotFound, ValidationError
from backend.app.models.customer import Customer
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_item import InvoiceItem
from backend.app.schemas.customer import CustomerRead
from backend.app.schemas.invoice import InvoiceRead
from backend.app.schemas.invoice_item import LineItemIn, LineItemRead
from backend.app.services.numbering import MAX_NUMBERING_ATTEMPTS, next_invoice_number

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
LEGACY_SERVICE_FALLBACK = "Service"


def quantize_amount(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_amounts(amounts: Iterable) -> Decimal:
    total = sum((Decimal(str(amount)) for amount in amounts), Decimal("0.00"))
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def normalized_items(invoice: Invoice) -> List[LineItemRead]:
    """Line items for any invoice, folding the legacy service/amount pair into one item."""
    if invoice.items:
        return [
            LineItemRead(id=item.id, description=item.description, amount=quantize_amount(item.amount))
            for item in invoice.items
        ]
    if invoice.amount is not None:
        return [
            LineItemRead(
                description=invoice.service or LEGACY_SERVICE_FALLBACK,
                amount=quantize_amount(invoice.amount),
            )
        ]
    return []


def effective_amount(invoice: Invoice) -> Decimal:
    return sum_amounts(item.amount for item in normalized_items(invoice))


def to_invoice_read(invoice: Invoice, warnings: Optional[Sequence[str]] = None) -> InvoiceRead:
    items = normalized_items(invoice)
    return InvoiceRead(
        id=invoice.id,
        owner_id=invoice.owner_id,
        customer_id=invoice.customer_id,
        recurring_invoice_id=invoice.recurring_invoice_id,
        invoice_number=invoice.invoice_number,
        date=date.fromisoformat(invoice.date),
        is_paid=invoice.is_paid,
        amount=sum_amounts(item.amount for item in items),
        items=items,
        customer=CustomerRead.model_validate(invoice.customer) if invoice.customer else None,
        stripe_payment_link_id=invoice.stripe_payment_link_id,
        payment_link_url=invoice.payment_link_url,
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
        warnings=list(warnings or []),
    )


def validate_line_items(items: Sequence[LineItemIn]) -> None:
    if not items:
        raise ValidationError("At least one line item is required")
    for item in items:
        if not item.description or not item.description.strip():
            raise ValidationError("Line item description is required")
        if Decimal(str(item.amount)) <= 0:
            raise ValidationError("Line item amount must be greater than zero")


def build_invoice_items(items: Sequence[LineItemIn]) -> List[InvoiceItem]:
    return [InvoiceItem(description=item.description, amount=quantize_amount(item.amount)) for item in items]


def get_owned_customer(db: Session, customer_id: int, owner_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id, Customer.owner_id == owner_id).first()
    if not customer:
        raise NotFound("Customer not found")
    return customer


def _is_number_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return "uq_invoices_owner_number" in message or "invoice_number" in message


def persist_new_invoice(db: Session, owner_id: int, build: Callable[[int], Invoice]) -> Invoice:
    """Insert the invoice produced by ``build(number)``, retrying when the number is taken.

    ``build`` may also stage other changes on the session; they commit with the invoice.
    """
    for attempt in range(1, MAX_NUMBERING_ATTEMPTS + 1):
        invoice = build(next_invoice_number(db, owner_id))
        db.add(invoice)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not _is_number_conflict(exc):
                raise
            logger.warning(
                "Invoice number %s already taken for user %s (attempt %s)",
                invoice.invoice_number,
                owner_id,
                attempt,
            )
            continue
        db.refresh(invoice)
        return invoice
    raise Conflict("Could not allocate an invoice number, please retry")


def create_invoice_with_items(
    db: Session,
    *,
    owner_id: int,
    customer_id: int,
    invoice_date: date,
    items: Sequence[LineItemIn],
) -> Invoice:
    get_owned_customer(db, customer_id, owner_id)
    validate_line_items(items)

    def build(number: int) -> Invoice:
        return Invoice(
            owner_id=owner_id,
            customer_id=customer_id,
            invoice_number=number,
            date=invoice_date.isoformat(),
            is_paid=False,
            items=build_invoice_items(items),
        )

    invoice = persist_new_invoice(db, owner_id, build)
    logger.info("Created invoice #%s (id=%s) for user %s", invoice.invoice_number, invoice.id, owner_id)
    return invoice


def update_invoice_with_items(
    db: Session,
    *,
    invoice_id: int,
    owner_id: int,
    customer_id: int,
    invoice_date: date,
    items: Sequence[LineItemIn],
    is_paid: Optional[bool] = None,
) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise NotFound("Invoice not found")
    if invoice.owner_id != owner_id:
        raise Forbidden("Unauthorized to update this invoice")
    get_owned_customer(db, customer_id, owner_id)
    validate_line_items(items)

    try:
        invoice.customer_id = customer_id
        invoice.date = invoice_date.isoformat()
        if is_paid is not None:
            invoice.is_paid = is_paid
        invoice.items.clear()
        db.flush()
        invoice.items.extend(build_invoice_items(items))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(invoice)
    return invoice


def get_invoice(db: Session, invoice_id: int) -> Invoice | None:
    return (
        db.query(Invoice)
        .options(selectinload(Invoice.items), selectinload(Invoice.customer))
        .filter(Invoice.id == invoice_id)
        .first()
    )


def get_owned_invoice(db: Session, invoice_id: int, owner_id: int) -> Invoice:
    invoice = get_invoice(db, invoice_id)
    if not invoice or invoice.owner_id != owner_id:
        raise NotFound("Invoice not found")
    return invoice


def list_invoices(db: Session, owner_id: int) -> List[Invoice]:
    return (
        db.query(Invoice)
        .options(selectinload(Invoice.items), selectinload(Invoice.customer))
        .filter(Invoice.owner_id == owner_id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .all()
    )


def delete_invoice(db: Session, invoice_id: int, owner_id: int) -> None:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise NotFound("Invoice not found")
    if invoice.owner_id != owner_id:
        raise Forbidden("Unauthorized to delete this invoice")
    db.delete(invoice)
    db.commit()
    logger.info("Deleted invoice #%s (id=%s) for user %s", invoice.invoice_number, invoice_id, owner_id)


def mark_paid(db: Session, invoice_id: int, is_paid: bool, owner_id: Optional[int] = None) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice or (owner_id is not None and invoice.owner_id != owner_id):
        raise NotFound("Invoice not found")
    invoice.is_paid = is_paid
    db.commit()
    db.refresh(invoice)
    return invoice

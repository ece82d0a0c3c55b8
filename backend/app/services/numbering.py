"""Per-user invoice numbering."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.app.models.invoice import Invoice

FIRST_INVOICE_NUMBER = 1001
# A concurrent insert can take the number we read; the unique constraint on
# (owner_id, invoice_number) rejects the loser, which retries with a fresh read.
MAX_NUMBERING_ATTEMPTS = 5


def next_invoice_number(db: Session, owner_id: int) -> int:
    current_max = db.query(func.max(Invoice.invoice_number)).filter(Invoice.owner_id == owner_id).scalar()
    if current_max is None:
        return FIRST_INVOICE_NUMBER
    return current_max + 1

"""Invoice model for billing."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (UniqueConstraint("owner_id", "invoice_number", name="uq_invoices_owner_number"),)

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    recurring_invoice_id = Column(
        Integer, ForeignKey("recurring_invoices.id", ondelete="SET NULL"), nullable=True, index=True
    )

    invoice_number = Column(Integer, nullable=False)
    # Calendar date kept as ISO text (YYYY-MM-DD), not a timestamp.
    date = Column(String(10), nullable=False)

    # Single-line invoices from before line items existed.
    service = Column(String, nullable=True)
    amount = Column(Numeric(10, 2), nullable=True)

    is_paid = Column(Boolean, nullable=False, default=False)
    stripe_payment_link_id = Column(String(255), nullable=True)
    payment_link_url = Column(String(1024), nullable=True)
    google_sheet_row_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    owner = relationship("User", back_populates="invoices")
    customer = relationship("Customer", back_populates="invoices")
    recurring_invoice = relationship("RecurringInvoice", back_populates="generated_invoices")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )

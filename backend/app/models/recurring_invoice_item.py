"""Line items on a recurring invoice template."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base


class RecurringInvoiceItem(Base):
    __tablename__ = "recurring_invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    recurring_invoice_id = Column(
        Integer, ForeignKey("recurring_invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(String, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    recurring_invoice = relationship("RecurringInvoice", back_populates="items")

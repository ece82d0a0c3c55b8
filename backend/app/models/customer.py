"""Customer model for the invoicing CRM."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    address = Column(String(512), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    owner = relationship("User", back_populates="customers")
    # Deleting a customer removes its invoices and templates along with it.
    invoices = relationship("Invoice", back_populates="customer", cascade="all, delete-orphan")
    recurring_invoices = relationship("RecurringInvoice", back_populates="customer", cascade="all, delete-orphan")

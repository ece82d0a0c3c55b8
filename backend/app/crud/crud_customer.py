"""CRUD operations for customers."""

from typing import List, Optional

from sqlalchemy.orm import Session

from backend.app.models.customer import Customer
from backend.app.schemas.customer import CustomerCreate, CustomerUpdate


class CRUDCustomer:
    def create(self, db: Session, *, obj_in: CustomerCreate, owner_id: int) -> Customer:
        obj = Customer(owner_id=owner_id, **obj_in.model_dump())
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, *, customer_id: int, owner_id: int) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id, Customer.owner_id == owner_id).first()

    def get_multi(self, db: Session, *, owner_id: int) -> List[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.owner_id == owner_id)
            .order_by(Customer.created_at.desc(), Customer.id.desc())
            .all()
        )

    def update(self, db: Session, *, db_obj: Customer, obj_in: CustomerUpdate) -> Customer:
        update_data = obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: Customer) -> Customer:
        # Cascades to the customer's invoices and recurring invoices.
        db.delete(db_obj)
        db.commit()
        return db_obj


customer_crud = CRUDCustomer()

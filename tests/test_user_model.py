from sqlalchemy import UniqueConstraint

from backend.app.models.invoice import Invoice
from backend.app.models.user import User


def test_user_model_has_columns():
    column_names = [column.name for column in User.__table__.columns]
    expected = {"id", "username", "hashed_password", "company_name", "created_at", "updated_at"}
    assert expected.issubset(set(column_names))


def test_user_model_primary_key():
    pk_columns = [column.name for column in User.__table__.primary_key.columns]
    assert "id" in pk_columns


def test_username_is_unique():
    assert User.__table__.columns.get("username").unique


def test_invoice_number_unique_per_owner():
    constraint_columns = [
        tuple(column.name for column in constraint.columns)
        for constraint in Invoice.__table__.constraints
        if isinstance(constraint, UniqueConstraint)
    ]
    assert ("owner_id", "invoice_number") in constraint_columns

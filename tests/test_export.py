from datetime import date, datetime, timezone
from decimal import Decimal

from backend.app.schemas.customer import CustomerRead
from backend.app.schemas.invoice import InvoiceRead
from backend.app.schemas.invoice_item import LineItemRead
from backend.app.services.export import build_export_rows, export_invoices_xlsx
from backend.app.services.pdf import render_invoice_pdf


def make_invoice(number: int = 1001, is_paid: bool = False) -> InvoiceRead:
    now = datetime(2025, 3, 1, tzinfo=timezone.utc)
    return InvoiceRead(
        id=number,
        owner_id=1,
        customer_id=1,
        invoice_number=number,
        date=date(2025, 3, 1),
        is_paid=is_paid,
        amount=Decimal("1800.00"),
        items=[
            LineItemRead(id=1, description="Design", amount=Decimal("1500.00")),
            LineItemRead(id=2, description="SEO", amount=Decimal("300.00")),
        ],
        customer=CustomerRead(
            id=1,
            owner_id=1,
            name="Acme Co",
            email="billing@acme.com",
            phone="555-0100",
            address="1 Main St",
            created_at=now,
        ),
        created_at=now,
        updated_at=now,
    )


def test_export_rows_one_per_item_with_blank_repeated_cells():
    rows = build_export_rows([make_invoice(is_paid=True)])
    assert len(rows) == 2
    first, second = rows
    assert first["Invoice Number"] == 1001
    assert first["Customer Name"] == "Acme Co"
    assert first["Date"] == "03/01/2025"
    assert first["Total"] == "$1,800.00"
    assert first["Status"] == "Paid"
    assert first["Description"] == "Design"
    assert first["Amount"] == "$1,500.00"
    assert second["Invoice Number"] == ""
    assert second["Customer Name"] == ""
    assert second["Status"] == ""
    assert second["Description"] == "SEO"
    assert second["Amount"] == "$300.00"


def test_export_workbook_is_xlsx():
    content = export_invoices_xlsx([make_invoice(1001), make_invoice(1002)])
    assert content[:2] == b"PK"


def test_export_with_no_invoices_still_produces_a_workbook():
    assert export_invoices_xlsx([])[:2] == b"PK"


def test_render_invoice_pdf_handles_markup_in_text():
    invoice = make_invoice()
    invoice.items[0].description = "Design <b>& branding</b>"
    pdf = render_invoice_pdf(invoice, company_name="Smith & Sons")
    assert pdf.startswith(b"%PDF")

"""Spreadsheet export of invoices."""

from io import BytesIO
from typing import Dict, List, Sequence

import pandas as pd

from backend.app.schemas.invoice import InvoiceRead
from backend.app.services.pdf import format_money

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

EXPORT_COLUMNS = [
    ("Invoice Number", 15),
    ("Customer Name", 25),
    ("Customer Email", 30),
    ("Date", 12),
    ("Description", 40),
    ("Amount", 12),
    ("Total", 12),
    ("Status", 10),
]


def build_export_rows(invoices: Sequence[InvoiceRead]) -> List[Dict[str, object]]:
    """One row per line item; invoice-level cells are only filled on the first row."""
    rows = []
    for invoice in invoices:
        customer = invoice.customer
        header = {
            "Invoice Number": invoice.invoice_number,
            "Customer Name": customer.name if customer else "N/A",
            "Customer Email": customer.email if customer else "N/A",
            "Date": invoice.date.strftime("%m/%d/%Y"),
            "Total": format_money(invoice.amount),
            "Status": "Paid" if invoice.is_paid else "Unpaid",
        }
        for index, item in enumerate(invoice.items):
            row = dict(header) if index == 0 else {key: "" for key in header}
            row["Description"] = item.description
            row["Amount"] = format_money(item.amount)
            rows.append(row)
    return rows


def export_invoices_xlsx(invoices: Sequence[InvoiceRead]) -> bytes:
    columns = [name for name, _ in EXPORT_COLUMNS]
    df = pd.DataFrame(build_export_rows(invoices), columns=columns)
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="xlsxwriter") as writer:
        df.to_excel(writer, sheet_name="Invoices", index=False)
        worksheet = writer.sheets["Invoices"]
        for position, (_, width) in enumerate(EXPORT_COLUMNS):
            worksheet.set_column(position, position, width)
    return buffer.getvalue()

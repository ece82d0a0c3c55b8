"""Render an invoice as a PDF document."""

from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from backend.app.schemas.invoice import InvoiceRead

DEFAULT_SENDER_NAME = "Invoice Manager"
ACCENT = colors.HexColor("#3b82f6")
MUTED = colors.HexColor("#6b7280")
RULE = colors.HexColor("#e5e7eb")


def format_money(amount) -> str:
    return f"${amount:,.2f}"


def render_invoice_pdf(invoice: InvoiceRead, company_name: str | None = None) -> bytes:
    """Build the PDF in memory and return its bytes."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=LETTER,
        rightMargin=0.75 * inch,
        leftMargin=0.75 * inch,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        title=f"Invoice #{invoice.invoice_number}",
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("InvoiceTitle", parent=styles["Title"], textColor=ACCENT)
    muted_style = ParagraphStyle("Muted", parent=styles["Normal"], textColor=MUTED, fontSize=9)
    right_style = ParagraphStyle("Right", parent=styles["Normal"], alignment=2)

    sender_name = escape(company_name or DEFAULT_SENDER_NAME)
    elements = [
        Paragraph("INVOICE", title_style),
        Paragraph(f"Invoice #{invoice.invoice_number}", muted_style),
        Spacer(1, 0.3 * inch),
        Paragraph(f"<b>{sender_name}</b>", right_style),
        Spacer(1, 0.3 * inch),
        Paragraph("BILL TO", muted_style),
    ]

    customer = invoice.customer
    if customer is not None:
        elements.append(Paragraph(f"<b>{escape(customer.name)}</b>", styles["Normal"]))
        for line in (customer.email, customer.phone, customer.address):
            elements.append(Paragraph(escape(line), styles["Normal"]))
    elements.append(Spacer(1, 0.3 * inch))
    elements.append(Paragraph("INVOICE DATE", muted_style))
    elements.append(Paragraph(invoice.date.strftime("%B %d, %Y"), styles["Normal"]))
    elements.append(Spacer(1, 0.3 * inch))

    rows = [["Description", "Amount"]]
    for item in invoice.items:
        rows.append([Paragraph(escape(item.description), styles["Normal"]), format_money(item.amount)])
    rows.append(["TOTAL", format_money(invoice.amount)])

    table = Table(rows, colWidths=[5.0 * inch, 2.0 * inch])
    table.setStyle(
        TableStyle(
            [
                ("TEXTCOLOR", (0, 0), (-1, 0), MUTED),
                ("LINEBELOW", (0, 0), (-1, 0), 1, RULE),
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LINEABOVE", (0, -1), (-1, -1), 1, RULE),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("TEXTCOLOR", (1, -1), (1, -1), ACCENT),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    elements.append(table)
    elements.append(Spacer(1, 0.5 * inch))
    elements.append(Paragraph("Thank you for your business!", muted_style))
    elements.append(Paragraph("If you have any questions about this invoice, please contact us.", muted_style))

    doc.build(elements)
    return buffer.getvalue()

"""Invoice email delivery through the Resend HTTP API."""

import base64
import logging
from html import escape

import httpx

from backend.app.core.errors import UpstreamError, ValidationError
from backend.app.schemas.invoice import InvoiceRead
from backend.app.services.pdf import DEFAULT_SENDER_NAME, format_money, render_invoice_pdf

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


def build_invoice_email_html(invoice: InvoiceRead, sender_name: str) -> str:
    customer_name = escape(invoice.customer.name) if invoice.customer else ""
    rows = "".join(
        f"<tr><td>{escape(item.description)}</td><td style=\"text-align:right\">{format_money(item.amount)}</td></tr>"
        for item in invoice.items
    )
    return f"""<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; color: #333;">
    <h1 style="background: #3b82f6; color: white; padding: 20px; text-align: center;">Invoice #{invoice.invoice_number}</h1>
    <p>Dear {customer_name},</p>
    <p>Thank you for your business. Please find your invoice attached as a PDF.</p>
    <p><strong>Invoice Date:</strong> {invoice.date.isoformat()}</p>
    <table style="width: 100%; border-collapse: collapse;">{rows}</table>
    <p style="font-size: 24px; font-weight: bold; color: #3b82f6;">Total: {format_money(invoice.amount)}</p>
    {_payment_link_html(invoice)}
    <p>If you have any questions about this invoice, please don't hesitate to contact us.</p>
    <p style="color: #6b7280;">{escape(sender_name)}</p>
  </body>
</html>
"""


def _payment_link_html(invoice: InvoiceRead) -> str:
    if not invoice.payment_link_url:
        return ""
    return f'<p><a href="{escape(invoice.payment_link_url)}">Pay this invoice online</a></p>'


class Mailer:
    def __init__(self, api_key: str | None, from_email: str | None, timeout: float = 10.0):
        self.api_key = api_key
        self.from_email = from_email
        self._client = httpx.Client(timeout=httpx.Timeout(timeout))

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    def send_invoice(self, invoice: InvoiceRead, company_name: str | None = None) -> str | None:
        """Send the invoice with its PDF attached; returns the provider message id."""
        if not self.configured:
            raise UpstreamError("Email delivery is not configured")
        if invoice.customer is None or not invoice.customer.email:
            raise ValidationError("Invoice customer has no email address")

        sender_name = company_name or DEFAULT_SENDER_NAME
        pdf_bytes = render_invoice_pdf(invoice, company_name)
        payload = {
            "from": self.from_email,
            "to": [invoice.customer.email],
            "subject": f"Invoice #{invoice.invoice_number} from {sender_name}",
            "html": build_invoice_email_html(invoice, sender_name),
            "attachments": [
                {
                    "filename": f"invoice-{invoice.invoice_number}.pdf",
                    "content": base64.b64encode(pdf_bytes).decode("ascii"),
                }
            ],
        }
        try:
            response = self._client.post(
                RESEND_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Email delivery failed: {exc}") from exc

        message_id = response.json().get("id")
        logger.info("Sent invoice #%s to %s (message %s)", invoice.invoice_number, invoice.customer.email, message_id)
        return message_id

    def close(self) -> None:
        self._client.close()

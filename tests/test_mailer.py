import json
from datetime import date, datetime, timezone
from decimal import Decimal

import httpx
import pytest

from backend.app.core.errors import UpstreamError, ValidationError
from backend.app.schemas.customer import CustomerRead
from backend.app.schemas.invoice import InvoiceRead
from backend.app.schemas.invoice_item import LineItemRead
from backend.app.services.mailer import RESEND_API_URL, Mailer, build_invoice_email_html


def make_invoice(email: str = "billing@acme.com", payment_link_url: str | None = None) -> InvoiceRead:
    now = datetime(2025, 3, 1, tzinfo=timezone.utc)
    return InvoiceRead(
        id=7,
        owner_id=1,
        customer_id=1,
        invoice_number=1007,
        date=date(2025, 3, 1),
        is_paid=False,
        amount=Decimal("250.00"),
        items=[LineItemRead(id=1, description="Consulting", amount=Decimal("250.00"))],
        customer=CustomerRead(
            id=1, owner_id=1, name="Acme Co", email=email, phone="555", address="Main St", created_at=now
        ),
        payment_link_url=payment_link_url,
        created_at=now,
        updated_at=now,
    )


def mailer_with_transport(handler) -> Mailer:
    mailer = Mailer("re_test", "billing@example.com")
    mailer._client = httpx.Client(transport=httpx.MockTransport(handler))
    return mailer


def test_send_invoice_posts_pdf_attachment():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email_123"})

    mailer = mailer_with_transport(handler)
    message_id = mailer.send_invoice(make_invoice(), company_name="Acme Studio")

    assert message_id == "email_123"
    assert captured["url"] == RESEND_API_URL
    assert captured["auth"] == "Bearer re_test"
    body = captured["body"]
    assert body["to"] == ["billing@acme.com"]
    assert body["subject"] == "Invoice #1007 from Acme Studio"
    assert body["attachments"][0]["filename"] == "invoice-1007.pdf"
    assert body["attachments"][0]["content"]


def test_provider_error_becomes_upstream_error():
    mailer = mailer_with_transport(lambda request: httpx.Response(500, json={"message": "down"}))
    with pytest.raises(UpstreamError):
        mailer.send_invoice(make_invoice())


def test_unconfigured_mailer_raises_upstream_error():
    mailer = Mailer(None, None)
    assert not mailer.configured
    with pytest.raises(UpstreamError):
        mailer.send_invoice(make_invoice())


def test_customer_without_email_is_rejected():
    mailer = mailer_with_transport(lambda request: httpx.Response(200, json={"id": "x"}))
    invoice = make_invoice()
    invoice.customer = None
    with pytest.raises(ValidationError):
        mailer.send_invoice(invoice)


def test_email_html_includes_payment_link_and_escapes_text():
    invoice = make_invoice(payment_link_url="https://pay.example.test/7")
    invoice.items[0].description = "<script>x</script>"
    html = build_invoice_email_html(invoice, "Smith & Sons")
    assert "https://pay.example.test/7" in html
    assert "<script>" not in html
    assert "Smith &amp; Sons" in html
    assert "$250.00" in html

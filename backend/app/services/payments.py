"""Payment links and payment-processor webhook reconciliation.

The webhook is the only path that changes payment state without a user action,
so nothing is read from an event until its signature has been verified against
the exact bytes that were delivered.
"""

import json
import logging
from typing import Dict, Optional, Tuple

import stripe
from sqlalchemy.orm import Session

from backend.app.core.errors import NotFound, UpstreamError, ValidationError, WebhookSignatureError
from backend.app.core.time import utc_now
from backend.app.models.invoice import Invoice
from backend.app.schemas.invoice import InvoiceRead
from backend.app.schemas.payment import WebhookResult

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
CORRELATION_KEY = "invoiceId"
SIGNATURE_TOLERANCE_SECONDS = 300


class PaymentGateway:
    """Thin wrapper over a StripeClient built once from settings."""

    def __init__(self, secret_key: str | None, public_base_url: str, timeout: float = 10.0):
        self.public_base_url = public_base_url.rstrip("/")
        self._client = None
        if secret_key:
            self._client = stripe.StripeClient(secret_key, http_client=stripe.RequestsClient(timeout=timeout))

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _require_client(self):
        if self._client is None:
            raise UpstreamError("Payment processor is not configured")
        return self._client

    def create_payment_link(self, invoice: InvoiceRead) -> Tuple[str, str]:
        """Create a hosted checkout link for the invoice total; returns (link id, url)."""
        client = self._require_client()
        customer_name = invoice.customer.name if invoice.customer else "Customer"
        amount_cents = int((invoice.amount * 100).to_integral_value())
        metadata = {
            CORRELATION_KEY: str(invoice.id),
            "invoiceNumber": str(invoice.invoice_number),
            "dbCustomerId": str(invoice.customer_id),
        }
        try:
            product = client.products.create(
                params={
                    "name": f"Invoice #{invoice.invoice_number} - {customer_name}",
                    "description": ", ".join(f"{item.description}: ${item.amount}" for item in invoice.items),
                }
            )
            price = client.prices.create(
                params={"product": product.id, "unit_amount": amount_cents, "currency": "usd"}
            )
            link = client.payment_links.create(
                params={
                    "line_items": [{"price": price.id, "quantity": 1}],
                    "after_completion": {
                        "type": "redirect",
                        "redirect": {"url": f"{self.public_base_url}/payment-success?invoice_id={invoice.id}"},
                    },
                    "metadata": metadata,
                    "payment_intent_data": {"metadata": metadata},
                }
            )
        except stripe.StripeError as exc:
            raise UpstreamError(f"Payment link creation failed: {exc}") from exc
        return link.id, link.url

    def retrieve_payment_intent_metadata(self, payment_intent_id: str) -> Dict[str, str]:
        client = self._require_client()
        try:
            intent = client.payment_intents.retrieve(payment_intent_id)
        except stripe.StripeError as exc:
            raise UpstreamError(f"Payment intent lookup failed: {exc}") from exc
        metadata = intent.metadata or {}
        return {key: metadata[key] for key in metadata.keys()}


def attach_payment_link(db: Session, invoice: Invoice, gateway: PaymentGateway, invoice_read: InvoiceRead) -> Invoice:
    link_id, link_url = gateway.create_payment_link(invoice_read)
    invoice.stripe_payment_link_id = link_id
    invoice.payment_link_url = link_url
    db.commit()
    db.refresh(invoice)
    return invoice


def verify_webhook_payload(payload: bytes, signature: Optional[str], secret: Optional[str]) -> dict:
    """Check the signature over the raw body and return the decoded event."""
    if not secret:
        logger.error("Rejected payment webhook: no webhook secret configured")
        raise WebhookSignatureError("Webhook secret is not configured")
    if not signature:
        raise WebhookSignatureError("Missing webhook signature")
    try:
        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(body, signature, secret, SIGNATURE_TOLERANCE_SECONDS)
    except (UnicodeDecodeError, stripe.SignatureVerificationError) as exc:
        logger.warning("Rejected payment webhook with invalid signature: %s", exc)
        raise WebhookSignatureError("Invalid webhook signature") from exc
    try:
        event = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ValidationError("Malformed webhook payload") from exc
    if not isinstance(event, dict):
        raise ValidationError("Malformed webhook payload")
    return event


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def extract_invoice_reference(event: dict, gateway: PaymentGateway) -> Optional[str]:
    session = _as_dict(_as_dict(event.get("data")).get("object"))
    reference = _as_dict(session.get("metadata")).get(CORRELATION_KEY)
    if reference:
        return reference
    payment_intent = session.get("payment_intent")
    if isinstance(payment_intent, dict):
        payment_intent = payment_intent.get("id")
    if not payment_intent:
        return None
    if not gateway.configured:
        logger.warning("Cannot look up payment intent %s: payment processor is not configured", payment_intent)
        return None
    return gateway.retrieve_payment_intent_metadata(payment_intent).get(CORRELATION_KEY)


def apply_payment(db: Session, invoice_id: int) -> bool:
    """Mark the invoice paid; returns False when it already was."""
    exists = db.query(Invoice.id).filter(Invoice.id == invoice_id).first()
    if not exists:
        raise NotFound("Invoice not found")
    # Conditional update so concurrent redeliveries produce a single transition.
    updated = (
        db.query(Invoice)
        .filter(Invoice.id == invoice_id, Invoice.is_paid.is_(False))
        .update({Invoice.is_paid: True, Invoice.updated_at: utc_now()}, synchronize_session=False)
    )
    db.commit()
    return updated == 1


def handle_payment_webhook(
    db: Session,
    *,
    payload: bytes,
    signature: Optional[str],
    webhook_secret: Optional[str],
    gateway: PaymentGateway,
) -> WebhookResult:
    event = verify_webhook_payload(payload, signature, webhook_secret)
    event_type = event.get("type")
    if not isinstance(event_type, str):
        event_type = ""
    if event_type != CHECKOUT_COMPLETED:
        logger.info("Ignoring payment webhook event %s", event_type)
        return WebhookResult(event_type=event_type)

    reference = extract_invoice_reference(event, gateway)
    if not reference:
        raise ValidationError("No invoice id in payment event")
    try:
        invoice_id = int(reference)
    except (TypeError, ValueError):
        raise NotFound("Invoice not found")

    transitioned = apply_payment(db, invoice_id)
    if transitioned:
        logger.info("Invoice %s marked paid from event %s", invoice_id, event.get("id"))
    else:
        logger.info("Invoice %s already paid; event %s is a redelivery", invoice_id, event.get("id"))
    return WebhookResult(event_type=event_type, invoice_id=invoice_id, already_paid=not transitioned)

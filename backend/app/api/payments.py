"""Payment processor webhook."""

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from backend.app.core.settings import Settings, get_settings
from backend.app.db.session import get_db
from backend.app.dependencies.integrations import get_payment_gateway
from backend.app.schemas.payment import WebhookResult
from backend.app.services.payments import PaymentGateway, handle_payment_webhook

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/webhook", response_model=WebhookResult)
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    # Signature is computed over the raw body.
    payload = await request.body()
    return await run_in_threadpool(
        handle_payment_webhook,
        db,
        payload=payload,
        signature=stripe_signature,
        webhook_secret=settings.stripe_webhook_secret,
        gateway=gateway,
    )

"""Payment webhook schemas."""

from typing import Optional

from pydantic import BaseModel


class WebhookResult(BaseModel):
    received: bool = True
    event_type: str
    invoice_id: Optional[int] = None
    already_paid: Optional[bool] = None

"""Line item schemas shared by invoices and recurring templates."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LineItemIn(BaseModel):
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)


class LineItemRead(BaseModel):
    # None for the synthesized item of a legacy single-line invoice.
    id: Optional[int] = None
    description: str
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)

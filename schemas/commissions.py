# schemas/commissions.py

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional
from datetime import datetime

from models.channel_partner_commissions import CommissionStatus


class CommissionOut(BaseModel):
    id: str
    channel_partner_id: str
    referral_id: str
    tenant_id: str
    month_reference: str
    tenant_plan: Optional[str] = None
    plan_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    status: CommissionStatus
    paid_at: datetime | None = None
    paid_amount: Decimal | None = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class CommissionPay(BaseModel):
    paid_amount: Decimal = Field(gt=0)
    payment_method: str = Field(min_length=1, max_length=50)  # pix, transfer, boleto
    payment_reference: Optional[str] = Field(default=None, max_length=255)


class CommissionStatusUpdate(BaseModel):
    status: CommissionStatus
    notes: Optional[str] = None


class BatchRunOut(BaseModel):
    month_reference: str
    created: int
    total_amount: Decimal
    skipped: int
    failed: int

# schemas/referrals.py

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional
from datetime import datetime

from models.channel_partner_referrals import CommissionType, ReferralStatus


class ReferralCreate(BaseModel):
    channel_partner_id: str
    tenant_id: str
    referral_code: Optional[str] = None
    utm_source: Optional[str] = Field(default=None, max_length=100)
    utm_medium: Optional[str] = Field(default=None, max_length=100)
    utm_campaign: Optional[str] = Field(default=None, max_length=100)


class ReferralCapture(BaseModel):
    """Parametri grezzi della pagina di registrazione (?ref=...&utm_...)."""
    tenant_id: str
    params: dict[str, str] = Field(default_factory=dict)


class ReferralOut(BaseModel):
    id: str
    channel_partner_id: str
    tenant_id: str
    referral_code: str
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    status: ReferralStatus
    commission_rate: Decimal
    commission_type: CommissionType
    first_payment_at: datetime | None = None
    last_payment_at: datetime | None = None

    # Derivati dal ledger
    total_months_paid: int = 0
    total_paid: Decimal = Decimal("0")
    total_commission_earned: Decimal = Decimal("0")
    total_commission_paid: Decimal = Decimal("0")

    created_at: datetime | None = None

    class Config:
        from_attributes = True


class ReferralLinkOut(BaseModel):
    referral_code: str
    url: str

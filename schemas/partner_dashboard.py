from pydantic import BaseModel
from decimal import Decimal
from datetime import datetime
from typing import Optional

from models.channel_partners import ChannelPartnerStatus, ChannelPartnerType


class PartnerDashboard(BaseModel):
    channel_partner_id: str
    contact_name: str
    company_name: Optional[str] = None
    type: ChannelPartnerType
    status: ChannelPartnerStatus
    default_commission_rate: Decimal

    total_referrals: int
    active_referrals: int
    pending_referrals: int
    churned_referrals: int

    total_commission_earned: Decimal
    total_commission_paid: Decimal
    commission_pending: Decimal
    monthly_recurring_commission: Decimal

    first_referral_at: datetime | None = None
    last_referral_at: datetime | None = None


class GlobalSummary(BaseModel):
    total_partners: int
    active_partners: int
    total_referrals: int
    active_referrals: int
    total_commission_earned: Decimal
    total_commission_paid: Decimal
    total_commission_pending: Decimal

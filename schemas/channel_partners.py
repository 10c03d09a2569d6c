# schemas/channel_partners.py

from pydantic import BaseModel, EmailStr, Field
from decimal import Decimal
from typing import Optional
from datetime import datetime

from models.channel_partners import ChannelPartnerStatus, ChannelPartnerType


class ChannelPartnerCreate(BaseModel):
    type: ChannelPartnerType
    contact_name: str = Field(min_length=1, max_length=255)
    contact_email: EmailStr
    company_name: Optional[str] = None
    contact_phone: Optional[str] = None
    document_number: Optional[str] = None

    # Se assente viene generato (es. CONTADOR-JOAO-2026)
    referral_code: Optional[str] = Field(default=None, max_length=50)
    # Se assente: default da settings (20%)
    commission_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)

    bank_name: Optional[str] = None
    bank_account_type: Optional[str] = None
    bank_account_number: Optional[str] = None
    bank_agency: Optional[str] = None
    pix_key: Optional[str] = None
    pix_key_type: Optional[str] = None
    notes: Optional[str] = None


class ChannelPartnerUpdate(BaseModel):
    company_name: Optional[str] = None
    contact_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_phone: Optional[str] = None
    document_number: Optional[str] = None
    referral_code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    commission_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    bank_name: Optional[str] = None
    bank_account_type: Optional[str] = None
    bank_account_number: Optional[str] = None
    bank_agency: Optional[str] = None
    pix_key: Optional[str] = None
    pix_key_type: Optional[str] = None
    notes: Optional[str] = None


class ChannelPartnerOut(BaseModel):
    id: str
    type: ChannelPartnerType
    company_name: Optional[str] = None
    contact_name: str
    contact_email: EmailStr
    contact_phone: Optional[str] = None
    referral_code: str
    commission_rate: Decimal
    status: ChannelPartnerStatus
    pix_key: Optional[str] = None
    pix_key_type: Optional[str] = None
    notes: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    deleted_at: datetime | None = None

    class Config:
        from_attributes = True

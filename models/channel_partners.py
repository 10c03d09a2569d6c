from sqlalchemy import Column, String, Numeric, DateTime, Enum, Text, text
from sqlalchemy.sql import func
import enum
import uuid

from models import Base


def new_uuid() -> str:
    return str(uuid.uuid4())


def _values(enum_cls):
    return [m.value for m in enum_cls]


class ChannelPartnerType(str, enum.Enum):
    ACCOUNTANT = "accountant"    # Contador
    CONSULTANT = "consultant"    # Consultoria
    AGENCY = "agency"            # Agência / software house
    INFLUENCER = "influencer"
    ASSOCIATION = "association"  # CDL, ACE, Sebrae
    RESELLER = "reseller"
    OTHER = "other"


class ChannelPartnerStatus(str, enum.Enum):
    PENDING = "pending"      # In attesa di approvazione
    ACTIVE = "active"        # Può indicare
    INACTIVE = "inactive"
    SUSPENDED = "suspended"  # Sospeso per violazione
    CHURNED = "churned"      # Uscito dal programma


class ChannelPartner(Base):
    __tablename__ = "channel_partners"

    id = Column(String(36), primary_key=True, default=new_uuid)

    type = Column(
        Enum(ChannelPartnerType, name="channel_partner_type", values_callable=_values),
        nullable=False,
        index=True,
    )

    company_name = Column(String(255), nullable=True)
    contact_name = Column(String(255), nullable=False)
    contact_email = Column(String(255), nullable=False, unique=True)
    contact_phone = Column(String(50), nullable=True)
    document_number = Column(String(20), nullable=True)  # CPF / CNPJ

    # Codice univoco (es. CONTADOR-JOAO-2026), immutabile dopo il primo referral
    referral_code = Column(String(50), nullable=False, unique=True, index=True)

    # Percentuale (20.00 = 20%)
    commission_rate = Column(Numeric(5, 2), nullable=False, server_default=text("20.00"))

    status = Column(
        Enum(ChannelPartnerStatus, name="channel_partner_status", values_callable=_values),
        nullable=False,
        default=ChannelPartnerStatus.PENDING,
        index=True,
    )

    # Dati per il pagamento
    bank_name = Column(String(100), nullable=True)
    bank_account_type = Column(String(20), nullable=True)  # checking, savings
    bank_account_number = Column(String(50), nullable=True)
    bank_agency = Column(String(20), nullable=True)
    pix_key = Column(String(255), nullable=True)
    pix_key_type = Column(String(20), nullable=True)  # cpf, cnpj, email, phone, random

    notes = Column(Text, nullable=True)

    approved_by = Column(String(36), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Soft delete: mai cancellare un partner con referral
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

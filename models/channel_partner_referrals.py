from sqlalchemy import Column, String, Numeric, DateTime, Enum, Text, ForeignKey
from sqlalchemy.sql import func
import enum

from models import Base
from models.channel_partners import new_uuid, _values

class ReferralStatus(str, enum.Enum):
    PENDING = "pending"      # Tenant creato, non ha ancora pagato
    ACTIVE = "active"        # Tenant pagante
    CHURNED = "churned"      # Tenant ha cancellato
    SUSPENDED = "suspended"  # Indicazione sospesa (frode, ecc.)

class CommissionType(str, enum.Enum):
    RECURRING = "recurring"
    ONE_TIME = "one_time"
    TIERED = "tiered"

class Referral(Base):
    """
    Attribuzione: un channel partner → un tenant.

    I totali (total_months_paid, total_paid, total_commission_earned,
    total_commission_paid, last_payment_at) NON sono colonne: sono
    calcolati dalle righe di commissione (vedi channel_partner_commissions).
    """
    __tablename__ = "channel_partner_referrals"

    id = Column(String(36), primary_key=True, default=new_uuid)

    channel_partner_id = Column(
        String(36), ForeignKey("channel_partners.id"), nullable=False, index=True
    )

    # Un solo referral per tenant: vince la prima attribuzione
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, unique=True)

    # Tracking
    referral_code = Column(String(50), nullable=False, index=True)
    utm_source = Column(String(100), nullable=True)
    utm_medium = Column(String(100), nullable=True)
    utm_campaign = Column(String(100), nullable=True)

    status = Column(
        Enum(ReferralStatus, name="channel_referral_status", values_callable=_values),
        nullable=False,
        default=ReferralStatus.PENDING,
        index=True,
    )

    # Snapshot della percentuale del partner alla creazione
    commission_rate = Column(Numeric(5, 2), nullable=False)
    commission_type = Column(
        Enum(CommissionType, name="channel_commission_type", values_callable=_values),
        nullable=False,
        default=CommissionType.RECURRING,
    )

    first_payment_at = Column(DateTime(timezone=True), nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

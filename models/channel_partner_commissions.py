from sqlalchemy import (
    Column,
    String,
    Numeric,
    DateTime,
    Enum,
    Text,
    ForeignKey,
    UniqueConstraint,
    select,
    func,
)
from sqlalchemy.orm import column_property
import enum

from models import Base
from models.channel_partners import new_uuid, _values
from models.channel_partner_referrals import Referral


class CommissionStatus(str, enum.Enum):
    PENDING = "pending"      # Calcolata, in attesa di pagamento
    APPROVED = "approved"    # Approvata per il pagamento
    PAID = "paid"
    CANCELLED = "cancelled"  # es. tenant churned prima del pagamento
    DISPUTED = "disputed"


class Commission(Base):
    """
    Riga del ledger: commissione di un referral per un mese (YYYY-MM).
    UNIQUE(referral_id, month_reference) è la chiave di idempotenza del batch.
    """
    __tablename__ = "channel_partner_commissions"
    __table_args__ = (
        UniqueConstraint("referral_id", "month_reference", name="uq_channel_commission_referral_month"),
    )

    id = Column(String(36), primary_key=True, default=new_uuid)

    channel_partner_id = Column(
        String(36), ForeignKey("channel_partners.id"), nullable=False, index=True
    )
    referral_id = Column(
        String(36), ForeignKey("channel_partner_referrals.id"), nullable=False, index=True
    )
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False)

    month_reference = Column(String(7), nullable=False, index=True)

    # Piano del tenant in quel mese
    tenant_plan = Column(String(50), nullable=True)
    plan_amount = Column(Numeric(12, 2), nullable=False)

    commission_rate = Column(Numeric(5, 2), nullable=False)
    commission_amount = Column(Numeric(12, 2), nullable=False)

    status = Column(
        Enum(CommissionStatus, name="channel_commission_status", values_callable=_values),
        nullable=False,
        default=CommissionStatus.PENDING,
        index=True,
    )

    # Pagamento al partner
    paid_at = Column(DateTime(timezone=True), nullable=True)
    paid_amount = Column(Numeric(12, 2), nullable=True)
    payment_method = Column(String(50), nullable=True)  # pix, transfer, boleto
    payment_reference = Column(String(255), nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# ==============================
# TOTALI DEL REFERRAL (derivati dal ledger)
# ==============================

def _referral_subquery(expr, *where):
    return column_property(
        select(expr)
        .where(Commission.referral_id == Referral.id, *where)
        .correlate_except(Commission)
        .scalar_subquery()
    )


Referral.total_months_paid = _referral_subquery(func.count(Commission.id))
Referral.total_paid = _referral_subquery(func.coalesce(func.sum(Commission.plan_amount), 0))
Referral.total_commission_earned = _referral_subquery(
    func.coalesce(func.sum(Commission.commission_amount), 0)
)
Referral.total_commission_paid = _referral_subquery(
    func.coalesce(func.sum(Commission.paid_amount), 0),
    Commission.status == CommissionStatus.PAID,
)
Referral.last_payment_at = _referral_subquery(func.max(Commission.created_at))

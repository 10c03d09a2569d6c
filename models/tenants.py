from sqlalchemy import Column, String, Numeric, DateTime
from sqlalchemy.sql import func

from models import Base
from models.channel_partners import new_uuid


class Tenant(Base):
    """
    Proiezione minima dell'account tenant.
    Il record è gestito dal billing: qui viene solo letto per sapere
    il piano corrente al momento del calcolo commissioni.
    """
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=new_uuid)

    name = Column(String(255), nullable=False)

    # 'free', 'starter', 'growth', 'scale', 'enterprise'
    current_plan = Column(String(50), nullable=False, default="free")

    # Prezzo custom (enterprise): se presente vince sul listino
    plan_amount_override = Column(Numeric(12, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

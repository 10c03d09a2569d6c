from sqlalchemy.orm import declarative_base

Base = declarative_base()

# --------------------------------------------------
# Tenant (record esterno, solo lettura)
# --------------------------------------------------
from .tenants import Tenant  # noqa: F401

# --------------------------------------------------
# Channel partners, referral & commissioni
# --------------------------------------------------
from .channel_partners import ChannelPartner  # noqa: F401
from .channel_partner_referrals import Referral  # noqa: F401
from .channel_partner_commissions import Commission  # noqa: F401

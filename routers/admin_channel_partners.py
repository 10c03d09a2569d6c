# routers/admin_channel_partners.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app import partner_registry
from app.db import get_db
from app.deps_admin import require_admin_key
from app.referral_service import generate_referral_link
from models.channel_partners import ChannelPartnerStatus
from schemas.channel_partners import ChannelPartnerCreate, ChannelPartnerOut, ChannelPartnerUpdate
from schemas.referrals import ReferralLinkOut

router = APIRouter(
    prefix="/admin/channel-partners",
    tags=["Admin Channel Partners"],
    dependencies=[Depends(require_admin_key)],
)


# ---------------------------------------------------------
# 1️⃣ LISTA PARTNER (filtro opzionale ?status=active)
# ---------------------------------------------------------
@router.get("/", response_model=List[ChannelPartnerOut])
def admin_list_channel_partners(
    status_filter: Optional[ChannelPartnerStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
):
    return partner_registry.list_partners(db, status=status_filter)


# ---------------------------------------------------------
# 2️⃣ CREA PARTNER (nasce pending)
# ---------------------------------------------------------
@router.post("/", response_model=ChannelPartnerOut, status_code=status.HTTP_201_CREATED)
def admin_create_channel_partner(payload: ChannelPartnerCreate, db: Session = Depends(get_db)):
    return partner_registry.issue_partner(db, payload)


@router.get("/{partner_id}", response_model=ChannelPartnerOut)
def admin_get_channel_partner(partner_id: str, db: Session = Depends(get_db)):
    return partner_registry.get_partner(db, partner_id)


@router.patch("/{partner_id}", response_model=ChannelPartnerOut)
def admin_update_channel_partner(
    partner_id: str,
    payload: ChannelPartnerUpdate,
    db: Session = Depends(get_db),
):
    return partner_registry.update_partner(db, partner_id, payload)


# ---------------------------------------------------------
# 3️⃣ TRANSIZIONI DI STATO
# ---------------------------------------------------------
@router.post("/{partner_id}/approve", response_model=ChannelPartnerOut)
def admin_approve_channel_partner(
    partner_id: str,
    approved_by: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    return partner_registry.approve(db, partner_id, approved_by=approved_by)


@router.post("/{partner_id}/suspend", response_model=ChannelPartnerOut)
def admin_suspend_channel_partner(partner_id: str, db: Session = Depends(get_db)):
    return partner_registry.suspend(db, partner_id)


@router.post("/{partner_id}/deactivate", response_model=ChannelPartnerOut)
def admin_deactivate_channel_partner(partner_id: str, db: Session = Depends(get_db)):
    return partner_registry.deactivate(db, partner_id)


@router.post("/{partner_id}/reactivate", response_model=ChannelPartnerOut)
def admin_reactivate_channel_partner(partner_id: str, db: Session = Depends(get_db)):
    return partner_registry.reactivate(db, partner_id)


@router.post("/{partner_id}/churn", response_model=ChannelPartnerOut)
def admin_churn_channel_partner(partner_id: str, db: Session = Depends(get_db)):
    return partner_registry.churn(db, partner_id)


# ---------------------------------------------------------
# 4️⃣ SOFT DELETE (mai hard delete: storico referral/commissioni)
# ---------------------------------------------------------
@router.delete("/{partner_id}", response_model=ChannelPartnerOut)
def admin_delete_channel_partner(partner_id: str, db: Session = Depends(get_db)):
    return partner_registry.soft_delete_partner(db, partner_id)


# ---------------------------------------------------------
# 5️⃣ LINK DI INDICAZIONE
# ---------------------------------------------------------
@router.get("/{partner_id}/referral-link", response_model=ReferralLinkOut)
def admin_channel_partner_referral_link(
    partner_id: str,
    utm_source: Optional[str] = Query(default=None),
    utm_medium: Optional[str] = Query(default=None),
    utm_campaign: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    partner = partner_registry.get_partner(db, partner_id)
    url = generate_referral_link(
        partner.referral_code,
        utm={"utm_source": utm_source, "utm_medium": utm_medium, "utm_campaign": utm_campaign},
    )
    return {"referral_code": partner.referral_code, "url": url}

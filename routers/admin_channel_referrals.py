# routers/admin_channel_referrals.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app import referral_service
from app.db import get_db
from app.deps_admin import require_admin_key
from app.errors import NotFound
from schemas.referrals import ReferralCreate, ReferralOut

router = APIRouter(
    prefix="/admin/channel-referrals",
    tags=["Admin Channel Referrals"],
    dependencies=[Depends(require_admin_key)],
)


@router.post("/", response_model=ReferralOut, status_code=status.HTTP_201_CREATED)
def admin_create_referral(payload: ReferralCreate, db: Session = Depends(get_db)):
    return referral_service.create_referral(db, **payload.model_dump())


@router.get("/by-partner/{partner_id}", response_model=List[ReferralOut])
def admin_referrals_by_partner(partner_id: str, db: Session = Depends(get_db)):
    return referral_service.get_by_partner(db, partner_id)


@router.get("/by-tenant/{tenant_id}", response_model=ReferralOut)
def admin_referral_by_tenant(tenant_id: str, db: Session = Depends(get_db)):
    referral = referral_service.get_by_tenant(db, tenant_id)
    if not referral:
        raise NotFound("Nessun referral per questo tenant.")
    return referral


@router.get("/{referral_id}", response_model=ReferralOut)
def admin_get_referral(referral_id: str, db: Session = Depends(get_db)):
    return referral_service.get_referral(db, referral_id)


# ---------------------------------------------------------
# Primo pagamento del tenant (chiamato dal billing)
# ---------------------------------------------------------
@router.post("/{referral_id}/activate", response_model=ReferralOut)
def admin_activate_referral(referral_id: str, db: Session = Depends(get_db)):
    return referral_service.activate(db, referral_id)


@router.post("/{referral_id}/churn", response_model=ReferralOut)
def admin_churn_referral(referral_id: str, db: Session = Depends(get_db)):
    return referral_service.churn(db, referral_id)


@router.post("/{referral_id}/suspend", response_model=ReferralOut)
def admin_suspend_referral(referral_id: str, db: Session = Depends(get_db)):
    return referral_service.suspend(db, referral_id)

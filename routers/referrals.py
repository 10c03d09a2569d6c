# routers/referrals.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.referral_service import capture_referral_on_registration
from schemas.referrals import ReferralCapture

router = APIRouter(prefix="/referrals", tags=["Referrals"])


@router.post("/capture")
def capture_referral(payload: ReferralCapture, db: Session = Depends(get_db)):
    """
    Chiamato dal flusso di registrazione dopo la creazione del tenant.
    Un codice assente o non valido non blocca la signup.
    """
    referral = capture_referral_on_registration(db, payload.tenant_id, payload.params)
    if referral is None:
        return {"captured": False, "referral_id": None}

    return {
        "captured": True,
        "referral_id": referral.id,
        "channel_partner_id": referral.channel_partner_id,
    }

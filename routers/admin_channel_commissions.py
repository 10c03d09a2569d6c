# routers/admin_channel_commissions.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app import commission_engine
from app.db import get_db
from app.deps_admin import require_admin_key
from models.channel_partner_commissions import CommissionStatus
from schemas.commissions import BatchRunOut, CommissionOut, CommissionPay, CommissionStatusUpdate

router = APIRouter(
    prefix="/admin/channel-commissions",
    tags=["Admin Channel Commissions"],
    dependencies=[Depends(require_admin_key)],
)


# ---------------------------------------------------------
# 1️⃣ BATCH MENSILE (scheduler / backfill ?month=YYYY-MM)
# ---------------------------------------------------------
@router.post("/run", response_model=BatchRunOut)
def admin_run_monthly_commissions(
    month: Optional[str] = Query(default=None, description="YYYY-MM (default: mese corrente)"),
    db: Session = Depends(get_db),
):
    return commission_engine.calculate_monthly_commissions(db, month)


@router.post("/backfill", response_model=List[BatchRunOut])
def admin_backfill_commissions(
    from_month: str = Query(..., alias="from"),
    to_month: str = Query(..., alias="to"),
    db: Session = Depends(get_db),
):
    return commission_engine.backfill_commissions(db, from_month, to_month)


# ---------------------------------------------------------
# 2️⃣ LEDGER
# ---------------------------------------------------------
@router.get("/", response_model=List[CommissionOut])
def admin_list_commissions(
    partner_id: Optional[str] = Query(default=None),
    status_filter: Optional[CommissionStatus] = Query(default=None, alias="status"),
    month: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    return commission_engine.list_commissions(
        db, channel_partner_id=partner_id, status=status_filter, month_reference=month
    )


@router.get("/pending/{partner_id}", response_model=List[CommissionOut])
def admin_pending_commissions(partner_id: str, db: Session = Depends(get_db)):
    return commission_engine.get_pending_commissions_by_partner(db, partner_id)


@router.get("/{commission_id}", response_model=CommissionOut)
def admin_get_commission(commission_id: str, db: Session = Depends(get_db)):
    return commission_engine.get_commission(db, commission_id)


# ---------------------------------------------------------
# 3️⃣ PAGAMENTO / STATO
# ---------------------------------------------------------
@router.post("/{commission_id}/pay", response_model=CommissionOut)
def admin_pay_commission(commission_id: str, payload: CommissionPay, db: Session = Depends(get_db)):
    return commission_engine.mark_commission_as_paid(
        db,
        commission_id,
        paid_amount=payload.paid_amount,
        payment_method=payload.payment_method,
        payment_reference=payload.payment_reference,
    )


@router.patch("/{commission_id}/status", response_model=CommissionOut)
def admin_set_commission_status(
    commission_id: str,
    payload: CommissionStatusUpdate,
    db: Session = Depends(get_db),
):
    return commission_engine.set_commission_status(db, commission_id, payload.status, notes=payload.notes)

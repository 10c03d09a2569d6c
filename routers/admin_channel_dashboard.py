# routers/admin_channel_dashboard.py

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import dashboard_service
from app.db import get_db
from app.deps_admin import require_admin_key
from schemas.partner_dashboard import GlobalSummary, PartnerDashboard

router = APIRouter(
    prefix="/admin/channel-dashboard",
    tags=["Admin Channel Dashboard"],
    dependencies=[Depends(require_admin_key)],
)


@router.get("/summary", response_model=GlobalSummary)
def admin_global_summary(db: Session = Depends(get_db)):
    return dashboard_service.get_global_summary(db)


@router.get("/partners", response_model=List[PartnerDashboard])
def admin_partner_dashboards(db: Session = Depends(get_db)):
    return dashboard_service.list_partner_dashboards(db)


@router.get("/partners/{partner_id}", response_model=PartnerDashboard)
def admin_partner_dashboard(partner_id: str, db: Session = Depends(get_db)):
    return dashboard_service.get_partner_dashboard(db, partner_id)

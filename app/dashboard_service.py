# app/dashboard_service.py

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.money import ZERO, money2, to_decimal
from app.partner_registry import get_partner
from models.channel_partners import ChannelPartner, ChannelPartnerStatus
from models.channel_partner_referrals import Referral, ReferralStatus
from models.channel_partner_commissions import Commission, CommissionStatus
from schemas.partner_dashboard import GlobalSummary, PartnerDashboard


# ancora dovute al partner
_OWED_STATUSES = (CommissionStatus.PENDING, CommissionStatus.APPROVED)


def _dec(v) -> Decimal:
    return money2(to_decimal(v)) if v is not None else ZERO


def _commission_totals(db: Session, *filters):
    """(maturato, pagato, pending) sulle righe del ledger."""
    row = (
        db.query(
            func.coalesce(func.sum(Commission.commission_amount), 0),
            func.coalesce(
                func.sum(case((Commission.status == CommissionStatus.PAID, Commission.paid_amount), else_=0)),
                0,
            ),
            func.coalesce(
                func.sum(
                    case(
                        (Commission.status.in_(_OWED_STATUSES), Commission.commission_amount),
                        else_=0,
                    )
                ),
                0,
            ),
        )
        .filter(*filters)
        .one()
    )
    return _dec(row[0]), _dec(row[1]), _dec(row[2])


def _monthly_recurring_commission(db: Session, channel_partner_id: str) -> Decimal:
    """Somma, sui referral attivi, dell'ultima commissione registrata."""
    rows = (
        db.query(Commission.referral_id, Commission.commission_amount)
        .join(Referral, Referral.id == Commission.referral_id)
        .filter(
            Referral.channel_partner_id == channel_partner_id,
            Referral.status == ReferralStatus.ACTIVE,
        )
        .order_by(Commission.referral_id, Commission.month_reference.desc())
        .all()
    )

    latest: dict[str, Decimal] = {}
    for referral_id, amount in rows:
        latest.setdefault(referral_id, _dec(amount))
    return money2(sum(latest.values(), ZERO))


def get_partner_dashboard(db: Session, channel_partner_id: str) -> PartnerDashboard:
    """
    Dashboard del partner ricalcolata a ogni lettura da referral + ledger.
    Nessun contatore salvato: non può divergere dalle righe di origine.
    """
    partner = get_partner(db, channel_partner_id)

    counts = (
        db.query(
            func.count(Referral.id),
            func.coalesce(func.sum(case((Referral.status == ReferralStatus.ACTIVE, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Referral.status == ReferralStatus.PENDING, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Referral.status == ReferralStatus.CHURNED, 1), else_=0)), 0),
            func.min(Referral.created_at),
            func.max(Referral.created_at),
        )
        .filter(Referral.channel_partner_id == partner.id)
        .one()
    )

    earned, paid, _pending = _commission_totals(db, Commission.channel_partner_id == partner.id)

    return PartnerDashboard(
        channel_partner_id=partner.id,
        contact_name=partner.contact_name,
        company_name=partner.company_name,
        type=partner.type,
        status=partner.status,
        default_commission_rate=partner.commission_rate,
        total_referrals=int(counts[0] or 0),
        active_referrals=int(counts[1] or 0),
        pending_referrals=int(counts[2] or 0),
        churned_referrals=int(counts[3] or 0),
        total_commission_earned=earned,
        total_commission_paid=paid,
        commission_pending=money2(earned - paid),
        monthly_recurring_commission=_monthly_recurring_commission(db, partner.id),
        first_referral_at=counts[4],
        last_referral_at=counts[5],
    )


def list_partner_dashboards(db: Session) -> list[PartnerDashboard]:
    partner_ids = [
        row.id
        for row in db.query(ChannelPartner.id)
        .filter(ChannelPartner.deleted_at.is_(None))
        .order_by(ChannelPartner.created_at.desc())
        .all()
    ]
    return [get_partner_dashboard(db, pid) for pid in partner_ids]


def get_global_summary(db: Session) -> GlobalSummary:
    """
    Riepilogo admin. total_commission_pending = somma delle righe pending e
    approved; coincide con maturato - pagato finché non ci sono righe
    cancelled / disputed.
    """
    not_deleted = ChannelPartner.deleted_at.is_(None)

    total_partners = db.query(func.count(ChannelPartner.id)).filter(not_deleted).scalar() or 0
    active_partners = (
        db.query(func.count(ChannelPartner.id))
        .filter(not_deleted, ChannelPartner.status == ChannelPartnerStatus.ACTIVE)
        .scalar()
        or 0
    )
    total_referrals = db.query(func.count(Referral.id)).scalar() or 0
    active_referrals = (
        db.query(func.count(Referral.id)).filter(Referral.status == ReferralStatus.ACTIVE).scalar() or 0
    )

    earned, paid, pending = _commission_totals(db)

    return GlobalSummary(
        total_partners=int(total_partners),
        active_partners=int(active_partners),
        total_referrals=int(total_referrals),
        active_referrals=int(active_referrals),
        total_commission_earned=earned,
        total_commission_paid=paid,
        total_commission_pending=pending,
    )

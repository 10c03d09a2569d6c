# app/commission_engine.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import logging
import re

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import ChannelPartnerError, Conflict, NotFound, UpstreamFailure, ValidationFailure
from app.money import ZERO, calc_commission, money2, to_decimal
from app.plan_pricing import PlanPricing
from models.channel_partner_commissions import Commission, CommissionStatus
from models.channel_partner_referrals import CommissionType, Referral, ReferralStatus
from models.tenants import Tenant

logger = logging.getLogger(__name__)

MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


# -----------------------------
# MESE DI RIFERIMENTO
# -----------------------------
def current_month_reference() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m")


def validate_month_reference(value: str) -> str:
    m = MONTH_RE.match((value or "").strip())
    if not m or not 1 <= int(m.group(2)) <= 12:
        raise ValidationFailure("month_reference deve essere nel formato YYYY-MM.")
    return m.group(0)


def iter_months(from_month: str, to_month: str):
    start = validate_month_reference(from_month)
    end = validate_month_reference(to_month)
    if start > end:
        raise ValidationFailure("Intervallo mesi non valido: from > to.")

    year, month = int(start[:4]), int(start[5:])
    while True:
        current = f"{year:04d}-{month:02d}"
        if current > end:
            return
        yield current
        month += 1
        if month > 12:
            year, month = year + 1, 1


# -----------------------------
# BATCH MENSILE
# -----------------------------
@dataclass
class BatchResult:
    month_reference: str
    created: int = 0
    total_amount: Decimal = ZERO
    skipped: int = 0
    failed: int = 0


def _process_referral(
    db: Session,
    referral_id: str,
    month: str,
    pricing: PlanPricing,
) -> Optional[Commission]:
    """
    Una singola unità del batch. Ritorna la commissione creata
    oppure None se il referral va saltato per questo mese.
    """
    referral = db.query(Referral).filter(Referral.id == referral_id).first()
    if not referral or referral.status != ReferralStatus.ACTIVE:
        return None

    tenant = db.query(Tenant).filter(Tenant.id == referral.tenant_id).first()
    if not tenant:
        raise NotFound(f"Tenant {referral.tenant_id} non trovato.")

    quote = pricing.resolve(tenant)
    if quote is None:
        logger.warning(
            "Piano %r senza prezzo per tenant %s (referral %s): nessuna commissione",
            tenant.current_plan,
            tenant.id,
            referral.id,
        )
        return None

    # Piano free / prezzo 0: nessuna commissione
    if not quote.billable:
        return None

    if referral.commission_type == CommissionType.ONE_TIME:
        already_paid_once = (
            db.query(Commission.id).filter(Commission.referral_id == referral.id).first()
            is not None
        )
        if already_paid_once:
            return None

    # Idempotenza: la UNIQUE(referral_id, month_reference) resta l'autorità
    existing = (
        db.query(Commission.id)
        .filter(Commission.referral_id == referral.id, Commission.month_reference == month)
        .first()
    )
    if existing:
        logger.info("Commissione già presente per referral %s nel mese %s", referral.id, month)
        return None

    commission = Commission(
        channel_partner_id=referral.channel_partner_id,
        referral_id=referral.id,
        tenant_id=referral.tenant_id,
        month_reference=month,
        tenant_plan=quote.plan,
        plan_amount=quote.amount,
        commission_rate=referral.commission_rate,
        commission_amount=calc_commission(quote.amount, referral.commission_rate),
        status=CommissionStatus.PENDING,
    )
    db.add(commission)
    db.commit()
    return commission


def calculate_monthly_commissions(
    db: Session,
    month_reference: Optional[str] = None,
    pricing: Optional[PlanPricing] = None,
) -> BatchResult:
    """
    Calcola le commissioni del mese per tutti i referral attivi.

    Ogni referral è un'unità indipendente con il proprio commit: un errore
    su un referral viene loggato e non ferma gli altri. Rieseguire il batch
    per lo stesso mese non crea duplicati.
    """
    month = validate_month_reference(month_reference or current_month_reference())
    pricing = pricing or PlanPricing.from_settings()
    result = BatchResult(month_reference=month)

    try:
        referral_ids = [
            row.id
            for row in db.query(Referral.id)
            .filter(Referral.status == ReferralStatus.ACTIVE)
            .order_by(Referral.created_at, Referral.id)
            .all()
        ]
    except SQLAlchemyError as e:
        db.rollback()
        raise UpstreamFailure(f"Impossibile leggere i referral attivi: {e}") from e

    for referral_id in referral_ids:
        try:
            commission = _process_referral(db, referral_id, month, pricing)
        except IntegrityError:
            # Un'esecuzione concorrente ha già registrato questo mese
            db.rollback()
            result.skipped += 1
            logger.info("Referral %s mese %s già elaborato (vincolo univoco)", referral_id, month)
            continue
        except (SQLAlchemyError, ChannelPartnerError):
            db.rollback()
            result.failed += 1
            logger.exception("Errore calcolo commissione referral=%s mese=%s", referral_id, month)
            continue

        if commission is None:
            result.skipped += 1
            continue

        result.created += 1
        result.total_amount = money2(result.total_amount + to_decimal(commission.commission_amount))

    logger.info(
        "Batch commissioni %s: create=%s totale=%s saltate=%s errori=%s",
        month,
        result.created,
        result.total_amount,
        result.skipped,
        result.failed,
    )
    return result


def backfill_commissions(
    db: Session,
    from_month: str,
    to_month: str,
    pricing: Optional[PlanPricing] = None,
) -> list[BatchResult]:
    """Riprocessa un intervallo di mesi, dal più vecchio al più recente."""
    pricing = pricing or PlanPricing.from_settings()
    return [
        calculate_monthly_commissions(db, month, pricing=pricing)
        for month in iter_months(from_month, to_month)
    ]


# -----------------------------
# LETTURA LEDGER
# -----------------------------
def get_commission(db: Session, commission_id: str) -> Commission:
    commission = db.query(Commission).filter(Commission.id == commission_id).first()
    if not commission:
        raise NotFound("Commissione non trovata.")
    return commission


def list_commissions(
    db: Session,
    channel_partner_id: Optional[str] = None,
    status: Optional[CommissionStatus] = None,
    month_reference: Optional[str] = None,
) -> list[Commission]:
    q = db.query(Commission)
    if channel_partner_id:
        q = q.filter(Commission.channel_partner_id == channel_partner_id)
    if status is not None:
        q = q.filter(Commission.status == status)
    if month_reference:
        q = q.filter(Commission.month_reference == validate_month_reference(month_reference))
    return q.order_by(Commission.month_reference.desc(), Commission.created_at.desc()).all()


def get_pending_commissions_by_partner(db: Session, channel_partner_id: str) -> list[Commission]:
    return list_commissions(db, channel_partner_id=channel_partner_id, status=CommissionStatus.PENDING)


# -----------------------------
# PAGAMENTO
# -----------------------------
def mark_commission_as_paid(
    db: Session,
    commission_id: str,
    paid_amount,
    payment_method: str,
    payment_reference: Optional[str] = None,
) -> Commission:
    """
    Registra il pagamento al partner.
    Unica scrittura: il total_commission_paid del referral è derivato
    dalle commissioni pagate, quindi non può restare disallineato.
    """
    if paid_amount is None:
        raise ValidationFailure("paid_amount obbligatorio.")
    amount = money2(to_decimal(paid_amount))
    if amount <= 0:
        raise ValidationFailure("Importo pagamento non valido.")

    method = (payment_method or "").strip()
    if not method:
        raise ValidationFailure("payment_method obbligatorio.")

    commission = get_commission(db, commission_id)
    if commission.status == CommissionStatus.PAID:
        raise Conflict("Commissione già pagata.")
    if commission.status == CommissionStatus.CANCELLED:
        raise Conflict("Commissione annullata: non pagabile.")
    if amount != money2(to_decimal(commission.commission_amount)):
        raise ValidationFailure(
            f"Importo pagato {amount} diverso dalla commissione {commission.commission_amount}."
        )

    commission.status = CommissionStatus.PAID
    commission.paid_at = datetime.now(timezone.utc)
    commission.paid_amount = amount
    commission.payment_method = method
    commission.payment_reference = (payment_reference or "").strip() or None

    db.commit()
    db.refresh(commission)

    logger.info(
        "Commissione %s pagata: %s via %s (referral %s)",
        commission.id,
        commission.paid_amount,
        commission.payment_method,
        commission.referral_id,
    )
    return commission


def set_commission_status(
    db: Session,
    commission_id: str,
    status: CommissionStatus,
    notes: Optional[str] = None,
) -> Commission:
    """Approva / annulla / contesta una commissione (operazione amministrativa)."""
    if status == CommissionStatus.PAID:
        raise ValidationFailure("Per segnare come pagata usare il pagamento commissione.")

    commission = get_commission(db, commission_id)
    if commission.status == CommissionStatus.PAID:
        raise Conflict("Commissione già pagata: stato non modificabile.")

    commission.status = status
    if notes is not None:
        commission.notes = notes
    db.commit()
    db.refresh(commission)
    return commission

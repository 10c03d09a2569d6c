# app/referral_service.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping, Optional
from urllib.parse import urlencode
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import ChannelPartnerError, Conflict, NotFound, ValidationFailure
from app.partner_registry import find_by_referral_code, normalize_code
from models.channel_partners import ChannelPartner
from models.channel_partner_referrals import Referral, ReferralStatus
from models.tenants import Tenant

logger = logging.getLogger(__name__)

UTM_KEYS = ("utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content")


# -----------------------------
# LOOKUP
# -----------------------------
def get_referral(db: Session, referral_id: str) -> Referral:
    referral = db.query(Referral).filter(Referral.id == referral_id).first()
    if not referral:
        raise NotFound("Referral non trovato.")
    return referral


def get_by_tenant(db: Session, tenant_id: str) -> Optional[Referral]:
    return db.query(Referral).filter(Referral.tenant_id == tenant_id).first()


def get_by_partner(db: Session, channel_partner_id: str) -> list[Referral]:
    return (
        db.query(Referral)
        .filter(Referral.channel_partner_id == channel_partner_id)
        .order_by(Referral.created_at.desc())
        .all()
    )


# -----------------------------
# CREAZIONE
# -----------------------------
def create_referral(
    db: Session,
    channel_partner_id: str,
    tenant_id: str,
    referral_code: Optional[str] = None,
    utm_source: Optional[str] = None,
    utm_medium: Optional[str] = None,
    utm_campaign: Optional[str] = None,
) -> Referral:
    """
    Collega un tenant al partner che lo ha indicato.

    La percentuale del partner viene copiata nel referral (snapshot):
    modifiche successive al partner non toccano i referral esistenti.
    """
    partner = (
        db.query(ChannelPartner)
        .filter(ChannelPartner.id == channel_partner_id, ChannelPartner.deleted_at.is_(None))
        .first()
    )
    if not partner:
        raise NotFound("Channel partner non trovato.")

    if not db.query(Tenant.id).filter(Tenant.id == tenant_id).first():
        raise ValidationFailure("Tenant non trovato.")

    if get_by_tenant(db, tenant_id):
        raise Conflict("Il tenant ha già un referral: vale la prima attribuzione.")

    referral = Referral(
        channel_partner_id=partner.id,
        tenant_id=tenant_id,
        referral_code=normalize_code(referral_code) if referral_code else partner.referral_code,
        utm_source=utm_source,
        utm_medium=utm_medium,
        utm_campaign=utm_campaign,
        status=ReferralStatus.PENDING,
        commission_rate=partner.commission_rate,
    )
    db.add(referral)
    try:
        db.commit()
    except IntegrityError:
        # UNIQUE(tenant_id): un'altra registrazione è arrivata prima
        db.rollback()
        raise Conflict("Il tenant ha già un referral: vale la prima attribuzione.")

    db.refresh(referral)
    logger.info(
        "Referral creato id=%s partner=%s tenant=%s rate=%s",
        referral.id,
        partner.id,
        tenant_id,
        referral.commission_rate,
    )
    return referral


def capture_referral_on_registration(
    db: Session,
    tenant_id: str,
    params: Mapping[str, str],
) -> Optional[Referral]:
    """
    Da chiamare DOPO la creazione del tenant.
    Ritorna None se non c'è un codice valido (nessun errore per la signup).
    """
    code = (params.get("ref") or "").strip()
    if not code:
        return None

    partner = find_by_referral_code(db, code)
    if not partner:
        logger.warning("Referral code non valido o partner non attivo: %s", code)
        return None

    if get_by_tenant(db, tenant_id):
        logger.warning("Tenant %s già attribuito, ignoro il codice %s", tenant_id, code)
        return None

    try:
        return create_referral(
            db,
            channel_partner_id=partner.id,
            tenant_id=tenant_id,
            referral_code=code,
            utm_source=params.get("utm_source") or None,
            utm_medium=params.get("utm_medium") or None,
            utm_campaign=params.get("utm_campaign") or None,
        )
    except Conflict:
        logger.warning("Tenant %s attribuito da una richiesta concorrente", tenant_id)
        return None
    except ChannelPartnerError as e:
        logger.warning("Referral non registrato per il tenant %s: %s", tenant_id, e.detail)
        return None


# -----------------------------
# STATI
# -----------------------------
_ACTIVATABLE = (ReferralStatus.PENDING, ReferralStatus.ACTIVE, ReferralStatus.SUSPENDED)


def activate(db: Session, referral_id: str) -> Referral:
    """
    Primo pagamento confermato del tenant.
    first_payment_at viene impostato una sola volta.
    Un referral churned non torna attivo.
    """
    referral = get_referral(db, referral_id)
    if referral.status not in _ACTIVATABLE:
        raise Conflict(f"Referral {referral.status.value}: attivazione non ammessa.")
    referral.status = ReferralStatus.ACTIVE
    if referral.first_payment_at is None:
        referral.first_payment_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(referral)
    return referral


def _set_status(db: Session, referral_id: str, status: ReferralStatus) -> Referral:
    referral = get_referral(db, referral_id)
    if referral.status == ReferralStatus.CHURNED and status != ReferralStatus.CHURNED:
        raise Conflict("Referral churned: stato non modificabile.")
    referral.status = status
    db.commit()
    db.refresh(referral)
    logger.info("Referral %s → %s", referral.id, status.value)
    return referral


def churn(db: Session, referral_id: str) -> Referral:
    return _set_status(db, referral_id, ReferralStatus.CHURNED)


def suspend(db: Session, referral_id: str) -> Referral:
    return _set_status(db, referral_id, ReferralStatus.SUSPENDED)


# -----------------------------
# LINK
# -----------------------------
def generate_referral_link(
    referral_code: str,
    base_url: Optional[str] = None,
    utm: Optional[Mapping[str, str]] = None,
) -> str:
    """
    generate_referral_link("CONTADOR-JOAO-2026", utm={"utm_source": "email"})
    → https://app.radul.com.br/registro?ref=CONTADOR-JOAO-2026&utm_source=email
    """
    base = (base_url or settings.signup_base_url).rstrip("/")
    query = {"ref": referral_code}
    for key in UTM_KEYS:
        value = (utm or {}).get(key)
        if value:
            query[key] = value
    return f"{base}/registro?{urlencode(query)}"

# app/partner_registry.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
import logging
import unicodedata
import re
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import Conflict, NotFound
from models.channel_partners import ChannelPartner, ChannelPartnerStatus, ChannelPartnerType
from models.channel_partner_referrals import Referral
from schemas.channel_partners import ChannelPartnerCreate, ChannelPartnerUpdate

logger = logging.getLogger(__name__)

# -----------------------------
# REFERRAL CODE
# -----------------------------
TYPE_LABELS: dict[ChannelPartnerType, str] = {
    ChannelPartnerType.ACCOUNTANT: "CONTADOR",
    ChannelPartnerType.CONSULTANT: "CONSULTOR",
    ChannelPartnerType.AGENCY: "AGENCIA",
    ChannelPartnerType.INFLUENCER: "INFLUENCER",
    ChannelPartnerType.ASSOCIATION: "ASSOC",
    ChannelPartnerType.RESELLER: "REVENDEDOR",
    ChannelPartnerType.OTHER: "PARCEIRO",
}


def _ascii_first_name(name: str) -> str:
    folded = unicodedata.normalize("NFD", name or "")
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    parts = folded.strip().split()
    first = parts[0] if parts else ""
    return re.sub(r"[^A-Z]", "", first.upper())[:10]


def generate_referral_code(name: str, partner_type: ChannelPartnerType, year: Optional[int] = None) -> str:
    """
    "João Silva", accountant → "CONTADOR-JOAO-2026"
    """
    year = year or datetime.now(timezone.utc).year
    label = TYPE_LABELS[ChannelPartnerType(partner_type)]
    return f"{label}-{_ascii_first_name(name)}-{year}"


def _with_random_suffix(base: str) -> str:
    return f"{base}-{uuid.uuid4().hex[:4].upper()}"


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


# -----------------------------
# LOOKUP
# -----------------------------
def get_partner(db: Session, partner_id: str) -> ChannelPartner:
    partner = (
        db.query(ChannelPartner)
        .filter(ChannelPartner.id == partner_id, ChannelPartner.deleted_at.is_(None))
        .first()
    )
    if not partner:
        raise NotFound("Channel partner non trovato.")
    return partner


def list_partners(db: Session, status: Optional[ChannelPartnerStatus] = None) -> list[ChannelPartner]:
    q = db.query(ChannelPartner).filter(ChannelPartner.deleted_at.is_(None))
    if status is not None:
        q = q.filter(ChannelPartner.status == status)
    return q.order_by(ChannelPartner.created_at.desc()).all()


def find_by_referral_code(db: Session, code: str) -> Optional[ChannelPartner]:
    """Solo partner ATTIVI e non cancellati possono attribuire referral."""
    return (
        db.query(ChannelPartner)
        .filter(
            ChannelPartner.referral_code == normalize_code(code),
            ChannelPartner.status == ChannelPartnerStatus.ACTIVE,
            ChannelPartner.deleted_at.is_(None),
        )
        .first()
    )


def find_by_email(db: Session, email: str) -> Optional[ChannelPartner]:
    return (
        db.query(ChannelPartner)
        .filter(ChannelPartner.contact_email == email, ChannelPartner.deleted_at.is_(None))
        .first()
    )


def _code_taken(db: Session, code: str) -> bool:
    return db.query(ChannelPartner.id).filter(ChannelPartner.referral_code == code).first() is not None


# -----------------------------
# CREAZIONE
# -----------------------------
def issue_partner(db: Session, payload: ChannelPartnerCreate) -> ChannelPartner:
    """
    Crea un partner in stato pending (richiede approvazione manuale).

    Senza codice esplicito il codice viene derivato da tipo + nome + anno;
    in caso di collisione si rigenera con un suffisso casuale, per un numero
    limitato di tentativi.
    """
    if db.query(ChannelPartner.id).filter(ChannelPartner.contact_email == payload.contact_email).first():
        raise Conflict("Email già registrata come channel partner.")

    explicit = normalize_code(payload.referral_code) if payload.referral_code else None
    if explicit and _code_taken(db, explicit):
        raise Conflict("Referral code già in uso.")

    base = explicit or generate_referral_code(payload.contact_name, payload.type)
    attempts = 1 if explicit else max(1, settings.referral_code_max_attempts)

    data = payload.model_dump(exclude={"referral_code", "commission_rate", "status"})
    rate = payload.commission_rate if payload.commission_rate is not None else settings.default_commission_rate

    for attempt in range(attempts):
        code = base if attempt == 0 else _with_random_suffix(base)
        if not explicit and _code_taken(db, code):
            logger.info("Referral code %s già in uso, rigenero", code)
            continue

        partner = ChannelPartner(
            **data,
            referral_code=code,
            commission_rate=rate,
            status=ChannelPartnerStatus.PENDING,
        )
        db.add(partner)
        try:
            db.commit()
        except IntegrityError:
            # Inserimento concorrente con lo stesso codice (o la stessa email)
            db.rollback()
            if find_by_email(db, payload.contact_email):
                raise Conflict("Email già registrata come channel partner.")
            logger.warning("Collisione referral code %s in inserimento, tentativo %s", code, attempt + 1)
            continue

        db.refresh(partner)
        logger.info("Channel partner creato id=%s code=%s", partner.id, partner.referral_code)
        return partner

    raise Conflict("Impossibile generare un referral code univoco.")


# -----------------------------
# AGGIORNAMENTO
# -----------------------------
def update_partner(db: Session, partner_id: str, payload: ChannelPartnerUpdate) -> ChannelPartner:
    partner = get_partner(db, partner_id)
    changes = payload.model_dump(exclude_unset=True)

    if "referral_code" in changes:
        new_code = normalize_code(changes["referral_code"])
        if new_code != partner.referral_code:
            has_referrals = (
                db.query(Referral.id).filter(Referral.channel_partner_id == partner.id).first()
                is not None
            )
            if has_referrals:
                raise Conflict("Referral code non modificabile: esistono già referral.")
            if _code_taken(db, new_code):
                raise Conflict("Referral code già in uso.")
        changes["referral_code"] = new_code

    # commission_rate: vale solo per i referral futuri (snapshot)
    for field, value in changes.items():
        setattr(partner, field, value)

    db.commit()
    db.refresh(partner)
    return partner


# -----------------------------
# STATI
# -----------------------------
_TRANSITIONS: dict[str, tuple[set[ChannelPartnerStatus], ChannelPartnerStatus]] = {
    "approve": ({ChannelPartnerStatus.PENDING}, ChannelPartnerStatus.ACTIVE),
    "suspend": (
        {ChannelPartnerStatus.PENDING, ChannelPartnerStatus.ACTIVE, ChannelPartnerStatus.INACTIVE},
        ChannelPartnerStatus.SUSPENDED,
    ),
    "deactivate": ({ChannelPartnerStatus.ACTIVE}, ChannelPartnerStatus.INACTIVE),
    "reactivate": (
        {ChannelPartnerStatus.INACTIVE, ChannelPartnerStatus.SUSPENDED},
        ChannelPartnerStatus.ACTIVE,
    ),
    "churn": (
        {
            ChannelPartnerStatus.PENDING,
            ChannelPartnerStatus.ACTIVE,
            ChannelPartnerStatus.INACTIVE,
            ChannelPartnerStatus.SUSPENDED,
        },
        ChannelPartnerStatus.CHURNED,
    ),
}


def _transition(db: Session, partner_id: str, action: str) -> ChannelPartner:
    partner = get_partner(db, partner_id)
    allowed, target = _TRANSITIONS[action]

    if partner.status not in allowed:
        raise Conflict(f"Transizione non ammessa: {partner.status.value} → {target.value}.")

    partner.status = target
    return partner


def approve(db: Session, partner_id: str, approved_by: Optional[str] = None) -> ChannelPartner:
    partner = _transition(db, partner_id, "approve")
    partner.approved_at = datetime.now(timezone.utc)
    partner.approved_by = approved_by
    db.commit()
    db.refresh(partner)
    return partner


def _commit_transition(db: Session, partner_id: str, action: str) -> ChannelPartner:
    partner = _transition(db, partner_id, action)
    db.commit()
    db.refresh(partner)
    logger.info("Channel partner %s → %s", partner.id, partner.status.value)
    return partner


def suspend(db: Session, partner_id: str) -> ChannelPartner:
    return _commit_transition(db, partner_id, "suspend")


def deactivate(db: Session, partner_id: str) -> ChannelPartner:
    return _commit_transition(db, partner_id, "deactivate")


def reactivate(db: Session, partner_id: str) -> ChannelPartner:
    return _commit_transition(db, partner_id, "reactivate")


def churn(db: Session, partner_id: str) -> ChannelPartner:
    return _commit_transition(db, partner_id, "churn")


def soft_delete_partner(db: Session, partner_id: str) -> ChannelPartner:
    partner = get_partner(db, partner_id)
    partner.deleted_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(partner)
    return partner

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app import partner_registry, referral_service
from app.errors import Conflict, NotFound
from models.channel_partners import ChannelPartner, ChannelPartnerStatus, ChannelPartnerType
from schemas.channel_partners import ChannelPartnerCreate, ChannelPartnerUpdate


def test_generate_referral_code_folds_accents():
    code = partner_registry.generate_referral_code("João Silva", ChannelPartnerType.ACCOUNTANT, 2026)
    assert code == "CONTADOR-JOAO-2026"


@pytest.mark.parametrize(
    "partner_type,name,expected",
    [
        (ChannelPartnerType.AGENCY, "Ágata Souza", "AGENCIA-AGATA-2026"),
        (ChannelPartnerType.ASSOCIATION, "  cdl norte", "ASSOC-CDL-2026"),
        (ChannelPartnerType.OTHER, "Maximiliano-José Alves", "PARCEIRO-MAXIMILIAN-2026"),
    ],
)
def test_generate_referral_code_labels(partner_type, name, expected):
    assert partner_registry.generate_referral_code(name, partner_type, 2026) == expected


def test_issue_partner_defaults(db_session):
    partner = partner_registry.issue_partner(
        db_session,
        ChannelPartnerCreate(
            type=ChannelPartnerType.ACCOUNTANT,
            contact_name="João Silva",
            contact_email="joao@contabil.com.br",
        ),
    )
    year = datetime.now(timezone.utc).year
    assert partner.status == ChannelPartnerStatus.PENDING
    assert partner.commission_rate == Decimal("20.00")
    assert partner.referral_code == f"CONTADOR-JOAO-{year}"


def test_issue_partner_regenerates_colliding_code(db_session, make_partner):
    first = make_partner(name="João Silva")
    second = make_partner(name="João Pereira")

    assert first.referral_code != second.referral_code
    assert second.referral_code.startswith(first.referral_code + "-")
    assert len(second.referral_code) == len(first.referral_code) + 5


def test_issue_partner_rejects_taken_explicit_code(db_session, make_partner):
    make_partner(referral_code="vg-roma-001")

    with pytest.raises(Conflict):
        make_partner(name="Outro", referral_code="VG-ROMA-001")


def test_issue_partner_rejects_duplicate_email(db_session):
    payload = ChannelPartnerCreate(
        type=ChannelPartnerType.INFLUENCER,
        contact_name="Bia",
        contact_email="bia@influ.com.br",
    )
    partner_registry.issue_partner(db_session, payload)

    with pytest.raises(Conflict):
        partner_registry.issue_partner(db_session, payload)


def test_pending_partner_code_does_not_resolve(db_session, make_partner):
    partner = make_partner(approve=False)
    assert partner_registry.find_by_referral_code(db_session, partner.referral_code) is None

    partner_registry.approve(db_session, partner.id, approved_by="admin-1")
    found = partner_registry.find_by_referral_code(db_session, partner.referral_code.lower())
    assert found is not None
    assert found.approved_by == "admin-1"
    assert found.approved_at is not None


def test_status_transitions(db_session, make_partner):
    partner = make_partner()

    assert partner_registry.suspend(db_session, partner.id).status == ChannelPartnerStatus.SUSPENDED
    assert partner_registry.find_by_referral_code(db_session, partner.referral_code) is None
    assert partner_registry.reactivate(db_session, partner.id).status == ChannelPartnerStatus.ACTIVE
    assert partner_registry.deactivate(db_session, partner.id).status == ChannelPartnerStatus.INACTIVE

    with pytest.raises(Conflict):
        partner_registry.approve(db_session, partner.id)

    assert partner_registry.churn(db_session, partner.id).status == ChannelPartnerStatus.CHURNED
    with pytest.raises(Conflict):
        partner_registry.reactivate(db_session, partner.id)


def test_referral_code_immutable_once_referenced(db_session, make_partner, make_tenant):
    partner = make_partner()
    partner_registry.update_partner(db_session, partner.id, ChannelPartnerUpdate(referral_code="NOVO-CODIGO"))
    assert partner_registry.get_partner(db_session, partner.id).referral_code == "NOVO-CODIGO"

    referral_service.create_referral(db_session, partner.id, make_tenant().id)

    with pytest.raises(Conflict):
        partner_registry.update_partner(db_session, partner.id, ChannelPartnerUpdate(referral_code="ALTRO"))


def test_soft_delete_hides_partner(db_session, make_partner):
    partner = make_partner()
    partner_registry.soft_delete_partner(db_session, partner.id)

    with pytest.raises(NotFound):
        partner_registry.get_partner(db_session, partner.id)
    assert partner_registry.find_by_referral_code(db_session, partner.referral_code) is None
    assert partner_registry.list_partners(db_session) == []


def test_list_partners_by_status(db_session, make_partner):
    make_partner(name="Ana")
    make_partner(name="Bruno", approve=False)

    active = partner_registry.list_partners(db_session, status=ChannelPartnerStatus.ACTIVE)
    assert [p.contact_name for p in active] == ["Ana"]
    assert len(partner_registry.list_partners(db_session)) == 2


def test_partner_table_columns():
    columns = set(ChannelPartner.__table__.columns.keys())
    assert {"referral_code", "contact_email", "commission_rate", "deleted_at"} <= columns
    assert "config" not in columns

from decimal import Decimal

import pytest

from app import partner_registry, referral_service
from app.errors import Conflict, NotFound, ValidationFailure
from models.channel_partner_referrals import CommissionType, ReferralStatus
from schemas.channel_partners import ChannelPartnerUpdate


def test_create_referral_snapshots_partner_rate(db_session, make_partner, make_tenant):
    partner = make_partner(rate=Decimal("25.00"))
    tenant = make_tenant()

    referral = referral_service.create_referral(
        db_session, partner.id, tenant.id, utm_source="email", utm_campaign="jan2026"
    )

    assert referral.status == ReferralStatus.PENDING
    assert referral.commission_rate == Decimal("25.00")
    assert referral.commission_type == CommissionType.RECURRING
    assert referral.referral_code == partner.referral_code
    assert referral.utm_source == "email"
    assert referral.total_months_paid == 0
    assert referral.total_commission_earned == 0
    assert referral.total_commission_paid == 0

    partner_registry.update_partner(db_session, partner.id, ChannelPartnerUpdate(commission_rate=Decimal("40")))
    assert referral_service.get_referral(db_session, referral.id).commission_rate == Decimal("25.00")


def test_create_referral_unknown_partner(db_session, make_tenant):
    with pytest.raises(NotFound):
        referral_service.create_referral(db_session, "nope", make_tenant().id)


def test_create_referral_unknown_tenant(db_session, make_partner):
    with pytest.raises(ValidationFailure):
        referral_service.create_referral(db_session, make_partner().id, "missing-tenant")


def test_second_referral_for_tenant_is_rejected(db_session, make_partner, make_tenant):
    tenant = make_tenant()
    first_partner = make_partner(name="Ana")
    referral_service.create_referral(db_session, first_partner.id, tenant.id)

    with pytest.raises(Conflict):
        referral_service.create_referral(db_session, make_partner(name="Bruno").id, tenant.id)

    assert referral_service.get_by_tenant(db_session, tenant.id).channel_partner_id == first_partner.id


def test_activate_sets_first_payment_once(db_session, make_partner, make_tenant):
    referral = referral_service.create_referral(db_session, make_partner().id, make_tenant().id)

    activated = referral_service.activate(db_session, referral.id)
    first_payment_at = activated.first_payment_at
    assert activated.status == ReferralStatus.ACTIVE
    assert first_payment_at is not None

    again = referral_service.activate(db_session, referral.id)
    assert again.first_payment_at == first_payment_at


def test_churn_and_suspend(db_session, active_referral):
    referral = active_referral()
    assert referral_service.suspend(db_session, referral.id).status == ReferralStatus.SUSPENDED
    assert referral_service.activate(db_session, referral.id).status == ReferralStatus.ACTIVE
    assert referral_service.churn(db_session, referral.id).status == ReferralStatus.CHURNED

    with pytest.raises(NotFound):
        referral_service.activate(db_session, "missing")


def test_churned_referral_cannot_come_back(db_session, active_referral):
    referral = active_referral()
    referral_service.churn(db_session, referral.id)

    with pytest.raises(Conflict):
        referral_service.activate(db_session, referral.id)
    with pytest.raises(Conflict):
        referral_service.suspend(db_session, referral.id)

    db_session.refresh(referral)
    assert referral.status == ReferralStatus.CHURNED


def test_capture_with_unknown_tenant_returns_none(db_session, make_partner):
    partner = make_partner()

    result = referral_service.capture_referral_on_registration(
        db_session, "tenant-inesistente", {"ref": partner.referral_code}
    )

    assert result is None
    assert referral_service.get_by_partner(db_session, partner.id) == []


def test_get_by_partner(db_session, make_partner, make_tenant):
    partner = make_partner()
    for _ in range(3):
        referral_service.create_referral(db_session, partner.id, make_tenant().id)

    assert len(referral_service.get_by_partner(db_session, partner.id)) == 3
    assert referral_service.get_by_tenant(db_session, "unknown") is None


def test_capture_on_registration(db_session, make_partner, make_tenant):
    partner = make_partner()
    tenant = make_tenant()

    referral = referral_service.capture_referral_on_registration(
        db_session,
        tenant.id,
        {"ref": f"  {partner.referral_code} ", "utm_source": "email", "utm_medium": "newsletter"},
    )

    assert referral is not None
    assert referral.channel_partner_id == partner.id
    assert referral.utm_medium == "newsletter"

    # Secondo codice per lo stesso tenant: ignorato
    other = make_partner(name="Carla")
    assert referral_service.capture_referral_on_registration(db_session, tenant.id, {"ref": other.referral_code}) is None


@pytest.mark.parametrize("params", [{}, {"ref": ""}, {"ref": "NAO-EXISTE-2026"}])
def test_capture_without_valid_code(db_session, make_tenant, params):
    assert referral_service.capture_referral_on_registration(db_session, make_tenant().id, params) is None


def test_capture_ignores_pending_partner(db_session, make_partner, make_tenant):
    partner = make_partner(approve=False)
    result = referral_service.capture_referral_on_registration(
        db_session, make_tenant().id, {"ref": partner.referral_code}
    )
    assert result is None


def test_generate_referral_link():
    url = referral_service.generate_referral_link(
        "CONTADOR-JOAO-2026",
        "https://app.radul.com.br/",
        {"utm_source": "email", "utm_medium": None, "utm_campaign": "jan2026"},
    )
    assert url == (
        "https://app.radul.com.br/registro?ref=CONTADOR-JOAO-2026&utm_source=email&utm_campaign=jan2026"
    )

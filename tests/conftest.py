import os

# Prima di importare app.*: niente PostgreSQL nei test
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_API_KEY"] = ""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import partner_registry, referral_service
from app.db import get_db
from models import Base
from models.channel_partners import ChannelPartnerType
from models.tenants import Tenant
from schemas.channel_partners import ChannelPartnerCreate


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    yield db
    db.close()
    engine.dispose()


@pytest.fixture()
def client(db_session):
    from app.main import app

    app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_tenant(db_session):
    def _make(plan="growth", name="Oficina Central", override=None):
        tenant = Tenant(name=name, current_plan=plan, plan_amount_override=override)
        db_session.add(tenant)
        db_session.commit()
        db_session.refresh(tenant)
        return tenant

    return _make


@pytest.fixture()
def make_partner(db_session):
    counter = {"n": 0}

    def _make(name="João Silva", partner_type=ChannelPartnerType.ACCOUNTANT, rate=None, approve=True, **extra):
        counter["n"] += 1
        payload = ChannelPartnerCreate(
            type=partner_type,
            contact_name=name,
            contact_email=f"partner{counter['n']}@contabil.com.br",
            commission_rate=rate,
            **extra,
        )
        partner = partner_registry.issue_partner(db_session, payload)
        if approve:
            partner = partner_registry.approve(db_session, partner.id)
        return partner

    return _make


@pytest.fixture()
def active_referral(db_session, make_partner, make_tenant):
    """Partner al 20% + tenant growth (249.00) con referral attivo."""

    def _make(plan="growth", rate=Decimal("20.0"), partner=None, override=None):
        partner = partner or make_partner(rate=rate)
        tenant = make_tenant(plan=plan, override=override)
        referral = referral_service.create_referral(db_session, partner.id, tenant.id)
        return referral_service.activate(db_session, referral.id)

    return _make

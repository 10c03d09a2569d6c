from decimal import Decimal

from app.plan_pricing import PlanPricing
from models.tenants import Tenant


def test_default_price_book():
    pricing = PlanPricing.from_settings()
    assert pricing.price_for("starter") == Decimal("99.00")
    assert pricing.price_for("GROWTH") == Decimal("249.00")
    assert pricing.price_for("free") == Decimal("0.00")
    assert pricing.price_for("unknown") is None


def test_resolve_uses_override_and_flags_free():
    pricing = PlanPricing({"starter": 99, "free": 0})

    quote = pricing.resolve(Tenant(name="a", current_plan="Starter"))
    assert quote.plan == "starter"
    assert quote.amount == Decimal("99.00")
    assert quote.billable

    assert not pricing.resolve(Tenant(name="b", current_plan="free")).billable
    assert pricing.resolve(Tenant(name="c", current_plan="custom")) is None

    custom = pricing.resolve(Tenant(name="d", current_plan="custom", plan_amount_override=Decimal("750")))
    assert custom.amount == Decimal("750.00")

# app/plan_pricing.py

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from app.config import settings
from app.money import money2, to_decimal
from models.tenants import Tenant


@dataclass(frozen=True)
class PlanQuote:
    plan: str
    amount: Decimal

    @property
    def billable(self) -> bool:
        return self.amount > 0


class PlanPricing:
    """
    Listino piani → prezzo mensile, risolto per tenant al momento del calcolo.

    - plan_amount_override del tenant (enterprise/custom) vince sul listino
    - piano sconosciuto → None (skip esplicito, mai una commissione a 0)
    """

    def __init__(self, prices: Mapping[str, Decimal | int | float | str]):
        self._prices = {
            str(plan).strip().lower(): money2(to_decimal(amount))
            for plan, amount in prices.items()
        }

    @classmethod
    def from_settings(cls) -> "PlanPricing":
        return cls(settings.plan_prices)

    def price_for(self, plan: str) -> Optional[Decimal]:
        return self._prices.get((plan or "").strip().lower())

    def resolve(self, tenant: Tenant) -> Optional[PlanQuote]:
        plan = (tenant.current_plan or "free").strip().lower()

        if tenant.plan_amount_override is not None:
            return PlanQuote(plan=plan, amount=money2(to_decimal(tenant.plan_amount_override)))

        amount = self.price_for(plan)
        if amount is None:
            return None
        return PlanQuote(plan=plan, amount=amount)

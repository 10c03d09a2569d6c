from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0.00")


def money2(v: Decimal) -> Decimal:
    return v.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_decimal(v) -> Decimal:
    # float → str prima di Decimal, altrimenti 49.8 diventa 49.79999...
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v))


def calc_commission(plan_amount: Decimal, commission_rate: Decimal) -> Decimal:
    return money2((to_decimal(plan_amount) * to_decimal(commission_rate)) / Decimal("100"))

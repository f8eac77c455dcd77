from decimal import Decimal

from app.errors import InvalidAmount, InvalidCharge
from app.models import ChargeKind, ChargeSpec
from app.services import money


def resolve_charge(spec: ChargeSpec, base: Decimal, label: str = "charge") -> ChargeSpec:
    """
    Resolve ``spec`` against ``base`` (the invoice subtotal).

    Percentage charges take ``value`` percent of the base, fixed charges are the
    value itself. A percentage of a zero subtotal is zero.
    """
    try:
        value = money.non_negative(spec.value, f"{label} value")
    except InvalidAmount as exc:
        raise InvalidCharge(exc.message)

    if spec.kind == ChargeKind.PERCENTAGE:
        amount = money.percentage_of(base, value)
    else:
        amount = money.round_money(value)

    return ChargeSpec(kind=spec.kind, value=value, amount=amount)

from decimal import Decimal

import pytest

from app.errors import InvalidCharge
from app.models import ChargeKind, ChargeSpec
from app.services.charges import resolve_charge


def test_percentage_charge():
    charge = resolve_charge(ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("15")), Decimal("250"))
    assert charge.amount == Decimal("37.50")
    assert charge.kind == ChargeKind.PERCENTAGE
    assert charge.value == Decimal("15")


def test_percentage_charge_rounds_half_up():
    charge = resolve_charge(ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("7.5")), Decimal("0.99"))
    # 0.07425 -> 0.07
    assert charge.amount == Decimal("0.07")
    charge = resolve_charge(ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("10")), Decimal("0.25"))
    # 0.025 -> 0.03
    assert charge.amount == Decimal("0.03")


def test_fixed_charge_ignores_base():
    charge = resolve_charge(ChargeSpec(kind=ChargeKind.FIXED, value=Decimal("20")), Decimal("999"))
    assert charge.amount == Decimal("20.00")


def test_percentage_of_zero_subtotal_is_zero():
    charge = resolve_charge(ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("15")), Decimal("0"))
    assert charge.amount == Decimal("0")


def test_supplied_amount_is_recomputed():
    charge = resolve_charge(
        ChargeSpec(kind=ChargeKind.FIXED, value=Decimal("5"), amount=Decimal("500")), Decimal("100")
    )
    assert charge.amount == Decimal("5.00")


def test_negative_value_is_rejected():
    with pytest.raises(InvalidCharge) as exc:
        resolve_charge(ChargeSpec(kind=ChargeKind.FIXED, value=Decimal("-1")), Decimal("100"), "VAT")
    assert "VAT" in exc.value.message

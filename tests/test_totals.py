from decimal import Decimal

import pytest

from app.errors import InvalidAmount, InvalidLineItem, NegativeNetTotal
from app.models import ChargeKind, ChargeSpec
from app.schemas import LineItemIn
from app.services.totals import compute_totals


def _items():
    return [
        LineItemIn(sequence_number=1, product_name="Widget", quantity=2, unit_price=100),
        LineItemIn(sequence_number=2, product_name="Gadget", quantity=1, unit_price=50),
    ]


def test_fixed_service_charge_and_percentage_vat():
    totals = compute_totals(
        _items(),
        ChargeSpec(kind=ChargeKind.FIXED, value=Decimal("0")),
        ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("15")),
        Decimal("0"),
    )
    assert totals.subtotal == Decimal("250")
    assert totals.service_charge.amount == Decimal("0")
    assert totals.vat.amount == Decimal("37.5")
    assert totals.grand_total == Decimal("287.5")
    assert totals.net_total == Decimal("287.5")


def test_percentage_service_charge_fixed_vat_and_discount():
    totals = compute_totals(
        _items(),
        ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("10")),
        ChargeSpec(kind=ChargeKind.FIXED, value=Decimal("20")),
        Decimal("10"),
    )
    assert totals.subtotal == Decimal("250")
    assert totals.service_charge.amount == Decimal("25")
    assert totals.vat.amount == Decimal("20")
    assert totals.grand_total == Decimal("295")
    assert totals.net_total == Decimal("285")


def test_vat_is_computed_on_subtotal_only():
    totals = compute_totals(
        _items(),
        ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("10")),
        ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("10")),
    )
    assert totals.vat.amount == Decimal("25")
    assert totals.grand_total == Decimal("300")


def test_subtotal_is_sum_of_line_totals():
    items = [
        LineItemIn(product_name="A", quantity="0.333", unit_price="3"),
        LineItemIn(product_name="B", quantity="1.5", unit_price="2.01"),
        LineItemIn(product_name="C", quantity="7", unit_price="0.10"),
    ]
    totals = compute_totals(items)
    assert totals.subtotal == sum(item.line_total for item in totals.items)
    assert [item.line_total for item in totals.items] == [Decimal("1.00"), Decimal("3.02"), Decimal("0.70")]


def test_recomputing_normalized_output_is_identical():
    first = compute_totals(
        _items(),
        ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("12.5")),
        ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("7.25")),
        Decimal("3.33"),
    )
    second = compute_totals(first.items, first.service_charge, first.vat, first.special_discount)
    assert second == first
    assert second.grand_total == first.grand_total
    assert second.net_total == first.net_total


def test_empty_items_give_zero_totals():
    totals = compute_totals([], vat=ChargeSpec(kind=ChargeKind.PERCENTAGE, value=Decimal("15")))
    assert totals.subtotal == Decimal("0")
    assert totals.vat.amount == Decimal("0")
    assert totals.net_total == Decimal("0")


def test_discount_equal_to_grand_total_is_allowed():
    totals = compute_totals(_items(), special_discount=Decimal("250"))
    assert totals.net_total == Decimal("0")


def test_discount_above_grand_total_is_rejected():
    with pytest.raises(NegativeNetTotal) as exc:
        compute_totals(_items(), special_discount=Decimal("250.01"))
    assert exc.value.details() == {"grand_total": "250.00", "special_discount": "250.01"}


def test_negative_discount_is_rejected():
    with pytest.raises(InvalidAmount):
        compute_totals(_items(), special_discount=Decimal("-1"))


def test_invalid_item_stops_the_pipeline():
    items = _items() + [LineItemIn(product_name="Broken", quantity=0, unit_price=1)]
    with pytest.raises(InvalidLineItem) as exc:
        compute_totals(items)
    assert exc.value.index == 2

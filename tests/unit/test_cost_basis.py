"""
Unit tests for weighted-average cost basis merging
"""

import pytest
from decimal import Decimal

from sip_engine.domain.services.cost_basis import merge_cost_basis


def test_merge_into_existing_position():
    quantity, average_price = merge_cost_basis(
        Decimal("100"), Decimal("50"), Decimal("50"), Decimal("60")
    )

    assert quantity == Decimal("150")
    assert average_price.quantize(Decimal("0.001")) == Decimal("53.333")


def test_merge_at_same_price_keeps_average():
    quantity, average_price = merge_cost_basis(
        Decimal("10"), Decimal("25.5"), Decimal("4"), Decimal("25.5")
    )

    assert quantity == Decimal("14")
    assert average_price == Decimal("25.5")


def test_sequence_matches_total_cost_over_total_units():
    purchases = [
        (Decimal("1000") / Decimal("20"), Decimal("20")),
        (Decimal("1000") / Decimal("25"), Decimal("25")),
        (Decimal("1000") / Decimal("40"), Decimal("40")),
    ]

    quantity, average_price = purchases[0]
    for units, price in purchases[1:]:
        quantity, average_price = merge_cost_basis(quantity, average_price, units, price)

    total_units = sum(units for units, _ in purchases)
    assert quantity == total_units
    assert abs(average_price - Decimal("3000") / total_units) < Decimal("1e-20")


def test_merge_into_empty_position_takes_new_price():
    quantity, average_price = merge_cost_basis(
        Decimal("0"), Decimal("0"), Decimal("12.5"), Decimal("80")
    )

    assert quantity == Decimal("12.5")
    assert average_price == Decimal("80")


def test_zero_merged_quantity_raises():
    with pytest.raises(ValueError):
        merge_cost_basis(Decimal("0"), Decimal("10"), Decimal("0"), Decimal("12"))

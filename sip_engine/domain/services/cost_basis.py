"""
COST-BASIS ACCUMULATOR
Weighted-average cost basis when a purchase joins an existing holding

Pure function: no I/O, Decimal only, never float.
"""

from decimal import Decimal, localcontext
from typing import Tuple

# Significant digits for merge arithmetic; enough headroom for decades of
# monthly contributions without drift.
MERGE_PRECISION = 28


def merge_cost_basis(
    existing_qty: Decimal,
    existing_avg_price: Decimal,
    new_qty: Decimal,
    new_price: Decimal,
) -> Tuple[Decimal, Decimal]:
    """
    Merge a new purchase into an existing position.

    Args:
        existing_qty: Units already held
        existing_avg_price: Current average buying price
        new_qty: Units being added
        new_price: Price paid for the new units

    Returns:
        Tuple of (merged quantity, merged average price)

    Raises:
        ValueError: if the merged quantity is zero
    """
    with localcontext() as ctx:
        ctx.prec = MERGE_PRECISION
        merged_qty = existing_qty + new_qty
        if merged_qty == 0:
            raise ValueError("Cannot merge cost basis into a zero quantity position")
        total_cost = existing_qty * existing_avg_price + new_qty * new_price
        merged_avg_price = total_cost / merged_qty
    return merged_qty, merged_avg_price

"""
Weighted-average costing.

Receipts (purchases, batch output) blend the incoming unit cost into the
item's running average using the quantity on hand *before* the receipt.
Consumption and spot checks never move the average.
"""
from decimal import Decimal
from typing import Iterable, Tuple

from artisan_ledger.engine.ledger import Posting
from artisan_ledger.schemas.inventory import Item
from artisan_ledger.utils.numbers import ZERO, to_cost, to_money

MINUTES_PER_HOUR = Decimal("60")


def weighted_average_cost(
    old_quantity: Decimal,
    old_cost: Decimal,
    quantity: Decimal,
    unit_cost: Decimal,
) -> Decimal:
    # Out of stock (or already negative): the new receipt sets the cost outright
    if old_quantity <= 0:
        return to_cost(unit_cost)
    total = old_quantity + quantity
    return to_cost((old_quantity * old_cost + quantity * unit_cost) / total)


class CostingEngine:
    def __init__(self, labor_rate_per_hour: Decimal):
        self.labor_rate_per_hour = Decimal(labor_rate_per_hour)

    def apply_receipt(self, post: Posting, item: Item, quantity: Decimal, unit_cost: Decimal) -> Decimal:
        """
        Stage the new average for ``item``. Must run before the receipt's
        transaction is appended so the pre-receipt quantity is used.
        """
        new_cost = weighted_average_cost(post.quantity(item), post.cost(item), quantity, unit_cost)
        post.update(item, weighted_average_cost=new_cost)
        return new_cost

    def material_cost(self, post: Posting, requirements: Iterable[Tuple[Item, Decimal]]) -> Decimal:
        """Cost of consuming ``required`` units of each item at its current average."""
        return to_money(sum((required * post.cost(item) for item, required in requirements), ZERO))

    def projected_material_cost(self, lines: Iterable[Tuple[Item, Decimal]]) -> Decimal:
        return to_money(sum((quantity * item.weighted_average_cost for item, quantity in lines), ZERO))

    def expected_labor_cost(self, labor_minutes: int, batches: int = 1) -> Decimal:
        hours = Decimal(labor_minutes) * batches / MINUTES_PER_HOUR
        return to_money(hours * self.labor_rate_per_hour)

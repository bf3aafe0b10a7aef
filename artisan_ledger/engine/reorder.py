"""
Reorder monitoring: low/out-of-stock projections over the item registry.
Recomputed on every call; archived items never appear.
"""
from typing import TYPE_CHECKING, List

from artisan_ledger.schemas.dashboard import Alert, StockLevels
from artisan_ledger.schemas.inventory import Item, ItemStatus
from artisan_ledger.utils.alerts import check_stock_alerts

if TYPE_CHECKING:
    from artisan_ledger.engine.registry import ItemRegistry


def classify(item: Item) -> ItemStatus:
    if item.current_quantity <= 0:
        return ItemStatus.OUT_OF_STOCK
    if item.current_quantity <= item.reorder_point:
        return ItemStatus.LOW_STOCK
    return ItemStatus.IN_STOCK


class ReorderMonitor:
    def __init__(self, registry: "ItemRegistry"):
        self._registry = registry

    def levels(self) -> StockLevels:
        levels = StockLevels(out_of_stock=[], low_stock=[], in_stock=[])
        for item in self._registry.snapshot():
            status = classify(item)
            if status == ItemStatus.OUT_OF_STOCK:
                levels.out_of_stock.append(item)
            elif status == ItemStatus.LOW_STOCK:
                levels.low_stock.append(item)
            else:
                levels.in_stock.append(item)
        return levels

    def alerts(self) -> List[Alert]:
        return check_stock_alerts(self.levels())

"""
Alert generation utility.
Turns reorder projections into alert records for the dashboard.
"""
from typing import List

from artisan_ledger.schemas.dashboard import Alert, AlertLevel, AlertType, StockLevels
from artisan_ledger.utils.numbers import format_quantity


def check_stock_alerts(levels: StockLevels) -> List[Alert]:
    """
    Out-of-stock items first (CRITICAL), then low-stock items (WARNING).
    In-stock items produce nothing.
    """
    alerts = []

    for item in levels.out_of_stock:
        alerts.append(Alert(
            alert_type=AlertType.OUT_OF_STOCK,
            level=AlertLevel.CRITICAL,
            message=f"{item.name} is OUT OF STOCK "
                    f"({format_quantity(item.current_quantity, item.inventory_unit.value)})",
            item_id=item.item_id,
            current_quantity=item.current_quantity,
            reorder_point=item.reorder_point,
        ))

    for item in levels.low_stock:
        unit = item.inventory_unit.value
        alerts.append(Alert(
            alert_type=AlertType.LOW_STOCK,
            level=AlertLevel.WARNING,
            message=f"{item.name} stock is LOW: {format_quantity(item.current_quantity, unit)} "
                    f"(reorder point: {format_quantity(item.reorder_point, unit)})",
            item_id=item.item_id,
            current_quantity=item.current_quantity,
            reorder_point=item.reorder_point,
        ))

    return alerts

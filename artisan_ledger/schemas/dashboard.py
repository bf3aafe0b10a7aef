"""
Dashboard and alert schemas.
Projections are recomputed per request from registry state.
"""
from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from enum import Enum

from artisan_ledger.schemas.inventory import Item


class AlertLevel(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class AlertType(str, Enum):
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class Alert(BaseModel):
    alert_type: AlertType
    level: AlertLevel
    message: str
    item_id: Optional[str] = None
    current_quantity: Decimal
    reorder_point: Decimal


class StockLevels(BaseModel):
    out_of_stock: List[Item]
    low_stock: List[Item]
    in_stock: List[Item]


class DashboardMetrics(BaseModel):
    inventory_value: Decimal
    total_items: int
    low_stock_items: List[Item]
    out_of_stock_items: List[Item]
    in_stock_count: int
    avg_yield_percentage: Decimal
    batches_this_month: int
    purchases_this_month: int


class LedgerCheck(BaseModel):
    items_checked: int
    transactions_checked: int
    status: str

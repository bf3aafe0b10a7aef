"""
Sales: per-sale ledger debits and the monthly sales view.

Sale transactions are the accurate record. Monthly figures are rolled up
from them; manual or imported months are kept alongside until a POS feed
replaces them.
"""
import logging
import threading
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from artisan_ledger.engine.ids import IdSequence
from artisan_ledger.engine.ledger import TransactionLedger, utcnow
from artisan_ledger.engine.locks import ItemLockManager
from artisan_ledger.engine.registry import ItemRegistry
from artisan_ledger.exceptions import InsufficientStockError, NotFoundError, ValidationError
from artisan_ledger.schemas.inventory import ItemType, TransactionType
from artisan_ledger.schemas.sales import (
    Sale,
    SaleCreate,
    SaleResult,
    SalesDataSource,
    SalesMonth,
    SalesMonthCreate,
)
from artisan_ledger.utils.numbers import ZERO, to_money

logger = logging.getLogger(__name__)


class SalesRecorder:
    def __init__(
        self,
        ids: IdSequence,
        locks: ItemLockManager,
        ledger: TransactionLedger,
        registry: ItemRegistry,
        clock=None,
    ):
        self._ids = ids
        self._locks = locks
        self._ledger = ledger
        self._registry = registry
        self._clock = clock or utcnow
        self._sales: Dict[str, Sale] = {}
        self._months: Dict[str, SalesMonth] = {}
        self._month_index: Dict[Tuple[str, int, int], str] = {}
        self._months_lock = threading.Lock()

    def record(self, data: SaleCreate) -> SaleResult:
        self._registry.resolve(data.product_id)
        with self._locks.hold([data.product_id]):
            item = self._registry.resolve(data.product_id)
            if item.type != ItemType.PRODUCT:
                raise ValidationError(
                    f"Item '{item.item_id}' is a {item.type.value}; only products can be sold",
                    item_id=item.item_id,
                )
            if item.is_archived:
                raise ValidationError(f"Item '{item.item_id}' is archived", item_id=item.item_id)
            if data.quantity > item.current_quantity:
                raise InsufficientStockError(item.item_id, data.quantity, item.current_quantity)

            with self._ledger.posting("RECORD_SALE") as post:
                sale_id = self._ids.next("sale")
                unit_cost = post.cost(item)
                txn = post.append(item, -data.quantity, TransactionType.SALE, sale_id)
                total_price = to_money(data.quantity * data.unit_price)
                cost_of_goods = to_money(data.quantity * unit_cost)
                sale = Sale(
                    sale_id=sale_id,
                    item_id=item.item_id,
                    quantity=data.quantity,
                    unit_price=data.unit_price,
                    total_price=total_price,
                    unit_cost=unit_cost,
                    cost_of_goods=cost_of_goods,
                    gross_profit=to_money(total_price - cost_of_goods),
                    sale_date=data.sale_date or self._clock().date(),
                    notes=data.notes,
                    transaction_id=txn.transaction_id,
                )
                post.record(self._sales, sale_id, sale)
                post.audit = {
                    "item_id": item.item_id,
                    "quantity": str(data.quantity),
                    "total_price": str(total_price),
                }

        logger.info(f"Recorded sale {sale.sale_id}: {data.quantity} x {item.item_id} for {sale.total_price}")
        return SaleResult(sale=sale.model_copy(), transaction_id=txn.transaction_id)

    def get(self, sale_id: str) -> Sale:
        sale = self._sales.get(sale_id)
        if sale is None:
            raise NotFoundError("Sale", sale_id)
        return sale.model_copy()

    def list(self, item_id: Optional[str] = None) -> List[Sale]:
        sales = [s for s in self._sales.values() if item_id is None or s.item_id == item_id]
        return [s.model_copy() for s in sorted(sales, key=lambda s: s.sale_date)]

    # ====================
    # MONTHLY VIEW
    # ====================

    def import_month(self, data: SalesMonthCreate) -> SalesMonth:
        """Store a manual or imported monthly figure; replaces any earlier entry for the same month."""
        item = self._registry.resolve(data.item_id)
        if item.type != ItemType.PRODUCT:
            raise ValidationError(f"Item '{item.item_id}' is not a product", item_id=item.item_id)

        with self._months_lock:
            key = (data.item_id, data.year, data.month)
            existing_id = self._month_index.get(key)
            existing = self._months[existing_id] if existing_id is not None else None
            with self._ledger.posting("IMPORT_SALES_MONTH") as post:
                if existing is not None:
                    post.update(existing, quantity_sold=data.quantity_sold, data_source=data.data_source)
                    month = existing
                else:
                    month = SalesMonth(sales_month_id=self._ids.next("sales_month"), **data.model_dump())
                    post.record(self._months, month.sales_month_id, month)
                post.audit = {
                    "item_id": data.item_id,
                    "period": f"{data.year}-{data.month:02d}",
                    "quantity_sold": str(data.quantity_sold),
                }
            self._month_index[key] = month.sales_month_id

        logger.info(
            f"Stored {data.data_source.value} sales for {data.item_id} "
            f"{data.year}-{data.month:02d}: {data.quantity_sold}"
        )
        return month.model_copy()

    def monthly(self, item_id: Optional[str] = None) -> List[SalesMonth]:
        """
        Ledger rollups from recorded sales, followed by stored manual or
        imported months. Ordered by period, then item.
        """
        totals: Dict[Tuple[str, int, int], Decimal] = defaultdict(lambda: ZERO)
        for sale in self._sales.values():
            if item_id is None or sale.item_id == item_id:
                totals[(sale.item_id, sale.sale_date.year, sale.sale_date.month)] += sale.quantity

        rows = [
            SalesMonth(
                sales_month_id=f"ledger-{key[0]}-{key[1]}{key[2]:02d}",
                item_id=key[0],
                year=key[1],
                month=key[2],
                quantity_sold=quantity,
                data_source=SalesDataSource.LEDGER,
            )
            for key, quantity in totals.items()
        ]
        rows.extend(
            m.model_copy() for m in self._months.values()
            if item_id is None or m.item_id == item_id
        )
        return sorted(rows, key=lambda m: (m.year, m.month, m.item_id, m.data_source.value))

    def restore(self, sales, months) -> None:
        for sale in sales:
            self._sales[sale.sale_id] = sale
        for month in months:
            self._months[month.sales_month_id] = month
            self._month_index[(month.item_id, month.year, month.month)] = month.sales_month_id

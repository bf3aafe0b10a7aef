"""
Suppliers and purchase receipts.
Every purchase line is one positive ledger entry plus a weighted-average update.
"""
import logging
import threading
from typing import Dict, List, Optional

from artisan_ledger.engine.costing import CostingEngine
from artisan_ledger.engine.ids import IdSequence
from artisan_ledger.engine.ledger import TransactionLedger, utcnow
from artisan_ledger.engine.locks import ItemLockManager
from artisan_ledger.engine.registry import ItemRegistry
from artisan_ledger.exceptions import NotFoundError, ValidationError
from artisan_ledger.schemas.inventory import TransactionType
from artisan_ledger.schemas.purchasing import (
    Purchase,
    PurchaseCreate,
    PurchaseLineItem,
    PurchaseResult,
    Supplier,
    SupplierCreate,
)
from artisan_ledger.utils.numbers import ZERO, to_money

logger = logging.getLogger(__name__)


class PurchaseRecorder:
    def __init__(
        self,
        ids: IdSequence,
        locks: ItemLockManager,
        ledger: TransactionLedger,
        registry: ItemRegistry,
        costing: CostingEngine,
        clock=None,
    ):
        self._ids = ids
        self._locks = locks
        self._ledger = ledger
        self._registry = registry
        self._costing = costing
        self._clock = clock or utcnow
        self._suppliers: Dict[str, Supplier] = {}
        self._purchases: Dict[str, Purchase] = {}
        self._catalog_lock = threading.RLock()

    # ====================
    # SUPPLIERS
    # ====================

    def create_supplier(self, data: SupplierCreate) -> Supplier:
        with self._catalog_lock:
            supplier = Supplier(supplier_id=self._ids.next("supplier"), **data.model_dump())
            with self._ledger.posting("CREATE_SUPPLIER") as post:
                post.record(self._suppliers, supplier.supplier_id, supplier)
                post.audit = {"name": supplier.name}
        logger.info(f"Created supplier {supplier.supplier_id} '{supplier.name}'")
        return supplier.model_copy()

    def _resolve_supplier(self, supplier_id: str) -> Supplier:
        supplier = self._suppliers.get(supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier", supplier_id)
        return supplier

    def get_supplier(self, supplier_id: str) -> Supplier:
        return self._resolve_supplier(supplier_id).model_copy()

    def archive_supplier(self, supplier_id: str) -> Supplier:
        with self._catalog_lock:
            supplier = self._resolve_supplier(supplier_id)
            if not supplier.is_archived:
                with self._ledger.posting("ARCHIVE_SUPPLIER") as post:
                    post.update(supplier, is_archived=True)
                    post.audit = {"supplier_id": supplier_id}
                logger.info(f"Archived supplier {supplier_id}")
            return supplier.model_copy()

    def list_suppliers(self, include_archived: bool = False) -> List[Supplier]:
        suppliers = [s for s in self._suppliers.values() if include_archived or not s.is_archived]
        return [s.model_copy() for s in sorted(suppliers, key=lambda s: s.name.lower())]

    # ====================
    # PURCHASES
    # ====================

    def record(self, data: PurchaseCreate) -> PurchaseResult:
        supplier = self._resolve_supplier(data.supplier_id)
        if supplier.is_archived:
            raise ValidationError(f"Supplier '{supplier.supplier_id}' is archived", supplier_id=supplier.supplier_id)

        item_ids = [line.item_id for line in data.line_items]
        for item_id in item_ids:
            self._registry.resolve(item_id)

        with self._locks.hold(item_ids):
            for item_id in item_ids:
                if self._registry.resolve(item_id).is_archived:
                    raise ValidationError(f"Item '{item_id}' is archived", item_id=item_id)

            with self._ledger.posting("RECORD_PURCHASE") as post:
                purchase_id = self._ids.next("purchase")
                lines: List[PurchaseLineItem] = []
                for line in data.line_items:
                    item = self._registry.resolve(line.item_id)
                    line_id = self._ids.next("purchase_line")
                    # Blend the cost against the quantity on hand before this line
                    self._costing.apply_receipt(post, item, line.quantity, line.unit_cost)
                    txn = post.append(item, line.quantity, TransactionType.PURCHASE, purchase_id)
                    lines.append(PurchaseLineItem(
                        purchase_line_item_id=line_id,
                        purchase_id=purchase_id,
                        item_id=item.item_id,
                        quantity=line.quantity,
                        unit_cost=line.unit_cost,
                        total_cost=to_money(line.quantity * line.unit_cost),
                        lot_number=line.lot_number,
                        notes=line.notes,
                        transaction_id=txn.transaction_id,
                    ))

                purchase = Purchase(
                    purchase_id=purchase_id,
                    supplier_id=supplier.supplier_id,
                    purchase_date=data.purchase_date or self._clock().date(),
                    grand_total=to_money(sum((l.total_cost for l in lines), ZERO)),
                    notes=data.notes,
                    line_items=lines,
                )
                post.record(self._purchases, purchase_id, purchase)
                post.audit = {
                    "supplier_id": supplier.supplier_id,
                    "lines": len(lines),
                    "grand_total": str(purchase.grand_total),
                }

        logger.info(
            f"Recorded purchase {purchase.purchase_id} from {supplier.supplier_id}: "
            f"{len(lines)} line(s), total {purchase.grand_total}"
        )
        return PurchaseResult(
            purchase=purchase.model_copy(deep=True),
            transaction_ids=[l.transaction_id for l in lines],
        )

    def get(self, purchase_id: str) -> Purchase:
        purchase = self._purchases.get(purchase_id)
        if purchase is None:
            raise NotFoundError("Purchase", purchase_id)
        return purchase.model_copy(deep=True)

    def list(self, supplier_id: Optional[str] = None) -> List[Purchase]:
        purchases = [
            p for p in self._purchases.values()
            if supplier_id is None or p.supplier_id == supplier_id
        ]
        return [p.model_copy(deep=True) for p in sorted(purchases, key=lambda p: p.purchase_date)]

    def restore(self, suppliers, purchases) -> None:
        for supplier in suppliers:
            self._suppliers[supplier.supplier_id] = supplier
        for purchase in purchases:
            self._purchases[purchase.purchase_id] = purchase

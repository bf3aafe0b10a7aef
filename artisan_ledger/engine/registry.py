"""
Item registry: the canonical catalogue of inventory items.

Reads hand out copies. Quantity and cost are only ever written through
ledger postings, never through this API.
"""
import logging
import threading
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from artisan_ledger.engine.ids import IdSequence
from artisan_ledger.engine.ledger import Posting, TransactionLedger, utcnow
from artisan_ledger.engine.locks import ItemLockManager
from artisan_ledger.engine.reorder import classify
from artisan_ledger.exceptions import DuplicateSKUError, NotFoundError
from artisan_ledger.schemas.inventory import Item, ItemCreate, ItemResult, ItemStatus, ItemType, Transaction

logger = logging.getLogger(__name__)

OpeningBalance = Callable[[Posting, Item, Decimal], Transaction]


class ItemRegistry:
    def __init__(self, ids: IdSequence, locks: ItemLockManager, ledger: TransactionLedger, clock=None):
        self._ids = ids
        self._locks = locks
        self._ledger = ledger
        self._clock = clock or utcnow
        self._items: Dict[str, Item] = {}
        self._sku_index: Dict[str, str] = {}
        self._catalog_lock = threading.RLock()

    @staticmethod
    def _sku_key(sku: str) -> str:
        return sku.strip().upper()

    def create(self, data: ItemCreate, opening_balance: Optional[OpeningBalance] = None) -> ItemResult:
        """
        Register a new item. A non-zero ``initial_quantity`` is booked through
        ``opening_balance`` in the same posting, so the ledger sum still
        matches the item from its first transaction.
        """
        sku_key = self._sku_key(data.sku)
        with self._catalog_lock:
            if sku_key in self._sku_index:
                raise DuplicateSKUError(data.sku)

            item = Item(
                item_id=self._ids.next("item"),
                sku=data.sku,
                name=data.name,
                type=data.type,
                inventory_unit=data.inventory_unit,
                weighted_average_cost=data.unit_cost,
                reorder_point=data.reorder_point,
                created_at=self._clock(),
            )
            transaction_ids: List[str] = []
            with self._locks.hold([item.item_id]):
                with self._ledger.posting("CREATE_ITEM") as post:
                    post.record(self._items, item.item_id, item)
                    if opening_balance is not None and data.initial_quantity > 0:
                        txn = opening_balance(post, item, data.initial_quantity)
                        transaction_ids.append(txn.transaction_id)
                    post.audit = {"sku": item.sku, "initial_quantity": str(data.initial_quantity)}
            self._sku_index[sku_key] = item.item_id

        logger.info(f"Created item {item.item_id} ({item.sku})")
        return ItemResult(item=item.model_copy(), transaction_ids=transaction_ids)

    def resolve(self, item_id: str) -> Item:
        """
        The live item. Only for engine components that stage changes through
        a posting while holding the item's lock.
        """
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError("Item", item_id)
        return item

    def get(self, item_id: str) -> Item:
        return self.resolve(item_id).model_copy()

    def archive(self, item_id: str) -> Item:
        self.resolve(item_id)
        with self._locks.hold([item_id]):
            item = self.resolve(item_id)
            if not item.is_archived:
                with self._ledger.posting("ARCHIVE_ITEM") as post:
                    post.update(item, is_archived=True)
                    post.audit = {"item_id": item_id}
                logger.info(f"Archived item {item_id}")
            return item.model_copy()

    def snapshot(self, include_archived: bool = False) -> List[Item]:
        with self._catalog_lock:
            items = list(self._items.values())
        return [i.model_copy() for i in items if include_archived or not i.is_archived]

    def list(
        self,
        type: Optional[ItemType] = None,
        status: Optional[ItemStatus] = None,
        search: Optional[str] = None,
        include_archived: bool = False,
    ) -> List[Item]:
        needle = search.strip().lower() if search else None
        out = []
        for item in self.snapshot(include_archived=include_archived):
            if type is not None and item.type != type:
                continue
            if status is not None and classify(item) != status:
                continue
            if needle and needle not in item.name.lower() and needle not in item.sku.lower():
                continue
            out.append(item)
        return sorted(out, key=lambda i: (i.name.lower(), i.item_id))

    def __len__(self) -> int:
        return len(self._items)

    def restore(self, items: Iterable[Item]) -> None:
        with self._catalog_lock:
            for item in items:
                self._items[item.item_id] = item
                self._sku_index[self._sku_key(item.sku)] = item.item_id

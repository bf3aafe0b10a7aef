"""
Append-only transaction ledger.

The ledger is the single source of truth for quantities: an item's
``current_quantity`` is the running sum of its transactions. Every change
goes through a Posting, a unit of work that is written to the journal and
only then applied to memory, so a failed command leaves no trace.
"""
import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Iterator, List, MutableMapping, Optional, Tuple

from pydantic import BaseModel

from artisan_ledger.engine.ids import IdSequence
from artisan_ledger.engine.locks import ItemLockManager
from artisan_ledger.exceptions import LedgerInvariantError
from artisan_ledger.schemas.inventory import Item, Transaction, TransactionType
from artisan_ledger.utils.numbers import ZERO, to_quantity

logger = logging.getLogger(__name__)

INCREASING = {TransactionType.PURCHASE, TransactionType.BATCH_CREATION}
DECREASING = {TransactionType.BATCH_USAGE, TransactionType.SALE}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Posting:
    """
    Staged changes for one command.

    Nothing here touches live state. Reads through ``quantity``/``cost`` see
    the staged values, so several appends to one item chain correctly.
    """

    def __init__(self, ledger: "TransactionLedger", action: str):
        self.action = action
        self.transactions: List[Transaction] = []
        self.created: List[Tuple[MutableMapping[str, Any], str, BaseModel]] = []
        self.audit: Dict[str, Any] = {}
        self._ledger = ledger
        self._updates: Dict[int, Tuple[BaseModel, Dict[str, Any]]] = {}

    def record(self, store: MutableMapping[str, Any], key: str, entity: BaseModel) -> None:
        """Stage a new entity; it lands in ``store[key]`` on commit."""
        self.created.append((store, key, entity))

    def update(self, entity: BaseModel, **fields: Any) -> None:
        self._updates.setdefault(id(entity), (entity, {}))[1].update(fields)

    def pending(self, entity: BaseModel, field: str) -> Any:
        entry = self._updates.get(id(entity))
        if entry is not None and field in entry[1]:
            return entry[1][field]
        return getattr(entity, field)

    def quantity(self, item: Item) -> Decimal:
        return self.pending(item, "current_quantity")

    def cost(self, item: Item) -> Decimal:
        return self.pending(item, "weighted_average_cost")

    def append(
        self,
        item: Item,
        quantity_change: Decimal,
        type: TransactionType,
        source_id: str,
    ) -> Transaction:
        return self._ledger._stage(self, item, quantity_change, type, source_id)

    def image(self, entity: BaseModel) -> BaseModel:
        """The entity as it will look once this posting is applied."""
        entry = self._updates.get(id(entity))
        return entity.model_copy(update=entry[1]) if entry else entity

    def entities(self) -> List[BaseModel]:
        """Post-images of every created or updated entity, creations first."""
        seen = set()
        out: List[BaseModel] = []
        for _, _, entity in self.created:
            seen.add(id(entity))
            out.append(self.image(entity))
        for key, (entity, _) in self._updates.items():
            if key not in seen:
                out.append(self.image(entity))
        return out

    def _apply(self) -> None:
        for store, key, entity in self.created:
            store[key] = entity
        for entity, fields in self._updates.values():
            for name, value in fields.items():
                setattr(entity, name, value)


class TransactionLedger:
    def __init__(
        self,
        locks: ItemLockManager,
        ids: IdSequence,
        journal=None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._locks = locks
        self._ids = ids
        self._journal = journal
        self._clock = clock or utcnow
        self._history: Dict[str, List[Transaction]] = defaultdict(list)
        self._log: List[Transaction] = []
        self._position_lock = threading.Lock()
        self._log_lock = threading.Lock()
        self._sequence = 0
        self._last_timestamp: Optional[datetime] = None

    # ====================
    # WRITES
    # ====================

    @contextmanager
    def posting(self, action: str) -> Iterator[Posting]:
        """
        Open a unit of work. On a clean exit the posting is journaled and
        then applied; if the block raises, nothing is applied.

        Callers must hold the lock of every item they append for.
        """
        post = Posting(self, action)
        yield post
        if self._journal is not None:
            self._journal.persist(post)
        post._apply()
        with self._log_lock:
            for txn in post.transactions:
                self._history[txn.item_id].append(txn)
                self._log.append(txn)
        if post.transactions:
            logger.debug(f"{action}: applied {len(post.transactions)} transaction(s)")

    def _next_position(self) -> Tuple[int, datetime]:
        with self._position_lock:
            self._sequence += 1
            now = self._clock()
            if self._last_timestamp is not None and now < self._last_timestamp:
                now = self._last_timestamp
            self._last_timestamp = now
            return self._sequence, now

    def _invariant(self, message: str, item_id: Optional[str]) -> LedgerInvariantError:
        logger.error(f"Ledger invariant violated: {message}")
        return LedgerInvariantError(message, item_id=item_id)

    def _stage(
        self,
        post: Posting,
        item: Item,
        quantity_change: Decimal,
        type: TransactionType,
        source_id: str,
    ) -> Transaction:
        item_id = item.item_id
        if not self._locks.owns(item_id):
            raise self._invariant(f"write to '{item_id}' without holding its lock", item_id)

        change = to_quantity(quantity_change)
        if type in INCREASING and change <= 0:
            raise self._invariant(f"{type.value} on '{item_id}' must increase stock, got {change}", item_id)
        if type in DECREASING and change >= 0:
            raise self._invariant(f"{type.value} on '{item_id}' must decrease stock, got {change}", item_id)

        new_quantity = post.quantity(item) + change
        if new_quantity < 0:
            raise self._invariant(
                f"{type.value} on '{item_id}' would drive quantity to {new_quantity}", item_id
            )

        sequence, timestamp = self._next_position()
        txn = Transaction(
            transaction_id=self._ids.next("transaction"),
            item_id=item_id,
            quantity_change=change,
            new_quantity=new_quantity,
            type=type,
            source_id=source_id,
            sequence=sequence,
            timestamp=timestamp,
        )
        post.transactions.append(txn)
        post.update(item, current_quantity=new_quantity)
        return txn

    # ====================
    # READS
    # ====================

    def history(self, item_id: str) -> Tuple[Transaction, ...]:
        return tuple(self._history.get(item_id, ()))

    def all_transactions(self) -> List[Transaction]:
        with self._log_lock:
            return sorted(self._log, key=lambda t: t.sequence)

    def verify(self, item: Item) -> int:
        """
        Recompute the item's prefix sums. Returns the number of transactions
        checked; raises LedgerInvariantError on the first mismatch.
        """
        running = ZERO
        history = self.history(item.item_id)
        for txn in history:
            running += txn.quantity_change
            if txn.new_quantity != running:
                raise self._invariant(
                    f"prefix sum mismatch at {txn.transaction_id}: "
                    f"recorded {txn.new_quantity}, computed {running}",
                    item.item_id,
                )
        if item.current_quantity != running:
            raise self._invariant(
                f"'{item.item_id}' quantity {item.current_quantity} != ledger sum {running}",
                item.item_id,
            )
        return len(history)

    def restore(self, transactions: Iterable[Transaction]) -> None:
        with self._log_lock:
            for txn in sorted(transactions, key=lambda t: t.sequence):
                self._history[txn.item_id].append(txn)
                self._log.append(txn)
                self._sequence = max(self._sequence, txn.sequence)
                if self._last_timestamp is None or txn.timestamp > self._last_timestamp:
                    self._last_timestamp = txn.timestamp

"""
Spot checks: physical counts that reconcile the ledger with the shelf.

A count carries the quantity it was taken against. If the ledger moved in
the meantime the count is stale and rejected; the caller re-fetches and
counts again. Counts never touch the weighted-average cost.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from artisan_ledger.engine.ids import IdSequence
from artisan_ledger.engine.ledger import Posting, TransactionLedger, utcnow
from artisan_ledger.engine.locks import ItemLockManager
from artisan_ledger.engine.registry import ItemRegistry
from artisan_ledger.exceptions import StaleCountError, ValidationError
from artisan_ledger.schemas.inventory import (
    Item,
    SpotCheck,
    SpotCheckCreate,
    SpotCheckResult,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

OPENING_BALANCE_REASON = "Opening balance"


class SpotCheckRecorder:
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
        self._spot_checks: Dict[str, SpotCheck] = {}

    def _stage(
        self,
        post: Posting,
        item: Item,
        previous: Decimal,
        counted: Decimal,
        reason: str,
        notes: Optional[str] = None,
    ) -> Tuple[SpotCheck, Transaction]:
        now = self._clock()
        spot_check = SpotCheck(
            spot_check_id=self._ids.next("spot_check"),
            item_id=item.item_id,
            previous_quantity=previous,
            new_quantity=counted,
            reason=reason,
            notes=notes,
            timestamp=now,
        )
        txn = post.append(item, counted - previous, TransactionType.SPOT_CHECK, spot_check.spot_check_id)
        post.update(item, last_counted_date=now.date())
        post.record(self._spot_checks, spot_check.spot_check_id, spot_check)
        return spot_check, txn

    def stage_opening_balance(self, post: Posting, item: Item, quantity: Decimal) -> Transaction:
        """Book an item's starting quantity as a count from zero."""
        _, txn = self._stage(post, item, post.quantity(item), quantity, OPENING_BALANCE_REASON)
        return txn

    def record(self, data: SpotCheckCreate) -> SpotCheckResult:
        self._registry.resolve(data.item_id)
        with self._locks.hold([data.item_id]):
            item = self._registry.resolve(data.item_id)
            if item.is_archived:
                raise ValidationError(f"Item '{item.item_id}' is archived", item_id=item.item_id)
            if data.previous_quantity != item.current_quantity:
                logger.warning(
                    f"Stale spot check on {item.item_id}: counted from {data.previous_quantity}, "
                    f"ledger has {item.current_quantity}"
                )
                raise StaleCountError(item.item_id, data.previous_quantity, item.current_quantity)

            with self._ledger.posting("SPOT_CHECK") as post:
                spot_check, txn = self._stage(
                    post, item, data.previous_quantity, data.counted_quantity, data.reason, data.notes
                )
                post.audit = {
                    "item_id": item.item_id,
                    "previous_quantity": str(data.previous_quantity),
                    "counted_quantity": str(data.counted_quantity),
                    "reason": data.reason,
                }

        logger.info(
            f"Spot check {spot_check.spot_check_id} on {item.item_id}: "
            f"{data.previous_quantity} -> {data.counted_quantity} ({txn.quantity_change:+})"
        )
        return SpotCheckResult(spot_check=spot_check.model_copy(), transaction_id=txn.transaction_id)

    def list(self, item_id: Optional[str] = None) -> List[SpotCheck]:
        checks = [
            c for c in self._spot_checks.values()
            if item_id is None or c.item_id == item_id
        ]
        return [c.model_copy() for c in sorted(checks, key=lambda c: c.timestamp)]

    def restore(self, spot_checks) -> None:
        for spot_check in spot_checks:
            self._spot_checks[spot_check.spot_check_id] = spot_check

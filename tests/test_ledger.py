from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from artisan_ledger.engine.ids import IdSequence
from artisan_ledger.engine.ledger import TransactionLedger
from artisan_ledger.engine.locks import ItemLockManager
from artisan_ledger.exceptions import LedgerInvariantError
from artisan_ledger.schemas import InventoryUnit, Item, ItemType, TransactionType


def new_item(item_id="item-001", quantity="0"):
    return Item(
        item_id=item_id,
        sku=item_id.upper(),
        name=item_id,
        type=ItemType.INGREDIENT,
        inventory_unit=InventoryUnit.LBS,
        current_quantity=Decimal(quantity),
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def locks():
    return ItemLockManager(timeout=0.1, retry_attempts=1)


@pytest.fixture
def txn_ledger(locks):
    return TransactionLedger(locks, IdSequence())


def test_append_updates_quantity_and_history(locks, txn_ledger):
    item = new_item()
    with locks.hold([item.item_id]):
        with txn_ledger.posting("TEST") as post:
            first = post.append(item, Decimal("10"), TransactionType.PURCHASE, "pur-001")
            second = post.append(item, Decimal("-4"), TransactionType.SALE, "sale-001")

    assert item.current_quantity == Decimal("6")
    assert first.new_quantity == Decimal("10")
    assert second.new_quantity == Decimal("6")
    assert [t.transaction_id for t in txn_ledger.history(item.item_id)] == ["txn-001", "txn-002"]
    assert txn_ledger.verify(item) == 2


def test_append_without_lock_is_an_invariant_failure(txn_ledger):
    item = new_item()
    with pytest.raises(LedgerInvariantError):
        with txn_ledger.posting("TEST") as post:
            post.append(item, Decimal("1"), TransactionType.PURCHASE, "pur-001")
    assert txn_ledger.history(item.item_id) == ()
    assert item.current_quantity == Decimal("0")


@pytest.mark.parametrize("change,type", [
    ("-1", TransactionType.PURCHASE),
    ("0", TransactionType.BATCH_CREATION),
    ("1", TransactionType.BATCH_USAGE),
    ("2", TransactionType.SALE),
])
def test_sign_must_match_transaction_type(locks, txn_ledger, change, type):
    item = new_item(quantity="5")
    with locks.hold([item.item_id]):
        with pytest.raises(LedgerInvariantError):
            with txn_ledger.posting("TEST") as post:
                post.append(item, Decimal(change), type, "src-001")
    assert item.current_quantity == Decimal("5")


def test_spot_check_may_move_either_way(locks, txn_ledger):
    item = new_item()
    with locks.hold([item.item_id]):
        with txn_ledger.posting("TEST") as post:
            post.append(item, Decimal("3"), TransactionType.SPOT_CHECK, "spot-001")
            post.append(item, Decimal("-1"), TransactionType.SPOT_CHECK, "spot-002")
            post.append(item, Decimal("0"), TransactionType.SPOT_CHECK, "spot-003")
    assert item.current_quantity == Decimal("2")


def test_quantity_can_never_go_negative(locks, txn_ledger):
    item = new_item()
    with locks.hold([item.item_id]):
        with txn_ledger.posting("TEST") as post:
            post.append(item, Decimal("2"), TransactionType.PURCHASE, "pur-001")
        with pytest.raises(LedgerInvariantError):
            with txn_ledger.posting("TEST") as post:
                post.append(item, Decimal("-3"), TransactionType.SALE, "sale-001")
    assert item.current_quantity == Decimal("2")
    assert len(txn_ledger.history(item.item_id)) == 1


def test_failed_posting_applies_nothing(locks, txn_ledger):
    a, b = new_item("item-001"), new_item("item-002")
    with locks.hold([a.item_id, b.item_id]):
        with pytest.raises(RuntimeError):
            with txn_ledger.posting("TEST") as post:
                post.append(a, Decimal("5"), TransactionType.PURCHASE, "pur-001")
                post.append(b, Decimal("5"), TransactionType.PURCHASE, "pur-001")
                raise RuntimeError("boom")
    assert a.current_quantity == Decimal("0")
    assert b.current_quantity == Decimal("0")
    assert txn_ledger.all_transactions() == []


def test_journal_failure_applies_nothing(locks):
    class FailingJournal:
        def persist(self, post):
            raise IOError("disk full")

    txn_ledger = TransactionLedger(locks, IdSequence(), journal=FailingJournal())
    item = new_item()
    with locks.hold([item.item_id]):
        with pytest.raises(IOError):
            with txn_ledger.posting("TEST") as post:
                post.append(item, Decimal("5"), TransactionType.PURCHASE, "pur-001")
    assert item.current_quantity == Decimal("0")
    assert txn_ledger.history(item.item_id) == ()


def test_sequence_is_global_and_timestamps_never_go_backwards(locks):
    start = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)
    ticks = iter([start, start - timedelta(minutes=5), start + timedelta(minutes=1)])
    txn_ledger = TransactionLedger(locks, IdSequence(), clock=lambda: next(ticks))
    a, b = new_item("item-001"), new_item("item-002")
    with locks.hold([a.item_id, b.item_id]):
        with txn_ledger.posting("TEST") as post:
            post.append(a, Decimal("1"), TransactionType.PURCHASE, "pur-001")
            post.append(b, Decimal("1"), TransactionType.PURCHASE, "pur-001")
            post.append(a, Decimal("1"), TransactionType.PURCHASE, "pur-002")

    log = txn_ledger.all_transactions()
    assert [t.sequence for t in log] == [1, 2, 3]
    assert log[1].timestamp == start
    assert log[0].timestamp <= log[1].timestamp <= log[2].timestamp


def test_history_is_restartable(locks, txn_ledger):
    item = new_item()
    with locks.hold([item.item_id]):
        with txn_ledger.posting("TEST") as post:
            post.append(item, Decimal("1"), TransactionType.PURCHASE, "pur-001")
    history = txn_ledger.history(item.item_id)
    assert list(history) == list(history)


def test_verify_detects_a_drifted_quantity(locks, txn_ledger):
    item = new_item()
    with locks.hold([item.item_id]):
        with txn_ledger.posting("TEST") as post:
            post.append(item, Decimal("4"), TransactionType.PURCHASE, "pur-001")
    item.current_quantity = Decimal("5")
    with pytest.raises(LedgerInvariantError):
        txn_ledger.verify(item)


def test_transactions_are_immutable(locks, txn_ledger):
    item = new_item()
    with locks.hold([item.item_id]):
        with txn_ledger.posting("TEST") as post:
            txn = post.append(item, Decimal("4"), TransactionType.PURCHASE, "pur-001")
    with pytest.raises(Exception):
        txn.quantity_change = Decimal("100")


def test_restore_continues_the_sequence(locks, txn_ledger):
    item = new_item()
    with locks.hold([item.item_id]):
        with txn_ledger.posting("TEST") as post:
            post.append(item, Decimal("4"), TransactionType.PURCHASE, "pur-001")

    ids = IdSequence()
    for txn in txn_ledger.all_transactions():
        ids.observe(txn.transaction_id)
    restored = TransactionLedger(locks, ids)
    restored.restore(txn_ledger.all_transactions())
    with locks.hold([item.item_id]):
        with restored.posting("TEST") as post:
            txn = post.append(item, Decimal("1"), TransactionType.PURCHASE, "pur-002")
    assert txn.sequence == 2
    assert txn.transaction_id == "txn-002"
    assert restored.verify(item) == 2

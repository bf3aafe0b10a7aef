from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from artisan_ledger.crud.journal import LedgerJournal
from artisan_ledger.engine import LedgerService
from artisan_ledger.exceptions import LedgerInvariantError
from artisan_ledger.schemas import (
    BatchCreate,
    ItemType,
    RecipeRevision,
    SaleCreate,
    SalesDataSource,
    SalesMonthCreate,
    SpotCheckCreate,
    SupplierCreate,
)


@pytest.fixture
def busy_ledger(journaled_ledger, make_item, make_recipe, buy):
    """A journaled ledger that has seen every kind of command."""
    svc = journaled_ledger
    flour = make_item("FLOUR-001", quantity="5", cost="2.00", service=svc)
    honey = make_item("HONEY-001", service=svc)
    bread = make_item("BREAD-001", type=ItemType.PRODUCT, service=svc)
    supplier = svc.create_supplier(SupplierCreate(
        name="Local Honey Farm",
    ))
    buy((flour.item_id, "20", "2.45"), (honey.item_id, "6", "12.50"), service=svc, supplier_id=supplier.supplier_id)
    recipe = make_recipe(bread.item_id, [(flour.item_id, "2"), (honey.item_id, "0.5")], expected_yield="2",
                         labor_minutes=60, service=svc)
    recipe = svc.revise_recipe(recipe.recipe_id, RecipeRevision(labor_minutes=90))
    svc.record_batch(BatchCreate(recipe_id=recipe.recipe_id, batches=2, qty_made=Decimal("4"),
                                 date_created=date(2025, 1, 6)))
    svc.record_spot_check(SpotCheckCreate(
        item_id=honey.item_id, previous_quantity=Decimal("5"), counted_quantity=Decimal("4.75"), reason="Spillage",
    ))
    svc.record_sale(SaleCreate(product_id=bread.item_id, quantity=Decimal("1"), unit_price=Decimal("8"),
                               sale_date=date(2025, 1, 7)))
    svc.import_sales_month(SalesMonthCreate(item_id=bread.item_id, year=2024, month=12,
                                            quantity_sold=Decimal("45")))
    svc.archive_supplier(supplier.supplier_id)
    return svc


def test_restore_rebuilds_identical_state(busy_ledger, settings, journal, assert_consistent):
    restored = LedgerService(settings=settings, journal=journal)
    check = restored.restore()

    assert check.status == "ok"
    assert check.items_checked == 3
    assert check.transactions_checked == len(busy_ledger.all_transactions())

    def items(svc):
        return [i.model_dump() for i in svc.list_items(include_archived=True)]

    assert items(restored) == items(busy_ledger)
    assert restored.all_transactions() == busy_ledger.all_transactions()
    assert restored.list_recipes(include_archived=True) == busy_ledger.list_recipes(include_archived=True)
    assert restored.list_purchases() == busy_ledger.list_purchases()
    assert restored.list_batches() == busy_ledger.list_batches()
    assert restored.list_spot_checks() == busy_ledger.list_spot_checks()
    assert restored.list_sales() == busy_ledger.list_sales()
    assert restored.monthly_sales() == busy_ledger.monthly_sales()
    assert restored.list_suppliers(include_archived=True) == busy_ledger.list_suppliers(include_archived=True)
    assert_consistent(restored)


def test_restored_ledger_continues_ids_and_sequence(busy_ledger, settings, journal, make_item):
    last = busy_ledger.all_transactions()[-1]
    restored = LedgerService(settings=settings, journal=journal)
    restored.restore()

    item = make_item("SALT-001", quantity="1", service=restored)
    assert item.item_id == "item-004"
    txn = restored.get_transaction_history(item.item_id)[0]
    assert txn.sequence == last.sequence + 1
    assert txn.timestamp >= last.timestamp


def test_audit_trail(busy_ledger, journal):
    actions = [entry.action for entry in journal.audit_entries()]
    assert actions[:3] == ["CREATE_ITEM", "CREATE_ITEM", "CREATE_ITEM"]
    assert "RECORD_BATCH" in actions
    assert "REVISE_RECIPE" in actions
    batch_entry = next(e for e in journal.audit_entries() if e.action == "RECORD_BATCH")
    assert len(batch_entry.transaction_ids) == 3
    assert batch_entry.new_values["batches"] == 2


def test_audit_only_ledger_changes(db_engine, settings, make_item):
    quiet = LedgerService(settings=settings, journal=LedgerJournal(db_engine, audit_all=False))
    make_item("FLOUR-001", service=quiet)
    make_item("HONEY-001", quantity="3", service=quiet)
    entries = quiet.journal.audit_entries()
    assert len(entries) == 1
    assert entries[0].transaction_ids == [quiet.all_transactions()[0].transaction_id]


def test_failed_write_leaves_memory_untouched(journaled_ledger, make_item, monkeypatch):
    flour = make_item("FLOUR-001", quantity="5", service=journaled_ledger)

    def broken_add(db, *, obj_in):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr("artisan_ledger.crud.journal.crud_transaction.add", broken_add)
    with pytest.raises(OperationalError):
        journaled_ledger.record_spot_check(SpotCheckCreate(
            item_id=flour.item_id, previous_quantity=Decimal("5"), counted_quantity=Decimal("4"), reason="Count",
        ))

    assert journaled_ledger.get_item(flour.item_id).current_quantity == Decimal("5")
    assert len(journaled_ledger.get_transaction_history(flour.item_id)) == 1
    assert len(journaled_ledger.list_spot_checks(flour.item_id)) == 1


def test_restore_without_journal(ledger):
    with pytest.raises(LedgerInvariantError):
        ledger.restore()


def test_restored_ledger_replaces_imported_month(busy_ledger, settings, journal):
    before = [m for m in busy_ledger.monthly_sales() if m.data_source != SalesDataSource.LEDGER]
    restored = LedgerService(settings=settings, journal=journal)
    restored.restore()

    month = restored.import_sales_month(SalesMonthCreate(
        item_id=before[0].item_id, year=2024, month=12, quantity_sold=Decimal("52"),
    ))
    assert month.sales_month_id == before[0].sales_month_id
    stored = [m for m in restored.monthly_sales() if m.data_source != SalesDataSource.LEDGER]
    assert [(m.sales_month_id, m.quantity_sold) for m in stored] == [(before[0].sales_month_id, Decimal("52"))]

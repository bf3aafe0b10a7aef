from datetime import date
from decimal import Decimal

import pytest

from artisan_ledger.exceptions import NotFoundError, ValidationError
from artisan_ledger.schemas import PurchaseCreate, PurchaseLineItemCreate, SupplierCreate, TransactionType


def test_purchase_records_lines_and_transactions(ledger, make_item, buy, supplier, assert_consistent):
    flour = make_item("FLOUR-001", quantity="5", cost="2.00")
    honey = make_item("HONEY-001")

    result = buy((flour.item_id, "20", "2.45"), (honey.item_id, "1.5", "12.50"))
    purchase = result.purchase

    assert purchase.supplier_id == supplier.supplier_id
    assert [l.total_cost for l in purchase.line_items] == [Decimal("49.00"), Decimal("18.75")]
    assert purchase.grand_total == Decimal("67.75")
    assert result.transaction_ids == [l.transaction_id for l in purchase.line_items]

    log = {t.transaction_id: t for t in ledger.all_transactions()}
    for line in purchase.line_items:
        txn = log[line.transaction_id]
        assert txn.type == TransactionType.PURCHASE
        assert txn.source_id == purchase.purchase_id
        assert txn.quantity_change == line.quantity

    assert ledger.get_item(flour.item_id).current_quantity == Decimal("25")
    assert ledger.get_item(flour.item_id).weighted_average_cost == Decimal("2.3600")
    assert ledger.get_item(honey.item_id).weighted_average_cost == Decimal("12.5000")
    assert ledger.get_purchase(purchase.purchase_id) == purchase
    assert_consistent(ledger)


def test_purchase_with_unknown_item_changes_nothing(ledger, make_item, buy):
    flour = make_item("FLOUR-001", quantity="5")
    with pytest.raises(NotFoundError):
        buy((flour.item_id, "1", "1"), ("item-999", "1", "1"))
    assert ledger.get_item(flour.item_id).current_quantity == Decimal("5")
    assert ledger.list_purchases() == []


def test_purchase_rejects_archived_item(ledger, make_item, buy):
    old = make_item("OLD-001")
    ledger.archive_item(old.item_id)
    with pytest.raises(ValidationError):
        buy((old.item_id, "1", "1"))


def test_purchase_rejects_archived_or_unknown_supplier(ledger, make_item, buy, supplier):
    flour = make_item("FLOUR-001")
    with pytest.raises(NotFoundError):
        buy((flour.item_id, "1", "1"), supplier_id="sup-999")

    ledger.archive_supplier(supplier.supplier_id)
    with pytest.raises(ValidationError):
        buy((flour.item_id, "1", "1"))
    assert ledger.get_transaction_history(flour.item_id) == []


def test_zero_cost_line_is_allowed(ledger, make_item, buy):
    jars = make_item("JAR-8OZ", quantity="10", cost="0.85")
    buy((jars.item_id, "10", "0"))
    assert ledger.get_item(jars.item_id).weighted_average_cost == Decimal("0.4250")


def test_empty_purchase_is_rejected_by_schema(supplier):
    with pytest.raises(Exception):
        PurchaseCreate(supplier_id=supplier.supplier_id, line_items=[])
    with pytest.raises(Exception):
        PurchaseLineItemCreate(item_id="item-001", quantity=Decimal("0"), unit_cost=Decimal("1"))


def test_suppliers(ledger, supplier):
    other = ledger.create_supplier(SupplierCreate(name="Bee Happy Apiaries", email="orders@beehappy.example"))
    assert other.supplier_id == "sup-002"
    assert [s.name for s in ledger.list_suppliers()] == ["Bee Happy Apiaries", "Organic Valley Co-op"]

    ledger.archive_supplier(other.supplier_id)
    assert [s.supplier_id for s in ledger.list_suppliers()] == [supplier.supplier_id]
    assert len(ledger.list_suppliers(include_archived=True)) == 2
    assert ledger.get_supplier(other.supplier_id).is_archived
    with pytest.raises(NotFoundError):
        ledger.get_supplier("sup-999")


def test_list_purchases_by_supplier(ledger, make_item, supplier):
    flour = make_item("FLOUR-001")
    other = ledger.create_supplier(SupplierCreate(name="Mill Direct"))
    for supplier_id, day in ((other.supplier_id, 20), (supplier.supplier_id, 5), (other.supplier_id, 1)):
        ledger.record_purchase(PurchaseCreate(
            supplier_id=supplier_id,
            purchase_date=date(2025, 1, day),
            line_items=[PurchaseLineItemCreate(item_id=flour.item_id, quantity=Decimal("1"), unit_cost=Decimal("2"))],
        ))

    dates = [p.purchase_date.day for p in ledger.list_purchases(supplier_id=other.supplier_id)]
    assert dates == [1, 20]
    assert len(ledger.list_purchases()) == 3

from datetime import date
from decimal import Decimal

import pytest

from artisan_ledger.exceptions import InsufficientStockError, ValidationError
from artisan_ledger.schemas import ItemType, SaleCreate, SalesDataSource, SalesMonthCreate, TransactionType


@pytest.fixture
def bread(make_item):
    return make_item("BREAD-001", quantity="12", cost="4.25", type=ItemType.PRODUCT, unit="loaves")


def sell(ledger, item_id, quantity, price, day=None):
    return ledger.record_sale(SaleCreate(
        product_id=item_id,
        quantity=Decimal(quantity),
        unit_price=Decimal(price),
        sale_date=day,
    ))


def test_sale_debits_stock_and_books_profit(ledger, bread, assert_consistent):
    result = sell(ledger, bread.item_id, "2", "8.00")
    sale = result.sale

    assert sale.total_price == Decimal("16.00")
    assert sale.unit_cost == Decimal("4.2500")
    assert sale.cost_of_goods == Decimal("8.50")
    assert sale.gross_profit == Decimal("7.50")

    txn = ledger.get_transaction_history(bread.item_id)[-1]
    assert txn.transaction_id == result.transaction_id
    assert txn.type == TransactionType.SALE
    assert txn.quantity_change == Decimal("-2")
    assert txn.source_id == sale.sale_id

    item = ledger.get_item(bread.item_id)
    assert item.current_quantity == Decimal("10")
    assert item.weighted_average_cost == Decimal("4.2500")
    assert_consistent(ledger)


def test_cannot_oversell(ledger, bread):
    with pytest.raises(InsufficientStockError) as exc_info:
        sell(ledger, bread.item_id, "12.001", "8.00")
    assert exc_info.value.available == Decimal("12")
    assert ledger.get_item(bread.item_id).current_quantity == Decimal("12")
    assert ledger.list_sales() == []


def test_selling_the_last_unit(ledger, bread):
    sell(ledger, bread.item_id, "12", "8.00")
    assert ledger.get_item(bread.item_id).current_quantity == Decimal("0")


def test_only_products_can_be_sold(ledger, make_item):
    flour = make_item("FLOUR-001", quantity="20")
    with pytest.raises(ValidationError):
        sell(ledger, flour.item_id, "1", "5.00")


def test_archived_product_cannot_be_sold(ledger, bread):
    ledger.archive_item(bread.item_id)
    with pytest.raises(ValidationError):
        sell(ledger, bread.item_id, "1", "8.00")


def test_monthly_view_combines_ledger_and_manual_rows(ledger, bread):
    sell(ledger, bread.item_id, "2", "8.00", day=date(2025, 1, 15))
    sell(ledger, bread.item_id, "3", "8.00", day=date(2025, 1, 20))
    sell(ledger, bread.item_id, "1", "8.00", day=date(2025, 2, 2))
    ledger.import_sales_month(SalesMonthCreate(
        item_id=bread.item_id, year=2024, month=12, quantity_sold=Decimal("45"),
    ))

    rows = ledger.monthly_sales(bread.item_id)
    assert [(r.year, r.month, r.data_source) for r in rows] == [
        (2024, 12, SalesDataSource.MANUAL),
        (2025, 1, SalesDataSource.LEDGER),
        (2025, 2, SalesDataSource.LEDGER),
    ]
    assert rows[1].quantity_sold == Decimal("5")
    assert rows[1].sales_month_id == f"ledger-{bread.item_id}-202501"


def test_import_replaces_same_month(ledger, bread):
    first = ledger.import_sales_month(SalesMonthCreate(
        item_id=bread.item_id, year=2024, month=12, quantity_sold=Decimal("45"),
    ))
    second = ledger.import_sales_month(SalesMonthCreate(
        item_id=bread.item_id, year=2024, month=12, quantity_sold=Decimal("52"),
        data_source=SalesDataSource.IMPORTED,
    ))
    assert second.sales_month_id == first.sales_month_id
    rows = ledger.monthly_sales()
    assert len(rows) == 1
    assert rows[0].quantity_sold == Decimal("52")
    assert rows[0].data_source == SalesDataSource.IMPORTED


def test_ledger_rollups_cannot_be_entered(bread):
    with pytest.raises(Exception):
        SalesMonthCreate(
            item_id=bread.item_id, year=2025, month=1, quantity_sold=Decimal("1"),
            data_source=SalesDataSource.LEDGER,
        )


def test_monthly_import_rejects_ingredients(ledger, make_item):
    flour = make_item("FLOUR-001")
    with pytest.raises(ValidationError):
        ledger.import_sales_month(SalesMonthCreate(
            item_id=flour.item_id, year=2025, month=1, quantity_sold=Decimal("3"),
        ))


def test_months_are_kept_per_product(ledger, bread, make_item):
    rolls = make_item("ROLLS-001", type=ItemType.PRODUCT, unit="pcs")
    first = ledger.import_sales_month(SalesMonthCreate(
        item_id=bread.item_id, year=2024, month=12, quantity_sold=Decimal("45"),
    ))
    second = ledger.import_sales_month(SalesMonthCreate(
        item_id=rolls.item_id, year=2024, month=12, quantity_sold=Decimal("120"),
    ))
    third = ledger.import_sales_month(SalesMonthCreate(
        item_id=bread.item_id, year=2024, month=11, quantity_sold=Decimal("40"),
    ))
    assert len({first.sales_month_id, second.sales_month_id, third.sales_month_id}) == 3
    assert [(r.item_id, r.month) for r in ledger.monthly_sales()] == [
        (bread.item_id, 11), (bread.item_id, 12), (rolls.item_id, 12),
    ]

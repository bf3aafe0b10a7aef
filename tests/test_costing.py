from decimal import Decimal

import pytest

from artisan_ledger.engine.costing import CostingEngine, weighted_average_cost
from artisan_ledger.schemas import BatchCreate, ItemType, SpotCheckCreate


@pytest.mark.parametrize("old_q,old_c,q,c,expected", [
    ("0", "0", "10", "2", "2.0000"),
    ("10", "2", "10", "4", "3.0000"),
    ("0", "5.00", "3", "2", "2.0000"),
    ("-2", "5.00", "3", "2", "2.0000"),
    ("3", "1", "0.5", "2.50", "1.2143"),
])
def test_weighted_average_cost(old_q, old_c, q, c, expected):
    result = weighted_average_cost(Decimal(old_q), Decimal(old_c), Decimal(q), Decimal(c))
    assert result == Decimal(expected)
    assert result.as_tuple().exponent == -4


def test_expected_labor_cost():
    costing = CostingEngine(Decimal("15.00"))
    assert costing.expected_labor_cost(180) == Decimal("45.00")
    assert costing.expected_labor_cost(180, batches=4) == Decimal("180.00")
    assert costing.expected_labor_cost(0, batches=3) == Decimal("0.00")


def test_purchases_blend_and_consumption_leaves_cost_alone(ledger, make_item, make_recipe, buy):
    flour = make_item("FLOUR-A")
    loaf = make_item("LOAF-A", type=ItemType.PRODUCT)

    buy((flour.item_id, "10", "2"))
    assert ledger.get_item(flour.item_id).weighted_average_cost == Decimal("2.0000")

    buy((flour.item_id, "10", "4"))
    item = ledger.get_item(flour.item_id)
    assert item.current_quantity == Decimal("20")
    assert item.weighted_average_cost == Decimal("3.0000")

    recipe = make_recipe(loaf.item_id, [(flour.item_id, "5")])
    ledger.record_batch(BatchCreate(recipe_id=recipe.recipe_id, qty_made=Decimal("1")))

    item = ledger.get_item(flour.item_id)
    assert item.current_quantity == Decimal("15")
    assert item.weighted_average_cost == Decimal("3.0000")


def test_same_price_receipts_are_order_independent(ledger, make_item, buy):
    x = make_item("X-1", quantity="4", cost="2")
    y = make_item("Y-1", quantity="4", cost="2")

    buy((x.item_id, "5", "3"))
    buy((x.item_id, "7", "3"))
    buy((y.item_id, "7", "3"))
    buy((y.item_id, "5", "3"))

    assert ledger.get_item(x.item_id).weighted_average_cost == Decimal("2.7500")
    assert ledger.get_item(y.item_id).weighted_average_cost == Decimal("2.7500")


def test_splitting_a_receipt_does_not_move_the_average(ledger, make_item, buy):
    whole = make_item("WHOLE", quantity="4", cost="2")
    split = make_item("SPLIT", quantity="4", cost="2")
    same_purchase = make_item("SAME", quantity="4", cost="2")

    buy((whole.item_id, "10", "3"))
    buy((split.item_id, "4", "3"))
    buy((split.item_id, "6", "3"))
    # Two lines for one item in a single purchase chain through staged state
    buy((same_purchase.item_id, "4", "3"), (same_purchase.item_id, "6", "3"))

    expected = Decimal("2.7143")
    assert ledger.get_item(whole.item_id).weighted_average_cost == expected
    assert ledger.get_item(split.item_id).weighted_average_cost == expected
    assert ledger.get_item(same_purchase.item_id).weighted_average_cost == expected
    assert ledger.get_item(same_purchase.item_id).current_quantity == Decimal("14")


def test_receipt_after_stockout_resets_cost(ledger, make_item, buy):
    honey = make_item("HONEY-Z", quantity="0", cost="12.50")
    assert ledger.get_item(honey.item_id).weighted_average_cost == Decimal("12.5000")

    buy((honey.item_id, "3", "9.10"))
    assert ledger.get_item(honey.item_id).weighted_average_cost == Decimal("9.1000")


def test_spot_check_does_not_move_cost(ledger, make_item):
    salt = make_item("SALT-Z", quantity="12", cost="4.20")
    ledger.record_spot_check(SpotCheckCreate(
        item_id=salt.item_id,
        previous_quantity=Decimal("12"),
        counted_quantity=Decimal("30"),
        reason="Found a second bag",
    ))
    item = ledger.get_item(salt.item_id)
    assert item.current_quantity == Decimal("30")
    assert item.weighted_average_cost == Decimal("4.2000")

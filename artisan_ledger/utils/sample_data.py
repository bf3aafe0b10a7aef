"""
Demo catalogue for a fresh ledger.

Everything goes through the regular commands, so seeded stock carries real
ledger history and weighted-average costs.
"""
import logging
from datetime import date
from decimal import Decimal

from artisan_ledger.schemas import (
    InventoryUnit,
    ItemCreate,
    ItemType,
    PurchaseCreate,
    PurchaseLineItemCreate,
    RecipeCreate,
    RecipeIngredientCreate,
    SalesMonthCreate,
    SupplierCreate,
)

logger = logging.getLogger(__name__)

SUPPLIERS = [
    {"name": "Organic Valley Co-op", "store_url": "https://organicvalley.com", "phone": "(555) 123-4567"},
    {"name": "Local Honey Farm", "store_url": "https://localhoney.com", "phone": "(555) 987-6543"},
    {"name": "Artisan Packaging Co.", "store_url": "https://artisanpack.com", "phone": "(555) 456-7890"},
]

# (name, sku, type, unit, reorder point, opening quantity, opening unit cost)
ITEMS = [
    ("Organic Flour", "ORG-FLOUR-001", ItemType.INGREDIENT, InventoryUnit.LBS, "10", "0", "0"),
    ("Raw Honey", "HON-RAW-002", ItemType.INGREDIENT, InventoryUnit.LBS, "5", "0", "0"),
    ("Sea Salt", "SALT-SEA-003", ItemType.INGREDIENT, InventoryUnit.LBS, "8", "0", "0"),
    ("Mason Jars (8oz)", "JAR-8OZ-004", ItemType.PACKAGING, InventoryUnit.PCS, "50", "0", "0"),
    ("Honey Wheat Bread", "BREAD-HW-005", ItemType.PRODUCT, InventoryUnit.LOAVES, "5", "12", "4.25"),
    ("Artisan Honey (8oz)", "HON-ART-006", ItemType.PRODUCT, InventoryUnit.JARS, "10", "24", "8.75"),
]

# (supplier index, date, notes, [(item index, quantity, unit cost, lot)])
PURCHASES = [
    (0, date(2025, 1, 2), "Weekly flour and salt order", [
        (0, "20", "2.45", "FL-2025-001"),
        (2, "12", "4.20", "SALT-2025-001"),
    ]),
    (1, date(2025, 1, 3), "Monthly honey supply", [
        (1, "12", "12.50", "HON-2025-001"),
    ]),
    (2, date(2025, 1, 5), "Mason jar restock", [
        (3, "144", "0.85", "JAR-2025-001"),
    ]),
]

# (name, yields item index, expected yield, labor minutes, [(item index, quantity)])
RECIPES = [
    ("Honey Wheat Bread", 4, "2", 180, [(0, "2"), (1, "0.5"), (2, "0.1")]),
    ("Artisan Honey Jar", 5, "1", 15, [(1, "0.5"), (3, "1")]),
]

# (item index, year, month, quantity sold)
SALES_MONTHS = [
    (4, 2024, 12, "45"),
    (5, 2024, 12, "32"),
]


def seed_sample_data(ledger) -> None:
    """Load the demo catalogue into an empty ledger."""
    if not ledger.is_empty():
        logger.info("Ledger already has items, skipping sample data")
        return

    suppliers = [ledger.create_supplier(SupplierCreate(**s)) for s in SUPPLIERS]

    items = []
    for name, sku, item_type, unit, reorder, quantity, cost in ITEMS:
        result = ledger.create_item(ItemCreate(
            name=name,
            sku=sku,
            type=item_type,
            inventory_unit=unit,
            reorder_point=Decimal(reorder),
            initial_quantity=Decimal(quantity),
            unit_cost=Decimal(cost),
        ))
        items.append(result.item)

    for supplier_index, purchase_date, notes, lines in PURCHASES:
        ledger.record_purchase(PurchaseCreate(
            supplier_id=suppliers[supplier_index].supplier_id,
            purchase_date=purchase_date,
            notes=notes,
            line_items=[
                PurchaseLineItemCreate(
                    item_id=items[i].item_id,
                    quantity=Decimal(q),
                    unit_cost=Decimal(c),
                    lot_number=lot,
                )
                for i, q, c, lot in lines
            ],
        ))

    for name, output_index, expected_yield, labor_minutes, ingredients in RECIPES:
        ledger.create_recipe(RecipeCreate(
            name=name,
            yields_item_id=items[output_index].item_id,
            expected_yield=Decimal(expected_yield),
            labor_minutes=labor_minutes,
            ingredients=[
                RecipeIngredientCreate(item_id=items[i].item_id, quantity=Decimal(q))
                for i, q in ingredients
            ],
        ))

    for item_index, year, month, quantity in SALES_MONTHS:
        ledger.import_sales_month(SalesMonthCreate(
            item_id=items[item_index].item_id,
            year=year,
            month=month,
            quantity_sold=Decimal(quantity),
        ))

    logger.info(f"Seeded sample data: {len(suppliers)} suppliers, {len(items)} items, {len(RECIPES)} recipes")

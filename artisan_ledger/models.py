"""
SQLAlchemy 2.x journal tables.
Rows mirror the engine's pydantic entities field for field; ids are the
engine's readable string ids.
"""
from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from artisan_ledger.database import Base

QTY = Numeric(14, 3)
COST = Numeric(14, 4)
MONEY = Numeric(14, 2)


class Supplier(Base):
    __tablename__ = "suppliers"

    supplier_id = Column(String(20), primary_key=True)
    name = Column(String(100), nullable=False)
    store_url = Column(String(200))
    contact_name = Column(String(100))
    email = Column(String(100))
    phone = Column(String(20))
    address = Column(String(200))
    notes = Column(Text)
    is_archived = Column(Boolean, nullable=False, default=False)

    # Relationships
    purchases = relationship("Purchase", back_populates="supplier")


class Item(Base):
    __tablename__ = "items"

    item_id = Column(String(20), primary_key=True)
    sku = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False)
    inventory_unit = Column(String(20), nullable=False)
    current_quantity = Column(QTY, nullable=False, default=0)
    weighted_average_cost = Column(COST, nullable=False, default=0)
    reorder_point = Column(QTY, nullable=False, default=0)
    last_counted_date = Column(Date)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="item", order_by="Transaction.sequence")


class Recipe(Base):
    __tablename__ = "recipes"

    recipe_id = Column(String(20), primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    version = Column(Integer, nullable=False, default=1)
    previous_version_id = Column(String(20), ForeignKey("recipes.recipe_id"))
    is_archived = Column(Boolean, nullable=False, default=False)
    yields_item_id = Column(String(20), ForeignKey("items.item_id"), nullable=False)
    expected_yield = Column(QTY, nullable=False)
    labor_minutes = Column(Integer, nullable=False, default=0)
    projected_material_cost = Column(MONEY, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    ingredients = relationship(
        "RecipeIngredient", back_populates="recipe", order_by="RecipeIngredient.recipe_ingredient_id"
    )


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"

    recipe_ingredient_id = Column(String(20), primary_key=True)
    recipe_id = Column(String(20), ForeignKey("recipes.recipe_id"), nullable=False)
    item_id = Column(String(20), ForeignKey("items.item_id"), nullable=False)
    quantity = Column(QTY, nullable=False)
    notes = Column(String(100))

    # Relationships
    recipe = relationship("Recipe", back_populates="ingredients")


class Purchase(Base):
    __tablename__ = "purchases"

    purchase_id = Column(String(20), primary_key=True)
    supplier_id = Column(String(20), ForeignKey("suppliers.supplier_id"), nullable=False)
    purchase_date = Column(Date, nullable=False)
    grand_total = Column(MONEY, nullable=False)
    notes = Column(Text)

    # Relationships
    supplier = relationship("Supplier", back_populates="purchases")
    line_items = relationship(
        "PurchaseLineItem", back_populates="purchase", order_by="PurchaseLineItem.purchase_line_item_id"
    )


class PurchaseLineItem(Base):
    __tablename__ = "purchase_line_items"

    purchase_line_item_id = Column(String(20), primary_key=True)
    purchase_id = Column(String(20), ForeignKey("purchases.purchase_id"), nullable=False)
    item_id = Column(String(20), ForeignKey("items.item_id"), nullable=False)
    quantity = Column(QTY, nullable=False)
    unit_cost = Column(COST, nullable=False)
    total_cost = Column(MONEY, nullable=False)
    lot_number = Column(String(50))
    notes = Column(String(200))
    transaction_id = Column(String(20), nullable=False)

    # Relationships
    purchase = relationship("Purchase", back_populates="line_items")


class Batch(Base):
    __tablename__ = "batches"

    batch_id = Column(String(20), primary_key=True)
    recipe_id = Column(String(20), ForeignKey("recipes.recipe_id"), nullable=False)
    recipe_version = Column(Integer, nullable=False)
    date_created = Column(Date, nullable=False)
    batches = Column(Integer, nullable=False, default=1)
    qty_made = Column(QTY, nullable=False)
    yield_percentage = Column(Numeric(8, 2), nullable=False)
    material_cost = Column(MONEY, nullable=False)
    labor_cost = Column(MONEY, nullable=False)
    actual_cost = Column(MONEY, nullable=False)
    projected_cost = Column(MONEY, nullable=False)
    material_variance = Column(MONEY, nullable=False)
    cost_variance = Column(MONEY, nullable=False)
    notes = Column(Text)
    transaction_ids = Column(JSON, nullable=False, default=list)


class SpotCheck(Base):
    __tablename__ = "spot_checks"

    spot_check_id = Column(String(20), primary_key=True)
    item_id = Column(String(20), ForeignKey("items.item_id"), nullable=False)
    previous_quantity = Column(QTY, nullable=False)
    new_quantity = Column(QTY, nullable=False)
    reason = Column(String(200), nullable=False)
    notes = Column(Text)
    timestamp = Column(DateTime(timezone=True), nullable=False)


class Transaction(Base):
    """Append-only. Rows are inserted once and never updated."""

    __tablename__ = "transactions"

    transaction_id = Column(String(20), primary_key=True)
    item_id = Column(String(20), ForeignKey("items.item_id"), nullable=False, index=True)
    quantity_change = Column(QTY, nullable=False)
    new_quantity = Column(QTY, nullable=False)
    type = Column(String(20), nullable=False)
    source_id = Column(String(20), nullable=False)
    sequence = Column(Integer, unique=True, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    item = relationship("Item", back_populates="transactions")


class Sale(Base):
    __tablename__ = "sales"

    sale_id = Column(String(20), primary_key=True)
    item_id = Column(String(20), ForeignKey("items.item_id"), nullable=False)
    quantity = Column(QTY, nullable=False)
    unit_price = Column(COST, nullable=False)
    total_price = Column(MONEY, nullable=False)
    unit_cost = Column(COST, nullable=False)
    cost_of_goods = Column(MONEY, nullable=False)
    gross_profit = Column(MONEY, nullable=False)
    sale_date = Column(Date, nullable=False)
    notes = Column(Text)
    transaction_id = Column(String(20), nullable=False)


class SalesMonth(Base):
    __tablename__ = "sales_months"

    sales_month_id = Column(String(20), primary_key=True)
    item_id = Column(String(20), ForeignKey("items.item_id"), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    quantity_sold = Column(QTY, nullable=False)
    data_source = Column(String(20), nullable=False)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    action = Column(String(50), nullable=False)
    transaction_ids = Column(JSON, nullable=False, default=list)
    new_values = Column(JSON)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

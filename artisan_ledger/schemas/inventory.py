"""
Inventory schemas:
- Decimal quantities (3 places) and unit costs (4 places)
- Append-only transactions, frozen once created
- Spot checks carry the quantity they were counted from
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from artisan_ledger.utils.numbers import to_cost, to_quantity


class ItemType(str, Enum):
    INGREDIENT = "ingredient"
    PACKAGING = "packaging"
    PRODUCT = "product"


class InventoryUnit(str, Enum):
    LBS = "lbs"
    OZ = "oz"
    KG = "kg"
    G = "g"
    EACH = "each"
    GALLON = "gallon"
    LITER = "liter"
    CUP = "cup"
    PCS = "pcs"
    JARS = "jars"
    LOAVES = "loaves"


class ItemStatus(str, Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    BATCH_USAGE = "batch_usage"
    BATCH_CREATION = "batch_creation"
    SPOT_CHECK = "spot_check"
    SALE = "sale"


# Item Schemas
class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    sku: str = Field(..., min_length=1, max_length=50)
    type: ItemType
    inventory_unit: InventoryUnit
    reorder_point: Decimal = Field(Decimal("0"), ge=0)
    initial_quantity: Decimal = Field(Decimal("0"), ge=0)
    unit_cost: Decimal = Field(Decimal("0"), ge=0)

    @field_validator("name", "sku")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("reorder_point", "initial_quantity")
    @classmethod
    def round_quantity(cls, v: Decimal) -> Decimal:
        return to_quantity(v)

    @field_validator("unit_cost")
    @classmethod
    def round_cost(cls, v: Decimal) -> Decimal:
        return to_cost(v)


class Item(BaseModel):
    """
    Canonical inventory item. ``current_quantity`` and ``weighted_average_cost``
    are projections maintained by the ledger and costing engine.
    """

    model_config = ConfigDict(from_attributes=True)

    item_id: str
    sku: str
    name: str
    type: ItemType
    inventory_unit: InventoryUnit
    current_quantity: Decimal = Decimal("0.000")
    weighted_average_cost: Decimal = Decimal("0.0000")
    reorder_point: Decimal = Decimal("0.000")
    last_counted_date: Optional[date] = None
    is_archived: bool = False
    created_at: datetime


# Ledger Schemas (append-only)
class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    transaction_id: str
    item_id: str
    quantity_change: Decimal
    new_quantity: Decimal
    type: TransactionType
    source_id: str
    sequence: int
    timestamp: datetime


class ItemResult(BaseModel):
    item: Item
    transaction_ids: List[str] = []


# Spot Check Schemas
class SpotCheckCreate(BaseModel):
    item_id: str = Field(..., min_length=1)
    previous_quantity: Decimal = Field(..., ge=0)
    counted_quantity: Decimal = Field(..., ge=0)
    reason: str = Field(..., min_length=1, max_length=200)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("previous_quantity", "counted_quantity")
    @classmethod
    def round_quantity(cls, v: Decimal) -> Decimal:
        return to_quantity(v)


class SpotCheck(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    spot_check_id: str
    item_id: str
    previous_quantity: Decimal
    new_quantity: Decimal
    reason: str
    notes: Optional[str] = None
    timestamp: datetime


class SpotCheckResult(BaseModel):
    spot_check: SpotCheck
    transaction_id: str

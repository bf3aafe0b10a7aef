"""
Supplier and purchase schemas.
Each purchase line becomes exactly one purchase transaction.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal

from artisan_ledger.utils.numbers import to_cost, to_quantity


# Supplier Schemas
class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    store_url: Optional[str] = Field(None, max_length=200)
    contact_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=100, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=500)


class Supplier(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    supplier_id: str
    name: str
    store_url: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    is_archived: bool = False


# Purchase Schemas
class PurchaseLineItemCreate(BaseModel):
    item_id: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0)
    unit_cost: Decimal = Field(..., ge=0)
    lot_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=200)

    @field_validator("quantity")
    @classmethod
    def round_quantity(cls, v: Decimal) -> Decimal:
        v = to_quantity(v)
        if v <= 0:
            raise ValueError("quantity must be at least 0.001")
        return v

    @field_validator("unit_cost")
    @classmethod
    def round_cost(cls, v: Decimal) -> Decimal:
        return to_cost(v)


class PurchaseCreate(BaseModel):
    supplier_id: str = Field(..., min_length=1)
    purchase_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)
    line_items: List[PurchaseLineItemCreate] = Field(..., min_length=1)


class PurchaseLineItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    purchase_line_item_id: str
    purchase_id: str
    item_id: str
    quantity: Decimal
    unit_cost: Decimal
    total_cost: Decimal
    lot_number: Optional[str] = None
    notes: Optional[str] = None
    transaction_id: str


class Purchase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    purchase_id: str
    supplier_id: str
    purchase_date: date
    grand_total: Decimal
    notes: Optional[str] = None
    line_items: List[PurchaseLineItem] = []


class PurchaseResult(BaseModel):
    purchase: Purchase
    transaction_ids: List[str]

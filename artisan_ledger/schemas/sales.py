"""
Sale schemas.
Sale transactions are the ledger-accurate record; SalesMonth rows are rollups
or manually entered placeholders.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import date
from decimal import Decimal
from enum import Enum

from artisan_ledger.utils.numbers import to_cost, to_quantity


class SalesDataSource(str, Enum):
    LEDGER = "ledger"
    MANUAL = "manual"
    IMPORTED = "imported"


class SaleCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    sale_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("quantity")
    @classmethod
    def round_quantity(cls, v: Decimal) -> Decimal:
        v = to_quantity(v)
        if v <= 0:
            raise ValueError("quantity must be at least 0.001")
        return v

    @field_validator("unit_price")
    @classmethod
    def round_price(cls, v: Decimal) -> Decimal:
        return to_cost(v)


class Sale(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sale_id: str
    item_id: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    unit_cost: Decimal
    cost_of_goods: Decimal
    gross_profit: Decimal
    sale_date: date
    notes: Optional[str] = None
    transaction_id: str


class SaleResult(BaseModel):
    sale: Sale
    transaction_id: str


class SalesMonthCreate(BaseModel):
    item_id: str = Field(..., min_length=1)
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    quantity_sold: Decimal = Field(..., ge=0)
    data_source: SalesDataSource = SalesDataSource.MANUAL

    @field_validator("quantity_sold")
    @classmethod
    def round_quantity(cls, v: Decimal) -> Decimal:
        return to_quantity(v)

    @field_validator("data_source")
    @classmethod
    def not_ledger(cls, v: SalesDataSource) -> SalesDataSource:
        if v == SalesDataSource.LEDGER:
            raise ValueError("ledger rollups are computed, not entered")
        return v


class SalesMonth(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sales_month_id: str
    item_id: str
    year: int
    month: int
    quantity_sold: Decimal
    data_source: SalesDataSource

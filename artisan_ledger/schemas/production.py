"""
Recipe and batch schemas.
Recipes are immutable and versioned; batches reference the version they ran.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from artisan_ledger.utils.numbers import to_money, to_quantity


class BatchState(str, Enum):
    REQUESTED = "REQUESTED"
    VALIDATED = "VALIDATED"
    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"


# Recipe Schemas
class RecipeIngredientCreate(BaseModel):
    item_id: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0)
    notes: Optional[str] = Field(None, max_length=100)

    @field_validator("quantity")
    @classmethod
    def round_quantity(cls, v: Decimal) -> Decimal:
        v = to_quantity(v)
        if v <= 0:
            raise ValueError("quantity must be at least 0.001")
        return v


class RecipeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    yields_item_id: str = Field(..., min_length=1)
    expected_yield: Decimal = Field(..., gt=0)
    labor_minutes: int = Field(0, ge=0)
    ingredients: List[RecipeIngredientCreate] = Field(..., min_length=1)

    @field_validator("expected_yield")
    @classmethod
    def round_yield(cls, v: Decimal) -> Decimal:
        v = to_quantity(v)
        if v <= 0:
            raise ValueError("expected_yield must be at least 0.001")
        return v


class RecipeRevision(BaseModel):
    """Fields left unset carry over from the version being revised."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    expected_yield: Optional[Decimal] = Field(None, gt=0)
    labor_minutes: Optional[int] = Field(None, ge=0)
    ingredients: Optional[List[RecipeIngredientCreate]] = Field(None, min_length=1)

    @field_validator("expected_yield")
    @classmethod
    def round_yield(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is None:
            return None
        v = to_quantity(v)
        if v <= 0:
            raise ValueError("expected_yield must be at least 0.001")
        return v


class RecipeIngredient(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    recipe_ingredient_id: str
    recipe_id: str
    item_id: str
    quantity: Decimal
    notes: Optional[str] = None


class Recipe(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    recipe_id: str
    name: str
    description: Optional[str] = None
    version: int = 1
    previous_version_id: Optional[str] = None
    is_archived: bool = False
    yields_item_id: str
    expected_yield: Decimal
    labor_minutes: int = 0
    projected_material_cost: Decimal
    ingredients: List[RecipeIngredient] = []
    created_at: datetime


class RecipeCapacity(BaseModel):
    recipe_id: str
    count: int
    limiting_item_id: Optional[str] = None


class RecipeCostEstimate(BaseModel):
    recipe_id: str
    batches: int
    material_cost: Decimal
    labor_cost: Decimal
    total_cost: Decimal
    cost_per_unit: Decimal


# Batch Schemas
class BatchCreate(BaseModel):
    recipe_id: str = Field(..., min_length=1)
    date_created: Optional[date] = None
    batches: int = Field(1, ge=1)
    qty_made: Decimal = Field(..., gt=0)
    labor_cost: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("qty_made")
    @classmethod
    def round_quantity(cls, v: Decimal) -> Decimal:
        v = to_quantity(v)
        if v <= 0:
            raise ValueError("qty_made must be at least 0.001")
        return v

    @field_validator("labor_cost")
    @classmethod
    def round_money(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return None if v is None else to_money(v)


class Batch(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    batch_id: str
    recipe_id: str
    recipe_version: int
    date_created: date
    batches: int
    qty_made: Decimal
    yield_percentage: Decimal
    material_cost: Decimal
    labor_cost: Decimal
    actual_cost: Decimal
    projected_cost: Decimal
    material_variance: Decimal
    cost_variance: Decimal
    notes: Optional[str] = None
    transaction_ids: List[str] = []


class BatchResult(BaseModel):
    batch: Batch
    transaction_ids: List[str]

"""
Recipes router: versioned recipes, capacity and cost estimates.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List

from artisan_ledger.dependencies import get_ledger
from artisan_ledger.engine import LedgerService
from artisan_ledger.schemas import (
    Recipe,
    RecipeCapacity,
    RecipeCostEstimate,
    RecipeCreate,
    RecipeRevision,
)

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.post("", response_model=Recipe, status_code=status.HTTP_201_CREATED)
def create_recipe(recipe: RecipeCreate, ledger: LedgerService = Depends(get_ledger)):
    return ledger.create_recipe(recipe)


@router.get("", response_model=List[Recipe])
def list_recipes(include_archived: bool = False, ledger: LedgerService = Depends(get_ledger)):
    return ledger.list_recipes(include_archived=include_archived)


@router.get("/{recipe_id}", response_model=Recipe)
def get_recipe(recipe_id: str, ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_recipe(recipe_id)


@router.post("/{recipe_id}/revisions", response_model=Recipe, status_code=status.HTTP_201_CREATED)
def revise_recipe(recipe_id: str, revision: RecipeRevision, ledger: LedgerService = Depends(get_ledger)):
    """
    Write the next version of a recipe. The current version is archived;
    batches already run keep pointing at it.
    """
    return ledger.revise_recipe(recipe_id, revision)


@router.get("/{recipe_id}/capacity", response_model=RecipeCapacity)
def get_recipe_capacity(recipe_id: str, ledger: LedgerService = Depends(get_ledger)):
    """Whole batches current stock supports, and the ingredient that limits it."""
    return ledger.get_recipe_capacity(recipe_id)


@router.get("/{recipe_id}/cost-estimate", response_model=RecipeCostEstimate)
def estimate_recipe_cost(
    recipe_id: str,
    batches: int = Query(1, ge=1),
    ledger: LedgerService = Depends(get_ledger),
):
    return ledger.estimate_recipe_cost(recipe_id, batches)

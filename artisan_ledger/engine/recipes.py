"""
Recipes and the recipe resolver.

Recipes are immutable once written. A revision is a new recipe with the next
version number; the version it replaces is archived but stays readable, so
batches keep pointing at the exact formula they ran.
"""
import logging
import threading
from decimal import Decimal
from typing import Dict, List, Optional

from artisan_ledger.engine.costing import CostingEngine
from artisan_ledger.engine.ids import IdSequence
from artisan_ledger.engine.ledger import TransactionLedger, utcnow
from artisan_ledger.engine.registry import ItemRegistry
from artisan_ledger.exceptions import NotFoundError, ValidationError
from artisan_ledger.schemas.production import (
    Recipe,
    RecipeCapacity,
    RecipeCostEstimate,
    RecipeCreate,
    RecipeIngredient,
    RecipeIngredientCreate,
    RecipeRevision,
)
from artisan_ledger.utils.numbers import to_cost, to_money, to_quantity

logger = logging.getLogger(__name__)


class RecipeBook:
    def __init__(
        self,
        ids: IdSequence,
        ledger: TransactionLedger,
        registry: ItemRegistry,
        costing: CostingEngine,
        clock=None,
    ):
        self._ids = ids
        self._ledger = ledger
        self._registry = registry
        self._costing = costing
        self._clock = clock or utcnow
        self._recipes: Dict[str, Recipe] = {}
        self._catalog_lock = threading.RLock()

    def _check_items(self, yields_item_id: str, ingredients: List[RecipeIngredientCreate]) -> None:
        output = self._registry.resolve(yields_item_id)
        if output.is_archived:
            raise ValidationError(f"Output item '{yields_item_id}' is archived", item_id=yields_item_id)

        seen = set()
        for line in ingredients:
            item = self._registry.resolve(line.item_id)
            if item.is_archived:
                raise ValidationError(f"Ingredient '{line.item_id}' is archived", item_id=line.item_id)
            if line.item_id == yields_item_id:
                raise ValidationError("A recipe cannot consume the item it yields", item_id=line.item_id)
            if line.item_id in seen:
                raise ValidationError(f"Ingredient '{line.item_id}' is listed twice", item_id=line.item_id)
            seen.add(line.item_id)

    def _build(
        self,
        name: str,
        description: Optional[str],
        yields_item_id: str,
        expected_yield: Decimal,
        labor_minutes: int,
        ingredients: List[RecipeIngredientCreate],
        version: int = 1,
        previous_version_id: Optional[str] = None,
    ) -> Recipe:
        recipe_id = self._ids.next("recipe")
        lines = [
            RecipeIngredient(
                recipe_ingredient_id=self._ids.next("recipe_ingredient"),
                recipe_id=recipe_id,
                item_id=line.item_id,
                quantity=line.quantity,
                notes=line.notes,
            )
            for line in ingredients
        ]
        projected = self._costing.projected_material_cost(
            (self._registry.resolve(line.item_id), line.quantity) for line in lines
        )
        return Recipe(
            recipe_id=recipe_id,
            name=name,
            description=description,
            version=version,
            previous_version_id=previous_version_id,
            yields_item_id=yields_item_id,
            expected_yield=to_quantity(expected_yield),
            labor_minutes=labor_minutes,
            projected_material_cost=projected,
            ingredients=lines,
            created_at=self._clock(),
        )

    def create(self, data: RecipeCreate) -> Recipe:
        with self._catalog_lock:
            self._check_items(data.yields_item_id, data.ingredients)
            recipe = self._build(
                data.name,
                data.description,
                data.yields_item_id,
                data.expected_yield,
                data.labor_minutes,
                data.ingredients,
            )
            with self._ledger.posting("CREATE_RECIPE") as post:
                post.record(self._recipes, recipe.recipe_id, recipe)
                post.audit = {"name": recipe.name, "ingredients": len(recipe.ingredients)}

        logger.info(
            f"Created recipe {recipe.recipe_id} '{recipe.name}' "
            f"(projected material cost {recipe.projected_material_cost})"
        )
        return recipe.model_copy(deep=True)

    def revise(self, recipe_id: str, data: RecipeRevision) -> Recipe:
        """
        Write version N+1 of a recipe. Only the current version can be revised.
        """
        with self._catalog_lock:
            current = self.resolve(recipe_id)
            if current.is_archived:
                raise ValidationError(
                    f"Recipe '{recipe_id}' has been superseded; revise the current version",
                    recipe_id=recipe_id,
                )

            if data.ingredients is not None:
                ingredients = data.ingredients
            else:
                ingredients = [
                    RecipeIngredientCreate(item_id=i.item_id, quantity=i.quantity, notes=i.notes)
                    for i in current.ingredients
                ]
            self._check_items(current.yields_item_id, ingredients)

            revised = self._build(
                data.name if data.name is not None else current.name,
                data.description if data.description is not None else current.description,
                current.yields_item_id,
                data.expected_yield if data.expected_yield is not None else current.expected_yield,
                data.labor_minutes if data.labor_minutes is not None else current.labor_minutes,
                ingredients,
                version=current.version + 1,
                previous_version_id=current.recipe_id,
            )
            with self._ledger.posting("REVISE_RECIPE") as post:
                post.record(self._recipes, revised.recipe_id, revised)
                post.update(current, is_archived=True)
                post.audit = {"previous_version_id": current.recipe_id, "version": revised.version}

        logger.info(f"Revised recipe {current.recipe_id} -> {revised.recipe_id} (v{revised.version})")
        return revised.model_copy(deep=True)

    def resolve(self, recipe_id: str) -> Recipe:
        recipe = self._recipes.get(recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe", recipe_id)
        return recipe

    def get(self, recipe_id: str) -> Recipe:
        return self.resolve(recipe_id).model_copy(deep=True)

    def list(self, include_archived: bool = False) -> List[Recipe]:
        recipes = [r for r in self._recipes.values() if include_archived or not r.is_archived]
        return [r.model_copy(deep=True) for r in sorted(recipes, key=lambda r: (r.name.lower(), r.version))]

    def estimate_cost(self, recipe_id: str, batches: int = 1) -> RecipeCostEstimate:
        """Cost of running the recipe now, at current weighted-average costs."""
        if batches < 1:
            raise ValidationError("batches must be at least 1", batches=batches)
        recipe = self.resolve(recipe_id)
        material = self._costing.projected_material_cost(
            (self._registry.resolve(i.item_id), i.quantity * batches) for i in recipe.ingredients
        )
        labor = self._costing.expected_labor_cost(recipe.labor_minutes, batches)
        total = to_money(material + labor)
        return RecipeCostEstimate(
            recipe_id=recipe.recipe_id,
            batches=batches,
            material_cost=material,
            labor_cost=labor,
            total_cost=total,
            cost_per_unit=to_cost(total / (recipe.expected_yield * batches)),
        )

    def restore(self, recipes) -> None:
        for recipe in recipes:
            self._recipes[recipe.recipe_id] = recipe


class RecipeResolver:
    """Read-only: how many whole batches current stock supports."""

    def __init__(self, recipes: RecipeBook, registry: ItemRegistry):
        self._recipes = recipes
        self._registry = registry

    def max_batches(self, recipe_id: str) -> RecipeCapacity:
        recipe = self._recipes.resolve(recipe_id)
        if not recipe.ingredients:
            raise ValidationError(f"Recipe '{recipe_id}' has no ingredients", recipe_id=recipe_id)

        count: Optional[int] = None
        limiting: Optional[str] = None
        for ingredient in recipe.ingredients:
            item = self._registry.resolve(ingredient.item_id)
            available = item.current_quantity
            if item.is_archived or available < 0:
                available = Decimal("0")
            possible = int(available // ingredient.quantity)
            if count is None or possible < count:
                count = possible
                limiting = item.item_id

        return RecipeCapacity(recipe_id=recipe.recipe_id, count=count, limiting_item_id=limiting)

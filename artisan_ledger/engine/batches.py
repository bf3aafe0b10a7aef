"""
Batch processor: turns ingredients into finished goods atomically.

A batch either commits in full (every ingredient debited, the output
credited, the Batch record written) or not at all.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from artisan_ledger.engine.costing import CostingEngine
from artisan_ledger.engine.ids import IdSequence
from artisan_ledger.engine.ledger import TransactionLedger, utcnow
from artisan_ledger.engine.locks import ItemLockManager
from artisan_ledger.engine.recipes import RecipeBook
from artisan_ledger.engine.registry import ItemRegistry
from artisan_ledger.exceptions import InsufficientStockError, NotFoundError, ValidationError
from artisan_ledger.schemas.inventory import TransactionType
from artisan_ledger.schemas.production import Batch, BatchCreate, BatchResult, BatchState
from artisan_ledger.utils.numbers import to_cost, to_money, to_percent, to_quantity

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


class BatchRequest:
    """Tracks one batch through REQUESTED -> VALIDATED -> COMMITTED, or REJECTED."""

    def __init__(self, data: BatchCreate):
        self.data = data
        self.state = BatchState.REQUESTED
        self.batch_id: Optional[str] = None
        logger.info(f"Batch request for recipe {data.recipe_id} x{data.batches}: {self.state.value}")

    def advance(self, state: BatchState, reason: str = "") -> None:
        previous, self.state = self.state, state
        message = f"Batch request for recipe {self.data.recipe_id}: {previous.value} -> {state.value}"
        if reason:
            message += f" ({reason})"
        if state == BatchState.REJECTED:
            logger.warning(message)
        else:
            logger.info(message)


class BatchProcessor:
    def __init__(
        self,
        ids: IdSequence,
        locks: ItemLockManager,
        ledger: TransactionLedger,
        registry: ItemRegistry,
        recipes: RecipeBook,
        costing: CostingEngine,
        clock=None,
    ):
        self._ids = ids
        self._locks = locks
        self._ledger = ledger
        self._registry = registry
        self._recipes = recipes
        self._costing = costing
        self._clock = clock or utcnow
        self._batches: Dict[str, Batch] = {}

    def run(self, data: BatchCreate) -> BatchResult:
        request = BatchRequest(data)
        try:
            result = self._run(request)
        except Exception as e:
            request.advance(BatchState.REJECTED, str(e))
            raise
        request.advance(BatchState.COMMITTED, result.batch.batch_id)
        return result

    def _run(self, request: BatchRequest) -> BatchResult:
        data = request.data
        recipe = self._recipes.resolve(data.recipe_id)
        if recipe.is_archived:
            raise ValidationError(
                f"Recipe '{recipe.recipe_id}' v{recipe.version} has been superseded",
                recipe_id=recipe.recipe_id,
            )

        # Required quantity per ingredient item, in recipe order
        requirements: Dict[str, Decimal] = {}
        for ingredient in recipe.ingredients:
            required = to_quantity(ingredient.quantity * data.batches)
            requirements[ingredient.item_id] = requirements.get(ingredient.item_id, Decimal("0")) + required

        for item_id in [*requirements, recipe.yields_item_id]:
            self._registry.resolve(item_id)

        with self._locks.hold([*requirements, recipe.yields_item_id]):
            ingredients = []
            for item_id, required in requirements.items():
                item = self._registry.resolve(item_id)
                if item.is_archived:
                    raise ValidationError(f"Ingredient '{item_id}' is archived", item_id=item_id)
                if required > item.current_quantity:
                    raise InsufficientStockError(item_id, required, item.current_quantity)
                ingredients.append((item, required))

            output = self._registry.resolve(recipe.yields_item_id)
            if output.is_archived:
                raise ValidationError(f"Output item '{output.item_id}' is archived", item_id=output.item_id)
            request.advance(BatchState.VALIDATED)

            with self._ledger.posting("RECORD_BATCH") as post:
                batch_id = self._ids.next("batch")
                request.batch_id = batch_id

                # Costs at commit time, before any debit is staged
                material_cost = self._costing.material_cost(post, ingredients)
                transaction_ids: List[str] = []
                for item, required in ingredients:
                    txn = post.append(item, -required, TransactionType.BATCH_USAGE, batch_id)
                    transaction_ids.append(txn.transaction_id)

                expected_labor = self._costing.expected_labor_cost(recipe.labor_minutes, data.batches)
                labor_cost = data.labor_cost if data.labor_cost is not None else expected_labor
                actual_cost = to_money(material_cost + labor_cost)
                projected_material = to_money(recipe.projected_material_cost * data.batches)
                projected_cost = to_money(projected_material + expected_labor)

                self._costing.apply_receipt(post, output, data.qty_made, to_cost(actual_cost / data.qty_made))
                txn = post.append(output, data.qty_made, TransactionType.BATCH_CREATION, batch_id)
                transaction_ids.append(txn.transaction_id)

                batch = Batch(
                    batch_id=batch_id,
                    recipe_id=recipe.recipe_id,
                    recipe_version=recipe.version,
                    date_created=data.date_created or self._clock().date(),
                    batches=data.batches,
                    qty_made=data.qty_made,
                    yield_percentage=to_percent(
                        data.qty_made / (recipe.expected_yield * data.batches) * HUNDRED
                    ),
                    material_cost=material_cost,
                    labor_cost=labor_cost,
                    actual_cost=actual_cost,
                    projected_cost=projected_cost,
                    material_variance=to_money(material_cost - projected_material),
                    cost_variance=to_money(actual_cost - projected_cost),
                    notes=data.notes,
                    transaction_ids=transaction_ids,
                )
                post.record(self._batches, batch_id, batch)
                post.audit = {
                    "recipe_id": recipe.recipe_id,
                    "batches": data.batches,
                    "qty_made": str(data.qty_made),
                    "actual_cost": str(actual_cost),
                }

        return BatchResult(batch=batch.model_copy(deep=True), transaction_ids=list(transaction_ids))

    def get(self, batch_id: str) -> Batch:
        batch = self._batches.get(batch_id)
        if batch is None:
            raise NotFoundError("Batch", batch_id)
        return batch.model_copy(deep=True)

    def list(self, recipe_id: Optional[str] = None) -> List[Batch]:
        batches = [b for b in self._batches.values() if recipe_id is None or b.recipe_id == recipe_id]
        return [b.model_copy(deep=True) for b in sorted(batches, key=lambda b: b.date_created)]

    def restore(self, batches) -> None:
        for batch in batches:
            self._batches[batch.batch_id] = batch

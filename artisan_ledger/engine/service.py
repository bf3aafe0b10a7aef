"""
LedgerService: the single entry point for commands and queries.

Wires the registry, ledger, costing engine, recipe book, batch processor,
recorders and reorder monitor around one shared lock manager and id
sequence. Every value handed out is a copy.
"""
import logging
from datetime import date
from typing import List, Optional

from artisan_ledger.config import Settings, settings as default_settings
from artisan_ledger.engine.batches import BatchProcessor
from artisan_ledger.engine.costing import CostingEngine
from artisan_ledger.engine.counts import SpotCheckRecorder
from artisan_ledger.engine.ids import IdSequence
from artisan_ledger.engine.ledger import TransactionLedger, utcnow
from artisan_ledger.engine.locks import ItemLockManager
from artisan_ledger.engine.purchases import PurchaseRecorder
from artisan_ledger.engine.recipes import RecipeBook, RecipeResolver
from artisan_ledger.engine.registry import ItemRegistry
from artisan_ledger.engine.reorder import ReorderMonitor
from artisan_ledger.engine.sales import SalesRecorder
from artisan_ledger.exceptions import LedgerInvariantError
from artisan_ledger.schemas import (
    Alert,
    Batch,
    BatchCreate,
    BatchResult,
    DashboardMetrics,
    Item,
    ItemCreate,
    ItemResult,
    ItemStatus,
    ItemType,
    LedgerCheck,
    Purchase,
    PurchaseCreate,
    PurchaseResult,
    Recipe,
    RecipeCapacity,
    RecipeCostEstimate,
    RecipeCreate,
    RecipeRevision,
    Sale,
    SaleCreate,
    SaleResult,
    SalesMonth,
    SalesMonthCreate,
    SpotCheck,
    SpotCheckCreate,
    SpotCheckResult,
    StockLevels,
    Supplier,
    SupplierCreate,
    Transaction,
)
from artisan_ledger.utils.numbers import ZERO, to_money, to_percent

logger = logging.getLogger(__name__)


class LedgerService:
    def __init__(self, settings: Optional[Settings] = None, journal=None, clock=None):
        self.settings = settings or default_settings
        self.journal = journal
        clock = clock or utcnow
        self._clock = clock

        self.ids = IdSequence()
        self.locks = ItemLockManager(
            timeout=self.settings.LOCK_TIMEOUT_SECONDS,
            retry_attempts=self.settings.LOCK_RETRY_ATTEMPTS,
            backoff=self.settings.LOCK_RETRY_BACKOFF_SECONDS,
        )
        self.ledger = TransactionLedger(self.locks, self.ids, journal=journal, clock=clock)
        self.costing = CostingEngine(self.settings.LABOR_RATE_PER_HOUR)
        self.registry = ItemRegistry(self.ids, self.locks, self.ledger, clock=clock)
        self.counts = SpotCheckRecorder(self.ids, self.locks, self.ledger, self.registry, clock=clock)
        self.recipes = RecipeBook(self.ids, self.ledger, self.registry, self.costing, clock=clock)
        self.resolver = RecipeResolver(self.recipes, self.registry)
        self.batches = BatchProcessor(
            self.ids, self.locks, self.ledger, self.registry, self.recipes, self.costing, clock=clock
        )
        self.purchases = PurchaseRecorder(
            self.ids, self.locks, self.ledger, self.registry, self.costing, clock=clock
        )
        self.sales = SalesRecorder(self.ids, self.locks, self.ledger, self.registry, clock=clock)
        self.reorder = ReorderMonitor(self.registry)

    # ====================
    # ITEMS
    # ====================

    def create_item(self, data: ItemCreate) -> ItemResult:
        return self.registry.create(data, opening_balance=self.counts.stage_opening_balance)

    def get_item(self, item_id: str) -> Item:
        return self.registry.get(item_id)

    def list_items(
        self,
        type: Optional[ItemType] = None,
        status: Optional[ItemStatus] = None,
        search: Optional[str] = None,
        include_archived: bool = False,
    ) -> List[Item]:
        return self.registry.list(type=type, status=status, search=search, include_archived=include_archived)

    def archive_item(self, item_id: str) -> Item:
        return self.registry.archive(item_id)

    def get_transaction_history(self, item_id: str) -> List[Transaction]:
        self.registry.resolve(item_id)
        return list(self.ledger.history(item_id))

    # ====================
    # SUPPLIERS & PURCHASES
    # ====================

    def create_supplier(self, data: SupplierCreate) -> Supplier:
        return self.purchases.create_supplier(data)

    def get_supplier(self, supplier_id: str) -> Supplier:
        return self.purchases.get_supplier(supplier_id)

    def list_suppliers(self, include_archived: bool = False) -> List[Supplier]:
        return self.purchases.list_suppliers(include_archived=include_archived)

    def archive_supplier(self, supplier_id: str) -> Supplier:
        return self.purchases.archive_supplier(supplier_id)

    def record_purchase(self, data: PurchaseCreate) -> PurchaseResult:
        return self.purchases.record(data)

    def get_purchase(self, purchase_id: str) -> Purchase:
        return self.purchases.get(purchase_id)

    def list_purchases(self, supplier_id: Optional[str] = None) -> List[Purchase]:
        return self.purchases.list(supplier_id=supplier_id)

    # ====================
    # RECIPES & BATCHES
    # ====================

    def create_recipe(self, data: RecipeCreate) -> Recipe:
        return self.recipes.create(data)

    def revise_recipe(self, recipe_id: str, data: RecipeRevision) -> Recipe:
        return self.recipes.revise(recipe_id, data)

    def get_recipe(self, recipe_id: str) -> Recipe:
        return self.recipes.get(recipe_id)

    def list_recipes(self, include_archived: bool = False) -> List[Recipe]:
        return self.recipes.list(include_archived=include_archived)

    def get_recipe_capacity(self, recipe_id: str) -> RecipeCapacity:
        return self.resolver.max_batches(recipe_id)

    def estimate_recipe_cost(self, recipe_id: str, batches: int = 1) -> RecipeCostEstimate:
        return self.recipes.estimate_cost(recipe_id, batches)

    def record_batch(self, data: BatchCreate) -> BatchResult:
        return self.batches.run(data)

    def get_batch(self, batch_id: str) -> Batch:
        return self.batches.get(batch_id)

    def list_batches(self, recipe_id: Optional[str] = None) -> List[Batch]:
        return self.batches.list(recipe_id=recipe_id)

    # ====================
    # SPOT CHECKS & SALES
    # ====================

    def record_spot_check(self, data: SpotCheckCreate) -> SpotCheckResult:
        return self.counts.record(data)

    def list_spot_checks(self, item_id: Optional[str] = None) -> List[SpotCheck]:
        return self.counts.list(item_id=item_id)

    def record_sale(self, data: SaleCreate) -> SaleResult:
        return self.sales.record(data)

    def list_sales(self, item_id: Optional[str] = None) -> List[Sale]:
        return self.sales.list(item_id=item_id)

    def import_sales_month(self, data: SalesMonthCreate) -> SalesMonth:
        return self.sales.import_month(data)

    def monthly_sales(self, item_id: Optional[str] = None) -> List[SalesMonth]:
        return self.sales.monthly(item_id=item_id)

    # ====================
    # DASHBOARD
    # ====================

    def get_stock_levels(self) -> StockLevels:
        return self.reorder.levels()

    def get_alerts(self) -> List[Alert]:
        return self.reorder.alerts()

    def get_dashboard_metrics(self, today: Optional[date] = None) -> DashboardMetrics:
        today = today or self._clock().date()
        levels = self.reorder.levels()
        items = levels.out_of_stock + levels.low_stock + levels.in_stock
        inventory_value = to_money(sum(
            (i.current_quantity * i.weighted_average_cost for i in items), ZERO
        ))

        batches = self.batches.list()
        if batches:
            avg_yield = to_percent(sum((b.yield_percentage for b in batches), ZERO) / len(batches))
        else:
            avg_yield = to_percent(ZERO)

        def this_month(d: date) -> bool:
            return (d.year, d.month) == (today.year, today.month)

        return DashboardMetrics(
            inventory_value=inventory_value,
            total_items=len(items),
            low_stock_items=levels.low_stock,
            out_of_stock_items=levels.out_of_stock,
            in_stock_count=len(levels.in_stock),
            avg_yield_percentage=avg_yield,
            batches_this_month=sum(1 for b in batches if this_month(b.date_created)),
            purchases_this_month=sum(1 for p in self.purchases.list() if this_month(p.purchase_date)),
        )

    # ====================
    # LEDGER INTEGRITY
    # ====================

    def verify_ledger(self) -> LedgerCheck:
        """Recompute every item's prefix sums. Raises LedgerInvariantError on a mismatch."""
        items = self.registry.snapshot(include_archived=True)
        checked = 0
        for item in items:
            with self.locks.hold([item.item_id]):
                checked += self.ledger.verify(self.registry.resolve(item.item_id))
        logger.info(f"Ledger verified: {len(items)} items, {checked} transactions")
        return LedgerCheck(items_checked=len(items), transactions_checked=checked, status="ok")

    def all_transactions(self) -> List[Transaction]:
        return self.ledger.all_transactions()

    def is_empty(self) -> bool:
        return len(self.registry) == 0

    def restore(self) -> LedgerCheck:
        """Rebuild in-memory state from the journal and verify it."""
        if self.journal is None:
            raise LedgerInvariantError("No journal configured to restore from")
        snapshot = self.journal.load()
        self.registry.restore(snapshot.items)
        self.purchases.restore(snapshot.suppliers, snapshot.purchases)
        self.recipes.restore(snapshot.recipes)
        self.batches.restore(snapshot.batches)
        self.counts.restore(snapshot.spot_checks)
        self.sales.restore(snapshot.sales, snapshot.sales_months)
        self.ledger.restore(snapshot.transactions)
        for identifier in snapshot.ids():
            self.ids.observe(identifier)
        return self.verify_ledger()

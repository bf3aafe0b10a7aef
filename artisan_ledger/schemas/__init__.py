"""
Pydantic schemas for ledger entities, commands and command results.
"""
from artisan_ledger.schemas.inventory import (
    InventoryUnit,
    Item,
    ItemCreate,
    ItemResult,
    ItemStatus,
    ItemType,
    SpotCheck,
    SpotCheckCreate,
    SpotCheckResult,
    Transaction,
    TransactionType,
)
from artisan_ledger.schemas.purchasing import (
    Purchase,
    PurchaseCreate,
    PurchaseLineItem,
    PurchaseLineItemCreate,
    PurchaseResult,
    Supplier,
    SupplierCreate,
)
from artisan_ledger.schemas.production import (
    Batch,
    BatchCreate,
    BatchResult,
    BatchState,
    Recipe,
    RecipeCapacity,
    RecipeCostEstimate,
    RecipeCreate,
    RecipeIngredient,
    RecipeIngredientCreate,
    RecipeRevision,
)
from artisan_ledger.schemas.sales import (
    Sale,
    SaleCreate,
    SaleResult,
    SalesDataSource,
    SalesMonth,
    SalesMonthCreate,
)
from artisan_ledger.schemas.dashboard import (
    Alert,
    AlertLevel,
    AlertType,
    DashboardMetrics,
    LedgerCheck,
    StockLevels,
)

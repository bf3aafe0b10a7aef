from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from artisan_ledger.config import Settings
from artisan_ledger.crud.journal import LedgerJournal
from artisan_ledger.database import build_engine, init_db
from artisan_ledger.engine import LedgerService
from artisan_ledger.main import create_app
from artisan_ledger.schemas import (
    InventoryUnit,
    ItemCreate,
    ItemType,
    PurchaseCreate,
    PurchaseLineItemCreate,
    RecipeCreate,
    RecipeIngredientCreate,
    SupplierCreate,
)


def make_settings(**overrides) -> Settings:
    values = dict(
        DATABASE_URL=None,
        LOCK_TIMEOUT_SECONDS=0.2,
        LOCK_RETRY_ATTEMPTS=2,
        LOCK_RETRY_BACKOFF_SECONDS=0.01,
        SEED_SAMPLE_DATA=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def ledger(settings):
    return LedgerService(settings=settings)


@pytest.fixture
def db_engine():
    engine = build_engine("sqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def journal(db_engine):
    return LedgerJournal(db_engine)


@pytest.fixture
def journaled_ledger(settings, journal):
    return LedgerService(settings=settings, journal=journal)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_item(ledger):
    def _make(
        sku,
        quantity="0",
        cost="0",
        type=ItemType.INGREDIENT,
        reorder_point="0",
        unit=InventoryUnit.LBS,
        name=None,
        service=None,
    ):
        service = service or ledger
        return service.create_item(ItemCreate(
            name=name or sku.title(),
            sku=sku,
            type=type,
            inventory_unit=unit,
            reorder_point=Decimal(reorder_point),
            initial_quantity=Decimal(quantity),
            unit_cost=Decimal(cost),
        )).item
    return _make


@pytest.fixture
def supplier(ledger):
    return ledger.create_supplier(SupplierCreate(name="Organic Valley Co-op"))


@pytest.fixture
def buy(ledger, supplier):
    """Record one purchase of ``(item_id, quantity, unit_cost)`` lines."""
    def _buy(*lines, service=None, supplier_id=None):
        service = service or ledger
        return service.record_purchase(PurchaseCreate(
            supplier_id=supplier_id or supplier.supplier_id,
            line_items=[
                PurchaseLineItemCreate(item_id=item_id, quantity=Decimal(q), unit_cost=Decimal(c))
                for item_id, q, c in lines
            ],
        ))
    return _buy


@pytest.fixture
def make_recipe(ledger):
    def _make(yields_item_id, ingredients, expected_yield="1", labor_minutes=0, name="Test Recipe", service=None):
        service = service or ledger
        return service.create_recipe(RecipeCreate(
            name=name,
            yields_item_id=yields_item_id,
            expected_yield=Decimal(expected_yield),
            labor_minutes=labor_minutes,
            ingredients=[
                RecipeIngredientCreate(item_id=item_id, quantity=Decimal(q))
                for item_id, q in ingredients
            ],
        ))
    return _make


@pytest.fixture
def assert_consistent():
    """Quantity equals the ledger sum and every prefix sum lines up, for every item."""
    def _check(service: LedgerService) -> None:
        for item in service.registry.snapshot(include_archived=True):
            history = service.get_transaction_history(item.item_id)
            running = Decimal("0")
            for txn in history:
                running += txn.quantity_change
                assert txn.new_quantity == running
            assert item.current_quantity == running
    return _check

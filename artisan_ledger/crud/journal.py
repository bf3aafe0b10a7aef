"""
Durable journal for ledger postings.

Each posting is written in one database transaction: entity post-images,
then the new ledger rows, then one audit row. The engine applies a posting
to memory only after ``persist`` returns, so a failed write leaves both the
database and memory unchanged.
"""
import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from artisan_ledger import models, schemas
from artisan_ledger.crud.base import CRUDBase
from artisan_ledger.database import build_session_factory

logger = logging.getLogger(__name__)

crud_supplier = CRUDBase(models.Supplier)
crud_item = CRUDBase(models.Item)
crud_recipe = CRUDBase(models.Recipe)
crud_recipe_ingredient = CRUDBase(models.RecipeIngredient)
crud_purchase = CRUDBase(models.Purchase)
crud_purchase_line = CRUDBase(models.PurchaseLineItem)
crud_batch = CRUDBase(models.Batch)
crud_spot_check = CRUDBase(models.SpotCheck)
crud_transaction = CRUDBase(models.Transaction)
crud_sale = CRUDBase(models.Sale)
crud_sales_month = CRUDBase(models.SalesMonth)
crud_audit = CRUDBase(models.AuditLog)

WRITERS = {
    schemas.Supplier: crud_supplier,
    schemas.Item: crud_item,
    schemas.Recipe: crud_recipe,
    schemas.Purchase: crud_purchase,
    schemas.Batch: crud_batch,
    schemas.SpotCheck: crud_spot_check,
    schemas.Sale: crud_sale,
    schemas.SalesMonth: crud_sales_month,
}


def _row(entity: BaseModel, exclude=None) -> Dict[str, Any]:
    values = {}
    for name, value in entity:
        if exclude and name in exclude:
            continue
        values[name] = value.value if isinstance(value, Enum) else value
    return values


def _attach_utc(entity: BaseModel) -> BaseModel:
    # SQLite hands back naive datetimes; everything was written in UTC
    updates = {
        name: value.replace(tzinfo=timezone.utc)
        for name, value in entity
        if isinstance(value, datetime) and value.tzinfo is None
    }
    return entity.model_copy(update=updates) if updates else entity


class JournalSnapshot:
    """Everything the journal holds, as engine entities."""

    def __init__(self):
        self.suppliers: List[schemas.Supplier] = []
        self.items: List[schemas.Item] = []
        self.recipes: List[schemas.Recipe] = []
        self.purchases: List[schemas.Purchase] = []
        self.batches: List[schemas.Batch] = []
        self.spot_checks: List[schemas.SpotCheck] = []
        self.transactions: List[schemas.Transaction] = []
        self.sales: List[schemas.Sale] = []
        self.sales_months: List[schemas.SalesMonth] = []

    def ids(self) -> List[str]:
        out = []
        out.extend(s.supplier_id for s in self.suppliers)
        out.extend(i.item_id for i in self.items)
        for recipe in self.recipes:
            out.append(recipe.recipe_id)
            out.extend(i.recipe_ingredient_id for i in recipe.ingredients)
        for purchase in self.purchases:
            out.append(purchase.purchase_id)
            out.extend(l.purchase_line_item_id for l in purchase.line_items)
        out.extend(b.batch_id for b in self.batches)
        out.extend(s.spot_check_id for s in self.spot_checks)
        out.extend(t.transaction_id for t in self.transactions)
        out.extend(s.sale_id for s in self.sales)
        out.extend(m.sales_month_id for m in self.sales_months)
        return out


class LedgerJournal:
    def __init__(self, engine: Engine, audit_all: bool = True):
        self.engine = engine
        self.audit_all = audit_all
        self._session_factory = build_session_factory(engine)
        # SQLite allows one writer at a time
        self._write_guard = threading.Lock() if engine.dialect.name == "sqlite" else None

    def _write(self, db, entity: BaseModel) -> None:
        if isinstance(entity, schemas.Recipe):
            crud_recipe.upsert(db, obj_in=_row(entity, exclude={"ingredients"}))
            for ingredient in entity.ingredients:
                crud_recipe_ingredient.upsert(db, obj_in=_row(ingredient))
        elif isinstance(entity, schemas.Purchase):
            crud_purchase.upsert(db, obj_in=_row(entity, exclude={"line_items"}))
            for line in entity.line_items:
                crud_purchase_line.upsert(db, obj_in=_row(line))
        else:
            WRITERS[type(entity)].upsert(db, obj_in=_row(entity))

    def persist(self, post) -> None:
        """Write one posting atomically. Raises SQLAlchemyError on failure."""
        if self._write_guard is not None:
            with self._write_guard:
                self._persist(post)
        else:
            self._persist(post)

    def _persist(self, post) -> None:
        with self._session_factory() as db:
            try:
                for entity in post.entities():
                    self._write(db, entity)
                for txn in post.transactions:
                    crud_transaction.add(db, obj_in=_row(txn))
                if self.audit_all or post.transactions:
                    crud_audit.add(db, obj_in={
                        "action": post.action,
                        "transaction_ids": [t.transaction_id for t in post.transactions],
                        "new_values": post.audit or None,
                    })
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Journal write failed for {post.action}: {e}")
                raise

    def load(self) -> JournalSnapshot:
        snapshot = JournalSnapshot()
        with self._session_factory() as db:
            snapshot.suppliers = [schemas.Supplier.model_validate(r) for r in crud_supplier.get_multi(db)]
            snapshot.items = [
                _attach_utc(schemas.Item.model_validate(r)) for r in crud_item.get_multi(db)
            ]
            snapshot.recipes = [
                _attach_utc(schemas.Recipe.model_validate(r)) for r in crud_recipe.get_multi(db)
            ]
            snapshot.purchases = [schemas.Purchase.model_validate(r) for r in crud_purchase.get_multi(db)]
            snapshot.batches = [schemas.Batch.model_validate(r) for r in crud_batch.get_multi(db)]
            snapshot.spot_checks = [
                _attach_utc(schemas.SpotCheck.model_validate(r)) for r in crud_spot_check.get_multi(db)
            ]
            snapshot.transactions = [
                _attach_utc(schemas.Transaction.model_validate(r))
                for r in crud_transaction.get_multi(db, order_by=models.Transaction.sequence)
            ]
            snapshot.sales = [schemas.Sale.model_validate(r) for r in crud_sale.get_multi(db)]
            snapshot.sales_months = [
                schemas.SalesMonth.model_validate(r) for r in crud_sales_month.get_multi(db)
            ]
        logger.info(
            f"Journal loaded: {len(snapshot.items)} items, {len(snapshot.transactions)} transactions"
        )
        return snapshot

    def audit_entries(self) -> List[models.AuditLog]:
        with self._session_factory() as db:
            return crud_audit.get_multi(db)

"""
Base CRUD operations with SQLAlchemy 2.x patterns.
Journal writes are upserts keyed by the engine's string ids.
"""
from sqlalchemy import select, inspect
from sqlalchemy.orm import Session
import logging
from typing import TypeVar, Generic, Type, Optional, List, Dict, Any
from artisan_ledger.database import Base

logger = logging.getLogger(__name__)
ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model
        self.pk = inspect(model).primary_key[0]
        self.columns = {c.key for c in inspect(model).column_attrs}

    def get(self, db: Session, id: str) -> Optional[ModelType]:
        """Get record by primary key using SQLAlchemy 2.x select()"""
        stmt = select(self.model).where(self.pk == id)
        return db.execute(stmt).scalar_one_or_none()

    def get_multi(self, db: Session, *, order_by=None) -> List[ModelType]:
        """Get every record, in primary key order unless told otherwise"""
        stmt = select(self.model).order_by(order_by if order_by is not None else self.pk)
        return list(db.execute(stmt).scalars().all())

    def upsert(self, db: Session, *, obj_in: Dict[str, Any]) -> ModelType:
        """
        Insert or update one row from ``obj_in``. Keys that are not columns
        are ignored. Flushes so later rows can reference this one.
        """
        values = {k: v for k, v in obj_in.items() if k in self.columns}
        obj = db.merge(self.model(**values))
        db.flush()
        return obj

    def add(self, db: Session, *, obj_in: Dict[str, Any]) -> ModelType:
        """Plain insert, for append-only tables."""
        values = {k: v for k, v in obj_in.items() if k in self.columns}
        obj = self.model(**values)
        db.add(obj)
        return obj

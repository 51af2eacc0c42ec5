"""
Record store used by the occupancy core.

The core only needs per-table get/insert/update/query. Every write is committed
on its own, so a caller always reads back what it just wrote, and a failure
half way through a multi-step operation leaves the earlier writes in place.
"""
import logging
from typing import Any, Mapping, Optional, Sequence

from fastapi import Depends
from sqlalchemy import func, select, update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import get_db
from .errors import StoreError

logger = logging.getLogger(__name__)


class RecordStore:
    """Interface the services depend on. ``model`` is a mapped class."""

    def get(self, model, record_id: int):
        raise NotImplementedError

    def insert(self, model, values: Mapping[str, Any]):
        raise NotImplementedError

    def update(self, model, record_id: int, fields: Mapping[str, Any], expect: Optional[Mapping[str, Any]] = None):
        raise NotImplementedError

    def query(self, model, filters: Optional[Mapping[str, Any]] = None, order_by: Sequence[str] = ()) -> list:
        raise NotImplementedError

    def count(self, model, filters: Optional[Mapping[str, Any]] = None) -> int:
        raise NotImplementedError

    def delete(self, model, record_id: int) -> bool:
        raise NotImplementedError


def _conditions(model, filters: Optional[Mapping[str, Any]]):
    conds = []
    for key, value in (filters or {}).items():
        col = getattr(model, key)
        if isinstance(value, (list, tuple, set, frozenset)):
            conds.append(col.in_(list(value)))
        elif value is None:
            conds.append(col.is_(None))
        else:
            conds.append(col == value)
    return conds


def _ordering(model, order_by: Sequence[str]):
    cols = []
    for key in order_by:
        if key.startswith("-"):
            cols.append(getattr(model, key[1:]).desc())
        else:
            cols.append(getattr(model, key).asc())
    return cols


class SqlRecordStore(RecordStore):
    """RecordStore over a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, model, exc: Exception):
        self.db.rollback()
        logger.error("Store %s on %s failed: %s", action, model.__tablename__, exc)
        raise StoreError(f"{action} on {model.__tablename__} failed", table=model.__tablename__) from exc

    def get(self, model, record_id: int):
        try:
            # Always read the row, not the session's cached copy
            return self.db.get(model, record_id, populate_existing=True)
        except SQLAlchemyError as e:
            self._fail("get", model, e)

    def insert(self, model, values: Mapping[str, Any]):
        try:
            obj = model(**values)
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            return obj
        except SQLAlchemyError as e:
            self._fail("insert", model, e)

    def update(self, model, record_id: int, fields: Mapping[str, Any], expect: Optional[Mapping[str, Any]] = None):
        """Apply ``fields`` to one row and return it, or None if no row matched.

        ``expect`` adds column conditions to the UPDATE so the write only lands
        if the row still holds those values.
        """
        stmt = (
            sa_update(model)
            .where(model.id == record_id, *_conditions(model, expect))
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
            if result.rowcount == 0:
                return None
            return self.db.get(model, record_id, populate_existing=True)
        except SQLAlchemyError as e:
            self._fail("update", model, e)

    def query(self, model, filters: Optional[Mapping[str, Any]] = None, order_by: Sequence[str] = ()) -> list:
        stmt = select(model).where(*_conditions(model, filters)).order_by(*_ordering(model, order_by))
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._fail("query", model, e)

    def count(self, model, filters: Optional[Mapping[str, Any]] = None) -> int:
        stmt = select(func.count()).select_from(model).where(*_conditions(model, filters))
        try:
            return int(self.db.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            self._fail("count", model, e)

    def delete(self, model, record_id: int) -> bool:
        try:
            obj = self.db.get(model, record_id)
            if obj is None:
                return False
            self.db.delete(obj)
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self._fail("delete", model, e)


def get_store(db: Session = Depends(get_db)) -> SqlRecordStore:
    return SqlRecordStore(db)

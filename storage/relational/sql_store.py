"""
SQLAlchemy implementation of the entity store.

The repository pattern isolates database operations from business logic.
Each entity kind maps onto one ORM table (see storage.relational.models);
records go in and come out as plain dicts.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import asc, desc
from sqlalchemy.orm import sessionmaker

from storage.interface import EntityStore, OPERATORS, QueryFilter, QueryOrder
from storage.relational.models import KIND_MODELS


def _plain(value: Any) -> Any:
    """Enums are stored by value"""
    if isinstance(value, Enum):
        return value.value
    return value


class SqlAlchemyEntityStore(EntityStore):
    """
    Entity store over a SQLAlchemy session factory.

    No operation holds a transaction across calls: each method opens a
    session, commits once and closes it.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @staticmethod
    def _model_for(kind: str):
        try:
            return KIND_MODELS[kind]
        except KeyError:
            raise ValueError(f"Unknown entity kind: {kind}")

    @staticmethod
    def _column(model, field: str):
        if field not in model.__table__.columns:
            raise ValueError(f"Unknown field '{field}' for {model.__tablename__}")
        return getattr(model, field)

    @staticmethod
    def _to_record(row) -> Dict[str, Any]:
        record = {}
        for column in row.__table__.columns:
            value = getattr(row, column.name)
            # SQLite drops tzinfo; everything is stored as UTC
            if isinstance(value, datetime) and value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            record[column.name] = value
        return record

    @staticmethod
    def _to_row(model, entity: Dict[str, Any]):
        if not entity.get("id"):
            raise ValueError(f"Cannot save {model.__tablename__} row without an id")
        values = {
            column.name: _plain(entity.get(column.name))
            for column in model.__table__.columns
            if column.name in entity
        }
        return model(**values)

    def get(self, kind: str, entity_id: str) -> Optional[Dict[str, Any]]:
        model = self._model_for(kind)
        session = self._session_factory()
        try:
            row = session.get(model, entity_id)
            return self._to_record(row) if row is not None else None
        finally:
            session.close()

    def query(
        self,
        kind: str,
        filters: Optional[List[QueryFilter]] = None,
        order_by: Optional[List[QueryOrder]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        model = self._model_for(kind)
        session = self._session_factory()
        try:
            query = session.query(model)

            for f in filters or []:
                column = self._column(model, f.field)
                query = query.filter(OPERATORS[f.op](column, _plain(f.value)))

            for order in order_by or []:
                column = self._column(model, order.field)
                query = query.order_by(desc(column) if order.direction == "desc" else asc(column))

            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)

            return [self._to_record(row) for row in query.all()]
        finally:
            session.close()

    def save(self, kind: str, entity: Dict[str, Any]) -> None:
        self.batch_save(kind, [entity])

    def delete(self, kind: str, entity_id: str) -> None:
        self.batch_delete(kind, [entity_id])

    def batch_save(self, kind: str, entities: List[Dict[str, Any]]) -> None:
        model = self._model_for(kind)
        rows = [self._to_row(model, entity) for entity in entities]
        if not rows:
            return

        session = self._session_factory()
        try:
            for row in rows:
                session.merge(row)
            session.commit()
            logger.debug(f"[STORE] Saved {len(rows)} {kind} row(s)")
        except Exception as e:
            session.rollback()
            logger.error(f"[STORE] Error saving {kind}: {type(e).__name__}: {e}")
            raise
        finally:
            session.close()

    def batch_delete(self, kind: str, entity_ids: List[str]) -> None:
        model = self._model_for(kind)
        if not entity_ids:
            return

        session = self._session_factory()
        try:
            deleted = session.query(model).filter(
                model.id.in_(list(entity_ids))
            ).delete(synchronize_session=False)
            session.commit()
            logger.debug(f"[STORE] Deleted {deleted} {kind} row(s)")
        except Exception as e:
            session.rollback()
            logger.error(f"[STORE] Error deleting {kind}: {type(e).__name__}: {e}")
            raise
        finally:
            session.close()
